"""
Hybrid color + text similarity scoring.

Combines two independent signals into one score:
    - cosine similarity of the 15-d Lab color vectors
    - cosine similarity of the text embeddings

The blend is chosen from the *query* image's distinctiveness only. A
muted or failed query photo falls back to text-driven ranking rather
than letting a noisy color signal dominate.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Union

import numpy as np

from .types import Distinctiveness, FeatureRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Weights:
    color_weight: float
    text_weight: float

    def to_dict(self) -> Dict[str, float]:
        return {"color_weight": self.color_weight, "text_weight": self.text_weight}


DEFAULT_WEIGHTS = {
    Distinctiveness.DISTINCTIVE: Weights(color_weight=0.6, text_weight=0.4),
    Distinctiveness.NOT_DISTINCTIVE: Weights(color_weight=0.2, text_weight=0.8),
    Distinctiveness.UNANALYZED: Weights(color_weight=0.0, text_weight=1.0),
}


@dataclass(frozen=True)
class ScoreBreakdown:
    score: float
    color: float
    text: float
    weights: Weights

    def to_dict(self, ndigits: int = 4) -> Dict[str, object]:
        return {
            "color": round(self.color, ndigits),
            "text": round(self.text, ndigits),
            "weights": self.weights.to_dict(),
        }


def cosine_similarity(vec_a: Optional[Sequence[float]],
                      vec_b: Optional[Sequence[float]]) -> float:
    """
    Cosine similarity of two vectors, in [-1, 1].

    Absent vectors, length mismatches, and zero-magnitude vectors are
    non-comparable and return 0.0 instead of raising.
    """
    if vec_a is None or vec_b is None or len(vec_a) != len(vec_b) or len(vec_a) == 0:
        return 0.0

    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    mag_a = np.linalg.norm(a)
    mag_b = np.linalg.norm(b)
    if mag_a == 0 or mag_b == 0:
        return 0.0

    similarity = float(np.dot(a, b) / (mag_a * mag_b))
    return max(-1.0, min(1.0, similarity))


def adaptive_weights(distinctiveness: Union[Distinctiveness, bool, None],
                     weights: dict = None) -> Weights:
    """
    Pick the color/text blend for a query.

    Args:
        distinctiveness: Query distinctiveness, or the legacy
            True / False / None `isColorful` flag.
        weights: Optional override of DEFAULT_WEIGHTS.

    Returns:
        Weights whose components sum to 1.0.
    """
    if not isinstance(distinctiveness, Distinctiveness):
        distinctiveness = Distinctiveness.from_flag(distinctiveness)
    table = weights or DEFAULT_WEIGHTS
    return table[distinctiveness]


def score_candidate(query: FeatureRecord,
                    candidate: FeatureRecord,
                    weights: dict = None) -> ScoreBreakdown:
    """
    Score one candidate against the query record.

    Each component contributes only when both sides carry the vector;
    otherwise it is 0.
    """
    w = adaptive_weights(query.distinctiveness, weights)

    color = 0.0
    if query.has_color and candidate.has_color:
        color = cosine_similarity(query.color_vector, candidate.color_vector)

    text = 0.0
    if query.has_text and candidate.has_text:
        text = cosine_similarity(query.text_embedding, candidate.text_embedding)

    score = w.color_weight * color + w.text_weight * text
    return ScoreBreakdown(score=float(score), color=color, text=text, weights=w)


def rank_results(results: list) -> list:
    """
    Sort search results by score, highest first.

    Python's sort is stable, so equal scores keep their candidate order.

    Args:
        results: List of result dicts with a 'similarity_score' key.

    Returns:
        Sorted list (highest score first).
    """
    return sorted(results, key=lambda x: -x["similarity_score"])
