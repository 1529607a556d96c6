"""
Color search engine.

Orchestrates the query pipeline:
    1. Extract query features (color + optional text)
    2. Fetch candidate places that carry any feature
    3. Score every candidate with adaptive color/text weights
    4. Drop candidates below the threshold, rank, and cap

Each search builds its own query record and shares no mutable state
with concurrent searches.
"""

import os
import logging
from typing import Any, Dict, Optional

from .errors import InvalidQueryError, NoUsableSignalError
from .extraction import FeaturePipeline
from .scoring import adaptive_weights, rank_results, score_candidate
from .store import PlaceStore

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = float(os.environ.get("COLORWALK_SEARCH_THRESHOLD", "0.4"))
DEFAULT_LIMIT = int(os.environ.get("COLORWALK_SEARCH_LIMIT", "10"))


class SearchEngine:
    """
    Hybrid similarity search over stored places.
    """

    def __init__(self, store: PlaceStore, pipeline: FeaturePipeline,
                 threshold: float = None, limit: int = None):
        """
        Args:
            store: Place store to read candidates from.
            pipeline: Feature extraction pipeline for query images.
            threshold: Default minimum score (inclusive).
            limit: Default maximum number of results.
        """
        self.store = store
        self.pipeline = pipeline
        self.threshold = DEFAULT_THRESHOLD if threshold is None else threshold
        self.limit = DEFAULT_LIMIT if limit is None else limit

    def search(self,
               image: Any,
               query_text: Optional[str] = None,
               owner_id: Optional[str] = None,
               threshold: float = None,
               limit: int = None) -> Dict[str, Any]:
        """
        Find places visually and semantically similar to a query photo.

        Args:
            image: Query image (array, bytes, path, or URL).
            query_text: Optional free text describing what is wanted.
            owner_id: Restrict candidates to one creator.
            threshold: Minimum score in [0, 1]; lower scores are dropped.
            limit: Maximum number of results (>= 1).

        Returns:
            Dict with 'results' (ranked list of place summaries with
            similarity_score and score_breakdown) and 'meta'.

        Raises:
            InvalidQueryError: No image supplied or bad threshold/limit.
            NoUsableSignalError: Neither color nor text could be extracted.
        """
        threshold = self.threshold if threshold is None else threshold
        limit = self.limit if limit is None else limit
        self._validate(image, threshold, limit)

        extraction = self.pipeline.extract_for_query(image, query_text)
        if extraction.failed:
            raise NoUsableSignalError()
        query = extraction.record
        weights = adaptive_weights(query.distinctiveness)

        candidates = self.store.list_candidates(owner_id)

        results = []
        for place in candidates:
            breakdown = score_candidate(query, place.features)
            if breakdown.score < threshold:
                continue
            results.append({
                "place": place.summary(),
                "similarity_score": breakdown.score,
                "score_breakdown": breakdown.to_dict(),
            })

        results = rank_results(results)[:limit]
        for result in results:
            result["similarity_score"] = round(result["similarity_score"], 4)

        logger.info(
            f"Search complete: {len(candidates)} candidates → "
            f"{len(results)} results (colorful={query.distinctiveness.as_flag()})"
        )

        return {
            "results": results,
            "meta": {
                "result_count": len(results),
                "candidates_scored": len(candidates),
                "query_is_colorful": query.distinctiveness.as_flag(),
                "weights_used": weights.to_dict(),
                "query_palette": [s.hex for s in (query.palette or ())],
                "threshold": threshold,
                "limit": limit,
            },
        }

    @staticmethod
    def _validate(image: Any, threshold: float, limit: int):
        if image is None or (isinstance(image, (bytes, bytearray, str)) and not image):
            raise InvalidQueryError("No image supplied")
        if not 0.0 <= threshold <= 1.0:
            raise InvalidQueryError(f"threshold must be within [0, 1], got {threshold}")
        if limit < 1:
            raise InvalidQueryError(f"limit must be at least 1, got {limit}")
