"""
Heuristic gate deciding whether an image's colors are worth ranking on.

A muted, near-monochrome, or low-confidence palette produces a color
vector that says little about the image. Such queries fall back to
text-weighted scoring instead (see scoring.adaptive_weights).
"""

import os
import logging
from typing import Sequence

import numpy as np

from .types import COLOR_VECTOR_DIM, Distinctiveness, Swatch

logger = logging.getLogger(__name__)

MIN_SWATCHES = 2
MIN_TOP_POPULATION = int(os.environ.get("COLORWALK_MIN_TOP_POPULATION", "10"))
MIN_VECTOR_STDDEV = float(os.environ.get("COLORWALK_MIN_VECTOR_STDDEV", "0.08"))


def classify_distinctiveness(swatches: Sequence[Swatch],
                             color_vector: Sequence[float],
                             min_top_population: int = None,
                             min_stddev: float = None) -> Distinctiveness:
    """
    Classify a palette as distinctive or not.

    Checks run in order and stop at the first failure:
        1. At least two swatches
        2. The most populous swatch reaches the population floor
        3. Population std-dev of the vector values reaches the floor

    Args:
        swatches: Palette sorted by population (most populous first).
        color_vector: The 15-d vector built from the same palette.
        min_top_population: Override for MIN_TOP_POPULATION.
        min_stddev: Override for MIN_VECTOR_STDDEV.

    Returns:
        DISTINCTIVE or NOT_DISTINCTIVE.

    Raises:
        ValueError: If the vector is not 15-dimensional.
    """
    if len(color_vector) != COLOR_VECTOR_DIM:
        raise ValueError(
            f"Expected a {COLOR_VECTOR_DIM}-d color vector, got {len(color_vector)}"
        )
    if min_top_population is None:
        min_top_population = MIN_TOP_POPULATION
    if min_stddev is None:
        min_stddev = MIN_VECTOR_STDDEV

    if len(swatches) < MIN_SWATCHES:
        return Distinctiveness.NOT_DISTINCTIVE

    if swatches[0].population < min_top_population:
        return Distinctiveness.NOT_DISTINCTIVE

    # np.std defaults to the population standard deviation (ddof=0)
    std_dev = float(np.std(np.asarray(color_vector, dtype=np.float64)))
    if std_dev < min_stddev:
        logger.debug(f"Palette too uniform: std-dev {std_dev:.4f} < {min_stddev}")
        return Distinctiveness.NOT_DISTINCTIVE

    return Distinctiveness.DISTINCTIVE


def is_distinctive(swatches: Sequence[Swatch], color_vector: Sequence[float]) -> bool:
    return classify_distinctiveness(swatches, color_vector) is Distinctiveness.DISTINCTIVE
