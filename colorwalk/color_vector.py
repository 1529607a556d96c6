"""
Palette -> fixed-length normalized Lab vector.

Layout: [L1, a1, b1, L2, a2, b2, ..., L5, a5, b5], every value in [0, 1].
Palettes with fewer than five colors are padded with neutral gray
(Lab 50, 0, 0) so every vector has the same dimension.
"""

from typing import List, Sequence

from .color_space import normalize_lab, rgb_to_lab
from .types import COLOR_VECTOR_DIM, Swatch

PALETTE_SIZE = COLOR_VECTOR_DIM // 3
GRAY_LAB = (50.0, 0.0, 0.0)


def select_top_swatches(swatches: Sequence[Swatch],
                        limit: int = PALETTE_SIZE) -> List[Swatch]:
    """Sort by population (descending, stable) and keep the first `limit`."""
    ranked = sorted(swatches, key=lambda s: s.population, reverse=True)
    return ranked[:limit]


def build_color_vector(swatches: Sequence[Swatch]) -> List[float]:
    """
    Build the 15-d color vector for an already ranked palette.

    Swatch order is preserved as given; it is never re-sorted here.

    Args:
        swatches: Palette sorted by population, at most five used.

    Returns:
        List of exactly 15 floats in [0, 1].
    """
    labs = [rgb_to_lab(*s.rgb) for s in swatches[:PALETTE_SIZE]]
    while len(labs) < PALETTE_SIZE:
        labs.append(GRAY_LAB)

    vector = []
    for lab in labs:
        vector.extend(normalize_lab(lab))
    return vector
