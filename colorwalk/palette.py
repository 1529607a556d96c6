"""
Dominant-color extraction.

The search pipeline only depends on the PaletteExtractor interface:
"give me up to six candidate colors with population weights". The
default implementation clusters pixels with OpenCV k-means on a
downscaled copy of the image; population is the cluster's pixel count.
"""

import os
import logging
from abc import ABC, abstractmethod
from typing import Any, List

import cv2
import numpy as np

from .color_space import rgb_to_hex
from .errors import ColorwalkError, PaletteExtractionError
from .preprocessing import downscale, load_image
from .types import Swatch

logger = logging.getLogger(__name__)

MAX_COLORS = int(os.environ.get("COLORWALK_PALETTE_MAX_COLORS", "6"))
MAX_SIDE = int(os.environ.get("COLORWALK_PALETTE_MAX_SIDE", "256"))
KMEANS_ATTEMPTS = int(os.environ.get("COLORWALK_KMEANS_ATTEMPTS", "3"))
KMEANS_SEED = 42


class PaletteExtractor(ABC):
    """Abstract interface for palette extraction backends."""

    @abstractmethod
    def extract(self, image_ref: Any) -> List[Swatch]:
        """
        Extract candidate dominant colors.

        Returns:
            Swatches sorted by population, most populous first.

        Raises:
            PaletteExtractionError: If no colors could be extracted.
        """


class KMeansPaletteExtractor(PaletteExtractor):
    """k-means clustering over pixel colors (OpenCV)."""

    def __init__(self, max_colors: int = MAX_COLORS, max_side: int = MAX_SIDE,
                 attempts: int = KMEANS_ATTEMPTS):
        if max_colors < 1:
            raise ValueError("max_colors must be at least 1")
        self.max_colors = max_colors
        self.max_side = max_side
        self.attempts = attempts

    def extract(self, image_ref: Any) -> List[Swatch]:
        try:
            image = load_image(image_ref)
        except ColorwalkError as e:
            raise PaletteExtractionError(str(e)) from e

        pixels = downscale(image, self.max_side).reshape(-1, 3)
        if pixels.size == 0:
            raise PaletteExtractionError("Image has no pixels")

        # k-means fails when k exceeds the number of distinct colors
        distinct = np.unique(pixels, axis=0)
        k = min(self.max_colors, len(distinct))

        if k == len(distinct):
            centers = distinct.astype(np.float32)
            counts = self._count_exact(pixels, distinct)
        else:
            centers, counts = self._cluster(pixels, k)

        swatches = []
        for center, count in zip(centers, counts):
            if count <= 0:
                continue
            rgb = tuple(int(round(c)) for c in center)
            swatches.append(Swatch(hex=rgb_to_hex(rgb), rgb=rgb, population=int(count)))

        if not swatches:
            raise PaletteExtractionError("Clustering produced no colors")

        swatches.sort(key=lambda s: s.population, reverse=True)
        logger.debug(f"Extracted {len(swatches)} swatches: {[s.hex for s in swatches]}")
        return swatches

    @staticmethod
    def _count_exact(pixels: np.ndarray, distinct: np.ndarray) -> np.ndarray:
        _, inverse = np.unique(pixels, axis=0, return_inverse=True)
        return np.bincount(inverse.reshape(-1), minlength=len(distinct))

    def _cluster(self, pixels: np.ndarray, k: int):
        data = pixels.astype(np.float32)
        criteria = (cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER, 20, 1.0)
        # Fixed seed so the same image always yields the same palette
        cv2.setRNGSeed(KMEANS_SEED)
        _, labels, centers = cv2.kmeans(
            data, k, None, criteria, self.attempts, cv2.KMEANS_PP_CENTERS
        )
        counts = np.bincount(labels.reshape(-1), minlength=k)
        return centers, counts
