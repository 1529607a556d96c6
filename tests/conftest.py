"""Shared test fixtures for colorwalk tests."""

import numpy as np
import cv2
import pytest

from colorwalk.types import Swatch, swatches_from_dicts


@pytest.fixture
def red_square_image():
    """Generate a 200x200 red square on white background."""
    img = np.ones((200, 200, 3), dtype=np.uint8) * 255
    img[40:160, 40:160] = [200, 30, 30]  # Red square
    return img


@pytest.fixture
def blue_circle_image():
    """Generate a 200x200 blue circle on white background."""
    img = np.ones((200, 200, 3), dtype=np.uint8) * 255
    cv2.circle(img, (100, 100), 60, (30, 30, 200), -1)
    return img


@pytest.fixture
def gray_image():
    """A flat 120x80 mid-gray image."""
    return np.full((80, 120, 3), 128, dtype=np.uint8)


@pytest.fixture
def noise_image():
    """Generate a 200x200 random noise image."""
    rng = np.random.RandomState(42)
    return rng.randint(0, 255, (200, 200, 3), dtype=np.uint8)


@pytest.fixture
def red_blue_swatches():
    """Strong red dominating blue."""
    return swatches_from_dicts([
        {"rgb": [255, 0, 0], "population": 800},
        {"rgb": [0, 0, 255], "population": 200},
    ])


@pytest.fixture
def near_gray_swatch():
    return swatches_from_dicts([{"rgb": [128, 128, 130], "population": 50}])


@pytest.fixture
def six_swatches():
    """Six candidates, deliberately not in population order."""
    return [
        Swatch(hex="#101010", rgb=(16, 16, 16), population=30),
        Swatch(hex="#ff0000", rgb=(255, 0, 0), population=500),
        Swatch(hex="#00ff00", rgb=(0, 255, 0), population=5),
        Swatch(hex="#0000ff", rgb=(0, 0, 255), population=300),
        Swatch(hex="#ffff00", rgb=(255, 255, 0), population=120),
        Swatch(hex="#ffffff", rgb=(255, 255, 255), population=60),
    ]
