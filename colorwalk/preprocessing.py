"""
Image loading and normalization for palette extraction.

Accepts the image references colorwalk sees in practice: decoded RGB
arrays, raw upload bytes, local paths, and blob-store URLs. Everything
is converted to a uint8 RGB array before any color work happens.
"""

import os
import logging
from typing import Any

import cv2
import numpy as np
import requests

from .errors import ImageLoadError

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = float(os.environ.get("COLORWALK_FETCH_TIMEOUT", "10"))


def normalize_image(image_np: np.ndarray) -> np.ndarray:
    """Ensure image is uint8 RGB format."""
    if image_np.dtype != np.uint8:
        if image_np.max() <= 1.0:
            image_np = (image_np * 255).astype(np.uint8)
        else:
            image_np = np.clip(image_np, 0, 255).astype(np.uint8)

    if image_np.ndim == 2:
        image_np = cv2.cvtColor(image_np, cv2.COLOR_GRAY2RGB)
    elif image_np.ndim == 3 and image_np.shape[2] == 4:
        image_np = cv2.cvtColor(image_np, cv2.COLOR_RGBA2RGB)
    elif image_np.ndim != 3 or image_np.shape[2] != 3:
        raise ImageLoadError(f"Unsupported image shape {image_np.shape}")
    return image_np


def decode_image_bytes(data: bytes) -> np.ndarray:
    """Decode an encoded image (JPEG, PNG, ...) into an RGB array."""
    buf = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buf, cv2.IMREAD_COLOR) if buf.size else None
    if image is None:
        raise ImageLoadError("Could not decode image bytes")
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def fetch_image_bytes(url: str, timeout: float = None) -> bytes:
    """Download an image from the blob store."""
    timeout = FETCH_TIMEOUT if timeout is None else timeout
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ImageLoadError(f"Could not fetch {url}: {e}") from e
    return response.content


def load_image(image_ref: Any, timeout: float = None) -> np.ndarray:
    """
    Resolve an image reference to a uint8 RGB array.

    Args:
        image_ref: RGB ndarray, encoded bytes, local path, or http(s) URL.
        timeout: Fetch timeout for URLs (defaults to FETCH_TIMEOUT).

    Returns:
        uint8 RGB image.

    Raises:
        ImageLoadError: If the reference cannot be resolved or decoded.
    """
    if isinstance(image_ref, np.ndarray):
        return normalize_image(image_ref)

    if isinstance(image_ref, (bytes, bytearray, memoryview)):
        return decode_image_bytes(bytes(image_ref))

    if isinstance(image_ref, str):
        if image_ref.startswith(("http://", "https://")):
            return decode_image_bytes(fetch_image_bytes(image_ref, timeout))
        if not os.path.exists(image_ref):
            raise ImageLoadError(f"No such image file: {image_ref}")
        image = cv2.imread(image_ref, cv2.IMREAD_COLOR)
        if image is None:
            raise ImageLoadError(f"Could not read: {image_ref}")
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

    raise ImageLoadError(f"Unsupported image reference type: {type(image_ref).__name__}")


def downscale(image_np: np.ndarray, max_side: int) -> np.ndarray:
    """Shrink so the longest side is at most `max_side`. Never upsamples."""
    h, w = image_np.shape[:2]
    scale = max_side / max(h, w)
    if scale >= 1:
        return image_np
    size = (max(1, int(round(w * scale))), max(1, int(round(h * scale))))
    # Nearest-neighbour keeps the original colors instead of blending edges
    return cv2.resize(image_np, size, interpolation=cv2.INTER_NEAREST)
