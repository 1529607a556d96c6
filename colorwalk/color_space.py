"""
RGB -> CIELAB conversion (D65 illuminant, 2° observer).

Lab is perceptually uniform: Euclidean distance between two Lab colors
approximates the difference a person sees, which RGB distance does not.
All palette vectors are built in Lab for that reason.
"""

from typing import Sequence, Tuple

# Linear sRGB -> XYZ, D65 primaries
RGB_TO_XYZ = (
    (0.4124564, 0.3575761, 0.1804375),
    (0.2126729, 0.7151522, 0.0721750),
    (0.0193339, 0.1191920, 0.9503041),
)

# D65 reference white
REF_X = 0.95047
REF_Y = 1.0
REF_Z = 1.08883

GAMMA_THRESHOLD = 0.04045
LAB_EPSILON = 0.008856


def _linearize(channel: float) -> float:
    """Undo the sRGB transfer curve for one channel in [0, 1]."""
    if channel > GAMMA_THRESHOLD:
        return ((channel + 0.055) / 1.055) ** 2.4
    return channel / 12.92


def _compress(t: float) -> float:
    if t > LAB_EPSILON:
        return t ** (1.0 / 3.0)
    return 7.787 * t + 16.0 / 116.0


def rgb_to_lab(r: int, g: int, b: int) -> Tuple[float, float, float]:
    """
    Convert an sRGB color to CIELAB.

    Args:
        r, g, b: Channel values 0-255.

    Returns:
        (L, a, b) rounded to 2 decimals. L is in [0, 100], a and b
        roughly in [-128, 127].
    """
    rr, gg, bb = (_linearize(c / 255.0) for c in (r, g, b))

    x, y, z = (row[0] * rr + row[1] * gg + row[2] * bb for row in RGB_TO_XYZ)

    fx = _compress(x / REF_X)
    fy = _compress(y / REF_Y)
    fz = _compress(z / REF_Z)

    lightness = round(116.0 * fy - 16.0, 2)
    a = round(500.0 * (fx - fy), 2)
    b_val = round(200.0 * (fy - fz), 2)

    # Avoid -0.0 leaking into stored palettes
    return lightness + 0.0, a + 0.0, b_val + 0.0


def normalize_lab(lab: Sequence[float]) -> Tuple[float, float, float]:
    """Map L from [0, 100] and a/b from [-128, 127] into [0, 1]."""
    lightness, a, b = lab
    return lightness / 100.0, (a + 128.0) / 255.0, (b + 128.0) / 255.0


def rgb_to_hex(rgb: Sequence[int]) -> str:
    r, g, b = (max(0, min(255, int(c))) for c in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"
