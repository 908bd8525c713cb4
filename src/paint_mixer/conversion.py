from __future__ import annotations

import colorsys
import math
import re
from collections.abc import Sequence
from numbers import Real
from typing import Any

import numpy as np
from skimage.color import deltaE_ciede94

from .models import RGB, format_rgb_string, rgb_to_hex

# sRGB (D65) -> XYZ, rows produce X, Y, Z for linear-light r, g, b in [0, 1].
_XYZ_FROM_RGB = np.array(
    [
        [0.4124564, 0.3575761, 0.1804375],
        [0.2126729, 0.7151522, 0.0721750],
        [0.0193339, 0.1191920, 0.9503041],
    ],
    dtype=np.float64,
)
D65_WHITE = np.array([95.047, 100.0, 108.883], dtype=np.float64)

_DELTA = 6.0 / 29.0
_LAB_EPSILON = _DELTA**3

_NUMBER = r"(-?\d+(?:\.\d+)?)"
_RGB_STRING_PATTERN = re.compile(
    rf"^\s*rgb\(\s*{_NUMBER}\s*,\s*{_NUMBER}\s*,\s*{_NUMBER}\s*\)\s*$",
    re.IGNORECASE,
)
_STRICT_RGB_PATTERN = re.compile(r"^rgb\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*\)$")
_RGBA_STRING_PATTERN = re.compile(
    rf"^\s*rgba?\(\s*{_NUMBER}\s*,\s*{_NUMBER}\s*,\s*{_NUMBER}"
    rf"(?:\s*,\s*{_NUMBER})?\s*\)\s*$",
    re.IGNORECASE,
)
_HEX_PATTERN = re.compile(r"^#?([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6}|[0-9A-Fa-f]{8})$")


class ColorFormatError(ValueError):
    pass


def round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))


def clamp_to_byte(value: float) -> int:
    return max(0, min(255, round_half_up(value)))


def srgb_to_linear(value: Any) -> Any:
    """Undo the sRGB transfer curve. ``value`` is in [0, 1] and is clamped first."""
    clipped = np.clip(np.asarray(value, dtype=np.float64), 0.0, 1.0)
    linear = np.where(
        clipped <= 0.04045,
        clipped / 12.92,
        ((clipped + 0.055) / 1.055) ** 2.4,
    )
    if linear.ndim == 0:
        return float(linear)
    return linear


def rgb_to_xyz(rgb: Any) -> np.ndarray:
    """Convert 8-bit RGB (shape ``(..., 3)``) to XYZ with white at Y=100."""
    values = np.asarray(rgb, dtype=np.float64)[..., :3]
    linear = srgb_to_linear(values / 255.0)
    return (np.asarray(linear) @ _XYZ_FROM_RGB.T) * 100.0


def xyz_to_lab(xyz: Any) -> np.ndarray:
    ratios = np.asarray(xyz, dtype=np.float64) / D65_WHITE
    f = np.where(
        ratios > _LAB_EPSILON,
        np.cbrt(ratios),
        ratios / (3.0 * _DELTA**2) + 4.0 / 29.0,
    )
    l_star = 116.0 * f[..., 1] - 16.0
    a_star = 500.0 * (f[..., 0] - f[..., 1])
    b_star = 200.0 * (f[..., 1] - f[..., 2])
    return np.stack([l_star, a_star, b_star], axis=-1)


def rgb_to_lab(rgb: Any) -> np.ndarray:
    return xyz_to_lab(rgb_to_xyz(rgb))


def delta_e_94(lab1: Any, lab2: Any) -> Any:
    """CIE94 difference with graphic-arts weights.

    Chroma weighting is taken from ``lab1``, so the result is directional.
    Both arguments broadcast against each other; a pair of single colors
    returns a plain float.
    """
    first, second = np.broadcast_arrays(
        np.asarray(lab1, dtype=np.float64), np.asarray(lab2, dtype=np.float64)
    )
    shape = first.shape[:-1]
    distance = deltaE_ciede94(
        first.reshape(-1, 3).copy(),
        second.reshape(-1, 3).copy(),
        kH=1,
        kC=1,
        kL=1,
        k1=0.045,
        k2=0.015,
    )
    distance = np.asarray(distance, dtype=np.float64).reshape(shape)
    if distance.ndim == 0:
        return float(distance)
    return distance


def _is_number(value: object) -> bool:
    return isinstance(value, (Real, np.number)) and not isinstance(value, bool)


def normalize_rgb_string(value: Any) -> str:
    """Return ``rgb(r, g, b)`` for a channel sequence or an ``rgb(...)`` string.

    Strings with channels outside [0, 255] come back untouched. Any other
    shape raises ``ColorFormatError``.
    """
    if isinstance(value, str):
        match = _RGB_STRING_PATTERN.match(value)
        if match is None:
            raise ColorFormatError(f"Unexpected format for color: {value}")
        channels = [float(group) for group in match.groups()]
        if any(channel < 0 or channel > 255 for channel in channels):
            return value
        return format_rgb_string(
            (
                round_half_up(channels[0]),
                round_half_up(channels[1]),
                round_half_up(channels[2]),
            )
        )

    if isinstance(value, (Sequence, np.ndarray)):
        items = list(np.asarray(value).reshape(-1)) if isinstance(value, np.ndarray) else list(value)
        if len(items) >= 3 and all(_is_number(item) for item in items[:3]):
            return format_rgb_string(
                (
                    round_half_up(items[0]),
                    round_half_up(items[1]),
                    round_half_up(items[2]),
                )
            )

    raise ColorFormatError(f"Unexpected format for color: {value}")


def rgb_string_to_rgb(text: str) -> RGB:
    """Parse ``rgb(r, g, b)``; anything unrecognised yields black."""
    match = _STRICT_RGB_PATTERN.match(text) if isinstance(text, str) else None
    if match is None:
        return 0, 0, 0
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def parse_color(value: Any) -> RGB:
    """Lenient parser for targets and palette files: rgb()/rgba(), hex, or a sequence."""
    if isinstance(value, str):
        text = value.strip()
        hex_match = _HEX_PATTERN.match(text)
        if hex_match:
            digits = hex_match.group(1)
            if len(digits) == 3:
                digits = "".join(ch * 2 for ch in digits)
            return (
                int(digits[0:2], 16),
                int(digits[2:4], 16),
                int(digits[4:6], 16),
            )
        rgba_match = _RGBA_STRING_PATTERN.match(text)
        if rgba_match:
            return (
                clamp_to_byte(float(rgba_match.group(1))),
                clamp_to_byte(float(rgba_match.group(2))),
                clamp_to_byte(float(rgba_match.group(3))),
            )
        raise ColorFormatError(f"Unexpected format for color: {value}")

    if isinstance(value, (Sequence, np.ndarray)):
        items = list(np.asarray(value).reshape(-1)) if isinstance(value, np.ndarray) else list(value)
        if len(items) >= 3 and all(_is_number(item) for item in items[:3]):
            return (
                clamp_to_byte(items[0]),
                clamp_to_byte(items[1]),
                clamp_to_byte(items[2]),
            )

    raise ColorFormatError(f"Unexpected format for color: {value}")


def hsla_to_hex(h: float, s: float, l: float, a: float = 1.0) -> str:
    hue = float(h) % 360.0
    saturation = min(1.0, max(0.0, float(s)))
    lightness = min(1.0, max(0.0, float(l)))
    alpha = min(1.0, max(0.0, float(a)))

    chroma = (1.0 - abs(2.0 * lightness - 1.0)) * saturation
    sector = hue / 60.0
    x = chroma * (1.0 - abs(sector % 2.0 - 1.0))
    if sector < 1:
        r1, g1, b1 = chroma, x, 0.0
    elif sector < 2:
        r1, g1, b1 = x, chroma, 0.0
    elif sector < 3:
        r1, g1, b1 = 0.0, chroma, x
    elif sector < 4:
        r1, g1, b1 = 0.0, x, chroma
    elif sector < 5:
        r1, g1, b1 = x, 0.0, chroma
    else:
        r1, g1, b1 = chroma, 0.0, x
    m = lightness - chroma / 2.0

    rgb = (
        clamp_to_byte((r1 + m) * 255.0),
        clamp_to_byte((g1 + m) * 255.0),
        clamp_to_byte((b1 + m) * 255.0),
    )
    hex_value = rgb_to_hex(rgb)
    if alpha == 1.0:
        return hex_value
    return f"{hex_value}{clamp_to_byte(alpha * 255.0):02x}"


def rgb_string_to_hsva(text: str) -> tuple[float, float, float, float]:
    """Hue in degrees, saturation and value in percent, alpha in [0, 1]."""
    r, g, b = parse_color(text)
    hue, saturation, value = colorsys.rgb_to_hsv(r / 255.0, g / 255.0, b / 255.0)
    return hue * 360.0, saturation * 100.0, value * 100.0, 1.0


def color_match_pct(color1: str | None, color2: str | None) -> float:
    """Percentage match between two colors, ``100 - deltaE94``."""
    if not color1 or not color2:
        return 0.0
    try:
        lab1 = rgb_to_lab(parse_color(color1))
        lab2 = rgb_to_lab(parse_color(color2))
    except ColorFormatError:
        return 0.0
    return 100.0 - delta_e_94(lab1, lab2)
