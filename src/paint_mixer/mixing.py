from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

import mixbox

from .conversion import ColorFormatError, normalize_rgb_string, rgb_string_to_rgb
from .models import format_rgb_string

logger = logging.getLogger(__name__)


class PigmentMixer(Protocol):
    def to_latent(self, rgb_string: str) -> Sequence[float] | None:
        """Return the latent pigment vector, or None when the color is unusable."""

    def from_latent(self, latent: Sequence[float]) -> str:
        """Return the ``rgb(r, g, b)`` string for a latent pigment vector."""


class MixboxMixer:
    """Pigment mixing backed by Mixbox's Kubelka-Munk latent space."""

    def to_latent(self, rgb_string: str) -> list[float] | None:
        try:
            normalized = normalize_rgb_string(rgb_string)
        except ColorFormatError:
            logger.debug("cannot convert %r to a pigment latent", rgb_string)
            return None
        rgb = rgb_string_to_rgb(normalized)
        # out-of-range channels are passed through unnormalized
        in_range = all(0 <= channel <= 255 for channel in rgb)
        if not in_range or normalized != format_rgb_string(rgb):
            logger.debug("channel out of range in %r", rgb_string)
            return None
        return [float(value) for value in mixbox.rgb_to_latent(rgb)]

    def from_latent(self, latent: Sequence[float]) -> str:
        return normalize_rgb_string(mixbox.latent_to_rgb(list(latent)))


def default_mixer() -> PigmentMixer:
    return MixboxMixer()
