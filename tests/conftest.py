from __future__ import annotations

import numpy as np
import pytest

from paint_mixer.conversion import rgb_string_to_rgb
from paint_mixer.settings import get_settings


class LinearMixer:
    """Averages in RGB so expected mixtures can be computed by hand."""

    def to_latent(self, rgb_string):
        if not rgb_string.startswith("rgb("):
            return None
        r, g, b = rgb_string_to_rgb(rgb_string)
        return [float(r), float(g), float(b), 0.0, 0.0, 0.0, 0.0]

    def from_latent(self, latent):
        channels = [max(0, min(255, int(np.floor(value + 0.5)))) for value in latent[:3]]
        return f"rgb({channels[0]}, {channels[1]}, {channels[2]})"


@pytest.fixture
def linear_mixer():
    return LinearMixer()


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
