import io
import json
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
import requests
from PIL import Image

from paint_mixer.io import fit_within, read_image_rgba, write_result_json
from paint_mixer.models import ExtractedColor, MixingResult


def _png_bytes(image):
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def test_read_image_rgba_url_success():
    img_bytes = _png_bytes(Image.new("RGB", (10, 10), color="red"))

    with patch("requests.get") as mock_get:
        mock_response = MagicMock()
        mock_response.content = img_bytes
        mock_response.raise_for_status.return_value = None
        mock_get.return_value = mock_response

        url = "http://example.com/image.png"
        result = read_image_rgba(url)

        mock_get.assert_called_once_with(url, timeout=10)
        assert isinstance(result, np.ndarray)
        assert result.shape == (10, 10, 4)
        # opaque RGB input gains a full alpha channel
        assert np.all(result[0, 0] == [255, 0, 0, 255])


def test_read_image_rgba_url_failure():
    with patch("requests.get") as mock_get:
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = requests.exceptions.HTTPError("404 Client Error")
        mock_get.return_value = mock_response

        with pytest.raises(requests.exceptions.HTTPError):
            read_image_rgba("https://example.com/nonexistent.png")


def test_read_image_rgba_local_file_keeps_alpha(tmp_path):
    img = Image.new("RGBA", (10, 10), color=(0, 0, 255, 40))
    img_path = tmp_path / "test_image.png"
    img.save(img_path)

    result = read_image_rgba(str(img_path))

    assert result.dtype == np.uint8
    assert result.shape == (10, 10, 4)
    assert np.all(result[0, 0] == [0, 0, 255, 40])


def test_read_image_rgba_downscales_longest_side(tmp_path):
    img_path = tmp_path / "wide.png"
    Image.new("RGB", (960, 300), color="green").save(img_path)

    assert read_image_rgba(img_path).shape == (150, 480, 4)
    assert read_image_rgba(img_path, max_dimension=None).shape == (300, 960, 4)


def test_fit_within():
    assert fit_within(960, 300, 480) == (480, 150)
    assert fit_within(300, 960, 480) == (150, 480)
    assert fit_within(500, 500, 480) == (480, 480)
    assert fit_within(200, 100, 480) == (200, 100)
    assert fit_within(4000, 1, 480) == (480, 1)


def test_write_result_json(tmp_path):
    result = MixingResult(
        colors=[ExtractedColor(rgb_string="rgb(1, 2, 3)", coverage_pct=100.0)],
        suggestions=[None],
        palette=(),
        warnings=["no_base_paints"],
    )
    out_path = tmp_path / "nested" / "result.json"

    write_result_json(result, out_path)

    payload = json.loads(out_path.read_text(encoding="utf-8"))
    assert payload["colors"] == [{"rgb_string": "rgb(1, 2, 3)", "coverage_pct": 100.0, "suggestion": None}]
    assert payload["warnings"] == ["no_base_paints"]
