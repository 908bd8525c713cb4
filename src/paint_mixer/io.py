from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any

import numpy as np
import requests
from PIL import Image

DEFAULT_MAX_DIMENSION = 480


def read_image_rgba(
    image_path: str | Path, max_dimension: int | None = DEFAULT_MAX_DIMENSION
) -> np.ndarray:
    """Decode an image file or URL into an ``(H, W, 4)`` uint8 array."""
    path_str = str(image_path)
    if path_str.startswith(("http://", "https://")):
        response = requests.get(path_str, timeout=10)
        response.raise_for_status()
        image_data = io.BytesIO(response.content)
        with Image.open(image_data) as image:
            return _to_rgba_array(image, max_dimension)

    path = Path(image_path)
    with Image.open(path) as image:
        return _to_rgba_array(image, max_dimension)


def fit_within(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Scale ``(width, height)`` so the longer side is at most ``max_dimension``."""
    if width > height and width > max_dimension:
        scale = max_dimension / width
        return max_dimension, max(1, int(np.floor(height * scale + 0.5)))
    if height >= width and height > max_dimension:
        scale = max_dimension / height
        return max(1, int(np.floor(width * scale + 0.5))), max_dimension
    return width, height


def _to_rgba_array(image: Image.Image, max_dimension: int | None) -> np.ndarray:
    rgba = image.convert("RGBA")
    if max_dimension:
        size = fit_within(rgba.width, rgba.height, int(max_dimension))
        if size != rgba.size:
            rgba = rgba.resize(size, Image.Resampling.BILINEAR)
    return np.asarray(rgba, dtype=np.uint8)


def write_result_json(result: Any, output_path: str | Path) -> None:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(result.to_dict(), indent=2)
    path.write_text(payload + "\n", encoding="utf-8")
