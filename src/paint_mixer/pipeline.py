from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Literal

from .extract import extract_dominant_colors, pick_auto_color_count, select_distinct_colors
from .io import read_image_rgba
from .mixing import PigmentMixer, default_mixer
from .models import DominantColors, ExtractedColor, MixingResult, Paint
from .palette import base_palette
from .recipe import suggest_recipes
from .settings import get_settings

logger = logging.getLogger(__name__)

ExtractionMode = Literal["dominant", "distinct"]

AUTO_MAX_COLORS = {"dominant": 12, "distinct": 32}
AUTO_MIN_COLORS = {"dominant": 5, "distinct": 8}
AUTO_COVERAGE_PCT = {"dominant": 99.0, "distinct": 99.5}
DISTINCT_CANDIDATE_MULTIPLIER = 2
MAX_DISTINCT_CANDIDATES = 64


def extract_colors(
    pixels: Any,
    color_count: int | str = "auto",
    mode: ExtractionMode = "dominant",
) -> list[ExtractedColor]:
    """Reduce an RGBA8 buffer to a list of colors with their coverage.

    ``color_count`` is a positive integer or ``"auto"``; in auto mode the
    count is picked from cumulative coverage. ``"distinct"`` over-extracts
    candidates and keeps the most perceptually spread ones.
    """
    if mode not in AUTO_MAX_COLORS:
        raise ValueError(f"unknown extraction mode '{mode}'")

    if color_count == "auto":
        max_colors = AUTO_MAX_COLORS[mode]
        extraction = extract_dominant_colors(pixels, _candidate_count(max_colors, mode))
        count = pick_auto_color_count(
            extraction.cluster_sizes,
            coverage_pct=AUTO_COVERAGE_PCT[mode],
            min_count=AUTO_MIN_COLORS[mode],
            max_count=max_colors,
        )
        logger.debug("auto color count picked %d (%s)", count, mode)
    else:
        if isinstance(color_count, str):
            raise ValueError(f"color_count must be an integer or 'auto', got '{color_count}'")
        count = max(0, int(color_count))
        if count == 0:
            return []
        extraction = extract_dominant_colors(pixels, _candidate_count(count, mode))

    selected = _select(extraction, count, mode)
    return _to_extracted_colors(selected)


def _candidate_count(target_count: int, mode: ExtractionMode) -> int:
    if mode != "distinct":
        return target_count
    expanded = target_count * DISTINCT_CANDIDATE_MULTIPLIER
    return max(target_count, min(expanded, MAX_DISTINCT_CANDIDATES))


def _select(extraction: DominantColors, count: int, mode: ExtractionMode) -> DominantColors:
    if mode == "distinct":
        return select_distinct_colors(extraction.colors, extraction.cluster_sizes, count)
    return DominantColors(
        colors=extraction.colors[:count],
        cluster_sizes=extraction.cluster_sizes[:count],
    )


def _to_extracted_colors(selection: DominantColors) -> list[ExtractedColor]:
    total = sum(selection.cluster_sizes)
    return [
        ExtractedColor(
            rgb_string=color,
            coverage_pct=(size / total) * 100.0 if total > 0 else 0.0,
        )
        for color, size in zip(selection.colors, selection.cluster_sizes)
    ]


class PaintMixingPipeline:
    def __init__(
        self,
        mixer: PigmentMixer | None = None,
        max_image_dimension: int | None = None,
        max_colors: int | None = None,
        max_total_parts: int | None = None,
    ) -> None:
        settings = get_settings()
        self.mixer = mixer or default_mixer()
        self.max_image_dimension = (
            settings.max_image_dimension if max_image_dimension is None else max_image_dimension
        )
        self.max_colors = settings.max_colors if max_colors is None else max_colors
        self.max_total_parts = (
            settings.max_total_parts if max_total_parts is None else max_total_parts
        )

    def run(
        self,
        image_path: str | Path,
        palette: Sequence[Paint],
        color_count: int | str = "auto",
        mode: ExtractionMode = "dominant",
    ) -> MixingResult:
        pixels = read_image_rgba(image_path, max_dimension=self.max_image_dimension)
        return self.run_pixels(pixels, palette, color_count=color_count, mode=mode)

    def run_pixels(
        self,
        pixels: Any,
        palette: Sequence[Paint],
        color_count: int | str = "auto",
        mode: ExtractionMode = "dominant",
    ) -> MixingResult:
        warnings: list[str] = []

        colors = extract_colors(pixels, color_count=color_count, mode=mode)
        if not colors:
            warnings.append("no_visible_pixels")

        candidates, _ = base_palette(palette)
        if not candidates:
            warnings.append("no_base_paints")

        suggestions = suggest_recipes(
            candidates,
            [color.rgb_string for color in colors],
            mixer=self.mixer,
            max_colors=self.max_colors,
            max_total_parts=self.max_total_parts,
        )
        if candidates and any(suggestion is None for suggestion in suggestions):
            warnings.append("recipe_not_found")

        logger.info(
            "extracted %d colors, %d recipes from %d base paints",
            len(colors),
            sum(suggestion is not None for suggestion in suggestions),
            len(candidates),
        )
        return MixingResult(
            colors=colors,
            suggestions=suggestions,
            palette=candidates,
            warnings=warnings,
        )
