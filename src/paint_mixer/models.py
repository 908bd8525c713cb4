from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

RGB = tuple[int, int, int]


def format_rgb_string(rgb: RGB) -> str:
    return f"rgb({rgb[0]}, {rgb[1]}, {rgb[2]})"


def rgb_to_hex(rgb: RGB) -> str:
    return f"#{rgb[0]:02x}{rgb[1]:02x}{rgb[2]:02x}"


@dataclass(frozen=True)
class BasePaint:
    """A palette entry that was added directly and can be used as an ingredient."""

    label: str
    rgb: RGB
    parts_in_mix: int = 0

    @property
    def rgb_string(self) -> str:
        return format_rgb_string(self.rgb)

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.rgb)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "rgb_string": self.rgb_string,
            "parts_in_mix": int(self.parts_in_mix),
        }


@dataclass(frozen=True)
class MixedPaint:
    """A saved mixture; ``recipe`` snapshots the paints that were in the mix."""

    label: str
    rgb: RGB
    recipe: tuple["Paint", ...] = field(default_factory=tuple)
    parts_in_mix: int = 0

    @property
    def rgb_string(self) -> str:
        return format_rgb_string(self.rgb)

    @property
    def hex(self) -> str:
        return rgb_to_hex(self.rgb)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "rgb_string": self.rgb_string,
            "parts_in_mix": int(self.parts_in_mix),
            "recipe": [paint.to_dict() for paint in self.recipe],
        }


Paint = Union[BasePaint, MixedPaint]


@dataclass(frozen=True)
class Cluster:
    centroid: tuple[float, float, float]
    size: int


@dataclass(frozen=True)
class DominantColors:
    colors: list[str]
    cluster_sizes: list[int]

    def to_dict(self) -> dict[str, Any]:
        return {
            "colors": list(self.colors),
            "cluster_sizes": [int(size) for size in self.cluster_sizes],
        }


@dataclass(frozen=True)
class ExtractedColor:
    rgb_string: str
    coverage_pct: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "rgb_string": self.rgb_string,
            "coverage_pct": float(self.coverage_pct),
        }


@dataclass(frozen=True)
class Ingredient:
    index: int
    parts: int

    def to_dict(self) -> dict[str, int]:
        return {"index": int(self.index), "parts": int(self.parts)}


@dataclass(frozen=True)
class RecipeSuggestion:
    ingredients: tuple[Ingredient, ...]
    result_rgb: str
    delta_e: float
    match_pct: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "ingredients": [ingredient.to_dict() for ingredient in self.ingredients],
            "result_rgb": self.result_rgb,
            "delta_e": float(self.delta_e),
            "match_pct": float(self.match_pct),
        }


@dataclass(frozen=True)
class MixingResult:
    colors: list[ExtractedColor]
    suggestions: list[RecipeSuggestion | None]
    palette: tuple[Paint, ...]
    warnings: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "colors": [
                {
                    **color.to_dict(),
                    "suggestion": None if suggestion is None else suggestion.to_dict(),
                }
                for color, suggestion in zip(self.colors, self.suggestions)
            ],
            "palette": [paint.to_dict() for paint in self.palette],
            "warnings": list(self.warnings),
        }
