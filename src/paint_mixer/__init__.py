from .conversion import ColorFormatError, delta_e_94, normalize_rgb_string, rgb_to_lab
from .extract import extract_dominant_colors, pick_auto_color_count, select_distinct_colors
from .mixing import MixboxMixer, PigmentMixer
from .models import (
    BasePaint,
    ExtractedColor,
    Ingredient,
    MixedPaint,
    MixingResult,
    RecipeSuggestion,
)
from .palette import PaletteValidationError, load_palette
from .pipeline import PaintMixingPipeline, extract_colors
from .recipe import suggest_recipe, suggest_recipes

__all__ = [
    "BasePaint",
    "ColorFormatError",
    "ExtractedColor",
    "Ingredient",
    "MixboxMixer",
    "MixedPaint",
    "MixingResult",
    "PaintMixingPipeline",
    "PaletteValidationError",
    "PigmentMixer",
    "RecipeSuggestion",
    "delta_e_94",
    "extract_colors",
    "extract_dominant_colors",
    "load_palette",
    "normalize_rgb_string",
    "pick_auto_color_count",
    "rgb_to_lab",
    "select_distinct_colors",
    "suggest_recipe",
    "suggest_recipes",
]
