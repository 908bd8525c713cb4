from __future__ import annotations

import csv
import json
import logging
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

import numpy as np

from .conversion import ColorFormatError, normalize_rgb_string, parse_color
from .mixing import PigmentMixer
from .models import BasePaint, Ingredient, MixedPaint, Paint, RecipeSuggestion, rgb_to_hex

logger = logging.getLogger(__name__)

Palette = tuple[Paint, ...]


class PaletteValidationError(ValueError):
    pass


def add_to_palette(
    palette: Sequence[Paint],
    rgb_string: str,
    label: str | None = None,
    include_recipe: bool = False,
) -> Palette:
    """Return ``palette`` with a new swatch appended.

    Colors already present (compared by hex) leave the palette unchanged.
    With ``include_recipe`` the swatch records every paint currently in
    the mix.
    """
    if is_color_in_palette(rgb_string, palette):
        logger.warning("color already in palette: %s", rgb_string)
        return tuple(palette)

    rgb = parse_color(rgb_string)
    name = (label or "").strip() or rgb_to_hex(rgb)
    new_paint: Paint
    if include_recipe:
        new_paint = MixedPaint(
            label=name,
            rgb=rgb,
            recipe=tuple(paint for paint in palette if paint.parts_in_mix > 0),
        )
    else:
        new_paint = BasePaint(label=name, rgb=rgb)
    return (*palette, new_paint)


def is_color_in_palette(rgb_string: str, palette: Sequence[Paint]) -> bool:
    try:
        target_hex = rgb_to_hex(parse_color(rgb_string))
    except ColorFormatError:
        return False
    return any(paint.hex == target_hex for paint in palette)


def increment_parts(palette: Sequence[Paint], index: int) -> Palette:
    return _update(palette, index, lambda paint: replace(paint, parts_in_mix=paint.parts_in_mix + 1))


def decrement_parts(palette: Sequence[Paint], index: int) -> Palette:
    return _update(
        palette,
        index,
        lambda paint: replace(paint, parts_in_mix=max(0, paint.parts_in_mix - 1)),
    )


def rename_paint(palette: Sequence[Paint], index: int, label: str) -> Palette:
    return _update(palette, index, lambda paint: replace(paint, label=label))


def remove_from_palette(palette: Sequence[Paint], index: int) -> Palette:
    if not 0 <= index < len(palette):
        return tuple(palette)
    return (*palette[:index], *palette[index + 1 :])


def reset_palette(palette: Sequence[Paint]) -> Palette:
    return tuple(replace(paint, parts_in_mix=0) for paint in palette)


def apply_mix_parts(palette: Sequence[Paint], updates: Sequence[Ingredient]) -> Palette:
    """Clear the mix, then set parts for each update whose index exists."""
    updated = list(reset_palette(palette))
    for update in updates:
        if 0 <= update.index < len(updated):
            updated[update.index] = replace(updated[update.index], parts_in_mix=update.parts)
    return tuple(updated)


def base_palette(palette: Sequence[Paint]) -> tuple[Palette, list[int]]:
    """Base paints plus their positions in the full palette."""
    indices = [index for index, paint in enumerate(palette) if isinstance(paint, BasePaint)]
    return tuple(palette[index] for index in indices), indices


def map_suggestion_to_palette(
    suggestion: RecipeSuggestion, base_indices: Sequence[int]
) -> list[Ingredient]:
    mapped = []
    for ingredient in suggestion.ingredients:
        if 0 <= ingredient.index < len(base_indices):
            mapped.append(Ingredient(base_indices[ingredient.index], ingredient.parts))
    return mapped


def total_parts(palette: Sequence[Paint]) -> int:
    return sum(paint.parts_in_mix for paint in palette)


def mix_palette(palette: Sequence[Paint], mixer: PigmentMixer) -> str | None:
    """Color of the current mix, or None when no paint is in it."""
    total = total_parts(palette)
    if total <= 0:
        return None

    mixed = None
    for paint in palette:
        if paint.parts_in_mix <= 0:
            continue
        latent = mixer.to_latent(paint.rgb_string)
        if latent is None:
            continue
        weighted = np.asarray(latent, dtype=np.float64) * (paint.parts_in_mix / total)
        mixed = weighted if mixed is None else mixed + weighted
    if mixed is None:
        return None
    return normalize_rgb_string(mixer.from_latent(mixed))


def load_palette(path_like: str | Path) -> Palette:
    path = Path(path_like)
    if not path.exists():
        raise PaletteValidationError(f"palette file does not exist: {path}")

    if path.suffix.lower() == ".csv":
        records = _read_csv(path)
    elif path.suffix.lower() == ".json":
        records = _read_json(path)
    else:
        raise PaletteValidationError(
            f"unsupported palette format '{path.suffix}'. Use .csv or .json"
        )

    palette = palette_from_records(records, str(path))
    if not palette:
        raise PaletteValidationError(f"palette has no usable entries: {path}")
    return palette


def palette_from_records(records: Sequence[dict[str, object]], source: str = "palette") -> Palette:
    palette: Palette = ()
    for idx, record in enumerate(records, start=1):
        paint = _parse_entry(record, f"{source}:{idx}")
        if is_color_in_palette(paint.rgb_string, palette):
            logger.warning("%s:%d duplicates an earlier color, skipped", source, idx)
            continue
        palette = (*palette, paint)
    return palette


def _read_csv(path: Path) -> list[dict[str, object]]:
    with path.open("r", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise PaletteValidationError(f"palette csv has no header: {path}")
        return [dict(row) for row in reader]


def _read_json(path: Path) -> list[dict[str, object]]:
    payload = json.loads(path.read_text(encoding="utf-8"))

    if isinstance(payload, dict):
        if "paints" not in payload or not isinstance(payload["paints"], list):
            raise PaletteValidationError(
                f"json palette at {path} must be a list or include a 'paints' list"
            )
        records = payload["paints"]
    elif isinstance(payload, list):
        records = payload
    else:
        raise PaletteValidationError(
            f"json palette at {path} must be a list or object with 'paints'"
        )

    for idx, record in enumerate(records, start=1):
        if not isinstance(record, dict):
            raise PaletteValidationError(
                f"invalid palette entry at {path}:{idx} (expected object)"
            )
    return records


def _parse_entry(raw_entry: dict[str, object], location: str) -> Paint:
    if not isinstance(raw_entry, dict):
        raise PaletteValidationError(f"{location}: expected an object")
    normalized = {
        str(key).strip().lower(): value
        for key, value in raw_entry.items()
        if key is not None
    }

    color = normalized.get("rgb") or normalized.get("rgb_string") or normalized.get("hex")
    if not color:
        raise PaletteValidationError(f"{location}: provide 'rgb' or 'hex'")
    try:
        rgb = parse_color(color)
    except ColorFormatError as exc:
        raise PaletteValidationError(f"{location}: invalid color {color!r}") from exc

    label = str(normalized.get("name") or normalized.get("label") or "").strip()
    parts_raw = normalized.get("parts") or 0
    try:
        parts = max(0, int(parts_raw))
    except (TypeError, ValueError) as exc:
        raise PaletteValidationError(f"{location}: 'parts' must be an integer") from exc

    recipe_raw = normalized.get("recipe")
    if isinstance(recipe_raw, list):
        recipe = tuple(
            _parse_entry(item, f"{location}/recipe:{pos}")
            for pos, item in enumerate(recipe_raw, start=1)
        )
        return MixedPaint(label=label or rgb_to_hex(rgb), rgb=rgb, recipe=recipe, parts_in_mix=parts)

    return BasePaint(label=label or rgb_to_hex(rgb), rgb=rgb, parts_in_mix=parts)


def _update(palette: Sequence[Paint], index: int, change) -> Palette:
    if not 0 <= index < len(palette):
        return tuple(palette)
    updated = list(palette)
    updated[index] = change(updated[index])
    return tuple(updated)
