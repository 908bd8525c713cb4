from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from itertools import combinations, islice
from typing import Any

import numpy as np

from .conversion import delta_e_94, parse_color, rgb_to_lab
from .mixing import PigmentMixer, default_mixer
from .models import Ingredient, Paint, RecipeSuggestion

logger = logging.getLogger(__name__)

DEFAULT_MAX_COLORS = 3
DEFAULT_MAX_TOTAL_PARTS = 10
LARGE_PALETTE_THRESHOLD = 25
MAX_CANDIDATE_PAINTS = 12
TIE_EPSILON = 1e-6
# mixtures scored per vectorised CIE94 call
SCORING_CHUNK_SIZE = 4096


@dataclass(frozen=True)
class CandidateRecipe:
    ingredients: tuple[Ingredient, ...]
    result_rgb: str
    delta_e: float
    match_pct: float
    total_parts: int

    def to_suggestion(self) -> RecipeSuggestion:
        return RecipeSuggestion(
            ingredients=self.ingredients,
            result_rgb=self.result_rgb,
            delta_e=self.delta_e,
            match_pct=self.match_pct,
        )


def suggest_recipe(
    palette: Sequence[Paint],
    target: Any,
    mixer: PigmentMixer | None = None,
    max_colors: int = DEFAULT_MAX_COLORS,
    max_total_parts: int = DEFAULT_MAX_TOTAL_PARTS,
) -> RecipeSuggestion | None:
    """Search ``palette`` for the mixture closest to ``target``.

    Ingredient indices refer to positions in ``palette``, which should only
    hold base paints. At most ``max_colors`` paints (capped at three) and
    ``max_total_parts`` parts are combined. Among mixtures whose CIE94
    distance ties within ``TIE_EPSILON`` the one with fewer ingredients wins,
    then the one with fewer parts. Returns None when nothing can be mixed.
    """
    if not palette:
        return None

    max_colors = max(0, int(np.floor(max_colors)))
    max_total_parts = max(1, int(np.floor(max_total_parts)))
    mixer = mixer or default_mixer()

    target_lab = rgb_to_lab(parse_color(target))
    candidate_indices = _candidate_indices(palette, target_lab)

    latents: dict[int, np.ndarray | None] = {}
    for index in candidate_indices:
        latent = mixer.to_latent(palette[index].rgb_string)
        latents[index] = None if latent is None else np.asarray(latent, dtype=np.float64)
    active = [index for index in candidate_indices if latents[index] is not None]
    if not active:
        logger.debug("no palette entry converts to a pigment latent")
        return None

    mixtures = _enumerate_mixtures(active, max_colors, max_total_parts)
    best: CandidateRecipe | None = None
    evaluated = 0
    while True:
        batch = list(islice(mixtures, SCORING_CHUNK_SIZE))
        if not batch:
            break
        evaluated += len(batch)
        for candidate in evaluate_candidates(batch, latents, target_lab, mixer):
            best = pick_best_candidate(best, candidate)

    logger.debug(
        "evaluated %d mixtures over %d paints, best deltaE %.4f",
        evaluated,
        len(active),
        best.delta_e if best else float("nan"),
    )
    return best.to_suggestion() if best else None


def suggest_recipes(
    palette: Sequence[Paint],
    targets: Sequence[Any],
    mixer: PigmentMixer | None = None,
    max_colors: int = DEFAULT_MAX_COLORS,
    max_total_parts: int = DEFAULT_MAX_TOTAL_PARTS,
) -> list[RecipeSuggestion | None]:
    if not palette:
        return [None for _ in targets]
    mixer = mixer or default_mixer()
    return [
        suggest_recipe(
            palette,
            target,
            mixer=mixer,
            max_colors=max_colors,
            max_total_parts=max_total_parts,
        )
        for target in targets
    ]


def mix_latents(
    ingredients: Sequence[Ingredient],
    latents: Sequence[Any] | dict[int, Any],
) -> np.ndarray | None:
    total_parts = sum(ingredient.parts for ingredient in ingredients)
    if total_parts <= 0:
        return None

    mixed: np.ndarray | None = None
    for ingredient in ingredients:
        latent = latents[ingredient.index]
        if latent is None:
            return None
        weighted = np.asarray(latent, dtype=np.float64) * (ingredient.parts / total_parts)
        mixed = weighted if mixed is None else mixed + weighted
    return mixed


def pick_best_candidate(
    best: CandidateRecipe | None, candidate: CandidateRecipe
) -> CandidateRecipe:
    if best is None:
        return candidate

    gap = candidate.delta_e - best.delta_e
    if gap < -TIE_EPSILON:
        return candidate

    if abs(gap) <= TIE_EPSILON:
        if len(candidate.ingredients) < len(best.ingredients):
            return candidate
        if (
            len(candidate.ingredients) == len(best.ingredients)
            and candidate.total_parts < best.total_parts
        ):
            return candidate

    return best


def evaluate_candidates(
    mixtures: Sequence[tuple[Ingredient, ...]],
    latents: Sequence[Any] | dict[int, Any],
    target_lab: Any,
    mixer: PigmentMixer,
) -> list[CandidateRecipe]:
    """Mix and score ``mixtures`` against ``target_lab`` in one CIE94 pass.

    Mixtures that cannot be mixed (no parts, or an ingredient without a
    latent) are left out.
    """
    mixable = []
    result_rgbs = []
    for mixture in mixtures:
        mixed = mix_latents(mixture, latents)
        if mixed is None:
            continue
        mixable.append(mixture)
        result_rgbs.append(mixer.from_latent(mixed))
    if not mixable:
        return []

    result_labs = rgb_to_lab(np.array([parse_color(rgb) for rgb in result_rgbs], dtype=np.float64))
    distances = np.atleast_1d(delta_e_94(result_labs, target_lab))

    candidates = []
    for mixture, result_rgb, delta_e in zip(mixable, result_rgbs, distances):
        delta_e = float(delta_e)
        candidates.append(
            CandidateRecipe(
                ingredients=tuple(mixture),
                result_rgb=result_rgb,
                delta_e=delta_e,
                match_pct=min(100.0, max(0.0, 100.0 - delta_e)),
                total_parts=sum(ingredient.parts for ingredient in mixture),
            )
        )
    return candidates


def _candidate_indices(palette: Sequence[Paint], target_lab: np.ndarray) -> list[int]:
    if len(palette) <= LARGE_PALETTE_THRESHOLD:
        return list(range(len(palette)))

    palette_labs = rgb_to_lab(np.array([paint.rgb for paint in palette], dtype=np.float64))
    distances = delta_e_94(palette_labs, target_lab)
    ranked = sorted(range(len(palette)), key=lambda index: (float(distances[index]), index))
    return ranked[:MAX_CANDIDATE_PAINTS]


def _enumerate_mixtures(
    active: list[int], max_colors: int, max_total_parts: int
) -> Iterator[tuple[Ingredient, ...]]:
    if max_colors >= 1:
        for index in active:
            yield (Ingredient(index, 1),)

    if max_colors >= 2:
        for index_a, index_b in combinations(active, 2):
            for total in range(2, max_total_parts + 1):
                for parts_a in range(1, total):
                    yield (
                        Ingredient(index_a, parts_a),
                        Ingredient(index_b, total - parts_a),
                    )

    if max_colors >= 3:
        for index_a, index_b, index_c in combinations(active, 3):
            for total in range(3, max_total_parts + 1):
                for parts_a in range(1, total - 1):
                    for parts_b in range(1, total - parts_a):
                        yield (
                            Ingredient(index_a, parts_a),
                            Ingredient(index_b, parts_b),
                            Ingredient(index_c, total - parts_a - parts_b),
                        )
