from __future__ import annotations

from typing import Literal, Optional, Union

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from .conversion import ColorFormatError, parse_color
from .models import BasePaint, MixedPaint, Paint
from .palette import base_palette
from .pipeline import PaintMixingPipeline
from .recipe import suggest_recipes
from .settings import get_settings


class PaintItem(BaseModel):
    label: str = Field(..., description="Display name of the paint")
    rgb_string: str = Field(..., description="Color as 'rgb(r, g, b)' or '#rrggbb'")
    parts_in_mix: int = Field(default=0, ge=0)
    recipe: Optional[list["PaintItem"]] = Field(
        default=None,
        description="Paints this swatch was mixed from; mixed swatches are not used as ingredients",
    )


PaintItem.model_rebuild()


class IngredientItem(BaseModel):
    index: int
    parts: int


class SuggestionItem(BaseModel):
    ingredients: list[IngredientItem]
    result_rgb: str
    delta_e: float
    match_pct: float


class ExtractRequest(BaseModel):
    image_url: str = Field(..., description="HTTP(S) image URL")
    color_count: Union[Literal["auto"], int] = Field(
        default="auto", description="Colors to extract, or 'auto'"
    )
    mode: Literal["dominant", "distinct"] = Field(default="dominant")
    palette: list[PaintItem] = Field(
        default_factory=list, description="Palette used for recipe suggestions"
    )
    max_colors: int = Field(default=3, ge=0, le=3)
    max_total_parts: int = Field(default=10, ge=1, le=30)


class ColorItem(BaseModel):
    rgb_string: str
    coverage_pct: float
    suggestion: Optional[SuggestionItem]


class ExtractResponse(BaseModel):
    colors: list[ColorItem]
    palette: list[PaintItem]
    warnings: list[str]


class SuggestRequest(BaseModel):
    palette: list[PaintItem]
    targets: list[str] = Field(..., min_length=1)
    max_colors: int = Field(default=3, ge=0, le=3)
    max_total_parts: int = Field(default=10, ge=1, le=30)


class SuggestResponse(BaseModel):
    palette: list[PaintItem]
    suggestions: list[Optional[SuggestionItem]]


app = FastAPI(
    title="Paint Mixer API",
    version="1.0.0",
    description="Extract reference colors from an image and suggest paint mixing recipes.",
)


def _build_pipeline(max_colors: int, max_total_parts: int) -> PaintMixingPipeline:
    return PaintMixingPipeline(max_colors=max_colors, max_total_parts=max_total_parts)


def _to_paint(item: PaintItem) -> Paint:
    rgb = parse_color(item.rgb_string)
    if item.recipe is not None:
        return MixedPaint(
            label=item.label,
            rgb=rgb,
            recipe=tuple(_to_paint(part) for part in item.recipe),
            parts_in_mix=item.parts_in_mix,
        )
    return BasePaint(label=item.label, rgb=rgb, parts_in_mix=item.parts_in_mix)


def _to_palette(items: list[PaintItem]) -> tuple[Paint, ...]:
    try:
        return tuple(_to_paint(item) for item in items)
    except ColorFormatError as exc:
        raise HTTPException(status_code=400, detail=f"invalid_palette: {exc}") from exc


def _paint_item(paint: Paint) -> PaintItem:
    return PaintItem(
        label=paint.label,
        rgb_string=paint.rgb_string,
        parts_in_mix=paint.parts_in_mix,
    )


def _suggestion_item(suggestion) -> Optional[SuggestionItem]:
    if suggestion is None:
        return None
    return SuggestionItem(**suggestion.to_dict())


@app.post("/extract", response_model=ExtractResponse)
async def extract(payload: ExtractRequest) -> ExtractResponse:
    palette = _to_palette(payload.palette)
    pipeline = _build_pipeline(payload.max_colors, payload.max_total_parts)
    try:
        result = await run_in_threadpool(
            pipeline.run,
            payload.image_url,
            palette,
            payload.color_count,
            payload.mode,
        )
    except Exception as exc:
        raise HTTPException(
            status_code=400, detail=f"failed_to_extract_colors: {exc}"
        ) from exc

    return ExtractResponse(
        colors=[
            ColorItem(
                rgb_string=color.rgb_string,
                coverage_pct=float(color.coverage_pct),
                suggestion=_suggestion_item(suggestion),
            )
            for color, suggestion in zip(result.colors, result.suggestions)
        ],
        palette=[_paint_item(paint) for paint in result.palette],
        warnings=list(result.warnings),
    )


@app.post("/suggest", response_model=SuggestResponse)
async def suggest(payload: SuggestRequest) -> SuggestResponse:
    candidates, _ = base_palette(_to_palette(payload.palette))
    try:
        suggestions = await run_in_threadpool(
            suggest_recipes,
            candidates,
            payload.targets,
            None,
            payload.max_colors,
            payload.max_total_parts,
        )
    except ColorFormatError as exc:
        raise HTTPException(status_code=400, detail=f"invalid_target: {exc}") from exc

    return SuggestResponse(
        palette=[_paint_item(paint) for paint in candidates],
        suggestions=[_suggestion_item(suggestion) for suggestion in suggestions],
    )


@app.get("/health")
async def health() -> dict[str, object]:
    settings = get_settings()
    return {
        "status": "ok",
        "max_colors": settings.max_colors,
        "max_total_parts": settings.max_total_parts,
    }
