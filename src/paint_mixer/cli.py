from __future__ import annotations

import argparse
import json
from pathlib import Path

from .io import read_image_rgba
from .logging_config import configure_logging
from .palette import base_palette, load_palette
from .pipeline import PaintMixingPipeline, extract_colors
from .recipe import suggest_recipes
from .settings import get_settings


def _color_count(value: str) -> int | str:
    if value == "auto":
        return value
    try:
        count = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("expected a positive integer or 'auto'") from exc
    if count < 1:
        raise argparse.ArgumentTypeError("expected a positive integer or 'auto'")
    return count


def _build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="paint-mixer",
        description="Extract reference colors from an image and suggest paint recipes.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (defaults to PAINT_MIXER_LOG_LEVEL or INFO).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser(
        "extract",
        help="Extract representative colors and optionally suggest recipes for them.",
    )
    extract.add_argument(
        "--image", required=True, help="Path or URL to the reference image."
    )
    extract.add_argument(
        "--count",
        type=_color_count,
        default="auto",
        help="Number of colors to extract, or 'auto'.",
    )
    extract.add_argument(
        "--mode",
        choices=["dominant", "distinct"],
        default="dominant",
        help="'distinct' prefers perceptually spread colors over near-duplicates.",
    )
    extract.add_argument(
        "--palette",
        default=None,
        help="Optional palette (.csv/.json); when given, a recipe is suggested per color.",
    )
    _add_search_options(extract, settings)
    extract.add_argument(
        "--out",
        default=None,
        help="Optional JSON output path. If omitted, prints JSON to stdout.",
    )

    suggest = subparsers.add_parser(
        "suggest",
        help="Suggest a recipe from a palette for one or more target colors.",
    )
    suggest.add_argument(
        "--palette", required=True, help="Path to the palette (.csv/.json)."
    )
    suggest.add_argument(
        "--target",
        action="append",
        required=True,
        help="Target color such as 'rgb(120, 80, 40)' or '#785028'. Repeatable.",
    )
    _add_search_options(suggest, settings)
    suggest.add_argument(
        "--out",
        default=None,
        help="Optional JSON output path. If omitted, prints JSON to stdout.",
    )

    return parser


def _add_search_options(parser: argparse.ArgumentParser, settings) -> None:
    parser.add_argument(
        "--max-colors",
        type=int,
        default=settings.max_colors,
        help="Maximum number of paints in a recipe (at most 3).",
    )
    parser.add_argument(
        "--max-total-parts",
        type=int,
        default=settings.max_total_parts,
        help="Maximum total parts in a recipe.",
    )


def _emit(payload: dict, out: str | None) -> None:
    text = json.dumps(payload, indent=2)
    if out:
        output_path = Path(out)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text + "\n", encoding="utf-8")
    else:
        print(text)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "extract":
        if args.palette:
            pipeline = PaintMixingPipeline(
                max_colors=args.max_colors, max_total_parts=args.max_total_parts
            )
            result = pipeline.run(
                image_path=args.image,
                palette=load_palette(args.palette),
                color_count=args.count,
                mode=args.mode,
            )
            _emit(result.to_dict(), args.out)
            return

        pixels = read_image_rgba(args.image, max_dimension=get_settings().max_image_dimension)
        colors = extract_colors(pixels, color_count=args.count, mode=args.mode)
        _emit({"colors": [color.to_dict() for color in colors]}, args.out)
        return

    if args.command == "suggest":
        palette, _ = base_palette(load_palette(args.palette))
        suggestions = suggest_recipes(
            palette,
            args.target,
            max_colors=args.max_colors,
            max_total_parts=args.max_total_parts,
        )
        _emit(
            {
                "palette": [paint.to_dict() for paint in palette],
                "suggestions": [
                    {
                        "target": target,
                        "suggestion": None if suggestion is None else suggestion.to_dict(),
                    }
                    for target, suggestion in zip(args.target, suggestions)
                ],
            },
            args.out,
        )
        return

    parser.error("unknown command")


if __name__ == "__main__":
    main()
