from __future__ import annotations

import logging

from .settings import get_settings


def configure_logging(level: str | None = None) -> None:
    settings = get_settings()
    name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
