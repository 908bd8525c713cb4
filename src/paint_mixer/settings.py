"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _load_env_file(path: str = ".env") -> None:
    """Populate os.environ from the provided .env file if it exists."""

    env_path = Path(path)
    if not env_path.exists():
        return

    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    max_image_dimension: int = 480
    max_colors: int = 3
    max_total_parts: int = 10


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _build_settings() -> Settings:
    _load_env_file()

    return Settings(
        log_level=os.getenv("PAINT_MIXER_LOG_LEVEL", "INFO"),
        max_image_dimension=_int_env("PAINT_MIXER_MAX_IMAGE_DIMENSION", 480),
        max_colors=_int_env("PAINT_MIXER_MAX_COLORS", 3),
        max_total_parts=_int_env("PAINT_MIXER_MAX_TOTAL_PARTS", 10),
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance to avoid re-reading configuration."""

    return _build_settings()
