"""Runtime configuration for the generator, read from ``PDF_GENERATOR_*`` variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from . import __version__

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    value = env.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    value = env.get(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


@dataclass
class GeneratorConfig:
    """
    Engine-wide defaults.

    Attributes:
        version: Engine version reported in result metadata
        default_font_family: Font used when a field does not name one
        default_font_size: Font size used when a field does not set one
        default_quality: Quality applied when a request does not set one
        upload_prefix: Blob reference prefix for uploaded documents
        batch_concurrency: Default worker count for bulk generation
        allow_overflow: Draw overflowing text instead of clipping it
    """
    version: str = __version__
    default_font_family: str = "Helvetica"
    default_font_size: float = 12
    default_quality: str = "medium"
    upload_prefix: str = "generated/"
    batch_concurrency: int = 3
    allow_overflow: bool = False

    def __post_init__(self) -> None:
        if self.default_quality not in ("low", "medium", "high"):
            raise ValueError(f"Unknown quality: {self.default_quality}")
        if not 1 <= self.batch_concurrency <= 10:
            raise ValueError("Batch concurrency must be between 1 and 10")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GeneratorConfig":
        env = os.environ if environ is None else environ
        return cls(
            version=env.get("PDF_GENERATOR_VERSION", __version__),
            default_font_family=env.get("PDF_GENERATOR_DEFAULT_FONT", "Helvetica"),
            default_font_size=_env_float(env, "PDF_GENERATOR_DEFAULT_FONT_SIZE", 12.0),
            default_quality=env.get("PDF_GENERATOR_QUALITY", "medium").strip().lower(),
            upload_prefix=env.get("PDF_GENERATOR_UPLOAD_PREFIX", "generated/"),
            batch_concurrency=_env_int(env, "PDF_GENERATOR_BATCH_CONCURRENCY", 3),
            allow_overflow=_env_bool(env, "PDF_GENERATOR_ALLOW_OVERFLOW", False),
        )


QR_SCALES = {"low": 2, "medium": 4, "high": 8}


__all__ = ["GeneratorConfig", "QR_SCALES"]
