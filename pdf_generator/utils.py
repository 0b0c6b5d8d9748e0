"""Utility helpers shared by the PDF generator modules."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

POINTS_PER_INCH = 72.0
PIXELS_PER_INCH = 96.0
MM_PER_INCH = 25.4


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False
    return logger


# ----------------------------------------------------------------------
# Geometry
# ----------------------------------------------------------------------
def point_to_pixel(point: float) -> float:
    return point * PIXELS_PER_INCH / POINTS_PER_INCH


def pixel_to_point(pixel: float) -> float:
    return pixel * POINTS_PER_INCH / PIXELS_PER_INCH


def inch_to_point(inch: float) -> float:
    return inch * POINTS_PER_INCH


def mm_to_point(mm: float) -> float:
    return mm * POINTS_PER_INCH / MM_PER_INCH


def cm_to_point(cm: float) -> float:
    return mm_to_point(cm * 10)


# ----------------------------------------------------------------------
# Data access
# ----------------------------------------------------------------------
def get_nested_value(obj: Any, path: str) -> Any:
    """Return the value at dotted *path* inside *obj* or ``None``.

    Mapping keys are matched as strings; a numeric segment indexes into a
    list or tuple. A missing segment anywhere along the path yields ``None``
    instead of raising.
    """

    if obj is None or not path:
        return None

    current = obj
    for segment in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(segment)
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not segment.lstrip("-").isdigit():
                return None
            index = int(segment)
            if -len(current) <= index < len(current):
                current = current[index]
            else:
                return None
        else:
            return None
    return current


def is_blank(value: Any) -> bool:
    """``True`` for values the generator treats as missing."""

    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    return False


def format_file_size(size_bytes: float) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "500 KB")
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} PB"


__all__ = [
    "get_logger",
    "point_to_pixel",
    "pixel_to_point",
    "inch_to_point",
    "mm_to_point",
    "cm_to_point",
    "get_nested_value",
    "is_blank",
    "format_file_size",
]
