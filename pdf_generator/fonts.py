"""Font resolution onto the standard PDF fonts with a per-document cache."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from reportlab.pdfbase import pdfmetrics

from .utils import get_logger

LOGGER = get_logger("pdf_generator.fonts")

# (regular, bold, italic, bold-italic)
_FAMILIES: Dict[str, Tuple[str, str, str, str]] = {
    "helvetica": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique", "Helvetica-BoldOblique"),
    "times": ("Times-Roman", "Times-Bold", "Times-Italic", "Times-BoldItalic"),
    "courier": ("Courier", "Courier-Bold", "Courier-Oblique", "Courier-BoldOblique"),
}

_ALIASES = {
    "helvetica": "helvetica",
    "arial": "helvetica",
    "sans-serif": "helvetica",
    "sans": "helvetica",
    "times": "times",
    "times-roman": "times",
    "times new roman": "times",
    "serif": "times",
    "courier": "courier",
    "courier new": "courier",
    "monospace": "courier",
}

_SYMBOLIC = {"zapfdingbats": "ZapfDingbats", "symbol": "Symbol"}

_BOLD_SUFFIXES = ("-bold",)
_ITALIC_SUFFIXES = ("-italic", "-oblique")


@dataclass(frozen=True)
class FontHandle:
    """A resolved standard font usable by the drawing layer."""

    name: str

    def width_of_text_at_size(self, text: str, size: float) -> float:
        return pdfmetrics.stringWidth(text, self.name, size)

    def height_at_size(self, size: float) -> float:
        ascent, descent = pdfmetrics.getAscentDescent(self.name, size)
        return ascent - descent


def resolve_font_name(family: str, weight: str = "normal", style: str = "normal") -> str:
    """Map a CSS-like family name plus weight/style onto a standard font name."""

    key = (family or "").strip().lower()
    if key in _SYMBOLIC:
        return _SYMBOLIC[key]

    bold = str(weight).lower() in ("bold", "bolder", "700", "800", "900")
    italic = str(style).lower() in ("italic", "oblique")

    # explicit variants such as "Arial-Bold" or "times-bolditalic"
    for suffix in ("-bolditalic", "-boldoblique"):
        if key.endswith(suffix):
            key, bold, italic = key[: -len(suffix)], True, True
    for suffix in _BOLD_SUFFIXES:
        if key.endswith(suffix):
            key, bold = key[: -len(suffix)], True
    for suffix in _ITALIC_SUFFIXES:
        if key.endswith(suffix):
            key, italic = key[: -len(suffix)], True

    base = _ALIASES.get(key)
    if base is None:
        LOGGER.warning("Unknown font family %r, falling back to Helvetica", family)
        base = "helvetica"

    regular, bold_name, italic_name, bold_italic = _FAMILIES[base]
    if bold and italic:
        return bold_italic
    if bold:
        return bold_name
    if italic:
        return italic_name
    return regular


class FontManager:
    """Font cache owned by a single document; never shared across documents."""

    def __init__(self) -> None:
        self._cache: Dict[str, FontHandle] = {}

    def get_font(self, family: str, weight: str = "normal", style: str = "normal") -> FontHandle:
        name = resolve_font_name(family, weight, style)
        handle = self._cache.get(name)
        if handle is None:
            handle = FontHandle(name)
            self._cache[name] = handle
            LOGGER.debug("Resolved font %s -> %s", family, name)
        return handle

    def cached_fonts(self) -> list[str]:
        return sorted(self._cache)

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)


__all__ = ["FontHandle", "FontManager", "resolve_font_name"]
