"""Text watermark placement and drawing."""

from __future__ import annotations

from dataclasses import dataclass

from .colors import Color
from .document import RenderDocument
from .options import WatermarkConfig
from .utils import get_logger

LOGGER = get_logger("pdf_generator.watermark")

WATERMARK_FONT = "Helvetica-Bold"
CORNER_MARGIN = 50.0


@dataclass
class WatermarkPlacement:
    """Where and how the watermark string is drawn on one page.

    ``(x, y)`` is the center of the text before rotation.
    """
    text: str
    x: float
    y: float
    rotation: float
    opacity: float
    font_size: float
    color: Color


def watermark_placement(config: WatermarkConfig, page_width: float, page_height: float) -> WatermarkPlacement:
    position = config.position
    if isinstance(position, tuple):
        x, y = position
    elif position == "top-left":
        x, y = CORNER_MARGIN, page_height - CORNER_MARGIN
    elif position == "top-right":
        x, y = page_width - CORNER_MARGIN, page_height - CORNER_MARGIN
    elif position == "bottom-left":
        x, y = CORNER_MARGIN, CORNER_MARGIN
    elif position == "bottom-right":
        x, y = page_width - CORNER_MARGIN, CORNER_MARGIN
    else:
        x, y = page_width / 2, page_height / 2

    return WatermarkPlacement(
        text=config.text,
        x=float(x),
        y=float(y),
        rotation=config.rotation,
        opacity=config.opacity,
        font_size=config.font_size,
        color=config.color,
    )


def apply_watermark(document: RenderDocument, config: WatermarkConfig) -> int:
    """Draw *config* on every page of *document*; returns the page count."""

    font = document.fonts.get_font(WATERMARK_FONT)
    for number in document.page_numbers():
        width, height = document.page_size(number)
        placement = watermark_placement(config, width, height)
        canvas = document.canvas(number)
        canvas.saveState()
        canvas.setFillColor(placement.color.to_reportlab())
        canvas.setFillAlpha(placement.opacity)
        canvas.setFont(font.name, placement.font_size)
        canvas.translate(placement.x, placement.y)
        canvas.rotate(placement.rotation)
        canvas.drawCentredString(0, -placement.font_size / 3, placement.text)
        canvas.restoreState()

    LOGGER.debug("Applied watermark %r to %d page(s)", config.text, document.page_count)
    return document.page_count


__all__ = ["WatermarkPlacement", "watermark_placement", "apply_watermark"]
