"""
Pure layout computations for text, tables and images.

Nothing in this module draws. Functions take a ``measure`` callable returning
the rendered width of a string and produce positioned pieces that the field
processor then hands to the canvas. Coordinates are PDF points with a
bottom-left origin; text flows downward from its anchor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Sequence, Tuple

from .types import Padding, TableData

Measure = Callable[[str], float]

LINE_HEIGHT_FACTOR = 1.2
ROW_HEIGHT_FACTOR = 1.5
CELL_PADDING = 4.0

_VERTICAL_SHIFT = {"top": 0.0, "middle": 0.5, "bottom": 1.0}


@dataclass
class PlacedLine:
    text: str
    x: float
    y: float
    width: float


@dataclass
class TextLayout:
    lines: List[PlacedLine] = field(default_factory=list)
    overflow: List[str] = field(default_factory=list)

    @property
    def overflowed(self) -> bool:
        return bool(self.overflow)


@dataclass
class TableCell:
    text: str
    x: float
    y: float


@dataclass
class TableRow:
    top: float
    bottom: float
    cells: List[TableCell]
    header: bool = False


@dataclass
class TableLayout:
    column_width: float
    row_height: float
    rows: List[TableRow] = field(default_factory=list)
    dropped_rows: int = 0


# ----------------------------------------------------------------------
# Text
# ----------------------------------------------------------------------
def break_word(word: str, max_width: float, measure: Measure) -> List[str]:
    """Split *word* into chunks each no wider than *max_width*.

    A chunk always holds at least one character, so a single glyph wider than
    the line still makes progress.
    """
    chunks: List[str] = []
    current = ""
    for char in word:
        candidate = current + char
        if current and measure(candidate) > max_width:
            chunks.append(current)
            current = char
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def wrap_text(text: str, max_width: float, measure: Measure) -> List[str]:
    """Greedy word wrap; explicit newlines start new paragraphs."""

    lines: List[str] = []
    for paragraph in str(text).split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue

        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if measure(candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
                current = ""
            if measure(word) <= max_width:
                current = word
            else:
                pieces = break_word(word, max_width, measure)
                lines.extend(pieces[:-1])
                current = pieces[-1]
        lines.append(current)
    return lines


def align_x(x: float, width: float, text_width: float, alignment: str, padding: Padding) -> float:
    inner_left = x + padding.left
    inner_width = width - padding.left - padding.right
    if alignment == "center":
        return inner_left + (inner_width - text_width) / 2
    if alignment == "right":
        return inner_left + inner_width - text_width
    return inner_left


def content_width(width: float, padding: Padding) -> float:
    inner = width - padding.left - padding.right
    return inner if inner > 0 else width


def layout_single_line(
    text: str,
    x: float,
    y: float,
    width: float,
    measure: Measure,
    alignment: str = "left",
    padding: Padding | None = None,
) -> PlacedLine:
    padding = padding or Padding()
    text_width = measure(text)
    return PlacedLine(text, align_x(x, width, text_width, alignment, padding), y, text_width)


def layout_paragraphs(
    text: str,
    x: float,
    y: float,
    width: float,
    height: float,
    font_size: float,
    measure: Measure,
    alignment: str = "left",
    vertical_alignment: str = "top",
    padding: Padding | None = None,
) -> TextLayout:
    """Wrap *text* into the box anchored at ``(x, y)`` extending downward.

    Lines advance by ``font_size * 1.2``. A line is kept while its baseline
    stays at or above the bottom of the box; the rest are returned as
    ``overflow``.
    """
    padding = padding or Padding()
    line_height = font_size * LINE_HEIGHT_FACTOR
    wrapped = wrap_text(text, content_width(width, padding), measure)

    top = y - padding.top
    bottom = y - height + padding.bottom
    kept: List[str] = []
    overflow: List[str] = []
    for index, line in enumerate(wrapped):
        baseline = top - index * line_height
        if baseline < bottom and index > 0:
            overflow = wrapped[index:]
            break
        kept.append(line)

    shift = 0.0
    if not overflow and kept:
        used = (len(kept) - 1) * line_height
        shift = max(0.0, (top - bottom) - used) * _VERTICAL_SHIFT.get(vertical_alignment, 0.0)

    layout = TextLayout(overflow=overflow)
    for index, line in enumerate(kept):
        text_width = measure(line)
        layout.lines.append(
            PlacedLine(
                line,
                align_x(x, width, text_width, alignment, padding),
                top - index * line_height - shift,
                text_width,
            )
        )
    return layout


def clip_text(text: str, max_width: float, measure: Measure) -> str:
    """Drop trailing characters until *text* fits within *max_width*."""

    if measure(text) <= max_width:
        return text
    clipped = text
    while clipped and measure(clipped) > max_width:
        clipped = clipped[:-1]
    return clipped


# ----------------------------------------------------------------------
# Tables
# ----------------------------------------------------------------------
def _cell_text(value: Any) -> str:
    return "" if value is None else str(value)


def layout_table(
    table: TableData,
    x: float,
    y: float,
    width: float,
    height: float,
    font_size: float,
    measure: Measure,
) -> TableLayout:
    """Lay out a header row and data rows with uniform column widths."""

    column_count = max(1, len(table.headers))
    column_width = width / column_count
    row_height = font_size * ROW_HEIGHT_FACTOR
    cell_width = max(0.0, column_width - 2 * CELL_PADDING)
    limit = y - height

    layout = TableLayout(column_width=column_width, row_height=row_height)
    all_rows: List[Tuple[Sequence[Any], bool]] = [(table.headers, True)]
    all_rows.extend((row, False) for row in table.rows)

    for index, (values, header) in enumerate(all_rows):
        top = y - index * row_height
        bottom = top - row_height
        if bottom < limit:
            layout.dropped_rows = len(all_rows) - index
            break
        cells = [
            TableCell(
                clip_text(_cell_text(values[column] if column < len(values) else ""), cell_width, measure),
                x + column * column_width + CELL_PADDING,
                bottom + CELL_PADDING,
            )
            for column in range(column_count)
        ]
        layout.rows.append(TableRow(top=top, bottom=bottom, cells=cells, header=header))
    return layout


# ----------------------------------------------------------------------
# Images
# ----------------------------------------------------------------------
def fit_image(
    image_width: float,
    image_height: float,
    box_width: float,
    box_height: float,
    preserve_aspect: bool = True,
) -> Tuple[float, float, float, float]:
    """Return ``(width, height, dx, dy)`` placing an image centered in a box."""

    if not preserve_aspect or image_width <= 0 or image_height <= 0:
        return box_width, box_height, 0.0, 0.0
    scale = min(box_width / image_width, box_height / image_height)
    width = image_width * scale
    height = image_height * scale
    return width, height, (box_width - width) / 2, (box_height - height) / 2


__all__ = [
    "PlacedLine",
    "TextLayout",
    "TableCell",
    "TableRow",
    "TableLayout",
    "break_word",
    "wrap_text",
    "align_x",
    "content_width",
    "layout_single_line",
    "layout_paragraphs",
    "clip_text",
    "layout_table",
    "fit_image",
    "LINE_HEIGHT_FACTOR",
    "ROW_HEIGHT_FACTOR",
    "CELL_PADDING",
]
