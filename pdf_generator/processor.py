"""
Per-field rendering.

:class:`FieldProcessor` draws one field onto its page of a
:class:`~pdf_generator.document.RenderDocument`. Dispatch goes through an
explicit table keyed by :class:`~pdf_generator.types.FieldType`; anything not
in the table is reported as ``UNSUPPORTED_FIELD_TYPE`` and skipped.

Flowing content (text, numbers, dates, tables) hangs downward from the field
anchor ``(x, y)``. Box content (checkbox, image, QR code, signature) occupies
``[x, x + width] x [y, y + height]``.
"""

from __future__ import annotations

import base64
import binascii
import io
import math
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from .colors import BLACK, GRAY, Color
from .document import RenderDocument
from .exceptions import FieldProcessingError
from .layout import fit_image, layout_paragraphs, layout_single_line, layout_table
from .results import ProcessingError, ProcessingWarning, RenderOutcome
from .transformers import format_date, format_number, generate_qr_png, to_boolean
from .types import FieldDefinition, FieldType, FontConfig, SignatureConfig, TableData, TransformerKind
from .utils import get_logger, is_blank

LOGGER = get_logger("pdf_generator.processor")

_DATA_URI = re.compile(r"^data:image/([A-Za-z0-9.+-]+);base64,(.*)$", re.DOTALL)
_EMBEDDABLE_FORMATS = {"png", "jpeg", "jpg"}

_DASHES = {"dashed": (4, 2), "dotted": (1, 2)}

CHECK_MARK = "4"  # ZapfDingbats heavy check mark
CAPTION_FONT_SIZE = 8
CAPTION_OFFSET = 10

Handler = Callable[[RenderDocument, FieldDefinition, Any, RenderOutcome], None]


class FieldProcessor:
    """Draws single fields and reports what could not be drawn faithfully."""

    def __init__(
        self,
        allow_overflow: bool = False,
        qr_scale: int = 4,
        default_font: Optional[FontConfig] = None,
        default_color: Optional[Color] = None,
    ) -> None:
        self.allow_overflow = allow_overflow
        self.qr_scale = qr_scale
        self.default_font = default_font or FontConfig()
        self.default_color = default_color or BLACK
        self._handlers: Dict[FieldType, Handler] = {
            FieldType.TEXT: self._render_text,
            FieldType.MULTILINE_TEXT: self._render_text,
            FieldType.NUMBER: self._render_number,
            FieldType.DATE: self._render_date,
            FieldType.CHECKBOX: self._render_checkbox,
            FieldType.IMAGE: self._render_image,
            FieldType.QRCODE: self._render_qrcode,
            FieldType.TABLE: self._render_table,
            FieldType.SIGNATURE: self._render_signature,
        }

    def supports(self, field_type: Any) -> bool:
        return isinstance(field_type, FieldType) and field_type in self._handlers

    def render_field(self, document: RenderDocument, field: FieldDefinition, value: Any) -> RenderOutcome:
        """Draw *field* with *value*; failures are recorded on the outcome."""

        outcome = RenderOutcome()
        handler = self._handlers.get(field.type) if isinstance(field.type, FieldType) else None
        if handler is None:
            outcome.rendered = False
            outcome.warnings.append(
                ProcessingWarning(
                    code="UNSUPPORTED_FIELD_TYPE",
                    message=f"Field type '{field.type_name}' is not supported",
                    field=field.id,
                    page=field.page,
                    suggestion="Use one of: " + ", ".join(t.value for t in self._handlers),
                )
            )
            return outcome

        if not document.has_page(field.page):
            error = FieldProcessingError(field.id, f"page {field.page} does not exist")
            outcome.rendered = False
            outcome.errors.append(self._error(field, error))
            return outcome

        canvas = document.canvas(field.page)
        canvas.saveState()
        try:
            self._apply_transform(canvas, field)
            handler(document, field, value, outcome)
        except Exception as exc:
            LOGGER.warning("Failed to render field %s: %s", field.id, exc)
            outcome.rendered = False
            outcome.errors.append(self._error(field, FieldProcessingError(field.id, exc)))
        finally:
            canvas.restoreState()
        return outcome

    # ------------------------------------------------------------------
    # Shared drawing helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _error(field: FieldDefinition, error: FieldProcessingError) -> ProcessingError:
        return ProcessingError(
            code=error.code,
            message=error.message,
            field=field.id,
            page=field.page,
            severity="error",
            details=error.details,
        )

    @staticmethod
    def _apply_transform(canvas: Canvas, field: FieldDefinition) -> None:
        opacity = field.style.opacity
        if opacity < 1:
            canvas.setFillAlpha(opacity)
            canvas.setStrokeAlpha(opacity)
        rotation = field.position.rotation
        if rotation:
            x, y = field.position.x, field.position.y
            canvas.translate(x, y)
            canvas.rotate(rotation)
            canvas.translate(-x, -y)

    @staticmethod
    def _set_stroke(canvas: Canvas, field: FieldDefinition, default_width: float = 1) -> None:
        style = field.style
        canvas.setStrokeColor((style.border_color or BLACK).to_reportlab())
        canvas.setLineWidth(style.border_width if style.border_width is not None else default_width)
        dash = _DASHES.get(style.border_style)
        if dash:
            canvas.setDash(*dash)

    def _decorate(self, canvas: Canvas, field: FieldDefinition, box: Tuple[float, float, float, float]) -> None:
        """Paint the background and border of *field* over *box*."""

        style = field.style
        x, y, width, height = box
        if style.background_color is not None:
            canvas.saveState()
            canvas.setFillColor(style.background_color.to_reportlab())
            canvas.rect(x, y, width, height, stroke=0, fill=1)
            canvas.restoreState()
        if style.border_color is not None or style.border_width:
            canvas.saveState()
            self._set_stroke(canvas, field)
            canvas.rect(x, y, width, height, stroke=1, fill=0)
            canvas.restoreState()

    @staticmethod
    def _flow_box(field: FieldDefinition) -> Tuple[float, float, float, float]:
        height = field.dimensions.height
        return field.position.x, field.position.y - height, field.dimensions.width, height

    @staticmethod
    def _area_box(field: FieldDefinition) -> Tuple[float, float, float, float]:
        return field.position.x, field.position.y, field.dimensions.width, field.dimensions.height

    def _font_config(self, field: FieldDefinition) -> FontConfig:
        return field.style.font or self.default_font

    def _font(self, document: RenderDocument, field: FieldDefinition, bold: bool = False):
        config = self._font_config(field)
        return document.fonts.get_font(config.family, "bold" if bold else config.weight, config.style)

    def _color(self, field: FieldDefinition) -> Color:
        return field.style.color or self.default_color

    # ------------------------------------------------------------------
    # Text family
    # ------------------------------------------------------------------
    def _draw_text(
        self,
        document: RenderDocument,
        field: FieldDefinition,
        text: str,
        outcome: RenderOutcome,
        multiline: bool,
    ) -> None:
        style = field.style
        font = self._font(document, field)
        size = self._font_config(field).size
        canvas = document.canvas(field.page)

        self._decorate(canvas, field, self._flow_box(field))
        if text == "":
            return

        def measure(value: str) -> float:
            return font.width_of_text_at_size(value, size)

        canvas.setFont(font.name, size)
        canvas.setFillColor(self._color(field).to_reportlab())

        if not multiline:
            line = layout_single_line(
                " ".join(text.splitlines()),
                field.position.x,
                field.position.y,
                field.dimensions.width,
                measure,
                style.alignment,
                style.padding,
            )
            canvas.drawString(line.x, line.y, line.text)
            return

        height = math.inf if self.allow_overflow else field.dimensions.height
        layout = layout_paragraphs(
            text,
            field.position.x,
            field.position.y,
            field.dimensions.width,
            height,
            size,
            measure,
            style.alignment,
            style.vertical_alignment if not self.allow_overflow else "top",
            style.padding,
        )
        for line in layout.lines:
            canvas.drawString(line.x, line.y, line.text)
        if layout.overflowed:
            outcome.warnings.append(
                ProcessingWarning(
                    code="TEXT_OVERFLOW",
                    message=f"{len(layout.overflow)} line(s) did not fit in field {field.name}",
                    field=field.id,
                    page=field.page,
                    suggestion="Increase the field height or reduce the font size",
                )
            )

    def _render_text(self, document: RenderDocument, field: FieldDefinition, value: Any, outcome: RenderOutcome) -> None:
        if is_blank(value):
            text = field.placeholder or ""
        else:
            text = str(value)
        self._draw_text(document, field, text, outcome, multiline=field.type is FieldType.MULTILINE_TEXT)

    def _render_number(self, document: RenderDocument, field: FieldDefinition, value: Any, outcome: RenderOutcome) -> None:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = format_number(value)
        self._render_text(document, field, value, outcome)

    def _render_date(self, document: RenderDocument, field: FieldDefinition, value: Any, outcome: RenderOutcome) -> None:
        if isinstance(value, (datetime, date)):
            value = format_date(value)
        self._render_text(document, field, value, outcome)

    # ------------------------------------------------------------------
    # Checkbox
    # ------------------------------------------------------------------
    def _render_checkbox(self, document: RenderDocument, field: FieldDefinition, value: Any, outcome: RenderOutcome) -> None:
        canvas = document.canvas(field.page)
        x, y = field.position.x, field.position.y
        side = min(field.dimensions.width, field.dimensions.height)

        if field.style.background_color is not None:
            canvas.saveState()
            canvas.setFillColor(field.style.background_color.to_reportlab())
            canvas.rect(x, y, side, side, stroke=0, fill=1)
            canvas.restoreState()

        canvas.saveState()
        self._set_stroke(canvas, field)
        canvas.rect(x, y, side, side, stroke=1, fill=0)
        canvas.restoreState()

        if value is not None and to_boolean(value):
            mark = document.fonts.get_font("ZapfDingbats")
            mark_size = side * 0.8
            mark_width = mark.width_of_text_at_size(CHECK_MARK, mark_size)
            canvas.setFont(mark.name, mark_size)
            canvas.setFillColor(self._color(field).to_reportlab())
            canvas.drawString(x + (side - mark_width) / 2, y + side * 0.2, CHECK_MARK)

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------
    def _draw_image_source(
        self,
        document: RenderDocument,
        field: FieldDefinition,
        source: Any,
        outcome: RenderOutcome,
        preserve_aspect: bool = True,
    ) -> None:
        if isinstance(source, dict):
            preserve_aspect = source.get("aspectRatio", "preserve") == "preserve"
            source = source.get("src")
        if is_blank(source):
            return
        if isinstance(source, (bytes, bytearray)):
            self._embed_image(document, field, bytes(source), preserve_aspect)
            return

        text = str(source)
        if text.startswith(("http://", "https://")):
            outcome.warnings.append(
                ProcessingWarning(
                    code="REMOTE_IMAGE_UNSUPPORTED",
                    message=f"Remote image for field {field.name} was not resolved before rendering",
                    field=field.id,
                    page=field.page,
                    suggestion="Configure an image fetcher or embed the image as a data URI",
                )
            )
            return

        match = _DATA_URI.match(text)
        if match is None or match.group(1).lower() not in _EMBEDDABLE_FORMATS:
            fmt = match.group(1) if match else "unknown"
            outcome.warnings.append(
                ProcessingWarning(
                    code="UNSUPPORTED_IMAGE_FORMAT",
                    message=f"Image format '{fmt}' is not supported for field {field.name}",
                    field=field.id,
                    page=field.page,
                    suggestion="Provide a PNG or JPEG data URI",
                )
            )
            return

        try:
            raw = base64.b64decode(match.group(2), validate=False)
        except (binascii.Error, ValueError) as exc:
            raise ValueError(f"Invalid base64 image data: {exc}") from exc
        self._embed_image(document, field, raw, preserve_aspect)

    def _embed_image(self, document: RenderDocument, field: FieldDefinition, raw: bytes, preserve_aspect: bool) -> None:
        try:
            image = Image.open(io.BytesIO(raw))
            image.load()
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError(f"Unable to decode image: {exc}") from exc

        canvas = document.canvas(field.page)
        x, y, width, height = self._area_box(field)
        self._decorate(canvas, field, (x, y, width, height))
        draw_width, draw_height, dx, dy = fit_image(image.width, image.height, width, height, preserve_aspect)
        canvas.drawImage(ImageReader(image), x + dx, y + dy, draw_width, draw_height, mask="auto")

    def _render_image(self, document: RenderDocument, field: FieldDefinition, value: Any, outcome: RenderOutcome) -> None:
        self._draw_image_source(document, field, value, outcome)

    def _render_qrcode(self, document: RenderDocument, field: FieldDefinition, value: Any, outcome: RenderOutcome) -> None:
        if is_blank(value):
            return
        text = str(value)
        if text.startswith("data:image/"):
            self._draw_image_source(document, field, text, outcome)
            return

        options = field.transformer.options if (
            field.transformer is not None and field.transformer.kind is TransformerKind.QRCODE
        ) else None
        png = generate_qr_png(
            text,
            error_correction_level=options.error_correction_level if options else "M",
            margin=options.margin if options else 4,
            scale=options.scale if options else self.qr_scale,
        )
        self._embed_image(document, field, png, preserve_aspect=True)

    # ------------------------------------------------------------------
    # Table
    # ------------------------------------------------------------------
    def _render_table(self, document: RenderDocument, field: FieldDefinition, value: Any, outcome: RenderOutcome) -> None:
        if value is None:
            return
        table = TableData.parse(value)
        if table is None:
            raise ValueError("Table value must provide 'headers' and 'rows'")

        style = field.style
        size = self._font_config(field).size
        body_font = self._font(document, field)
        header_font = self._font(document, field, bold=True)
        canvas = document.canvas(field.page)
        x, y = field.position.x, field.position.y
        height = math.inf if self.allow_overflow else field.dimensions.height

        def measure(text: str) -> float:
            return header_font.width_of_text_at_size(text, size)

        layout = layout_table(table, x, y, field.dimensions.width, height, size, measure)
        if layout.rows and style.background_color is not None:
            canvas.saveState()
            canvas.setFillColor(style.background_color.to_reportlab())
            bottom = layout.rows[-1].bottom
            canvas.rect(x, bottom, field.dimensions.width, y - bottom, stroke=0, fill=1)
            canvas.restoreState()

        canvas.setFillColor(self._color(field).to_reportlab())
        for row in layout.rows:
            font = header_font if row.header else body_font
            canvas.setFont(font.name, size)
            for cell in row.cells:
                canvas.drawString(cell.x, cell.y, cell.text)

        if layout.rows and (style.border_color is not None or style.border_width):
            canvas.saveState()
            self._set_stroke(canvas, field, default_width=0.5)
            for row in layout.rows:
                for column in range(len(row.cells)):
                    canvas.rect(
                        x + column * layout.column_width,
                        row.bottom,
                        layout.column_width,
                        layout.row_height,
                        stroke=1,
                        fill=0,
                    )
            canvas.restoreState()

        if layout.dropped_rows:
            outcome.warnings.append(
                ProcessingWarning(
                    code="TABLE_OVERFLOW",
                    message=f"{layout.dropped_rows} table row(s) did not fit in field {field.name}",
                    field=field.id,
                    page=field.page,
                    suggestion="Increase the field height or split the table",
                )
            )

    # ------------------------------------------------------------------
    # Signature
    # ------------------------------------------------------------------
    def _render_signature(self, document: RenderDocument, field: FieldDefinition, value: Any, outcome: RenderOutcome) -> None:
        if is_blank(value):
            return
        signature = SignatureConfig.parse(value)
        if signature is None:
            raise ValueError("Signature value must be a string or a signature object")

        if signature.type == "image" and signature.image_url:
            self._draw_image_source(document, field, signature.image_url, outcome)
        elif signature.type == "drawn" and signature.signature_data:
            self._draw_image_source(document, field, signature.signature_data, outcome)
        elif signature.type == "typed" and signature.signature_data:
            self._draw_typed_signature(document, field, signature.signature_data)

        if signature.timestamp and signature.certificate_info is not None:
            info = signature.certificate_info
            canvas = document.canvas(field.page)
            caption_font = document.fonts.get_font("Helvetica")
            canvas.setFont(caption_font.name, CAPTION_FONT_SIZE)
            canvas.setFillColor(GRAY.to_reportlab())
            canvas.drawString(
                field.position.x,
                field.position.y - CAPTION_OFFSET,
                f"Signed by {info.signer_name} on {info.signing_date}",
            )

    def _draw_typed_signature(self, document: RenderDocument, field: FieldDefinition, text: str) -> None:
        style = field.style
        font = self._font(document, field)
        size = self._font_config(field).size
        canvas = document.canvas(field.page)
        x, y, width, height = self._area_box(field)
        self._decorate(canvas, field, (x, y, width, height))

        line = layout_single_line(
            text,
            x,
            y + max(0.0, (height - size) / 2),
            width,
            lambda value: font.width_of_text_at_size(value, size),
            style.alignment,
            style.padding,
        )
        canvas.setFont(font.name, size)
        canvas.setFillColor(self._color(field).to_reportlab())
        canvas.drawString(line.x, line.y, line.text)


__all__ = ["FieldProcessor", "CHECK_MARK"]
