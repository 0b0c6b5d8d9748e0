"""Live document handle combining a pypdf writer with reportlab overlays."""

from __future__ import annotations

import io
from typing import Dict, Iterable, List, Tuple

from pypdf import PdfReader, PdfWriter, Transformation
from pypdf.errors import PdfReadError, PyPdfError
from reportlab.pdfgen import canvas as rl_canvas

from .exceptions import InvalidBaseDocumentError, SerializationError
from .fonts import FontManager
from .options import PDFMetadata
from .types import PageDefinition
from .utils import get_logger

LOGGER = get_logger("pdf_generator.document")

_METADATA_KEYS = {
    "title": "/Title",
    "author": "/Author",
    "subject": "/Subject",
    "creator": "/Creator",
    "producer": "/Producer",
}


class RenderDocument:
    """Mutable document a single generation call draws into.

    Drawing happens on one reportlab canvas per touched page. The canvases are
    merged onto the underlying pages when the document is serialized, so the
    draw order on a page is the order of calls.
    """

    def __init__(self, writer: PdfWriter) -> None:
        self._writer = writer
        self._overlays: Dict[int, Tuple[rl_canvas.Canvas, io.BytesIO]] = {}
        self._compress = False
        self._finalized = False
        self.fonts = FontManager()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_bytes(cls, data: bytes) -> "RenderDocument":
        if not data:
            raise InvalidBaseDocumentError("Base document is empty")
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted:
                raise InvalidBaseDocumentError("Encrypted base documents are not supported")
            writer = PdfWriter(clone_from=reader)
        except (PdfReadError, PyPdfError, ValueError, KeyError) as exc:
            raise InvalidBaseDocumentError(f"Unable to read base document: {exc}") from exc
        if len(writer.pages) == 0:
            raise InvalidBaseDocumentError("Base document has no pages")
        return cls(writer)

    @classmethod
    def blank(cls, pages: Iterable[PageDefinition]) -> "RenderDocument":
        """Build a document with one empty page per page definition."""

        writer = PdfWriter()
        definitions = sorted(pages, key=lambda page: page.number)
        if not definitions:
            definitions = [PageDefinition(number=1)]
        for page in definitions:
            width, height = page.width, page.height
            if page.orientation == "landscape" and width < height:
                width, height = height, width
            writer.add_blank_page(width=width, height=height)

        document = cls(writer)
        for index, page in enumerate(definitions, start=1):
            if page.background is not None and page.background.color is not None:
                width, height = document.page_size(index)
                canvas = document.canvas(index)
                canvas.saveState()
                canvas.setFillColor(page.background.color.to_reportlab())
                canvas.setFillAlpha(page.background.opacity)
                canvas.rect(0, 0, width, height, stroke=0, fill=1)
                canvas.restoreState()
        return document

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------
    @property
    def page_count(self) -> int:
        return len(self._writer.pages)

    def has_page(self, number: int) -> bool:
        return 1 <= number <= self.page_count

    def page_size(self, number: int) -> Tuple[float, float]:
        box = self._writer.pages[number - 1].mediabox
        return float(box.width), float(box.height)

    def canvas(self, number: int) -> rl_canvas.Canvas:
        """Return the drawing surface for 1-based page *number*."""

        if self._finalized:
            raise SerializationError("Document has already been serialized")
        if not self.has_page(number):
            raise IndexError(f"Page {number} does not exist (document has {self.page_count})")
        if number not in self._overlays:
            buffer = io.BytesIO()
            surface = rl_canvas.Canvas(buffer, pagesize=self.page_size(number), pageCompression=0)
            self._overlays[number] = (surface, buffer)
        return self._overlays[number][0]

    def page_numbers(self) -> List[int]:
        return list(range(1, self.page_count + 1))

    # ------------------------------------------------------------------
    # Document level settings
    # ------------------------------------------------------------------
    def set_metadata(self, metadata: PDFMetadata) -> None:
        info: Dict[str, str] = {}
        for attribute, key in _METADATA_KEYS.items():
            value = getattr(metadata, attribute)
            if value:
                info[key] = str(value)
        if metadata.keywords:
            info["/Keywords"] = ", ".join(metadata.keywords)
        if info:
            self._writer.add_metadata(info)

    def enable_compression(self, enabled: bool = True) -> None:
        self._compress = enabled

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def _merge_overlays(self) -> None:
        for number, (surface, buffer) in sorted(self._overlays.items()):
            surface.showPage()
            surface.save()
            overlay = PdfReader(io.BytesIO(buffer.getvalue())).pages[0]
            page = self._writer.pages[number - 1]
            left, bottom = float(page.mediabox.left), float(page.mediabox.bottom)
            if left or bottom:
                page.merge_transformed_page(overlay, Transformation().translate(left, bottom))
            else:
                page.merge_page(overlay)
        self._overlays.clear()

    def save(self) -> bytes:
        """Merge overlays, serialize, and release the font cache."""

        if self._finalized:
            raise SerializationError("Document has already been serialized")
        try:
            self._merge_overlays()
            if self._compress:
                for page in self._writer.pages:
                    page.compress_content_streams()
            output = io.BytesIO()
            self._writer.write(output)
        except (PyPdfError, ValueError, OSError) as exc:
            raise SerializationError(f"Failed to serialize PDF: {exc}") from exc
        finally:
            self._finalized = True
            self.fonts.clear()
        data = output.getvalue()
        LOGGER.debug("Serialized document: %d pages, %d bytes", self.page_count, len(data))
        return data


__all__ = ["RenderDocument"]
