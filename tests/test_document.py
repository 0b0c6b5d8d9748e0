from __future__ import annotations

import io

import pytest
from pypdf import PdfReader, PdfWriter

from conftest import build_pdf
from pdf_generator.colors import BLUE
from pdf_generator.document import RenderDocument
from pdf_generator.exceptions import InvalidBaseDocumentError, SerializationError
from pdf_generator.options import PDFMetadata
from pdf_generator.types import PageBackground, PageDefinition


def read(data: bytes) -> PdfReader:
    return PdfReader(io.BytesIO(data))


@pytest.mark.parametrize("data", [b"", b"definitely not a pdf"])
def test_unreadable_base_documents_are_rejected(data: bytes) -> None:
    with pytest.raises(InvalidBaseDocumentError):
        RenderDocument.from_bytes(data)


def test_encrypted_base_documents_are_rejected() -> None:
    writer = PdfWriter()
    writer.add_blank_page(width=100, height=100)
    writer.encrypt("secret")
    buffer = io.BytesIO()
    writer.write(buffer)

    with pytest.raises(InvalidBaseDocumentError) as excinfo:
        RenderDocument.from_bytes(buffer.getvalue())
    assert excinfo.value.code == "INVALID_BASE_DOCUMENT"


def test_from_bytes_keeps_pages() -> None:
    document = RenderDocument.from_bytes(build_pdf(pages=3, width=300, height=400))
    assert document.page_count == 3
    assert document.page_size(2) == (300, 400)
    assert document.has_page(3)
    assert not document.has_page(4)
    assert not document.has_page(0)


def test_blank_document_follows_page_definitions() -> None:
    document = RenderDocument.blank(
        [
            PageDefinition(number=2, width=612, height=792, orientation="landscape"),
            PageDefinition(number=1, width=300, height=300),
        ]
    )
    assert document.page_count == 2
    assert document.page_size(1) == (300, 300)
    assert document.page_size(2) == (792, 612)


def test_blank_document_defaults_to_letter() -> None:
    document = RenderDocument.blank([])
    assert document.page_count == 1
    assert document.page_size(1) == (612, 792)


def test_background_color_is_painted() -> None:
    page = PageDefinition(number=1, width=200, height=200, background=PageBackground(color=BLUE))
    output = RenderDocument.blank([page]).save()
    content = read(output).pages[0].get_contents().get_data()
    assert b"re" in content


def test_canvas_requires_existing_page() -> None:
    document = RenderDocument.from_bytes(build_pdf())
    with pytest.raises(IndexError):
        document.canvas(2)


def test_overlays_are_merged_on_save() -> None:
    document = RenderDocument.from_bytes(build_pdf(pages=2))
    canvas = document.canvas(2)
    canvas.setFont("Helvetica", 12)
    canvas.drawString(72, 72, "Overlay text")

    reader = read(document.save())
    assert len(reader.pages) == 2
    assert "Overlay text" in reader.pages[1].extract_text()
    assert "Overlay text" not in reader.pages[0].extract_text()


def test_metadata_is_written() -> None:
    document = RenderDocument.from_bytes(build_pdf())
    document.set_metadata(PDFMetadata(title="Invoice", author="Ada", keywords=["a", "b"]))
    info = read(document.save()).metadata
    assert info.title == "Invoice"
    assert info.author == "Ada"
    assert info["/Keywords"] == "a, b"


def test_compression_keeps_content_readable() -> None:
    document = RenderDocument.from_bytes(build_pdf())
    document.enable_compression(True)
    canvas = document.canvas(1)
    canvas.setFont("Helvetica", 12)
    canvas.drawString(72, 700, "Compressed")
    assert "Compressed" in read(document.save()).pages[0].extract_text()


def test_document_can_only_be_saved_once() -> None:
    document = RenderDocument.from_bytes(build_pdf())
    document.fonts.get_font("Helvetica")
    document.save()
    assert len(document.fonts) == 0
    with pytest.raises(SerializationError):
        document.save()
    with pytest.raises(SerializationError):
        document.canvas(1)
