from __future__ import annotations

import base64
import io
from pathlib import Path
from typing import Any, Callable, Dict
import sys

import pytest
from PIL import Image
from pypdf import PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pdf_generator.generator import PDFGenerator  # noqa: E402
from pdf_generator.stores.memory import InMemoryBlobStore, InMemoryTemplateStore  # noqa: E402


def build_pdf(pages: int = 1, width: float = 612, height: float = 792) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=width, height=height)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def build_png(width: int = 20, height: int = 10, color: str = "red", fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture()
def base_pdf() -> bytes:
    return build_pdf(pages=2)


@pytest.fixture()
def png_bytes() -> bytes:
    return build_png()


@pytest.fixture()
def png_data_uri(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture()
def field_factory() -> Callable[..., Dict[str, Any]]:
    counter = {"value": 0}

    def _create(name: str, field_type: str = "text", **overrides: Any) -> Dict[str, Any]:
        counter["value"] += 1
        field = {
            "id": overrides.pop("id", f"field-{counter['value']}"),
            "name": name,
            "type": field_type,
            "page": 1,
            "position": {"x": 72, "y": 700},
            "dimensions": {"width": 300, "height": 40},
        }
        field.update(overrides)
        return field

    return _create


@pytest.fixture()
def template_store() -> InMemoryTemplateStore:
    return InMemoryTemplateStore()


@pytest.fixture()
def blob_store(base_pdf: bytes) -> InMemoryBlobStore:
    return InMemoryBlobStore({"base.pdf": base_pdf})


@pytest.fixture()
def generator(template_store: InMemoryTemplateStore, blob_store: InMemoryBlobStore) -> PDFGenerator:
    return PDFGenerator(template_store, blob_store)
