from __future__ import annotations

import base64
import io
from typing import Any, Dict, List

import pytest
from pypdf import PdfReader

from conftest import build_png
from pdf_generator.config import GeneratorConfig
from pdf_generator.exceptions import PDFGenerationError
from pdf_generator.generator import PDFGenerator, image_data_uri
from pdf_generator.options import GenerationOptions, OutputFormat, WatermarkConfig
from pdf_generator.types import SignatureConfig


def read(result) -> PdfReader:
    return PdfReader(io.BytesIO(result.pdf_buffer))


def add_template(store, fields: List[Dict[str, Any]], **template: Any) -> None:
    record = {"id": "letter", "name": "Letter", "baseDocument": "base.pdf"}
    record.update(template)
    store.add(record, fields)


# ----------------------------------------------------------------------
# Rendering scenarios
# ----------------------------------------------------------------------
def test_text_from_nested_path(generator, template_store, field_factory) -> None:
    add_template(template_store, [field_factory("customer_name", dataPath="customer.name")])

    result = generator.generate("letter", {"customer": {"name": "Ada"}})

    assert result.success
    assert result.errors == []
    assert "Ada" in read(result).pages[0].extract_text()
    assert result.metadata.fields_processed == 1
    assert result.metadata.fields_skipped == 0
    assert result.metadata.page_count == 2


def test_number_and_date_fields_are_formatted(generator, template_store, field_factory) -> None:
    add_template(
        template_store,
        [
            field_factory("total", "number", transformer={"type": "number", "options": {"decimals": 2}}),
            field_factory("issued", "date", position={"x": 72, "y": 600},
                          transformer={"type": "date", "options": {"dateFormat": "YYYY-MM-DD"}}),
        ],
    )

    result = generator.generate("letter", {"total": 1234.5, "issued": "2024-03-05T00:00:00Z"})

    text = read(result).pages[0].extract_text()
    assert "1,234.50" in text
    assert "2024-03-05" in text


def test_watermark_on_every_page(generator, template_store, field_factory) -> None:
    add_template(template_store, [field_factory("name")])

    result = generator.generate("letter", {"name": "Ada"}, {"watermark": {"text": "DRAFT"}})

    assert result.success
    reader = read(result)
    assert len(reader.pages) == 2
    for page in reader.pages:
        assert b"DRAFT" in page.get_contents().get_data()


def test_unknown_field_type_is_skipped(generator, template_store, field_factory) -> None:
    add_template(
        template_store,
        [field_factory("name"), field_factory("chart", "sparkline", id="chart")],
    )

    result = generator.generate("letter", {"name": "Ada", "chart": [1, 2, 3]})

    assert result.success
    assert result.warning_codes() == ["UNSUPPORTED_FIELD_TYPE"]
    assert result.warnings[0].field == "chart"
    assert result.metadata.fields_processed == 1
    assert result.metadata.fields_skipped == 1


def test_blank_pages_from_template_definition(generator, template_store, field_factory) -> None:
    template_store.add(
        {
            "id": "blank",
            "name": "Blank",
            "pages": [{"number": 1}, {"number": 2, "orientation": "landscape"}, {"number": 3}],
        },
        [field_factory("name", page=3)],
    )

    result = generator.generate("blank", {"name": "Ada"})

    assert result.success
    assert result.errors == []
    assert result.metadata.page_count == 3
    reader = read(result)
    assert float(reader.pages[1].mediabox.width) == 792
    assert "Ada" in reader.pages[2].extract_text()


def test_missing_required_field_is_not_fatal(generator, template_store, field_factory) -> None:
    add_template(
        template_store,
        [field_factory("name"), field_factory("email", id="email", required=True)],
    )

    result = generator.generate("letter", {"name": "Ada"})

    assert result.success
    assert result.warning_codes() == ["FIELD_VALIDATION_FAILED"]
    assert result.warnings[0].field == "email"


def test_invalid_value_falls_back_to_default(generator, template_store, field_factory) -> None:
    add_template(
        template_store,
        [field_factory("code", defaultValue="UNKNOWN", validation=[{"type": "pattern", "value": r"^\d+$"}])],
    )

    result = generator.generate("letter", {"code": "abc"})

    assert result.warning_codes() == ["FIELD_VALIDATION_FAILED"]
    assert result.warnings[0].suggestion == "Using the field default value"
    assert "UNKNOWN" in read(result).pages[0].extract_text()


def test_field_on_missing_page_is_reported(generator, template_store, field_factory) -> None:
    add_template(template_store, [field_factory("name"), field_factory("extra", page=9, id="extra")])

    result = generator.generate("letter", {"name": "Ada", "extra": "x"})

    assert result.success
    assert result.is_degraded
    assert [error.code for error in result.errors] == ["FIELD_PROCESSING_ERROR"]
    assert result.metadata.fields_skipped == 1


def test_template_default_font_applies(template_store, blob_store, field_factory) -> None:
    add_template(
        template_store,
        [field_factory("name")],
        settings={"defaultFont": {"family": "Courier", "size": 10}},
    )
    generator = PDFGenerator(template_store, blob_store)

    result = generator.generate("letter", {"name": "Ada"})

    fonts = read(result).pages[0]["/Resources"]["/Font"]
    names = {str(font.get_object()["/BaseFont"]) for font in fonts.values()}
    assert "/Courier" in names


# ----------------------------------------------------------------------
# Images
# ----------------------------------------------------------------------
def test_remote_images_use_the_fetcher(template_store, blob_store, field_factory) -> None:
    add_template(template_store, [field_factory("logo", "image")])
    fetched = []

    def fetcher(url: str) -> bytes:
        fetched.append(url)
        return build_png()

    generator = PDFGenerator(template_store, blob_store, image_fetcher=fetcher)
    result = generator.generate("letter", {"logo": "https://example.com/logo.png"})

    assert fetched == ["https://example.com/logo.png"]
    assert result.warnings == []


def test_failed_fetch_is_reported(template_store, blob_store, field_factory) -> None:
    add_template(template_store, [field_factory("logo", "image")])

    def fetcher(url: str) -> bytes:
        raise OSError("connection refused")

    generator = PDFGenerator(template_store, blob_store, image_fetcher=fetcher)
    result = generator.generate("letter", {"logo": "https://example.com/logo.png"})

    assert result.success
    assert result.warning_codes() == ["REMOTE_IMAGE_UNSUPPORTED"]


def test_fetched_signature_leaves_caller_value_untouched(template_store, blob_store, field_factory) -> None:
    add_template(template_store, [field_factory("sig", "signature")])
    signature = SignatureConfig(type="image", image_url="https://example.com/sig.png")
    fetched = []

    def fetcher(url: str) -> bytes:
        fetched.append(url)
        return build_png()

    generator = PDFGenerator(template_store, blob_store, image_fetcher=fetcher)
    result = generator.generate("letter", {"sig": signature})

    assert result.success
    assert result.warnings == []
    assert fetched == ["https://example.com/sig.png"]
    assert signature.image_url == "https://example.com/sig.png"


def test_image_data_uri_detects_format() -> None:
    assert image_data_uri(build_png(fmt="JPEG")).startswith("data:image/jpeg;base64,")
    with pytest.raises(ValueError):
        image_data_uri(b"nope")


# ----------------------------------------------------------------------
# Fatal failures
# ----------------------------------------------------------------------
def test_invalid_request(generator) -> None:
    result = generator.generate("", {})

    assert not result.success
    assert result.errors[0].code == "VALIDATION_ERROR"
    assert any(detail.startswith("templateId: ") for detail in result.errors[0].details)
    assert result.pdf_buffer is None


def test_invalid_options(generator, template_store, field_factory) -> None:
    add_template(template_store, [field_factory("name")])
    result = generator.generate("letter", {"name": "Ada"}, {"watermark": {"text": "X", "opacity": 4}})
    assert result.errors[0].code == "VALIDATION_ERROR"


@pytest.mark.parametrize(
    "options, location",
    [
        ({"watermark": {"text": "X", "position": {"x": "left", "y": 1}}}, "options.watermark.position"),
        ({"security": {"permissions": ["print"]}}, "options.security.permissions"),
    ],
)
def test_malformed_options_are_validation_errors(generator, template_store, field_factory, options, location) -> None:
    add_template(template_store, [field_factory("name")])
    result = generator.generate("letter", {"name": "Ada"}, options)

    assert not result.success
    assert result.errors[0].code == "VALIDATION_ERROR"
    assert result.errors[0].details
    assert all(detail.startswith(location) for detail in result.errors[0].details)


def test_field_on_page_zero_is_rejected(generator, template_store, field_factory) -> None:
    with pytest.raises(ValueError, match="invalid page 0"):
        add_template(template_store, [field_factory("name", page=0)])


def test_unknown_template(generator) -> None:
    result = generator.generate("missing", {"name": "Ada"})

    assert not result.success
    assert result.errors[0].code == "TEMPLATE_NOT_FOUND"
    assert result.metadata.template_id == "missing"
    assert result.metadata.page_count == 0


def test_missing_base_document(generator, template_store, field_factory) -> None:
    add_template(template_store, [field_factory("name")], baseDocument="nowhere.pdf")
    result = generator.generate("letter", {"name": "Ada"})
    assert result.errors[0].code == "TEMPLATE_LOAD_ERROR"


def test_corrupt_base_document(template_store, field_factory) -> None:
    from pdf_generator.stores.memory import InMemoryBlobStore

    add_template(template_store, [field_factory("name")])
    generator = PDFGenerator(template_store, InMemoryBlobStore({"base.pdf": b"garbage"}))
    result = generator.generate("letter", {"name": "Ada"})
    assert result.errors[0].code == "INVALID_BASE_DOCUMENT"


# ----------------------------------------------------------------------
# Output and document options
# ----------------------------------------------------------------------
def test_base64_output(generator, template_store, field_factory) -> None:
    add_template(template_store, [field_factory("name")])
    result = generator.generate("letter", {"name": "Ada"}, {"outputFormat": "base64"})

    assert result.pdf_buffer is None
    assert base64.b64decode(result.pdf_base64).startswith(b"%PDF")
    assert result.metadata.file_size == len(base64.b64decode(result.pdf_base64))


def test_url_output_uploads_to_blob_store(generator, template_store, blob_store, field_factory) -> None:
    add_template(template_store, [field_factory("name")])
    result = generator.generate("letter", {"name": "Ada"}, {"outputFormat": "url"})

    assert result.download_url.startswith("memory://generated/letter/")
    reference = result.download_url[len("memory://"):]
    assert blob_store.get_bytes(reference).startswith(b"%PDF")


def test_url_output_without_upload_capability(template_store, base_pdf, field_factory) -> None:
    class ReadOnlyBlobs:
        def get_bytes(self, reference: str) -> bytes:
            return base_pdf

    add_template(template_store, [field_factory("name")])
    generator = PDFGenerator(template_store, ReadOnlyBlobs())
    result = generator.generate("letter", {"name": "Ada"}, {"outputFormat": "url"})

    assert result.download_url.startswith("data:application/pdf;base64,")
    assert result.pdf_base64


def test_metadata_option(generator, template_store, field_factory) -> None:
    add_template(template_store, [field_factory("name")])
    options = {"metadata": {"title": "Letter to Ada", "author": "Charles", "keywords": "math, engines"}}

    info = read(generator.generate("letter", {"name": "Ada"}, options)).metadata

    assert info.title == "Letter to Ada"
    assert info.author == "Charles"
    assert info["/Keywords"] == "math, engines"


def test_security_is_accepted_but_reported(generator, template_store, field_factory) -> None:
    add_template(template_store, [field_factory("name")])
    result = generator.generate("letter", {"name": "Ada"}, {"security": {"userPassword": "pw"}})

    assert result.success
    assert result.warning_codes() == ["SECURITY_NOT_ENFORCED"]
    assert not read(result).is_encrypted


def test_typed_options_are_accepted(generator, template_store, field_factory) -> None:
    add_template(template_store, [field_factory("name")])
    options = GenerationOptions(output_format=OutputFormat.BASE64, watermark=WatermarkConfig(text="COPY"))
    result = generator.generate("letter", {"name": "Ada"}, options)
    assert result.success
    assert result.pdf_base64


def test_result_to_dict_is_camel_case(generator, template_store, field_factory) -> None:
    add_template(template_store, [field_factory("name"), field_factory("x", "barcode", id="bc")])
    payload = generator.generate("letter", {"name": "Ada"}).to_dict()

    assert payload["success"] is True
    assert base64.b64decode(payload["pdfBuffer"]).startswith(b"%PDF")
    assert payload["metadata"]["templateId"] == "letter"
    assert payload["metadata"]["fieldsSkipped"] == 1
    assert payload["warnings"][0]["code"] == "UNSUPPORTED_FIELD_TYPE"
    assert "errors" not in payload


def test_version_comes_from_config(template_store, blob_store, field_factory) -> None:
    add_template(template_store, [field_factory("name")])
    generator = PDFGenerator(template_store, blob_store, GeneratorConfig(version="9.9.9"))
    assert generator.generate("letter", {"name": "Ada"}).metadata.version == "9.9.9"


def test_generate_from_template(generator, template_store, field_factory) -> None:
    add_template(template_store, [field_factory("name")])

    data = generator.generate_from_template("letter", {"name": "Ada"}, {"outputFormat": "base64"})
    assert data.startswith(b"%PDF")

    with pytest.raises(PDFGenerationError) as excinfo:
        generator.generate_from_template("missing", {"name": "Ada"})
    assert excinfo.value.code == "GENERATION_FAILED"
    assert "Template not found" in excinfo.value.message


# ----------------------------------------------------------------------
# Dry-run validation
# ----------------------------------------------------------------------
def test_validate_template_data(generator, template_store, field_factory) -> None:
    add_template(
        template_store,
        [
            field_factory("email", required=True),
            field_factory("zip", dataPath="address.zip", validation=[{"type": "pattern", "value": r"^\d{5}$"}]),
        ],
    )

    result = generator.validate_template_data("letter", {"address": {"zip": "abc"}, "nickname": "Ada"})

    assert not result.is_valid
    assert "Required field 'email' is missing" in result.errors
    assert "zip: Invalid format" in result.errors
    assert "Unused data fields: nickname" in result.warnings


def test_validate_template_data_valid(generator, template_store, field_factory) -> None:
    add_template(template_store, [field_factory("email", required=True)])
    result = generator.validate_template_data("letter", {"email": "ada@example.com"})
    assert result.is_valid
    assert result.warnings == []


def test_validate_template_data_unknown_template(generator) -> None:
    result = generator.validate_template_data("missing", {"a": 1})
    assert result.errors == ["Template not found: missing"]
