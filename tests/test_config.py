from __future__ import annotations

import pytest

from pdf_generator import __version__
from pdf_generator.config import QR_SCALES, GeneratorConfig


def test_defaults() -> None:
    config = GeneratorConfig.from_env({})
    assert config.version == __version__
    assert config.default_font_family == "Helvetica"
    assert config.default_font_size == 12
    assert config.default_quality == "medium"
    assert config.upload_prefix == "generated/"
    assert config.batch_concurrency == 3
    assert not config.allow_overflow


def test_environment_overrides() -> None:
    config = GeneratorConfig.from_env(
        {
            "PDF_GENERATOR_VERSION": "2.0.0",
            "PDF_GENERATOR_DEFAULT_FONT": "Times",
            "PDF_GENERATOR_DEFAULT_FONT_SIZE": "10.5",
            "PDF_GENERATOR_QUALITY": "HIGH",
            "PDF_GENERATOR_UPLOAD_PREFIX": "out/",
            "PDF_GENERATOR_BATCH_CONCURRENCY": "8",
            "PDF_GENERATOR_ALLOW_OVERFLOW": "yes",
        }
    )
    assert config.version == "2.0.0"
    assert config.default_font_family == "Times"
    assert config.default_font_size == 10.5
    assert config.default_quality == "high"
    assert config.upload_prefix == "out/"
    assert config.batch_concurrency == 8
    assert config.allow_overflow


@pytest.mark.parametrize(
    "environ",
    [
        {"PDF_GENERATOR_BATCH_CONCURRENCY": "many"},
        {"PDF_GENERATOR_BATCH_CONCURRENCY": "20"},
        {"PDF_GENERATOR_QUALITY": "ultra"},
        {"PDF_GENERATOR_DEFAULT_FONT_SIZE": "large"},
    ],
)
def test_invalid_environment(environ) -> None:
    with pytest.raises(ValueError):
        GeneratorConfig.from_env(environ)


def test_invalid_font_size_names_the_variable() -> None:
    with pytest.raises(ValueError, match="PDF_GENERATOR_DEFAULT_FONT_SIZE"):
        GeneratorConfig.from_env({"PDF_GENERATOR_DEFAULT_FONT_SIZE": "large"})
    assert GeneratorConfig.from_env({"PDF_GENERATOR_DEFAULT_FONT_SIZE": " "}).default_font_size == 12


def test_reads_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("PDF_GENERATOR_UPLOAD_PREFIX", "env/")
    assert GeneratorConfig.from_env().upload_prefix == "env/"


def test_quality_scales() -> None:
    assert QR_SCALES["low"] < QR_SCALES["medium"] < QR_SCALES["high"]


def test_default_quality_drives_qr_scale(template_store, blob_store, field_factory) -> None:
    from pdf_generator.generator import PDFGenerator

    template_store.add(
        {"id": "qr", "name": "QR", "pages": [{"number": 1}]},
        [field_factory("link", "qrcode", dimensions={"width": 100, "height": 100})],
    )
    low = PDFGenerator(template_store, blob_store, GeneratorConfig(default_quality="low"))
    high = PDFGenerator(template_store, blob_store, GeneratorConfig(default_quality="high"))

    small = low.generate("qr", {"link": "https://example.com"})
    large = high.generate("qr", {"link": "https://example.com"})

    assert small.success and large.success
    assert small.metadata.file_size < large.metadata.file_size
