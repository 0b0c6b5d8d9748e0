"""
Template filling orchestration.

:class:`PDFGenerator` validates a request, loads the template, its fields and
base document from the configured stores, resolves and renders every field in
declaration order, applies document level options and serializes the result.
Field level problems never abort a run; they are returned as diagnostics next
to a successful document.
"""

from __future__ import annotations

import base64
import io
import time
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError

from .config import QR_SCALES, GeneratorConfig
from .document import RenderDocument
from .exceptions import (
    PDFGenerationError,
    SerializationError,
    TemplateLoadError,
    TemplateNotFoundError,
    ValidationError,
)
from .options import GenerationOptions, OutputFormat
from .processor import FieldProcessor
from .results import (
    ProcessingError,
    ProcessingMetadata,
    ProcessingResult,
    ProcessingWarning,
    ValidationResult,
)
from .stores.base import BlobStore, TemplateStore, UploadingBlobStore
from .transformers import DataTransformer, implied_transformer
from .types import FieldDefinition, FieldType, FontConfig, RuleKind, SignatureConfig, TemplateDocument
from .utils import get_logger, get_nested_value, is_blank
from .validators import FieldValidator, parse_request
from .watermark import apply_watermark

LOGGER = get_logger("pdf_generator.generator")

ImageFetcher = Callable[[str], bytes]
OptionsInput = Union[GenerationOptions, Mapping[str, Any], None]

_REMOTE_PREFIXES = ("http://", "https://")


def _is_remote(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(_REMOTE_PREFIXES)


def image_data_uri(raw: bytes) -> str:
    """Encode fetched image bytes as a data URI, detecting the format."""

    try:
        with Image.open(io.BytesIO(raw)) as image:
            fmt = (image.format or "png").lower()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"Fetched content is not an image: {exc}") from exc
    return f"data:image/{fmt};base64," + base64.b64encode(raw).decode("ascii")


class PDFGenerator:
    """Fills templates from a :class:`TemplateStore` with request data."""

    def __init__(
        self,
        template_store: TemplateStore,
        blob_store: BlobStore,
        config: Optional[GeneratorConfig] = None,
        image_fetcher: Optional[ImageFetcher] = None,
    ) -> None:
        self.template_store = template_store
        self.blob_store = blob_store
        self.config = config or GeneratorConfig()
        self.image_fetcher = image_fetcher
        self.transformer = DataTransformer()
        self.validator = FieldValidator()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def generate(self, template_id: str, data: Mapping[str, Any], options: OptionsInput = None) -> ProcessingResult:
        """Generate a filled PDF and return the complete processing result."""

        started = time.perf_counter()
        try:
            parsed_options = self._validate_request(template_id, data, options)
            LOGGER.info("Generating PDF from template %s", template_id)

            template = self.template_store.get_template(template_id)
            if template is None:
                raise TemplateNotFoundError(template_id)
            fields = self.template_store.get_fields(template_id)
            document = self._load_document(template)

            quality = parsed_options.quality.value
            processor = FieldProcessor(
                allow_overflow=template.settings.allow_overflow or self.config.allow_overflow,
                qr_scale=QR_SCALES[quality],
                default_font=template.settings.default_font
                or FontConfig(self.config.default_font_family, self.config.default_font_size),
                default_color=template.settings.default_color,
            )

            errors: List[ProcessingError] = []
            warnings: List[ProcessingWarning] = []
            resolved = self._resolve_values(fields, data, QR_SCALES[quality], errors, warnings)
            self._fetch_remote_images(resolved)
            processed, skipped = self._render_fields(document, processor, resolved, errors, warnings)

            self._apply_document_options(document, parsed_options, warnings)
            document.enable_compression(template.settings.compression)
            pdf_bytes = document.save()

            metadata = ProcessingMetadata(
                template_id=template_id,
                generated_at=datetime.now(timezone.utc),
                processing_time=self._elapsed(started),
                file_size=len(pdf_bytes),
                page_count=document.page_count,
                fields_processed=processed,
                fields_skipped=skipped,
                version=self.config.version,
            )
            result = ProcessingResult(success=True, metadata=metadata, errors=errors, warnings=warnings)
            self._attach_output(result, pdf_bytes, parsed_options.output_format, template_id)
            LOGGER.info(
                "Generated %s: %d page(s), %d bytes, %d error(s), %d warning(s)",
                template_id,
                metadata.page_count,
                metadata.file_size,
                len(errors),
                len(warnings),
            )
            return result
        except PDFGenerationError as exc:
            LOGGER.error("PDF generation failed for %s: %s", template_id, exc.message)
            return self._failure(template_id, started, ProcessingError(
                code=exc.code, message=exc.message, severity="error", details=exc.details
            ))
        except Exception as exc:
            LOGGER.exception("Unexpected error while generating %s", template_id)
            return self._failure(template_id, started, ProcessingError(
                code="UNKNOWN_ERROR", message=str(exc) or "Unknown error occurred", severity="error"
            ))

    def generate_from_template(
        self,
        template_id: str,
        data: Mapping[str, Any],
        options: OptionsInput = None,
    ) -> bytes:
        """Generate and return the raw PDF bytes, raising on failure."""

        if isinstance(options, GenerationOptions):
            options = options.model_copy(update={"output_format": OutputFormat.BUFFER})
        elif isinstance(options, Mapping):
            options = {**options, "outputFormat": OutputFormat.BUFFER.value}
        result = self.generate(template_id, data, options)
        if not result.success or result.pdf_buffer is None:
            message = result.errors[0].message if result.errors else "PDF generation failed"
            raise PDFGenerationError(
                f"PDF generation failed: {message}",
                code="GENERATION_FAILED",
                details=[error.to_dict() for error in result.errors],
            )
        return result.pdf_buffer

    def validate_template_data(self, template_id: str, data: Mapping[str, Any]) -> ValidationResult:
        """Check *data* against a template without rendering anything."""

        errors: List[str] = []
        warnings: List[str] = []
        if not isinstance(data, Mapping):
            return ValidationResult(is_valid=False, errors=["Data must be an object"])

        template = self.template_store.get_template(template_id)
        if template is None:
            return ValidationResult(is_valid=False, errors=[f"Template not found: {template_id}"])

        fields = self.template_store.get_fields(template_id)
        for field in fields:
            value = get_nested_value(data, field.path)
            if field.required and is_blank(value):
                errors.append(f"Required field '{field.name}' is missing")
            if field.validation and value is not None:
                rules = [rule for rule in field.validation if rule.kind is not RuleKind.REQUIRED]
                outcome = self.validator.validate(value, rules)
                errors.extend(f"{field.name}: {message}" for message in outcome.errors)
                warnings.extend(f"{field.name}: {message}" for message in outcome.warnings)
            if template.pages and template.get_page(field.page) is None and not template.base_document:
                warnings.append(f"{field.name}: page {field.page} is not defined by the template")

        used_roots = {field.path.split(".", 1)[0] for field in fields}
        unused = [key for key in data if key not in used_roots]
        if unused:
            warnings.append(f"Unused data fields: {', '.join(unused)}")

        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------
    def _validate_request(self, template_id: Any, data: Any, options: OptionsInput) -> GenerationOptions:
        if options is None:
            options = GenerationOptions(quality=self.config.default_quality)
        elif isinstance(options, Mapping) and "quality" not in options:
            options = {**options, "quality": self.config.default_quality}
        return parse_request(template_id, data, options).options

    def _load_document(self, template: TemplateDocument) -> RenderDocument:
        if not template.base_document:
            LOGGER.debug("Template %s has no base document, building blank pages", template.id)
            return RenderDocument.blank(template.pages)
        try:
            raw = self.blob_store.get_bytes(template.base_document)
        except (KeyError, OSError, ValueError) as exc:
            raise TemplateLoadError(
                f"Failed to load base PDF template: {exc}",
                details={"reference": template.base_document},
            ) from exc
        return RenderDocument.from_bytes(raw)

    # ------------------------------------------------------------------
    # Field pipeline
    # ------------------------------------------------------------------
    def _resolve_values(
        self,
        fields: List[FieldDefinition],
        data: Mapping[str, Any],
        qr_scale: int,
        errors: List[ProcessingError],
        warnings: List[ProcessingWarning],
    ) -> List[Tuple[FieldDefinition, Any, bool]]:
        """Return ``(field, value, ok)`` for every field in declaration order."""

        resolved: List[Tuple[FieldDefinition, Any, bool]] = []
        for field in fields:
            try:
                value = self._resolve_value(field, data, qr_scale, warnings)
            except Exception as exc:
                LOGGER.warning("Failed to resolve value for field %s: %s", field.id, exc)
                errors.append(
                    ProcessingError(
                        code="FIELD_PROCESSING_ERROR",
                        message=f"Failed to process field {field.id}: {exc}",
                        field=field.id,
                        page=field.page,
                        severity="error",
                        details={"fieldId": field.id, "originalError": str(exc)},
                    )
                )
                resolved.append((field, None, False))
            else:
                resolved.append((field, value, True))
        return resolved

    def _resolve_value(
        self,
        field: FieldDefinition,
        data: Mapping[str, Any],
        qr_scale: int,
        warnings: List[ProcessingWarning],
    ) -> Any:
        raw = get_nested_value(data, field.path)
        if is_blank(raw):
            raw = field.default_value

        transformer = implied_transformer(field, qr_scale=qr_scale)
        value = self.transformer.transform(raw, transformer)

        outcome = self.validator.validate_field(field, value)
        if outcome.is_valid:
            LOGGER.debug("Resolved field %s", field.id)
            return value

        fallback = self.transformer.transform(field.default_value, transformer)
        warnings.append(
            ProcessingWarning(
                code="FIELD_VALIDATION_FAILED",
                message=f"Validation failed for field {field.name}: {'; '.join(outcome.errors)}",
                field=field.id,
                page=field.page,
                suggestion="Using the field default value" if field.default_value is not None else None,
            )
        )
        LOGGER.warning("Validation failed for field %s: %s", field.id, outcome.errors)
        return fallback

    def _fetch_remote_images(self, resolved: List[Tuple[FieldDefinition, Any, bool]]) -> None:
        """Replace remote image references with data URIs before rendering."""

        if self.image_fetcher is None:
            return
        for index, (field, value, ok) in enumerate(resolved):
            if not ok or field.type not in (FieldType.IMAGE, FieldType.SIGNATURE):
                continue
            if field.type is FieldType.IMAGE and _is_remote(value):
                resolved[index] = (field, self._fetch(field, value) or value, ok)
            elif field.type is FieldType.SIGNATURE:
                signature = SignatureConfig.parse(value)
                if signature is not None and _is_remote(signature.image_url):
                    fetched = self._fetch(field, signature.image_url)
                    if fetched:
                        resolved[index] = (field, replace(signature, image_url=fetched), ok)

    def _fetch(self, field: FieldDefinition, url: str) -> Optional[str]:
        try:
            return image_data_uri(self.image_fetcher(url))
        except Exception as exc:
            # the processor reports the unresolved URL as a warning
            LOGGER.warning("Could not fetch image for field %s from %s: %s", field.id, url, exc)
            return None

    def _render_fields(
        self,
        document: RenderDocument,
        processor: FieldProcessor,
        resolved: List[Tuple[FieldDefinition, Any, bool]],
        errors: List[ProcessingError],
        warnings: List[ProcessingWarning],
    ) -> Tuple[int, int]:
        processed = 0
        skipped = 0
        for field, value, ok in resolved:
            if not ok:
                skipped += 1
                continue
            outcome = processor.render_field(document, field, value)
            errors.extend(outcome.errors)
            warnings.extend(outcome.warnings)
            if outcome.rendered:
                processed += 1
            else:
                skipped += 1
        return processed, skipped

    # ------------------------------------------------------------------
    # Document options and output
    # ------------------------------------------------------------------
    def _apply_document_options(
        self,
        document: RenderDocument,
        options: GenerationOptions,
        warnings: List[ProcessingWarning],
    ) -> None:
        if options.metadata is not None and not options.metadata.is_empty():
            document.set_metadata(options.metadata)
        if options.watermark is not None and options.watermark.text:
            apply_watermark(document, options.watermark)
        if options.security is not None and options.security.is_requested():
            warnings.append(
                ProcessingWarning(
                    code="SECURITY_NOT_ENFORCED",
                    message="Password and permission settings are accepted but not applied",
                    suggestion="Encrypt the generated document with a dedicated tool",
                )
            )

    def _attach_output(
        self,
        result: ProcessingResult,
        pdf_bytes: bytes,
        output_format: OutputFormat,
        template_id: str,
    ) -> None:
        if output_format is OutputFormat.BUFFER:
            result.pdf_buffer = pdf_bytes
            return

        encoded = base64.b64encode(pdf_bytes).decode("ascii")
        if output_format is OutputFormat.BASE64:
            result.pdf_base64 = encoded
            return

        if isinstance(self.blob_store, UploadingBlobStore):
            reference = f"{self.config.upload_prefix}{template_id}/{uuid.uuid4().hex}.pdf"
            try:
                result.download_url = self.blob_store.put_bytes(reference, pdf_bytes, "application/pdf")
            except (OSError, ValueError, KeyError) as exc:
                raise SerializationError(f"Failed to upload generated PDF: {exc}") from exc
            return

        result.pdf_base64 = encoded
        result.download_url = "data:application/pdf;base64," + encoded

    @staticmethod
    def _elapsed(started: float) -> float:
        return round((time.perf_counter() - started) * 1000, 3)

    def _failure(self, template_id: Any, started: float, error: ProcessingError) -> ProcessingResult:
        metadata = ProcessingMetadata(
            template_id=template_id if isinstance(template_id, str) else "",
            generated_at=datetime.now(timezone.utc),
            processing_time=self._elapsed(started),
            version=self.config.version,
        )
        return ProcessingResult(success=False, metadata=metadata, errors=[error])


__all__ = ["PDFGenerator", "image_data_uri"]
