"""
Custom exceptions for PDF Generator.

This module defines all custom exceptions used throughout the library. Every
exception carries a machine readable ``code`` and optional ``details`` so the
generator can turn it into a :class:`~pdf_generator.results.ProcessingError`.
"""

from __future__ import annotations

from typing import Any, List, Optional


class PDFGenerationError(Exception):
    """Base exception for all PDF Generator errors."""

    code = "PDF_GENERATION_ERROR"

    def __init__(
        self,
        message: str = "",
        code: Optional[str] = None,
        details: Any = None,
    ) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.details = details

    @property
    def default_message(self) -> str:
        return "An unknown PDF generation error occurred."


class ValidationError(PDFGenerationError):
    """Raised when a generation request is malformed."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str = "", validation_errors: Optional[List[str]] = None) -> None:
        self.validation_errors = list(validation_errors or [])
        super().__init__(message, details=self.validation_errors)

    @property
    def default_message(self) -> str:
        return "Request validation failed."


class TemplateNotFoundError(PDFGenerationError):
    """Raised when the template store has no template for the requested id."""

    code = "TEMPLATE_NOT_FOUND"

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"Template not found: {template_id}", details={"templateId": template_id})


class TemplateLoadError(PDFGenerationError):
    """Raised when the base document of a template cannot be fetched."""

    code = "TEMPLATE_LOAD_ERROR"

    @property
    def default_message(self) -> str:
        return "Failed to load base PDF template."


class InvalidBaseDocumentError(PDFGenerationError):
    """Raised when the base document bytes are not a readable PDF."""

    code = "INVALID_BASE_DOCUMENT"

    @property
    def default_message(self) -> str:
        return "Base document is not a valid PDF."


class SerializationError(PDFGenerationError):
    """Raised when the filled document cannot be written out."""

    code = "SERIALIZATION_ERROR"

    @property
    def default_message(self) -> str:
        return "Failed to serialize the generated PDF."


class FieldProcessingError(PDFGenerationError):
    """Raised when a single field cannot be rendered."""

    code = "FIELD_PROCESSING_ERROR"

    def __init__(self, field_id: str, original_error: Exception | str) -> None:
        self.field_id = field_id
        reason = str(original_error)
        super().__init__(
            f"Failed to process field {field_id}: {reason}",
            details={"fieldId": field_id, "originalError": reason},
        )


__all__ = [
    "PDFGenerationError",
    "ValidationError",
    "TemplateNotFoundError",
    "TemplateLoadError",
    "InvalidBaseDocumentError",
    "SerializationError",
    "FieldProcessingError",
]
