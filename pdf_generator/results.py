"""
Result structures returned by the generator.

``ProcessingResult.to_dict`` produces the camelCase response object; byte
payloads are rendered as base64 so the dictionary is JSON serializable.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


@dataclass
class ProcessingError:
    code: str
    message: str
    field: Optional[str] = None
    page: Optional[int] = None
    severity: str = "error"
    details: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "code": self.code,
                "message": self.message,
                "field": self.field,
                "page": self.page,
                "severity": self.severity,
                "details": self.details,
            }
        )


@dataclass
class ProcessingWarning:
    code: str
    message: str
    field: Optional[str] = None
    page: Optional[int] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "code": self.code,
                "message": self.message,
                "field": self.field,
                "page": self.page,
                "suggestion": self.suggestion,
            }
        )


@dataclass
class ProcessingMetadata:
    """
    Summary of one generation call.

    Attributes:
        template_id: Template the document was generated from
        generated_at: UTC timestamp of completion
        processing_time: Elapsed wall time in milliseconds
        file_size: Size of the serialized PDF in bytes
        page_count: Number of pages in the output
        fields_processed: Fields rendered without raising
        fields_skipped: Fields that raised or had an unsupported type
        version: Engine version string
    """
    template_id: str = ""
    generated_at: Optional[datetime] = None
    processing_time: float = 0
    file_size: int = 0
    page_count: int = 0
    fields_processed: int = 0
    fields_skipped: int = 0
    version: str = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        generated_at = self.generated_at or datetime.now(timezone.utc)
        return {
            "templateId": self.template_id,
            "generatedAt": generated_at.isoformat(),
            "processingTime": self.processing_time,
            "fileSize": self.file_size,
            "pageCount": self.page_count,
            "fieldsProcessed": self.fields_processed,
            "fieldsSkipped": self.fields_skipped,
            "version": self.version,
        }


@dataclass
class ProcessingResult:
    """The complete outcome of one generation call."""

    success: bool
    metadata: ProcessingMetadata
    pdf_buffer: Optional[bytes] = None
    pdf_base64: Optional[str] = None
    download_url: Optional[str] = None
    errors: List[ProcessingError] = field(default_factory=list)
    warnings: List[ProcessingWarning] = field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        """``True`` when a successful document carries per-field errors."""
        return self.success and bool(self.errors)

    def warning_codes(self) -> List[str]:
        return [warning.code for warning in self.warnings]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success}
        if self.pdf_buffer is not None:
            payload["pdfBuffer"] = base64.b64encode(self.pdf_buffer).decode("ascii")
        if self.pdf_base64 is not None:
            payload["pdfBase64"] = self.pdf_base64
        if self.download_url is not None:
            payload["downloadUrl"] = self.download_url
        payload["metadata"] = self.metadata.to_dict()
        if self.errors:
            payload["errors"] = [error.to_dict() for error in self.errors]
        if self.warnings:
            payload["warnings"] = [warning.to_dict() for warning in self.warnings]
        return payload

    def __str__(self) -> str:
        if self.success:
            return (
                f"ProcessingResult(success=True, pages={self.metadata.page_count}, "
                f"errors={len(self.errors)}, warnings={len(self.warnings)})"
            )
        first = self.errors[0].code if self.errors else "UNKNOWN_ERROR"
        return f"ProcessingResult(success=False, error='{first}')"


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class RenderOutcome:
    """Diagnostics produced while drawing a single field."""

    rendered: bool = True
    errors: List[ProcessingError] = field(default_factory=list)
    warnings: List[ProcessingWarning] = field(default_factory=list)


@dataclass
class BatchItemResult:
    index: int
    success: bool
    result: Optional[ProcessingResult] = None
    error: Optional[str] = None

    def to_dict(self, include_index: bool = True) -> Dict[str, Any]:
        return _compact(
            {
                "index": self.index if include_index else None,
                "success": self.success,
                "result": self.result.to_dict() if self.result else None,
                "error": self.error,
            }
        )


@dataclass
class BatchResult:
    """
    Result of a bulk generation run.

    Attributes:
        success: ``True`` when every record succeeded
        total_requests: Number of input records
        successful_requests: Records that produced a document
        failed_requests: Records that failed or were cancelled
        results: Per-record results ordered by input index
        processing_time: Elapsed wall time in milliseconds
    """
    success: bool
    total_requests: int
    successful_requests: int
    failed_requests: int
    results: List[BatchItemResult] = field(default_factory=list)
    processing_time: float = 0
    include_index: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "totalRequests": self.total_requests,
            "successfulRequests": self.successful_requests,
            "failedRequests": self.failed_requests,
            "results": [item.to_dict(self.include_index) for item in self.results],
            "processingTime": self.processing_time,
        }

    def __str__(self) -> str:
        return (
            "BatchResult(total={total}, success={success}, failure={failure})"
        ).format(
            total=self.total_requests,
            success=self.successful_requests,
            failure=self.failed_requests,
        )


__all__ = [
    "ProcessingError",
    "ProcessingWarning",
    "ProcessingMetadata",
    "ProcessingResult",
    "ValidationResult",
    "RenderOutcome",
    "BatchItemResult",
    "BatchResult",
]
