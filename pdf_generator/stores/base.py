"""Store protocols consumed by the generator."""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from ..types import FieldDefinition, TemplateDocument


@runtime_checkable
class TemplateStore(Protocol):
    """Protocol for looking up templates and their ordered field lists."""

    def get_template(self, template_id: str) -> Optional[TemplateDocument]:
        """Return the template, or ``None`` when it does not exist."""

    def get_fields(self, template_id: str) -> List[FieldDefinition]:
        """Return the fields of a template in declaration order."""


@runtime_checkable
class BlobStore(Protocol):
    """Protocol for fetching stored documents by reference."""

    def get_bytes(self, reference: str) -> bytes:
        """Return the stored bytes; raise ``KeyError`` or ``OSError`` when unavailable."""


@runtime_checkable
class UploadingBlobStore(BlobStore, Protocol):
    """A blob store that can also persist generated documents."""

    def put_bytes(self, reference: str, data: bytes, content_type: str = "application/pdf") -> str:
        """Store *data* and return a download reference for it."""
