"""In-memory stores, mainly for tests and embedding."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..types import FieldDefinition, TemplateDocument, parse_fields


class InMemoryTemplateStore:
    def __init__(self) -> None:
        self._templates: Dict[str, Tuple[TemplateDocument, List[FieldDefinition]]] = {}

    def add(
        self,
        template: TemplateDocument | Mapping[str, Any],
        fields: Iterable[FieldDefinition | Mapping[str, Any]] = (),
    ) -> TemplateDocument:
        if not isinstance(template, TemplateDocument):
            template = TemplateDocument.from_dict(template)
        self._templates[template.id] = (template, parse_fields(list(fields)))
        return template

    def get_template(self, template_id: str) -> Optional[TemplateDocument]:
        entry = self._templates.get(template_id)
        return entry[0] if entry else None

    def get_fields(self, template_id: str) -> List[FieldDefinition]:
        entry = self._templates.get(template_id)
        return list(entry[1]) if entry else []

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates


class InMemoryBlobStore:
    def __init__(self, blobs: Optional[Mapping[str, bytes]] = None, url_prefix: str = "memory://") -> None:
        self._blobs: Dict[str, bytes] = dict(blobs or {})
        self.url_prefix = url_prefix

    def get_bytes(self, reference: str) -> bytes:
        try:
            return self._blobs[reference]
        except KeyError:
            raise KeyError(f"Blob not found: {reference}") from None

    def put_bytes(self, reference: str, data: bytes, content_type: str = "application/pdf") -> str:
        self._blobs[reference] = bytes(data)
        return f"{self.url_prefix}{reference}"

    def __contains__(self, reference: object) -> bool:
        return reference in self._blobs
