"""Directory backed stores used by the command line interface.

Layout::

    <root>/templates/<template id>.json   {"template": {...}, "fields": [...]}
    <root>/blobs/<reference>              base and generated documents
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..exceptions import TemplateLoadError
from ..types import FieldDefinition, TemplateDocument, parse_fields
from ..utils import get_logger

LOGGER = get_logger("pdf_generator.stores")


def _resolve_inside(root: Path, name: str) -> Path:
    candidate = (root / name).resolve()
    if root.resolve() not in candidate.parents:
        raise KeyError(f"Reference escapes store directory: {name}")
    return candidate


class FileTemplateStore:
    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)
        self.templates_dir = self.root / "templates"

    def _load(self, template_id: str) -> Optional[Dict[str, Any]]:
        try:
            path = _resolve_inside(self.templates_dir, f"{template_id}.json")
        except KeyError:
            return None
        if not path.is_file():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise TemplateLoadError(f"Unable to read template {template_id}: {exc}") from exc

    def get_template(self, template_id: str) -> Optional[TemplateDocument]:
        payload = self._load(template_id)
        if payload is None:
            return None
        template = dict(payload.get("template") or {})
        template.setdefault("id", template_id)
        return TemplateDocument.from_dict(template)

    def get_fields(self, template_id: str) -> List[FieldDefinition]:
        payload = self._load(template_id)
        if payload is None:
            return []
        try:
            return parse_fields(payload.get("fields") or [])
        except (KeyError, TypeError, ValueError) as exc:
            raise TemplateLoadError(f"Invalid field definition in template {template_id}: {exc}") from exc

    def save(self, template: Dict[str, Any], fields: List[Dict[str, Any]]) -> Path:
        self.templates_dir.mkdir(parents=True, exist_ok=True)
        path = _resolve_inside(self.templates_dir, f"{template['id']}.json")
        path.write_text(json.dumps({"template": template, "fields": fields}, indent=2), encoding="utf-8")
        return path


class FileBlobStore:
    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)
        self.blobs_dir = self.root / "blobs"

    def get_bytes(self, reference: str) -> bytes:
        path = _resolve_inside(self.blobs_dir, reference)
        return path.read_bytes()

    def put_bytes(self, reference: str, data: bytes, content_type: str = "application/pdf") -> str:
        path = _resolve_inside(self.blobs_dir, reference)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        LOGGER.debug("Stored %d bytes (%s) at %s", len(data), content_type, path)
        return path.as_uri()
