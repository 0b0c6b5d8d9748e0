"""
Generation options accepted by :class:`~pdf_generator.generator.PDFGenerator`.

This module defines the request-side models. They accept the camelCase
``options`` object of a generation request as well as snake_case keyword
arguments, and report every malformed value at once through pydantic.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .colors import LIGHT_GRAY, Color


class OutputFormat(str, Enum):
    BUFFER = "buffer"
    BASE64 = "base64"
    URL = "url"


class Quality(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


WATERMARK_POSITIONS = ("center", "top-left", "top-right", "bottom-left", "bottom-right")

WatermarkPosition = Union[
    Literal["center", "top-left", "top-right", "bottom-left", "bottom-right"],
    Tuple[float, float],
]


class PDFMetadata(BaseModel):
    """
    Document information written into the generated PDF.

    Attributes:
        title: Document title (``/Title``)
        author: Document author (``/Author``)
        subject: Document subject (``/Subject``)
        keywords: Keywords joined into ``/Keywords``
        creator: Creating application (``/Creator``)
        producer: Producing application (``/Producer``)
    """
    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    creator: Optional[str] = None
    producer: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("keywords", mode="before")
    @classmethod
    def _split_keywords(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    def is_empty(self) -> bool:
        return not any(
            (self.title, self.author, self.subject, self.keywords, self.creator, self.producer)
        )


class WatermarkConfig(BaseModel):
    """
    Text watermark drawn on every page.

    Attributes:
        text: Watermark text
        opacity: Fill opacity in ``[0, 1]``
        rotation: Rotation in degrees, counter-clockwise
        font_size: Font size in points
        color: Fill color, light gray when unset
        position: ``center``, a corner name, or an explicit ``(x, y)``
    """
    text: str = Field(..., min_length=1)
    opacity: float = Field(0.3, ge=0, le=1)
    rotation: float = -45
    font_size: float = Field(48, alias="fontSize", ge=8, le=200)
    color: Color = LIGHT_GRAY
    position: WatermarkPosition = "center"

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("color", mode="before")
    @classmethod
    def _parse_color(cls, value: Any) -> Any:
        if value is None:
            return LIGHT_GRAY
        try:
            return Color.parse(value)
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Unrecognised color value: {value!r}") from exc

    @field_validator("position", mode="before")
    @classmethod
    def _point_from_mapping(cls, value: Any) -> Any:
        if value is None:
            return "center"
        if isinstance(value, dict):
            return (value.get("x"), value.get("y"))
        return value


class SecurityConfig(BaseModel):
    """Password and permission settings. Accepted but not enforced."""

    owner_password: Optional[str] = Field(None, alias="ownerPassword")
    user_password: Optional[str] = Field(None, alias="userPassword")
    permissions: Dict[str, bool] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)

    def is_requested(self) -> bool:
        return bool(self.owner_password or self.user_password or self.permissions)


class GenerationOptions(BaseModel):
    """Options controlling serialization and document-level post-processing."""

    output_format: OutputFormat = Field(OutputFormat.BUFFER, alias="outputFormat")
    metadata: Optional[PDFMetadata] = None
    watermark: Optional[WatermarkConfig] = None
    security: Optional[SecurityConfig] = None
    quality: Quality = Quality.MEDIUM

    model_config = ConfigDict(populate_by_name=True)


class GenerationRequest(BaseModel):
    """A complete generation request: template id, field data and options."""

    template_id: str = Field(..., alias="templateId", min_length=1)
    data: Dict[str, Any]
    options: Optional[GenerationOptions] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("data")
    @classmethod
    def _data_not_empty(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        if not value:
            raise ValueError("Data must not be empty")
        return value


class BatchOptions(BaseModel):
    """
    Options for bulk generation.

    Attributes:
        concurrent: Worker count, 1 to 10
        fail_fast: Stop submitting records after the first failure
        include_index: Keep each record's input index in its result
    """
    concurrent: int = Field(3, ge=1, le=10)
    fail_fast: bool = Field(False, alias="failFast")
    include_index: bool = Field(True, alias="includeIndex")

    model_config = ConfigDict(populate_by_name=True)


def error_messages(exc: ValidationError) -> List[str]:
    """Flatten a pydantic error into ``location: message`` strings."""

    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return messages


def validate_options(data: Any) -> List[str]:
    """Return every problem found in a raw ``options`` payload."""

    if data is None:
        return []
    try:
        GenerationOptions.model_validate(data)
    except ValidationError as exc:
        return error_messages(exc)
    return []


__all__ = [
    "OutputFormat",
    "Quality",
    "PDFMetadata",
    "WatermarkConfig",
    "SecurityConfig",
    "GenerationOptions",
    "GenerationRequest",
    "BatchOptions",
    "error_messages",
    "validate_options",
    "WATERMARK_POSITIONS",
]
