"""
Type definitions and dataclasses for PDF Generator.

This module defines the template and field model consumed by the rendering
engine. Instances are normally built from the camelCase JSON documents held by
a template store through the ``from_dict`` constructors.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Pattern, Sequence, Union

from .colors import Color

Predicate = Callable[[Any], Union[bool, str]]


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key of *keys* in *data*."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


class FieldType(str, Enum):
    """Closed set of field types a template may declare."""

    TEXT = "text"
    MULTILINE_TEXT = "multiline-text"
    NUMBER = "number"
    DATE = "date"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    DROPDOWN = "dropdown"
    IMAGE = "image"
    SIGNATURE = "signature"
    QRCODE = "qrcode"
    BARCODE = "barcode"
    TABLE = "table"

    @classmethod
    def parse(cls, value: Any) -> Union["FieldType", str]:
        """Return the matching member, or the raw string for unknown types."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return str(value)


class TransformerKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    CURRENCY = "currency"
    BOOLEAN = "boolean"
    IMAGE = "image"
    QRCODE = "qrcode"
    BARCODE = "barcode"


class RuleKind(str, Enum):
    REQUIRED = "required"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    PATTERN = "pattern"
    CUSTOM = "custom"


# ----------------------------------------------------------------------
# Styling
# ----------------------------------------------------------------------
@dataclass
class FontConfig:
    family: str = "Helvetica"
    size: float = 12
    weight: str = "normal"
    style: str = "normal"

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "FontConfig":
        data = data or {}
        return cls(
            family=str(_pick(data, "family", default="Helvetica")),
            size=float(_pick(data, "size", default=12)),
            weight=str(_pick(data, "weight", default="normal")),
            style=str(_pick(data, "style", default="normal")),
        )


@dataclass
class Padding:
    top: float = 0
    right: float = 0
    bottom: float = 0
    left: float = 0

    @classmethod
    def parse(cls, value: Any) -> "Padding":
        if value is None:
            return cls()
        if isinstance(value, Padding):
            return value
        if isinstance(value, (int, float)):
            return cls(value, value, value, value)
        return cls(
            top=float(value.get("top", 0)),
            right=float(value.get("right", 0)),
            bottom=float(value.get("bottom", 0)),
            left=float(value.get("left", 0)),
        )


def _font_config(value: Any) -> Optional[FontConfig]:
    if not value:
        return None
    if isinstance(value, FontConfig):
        return value
    return FontConfig.from_dict(value)


@dataclass
class FieldStyle:
    font: Optional[FontConfig] = None
    color: Optional[Color] = None
    background_color: Optional[Color] = None
    border_color: Optional[Color] = None
    border_width: Optional[float] = None
    border_style: str = "solid"
    padding: Padding = field(default_factory=Padding)
    alignment: str = "left"
    vertical_alignment: str = "top"
    opacity: float = 1.0

    def __post_init__(self) -> None:
        if not 0.0 <= self.opacity <= 1.0:
            raise ValueError(f"Opacity must be within [0, 1], got {self.opacity}")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "FieldStyle":
        data = data or {}
        border_width = _pick(data, "borderWidth", "border_width")
        return cls(
            font=_font_config(data.get("font")),
            color=Color.parse(data.get("color")),
            background_color=Color.parse(_pick(data, "backgroundColor", "background_color")),
            border_color=Color.parse(_pick(data, "borderColor", "border_color")),
            border_width=float(border_width) if border_width is not None else None,
            border_style=str(_pick(data, "borderStyle", "border_style", default="solid")),
            padding=Padding.parse(data.get("padding")),
            alignment=str(_pick(data, "alignment", default="left")),
            vertical_alignment=str(_pick(data, "verticalAlignment", "vertical_alignment", default="top")),
            opacity=float(_pick(data, "opacity", default=1.0)),
        )


@dataclass
class FieldPosition:
    x: float
    y: float
    rotation: float = 0


@dataclass
class FieldDimensions:
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Field dimensions must be positive, got {self.width}x{self.height}"
            )


# ----------------------------------------------------------------------
# Validation and transformation
# ----------------------------------------------------------------------
@dataclass
class ValidationRule:
    """A single validation rule attached to a field.

    ``pattern`` rules compile their value once at construction time and
    ``custom`` rules require a callable ``predicate`` returning ``True`` or a
    failure message.
    """

    kind: RuleKind
    value: Any = None
    message: Optional[str] = None
    predicate: Optional[Predicate] = None
    compiled: Optional[Pattern[str]] = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.kind = RuleKind(self.kind)
        if self.kind is RuleKind.PATTERN:
            if isinstance(self.value, re.Pattern):
                self.compiled = self.value
            elif isinstance(self.value, str):
                try:
                    self.compiled = re.compile(self.value)
                except re.error as exc:
                    raise ValueError(f"Invalid pattern {self.value!r}: {exc}") from exc
            else:
                raise ValueError("Pattern rules require a regular expression value")
        if self.kind is RuleKind.CUSTOM and not callable(self.predicate):
            raise ValueError("Custom rules require a callable predicate")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ValidationRule":
        return cls(
            kind=RuleKind(_pick(data, "type", "kind")),
            value=data.get("value"),
            message=data.get("message"),
            predicate=_pick(data, "customValidator", "predicate"),
        )


@dataclass
class TransformerOptions:
    uppercase: bool = False
    lowercase: bool = False
    capitalize: bool = False
    truncate: Optional[int] = None
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    decimals: int = 2
    thousands_separator: str = ","
    decimal_separator: str = "."
    date_format: str = "YYYY-MM-DD"
    timezone: Optional[str] = None
    locale: str = "en-US"
    currency: str = "USD"
    currency_display: str = "symbol"
    true_text: str = "Yes"
    false_text: str = "No"
    max_width: Optional[float] = None
    max_height: Optional[float] = None
    aspect_ratio: str = "preserve"
    error_correction_level: str = "M"
    margin: int = 4
    scale: int = 4

    _KEYS = {
        "thousandsSeparator": "thousands_separator",
        "decimalSeparator": "decimal_separator",
        "dateFormat": "date_format",
        "currencyDisplay": "currency_display",
        "trueText": "true_text",
        "falseText": "false_text",
        "maxWidth": "max_width",
        "maxHeight": "max_height",
        "aspectRatio": "aspect_ratio",
        "errorCorrectionLevel": "error_correction_level",
    }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "TransformerOptions":
        kwargs: Dict[str, Any] = {}
        for key, value in (data or {}).items():
            if value is None:
                continue
            name = cls._KEYS.get(key, key)
            if name in cls.__dataclass_fields__ and not name.startswith("_"):
                kwargs[name] = value
        return cls(**kwargs)


@dataclass
class FieldTransformer:
    kind: TransformerKind
    options: TransformerOptions = field(default_factory=TransformerOptions)

    def __post_init__(self) -> None:
        self.kind = TransformerKind(self.kind)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldTransformer":
        options = data.get("options")
        if not isinstance(options, TransformerOptions):
            options = TransformerOptions.from_dict(options)
        return cls(kind=TransformerKind(_pick(data, "type", "kind")), options=options)


# ----------------------------------------------------------------------
# Fields
# ----------------------------------------------------------------------
@dataclass
class FieldDefinition:
    """One placeable, typed unit on a template page."""

    id: str
    name: str
    type: Union[FieldType, str]
    page: int
    position: FieldPosition
    dimensions: FieldDimensions
    style: FieldStyle = field(default_factory=FieldStyle)
    validation: List[ValidationRule] = field(default_factory=list)
    default_value: Any = None
    placeholder: Optional[str] = None
    required: bool = False
    data_path: Optional[str] = None
    transformer: Optional[FieldTransformer] = None

    def __post_init__(self) -> None:
        self.type = FieldType.parse(self.type)
        if self.page < 1:
            raise ValueError(f"Field {self.id} references invalid page {self.page}")

    @property
    def path(self) -> str:
        return self.data_path or self.name

    @property
    def type_name(self) -> str:
        return self.type.value if isinstance(self.type, FieldType) else str(self.type)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldDefinition":
        """Build a field from either the nested or the flat row shape."""

        position = data.get("position")
        if position is None:
            position = {"x": data.get("x", 0), "y": data.get("y", 0), "rotation": data.get("rotation")}
        dimensions = data.get("dimensions")
        if dimensions is None:
            dimensions = {"width": data.get("width"), "height": data.get("height")}

        style_data = data.get("style")
        if style_data is None:
            style_data = _flat_style(data)

        transformer = data.get("transformer")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            type=FieldType.parse(data.get("type", FieldType.TEXT.value)),
            page=int(data.get("page", 1)),
            position=FieldPosition(
                x=float(position.get("x") or 0),
                y=float(position.get("y") or 0),
                rotation=float(position.get("rotation") or 0),
            ),
            dimensions=FieldDimensions(
                width=float(dimensions["width"]),
                height=float(dimensions["height"]),
            ),
            style=FieldStyle.from_dict(style_data),
            validation=[
                rule if isinstance(rule, ValidationRule) else ValidationRule.from_dict(rule)
                for rule in data.get("validation") or []
            ],
            default_value=_pick(data, "defaultValue", "default_value"),
            placeholder=data.get("placeholder"),
            required=bool(data.get("required", False)),
            data_path=_pick(data, "dataPath", "data_path"),
            transformer=FieldTransformer.from_dict(transformer) if transformer else None,
        )


def _flat_style(data: Mapping[str, Any]) -> Dict[str, Any]:
    font = None
    if any(key in data for key in ("fontFamily", "fontSize", "fontWeight", "fontStyle")):
        font = {
            "family": _pick(data, "fontFamily", default="Helvetica"),
            "size": _pick(data, "fontSize", default=12),
            "weight": _pick(data, "fontWeight", default="normal"),
            "style": _pick(data, "fontStyle", default="normal"),
        }
    return {
        "font": font,
        "color": data.get("color"),
        "backgroundColor": data.get("backgroundColor"),
        "borderColor": data.get("borderColor"),
        "borderWidth": data.get("borderWidth"),
        "alignment": data.get("alignment"),
        "verticalAlignment": data.get("verticalAlignment"),
        "padding": data.get("padding"),
    }


# ----------------------------------------------------------------------
# Templates
# ----------------------------------------------------------------------
@dataclass
class PageMargins:
    top: float = 72
    right: float = 72
    bottom: float = 72
    left: float = 72


@dataclass
class PageBackground:
    color: Optional[Color] = None
    image: Optional[str] = None
    opacity: float = 1.0


@dataclass
class PageDefinition:
    number: int
    width: float = 612
    height: float = 792
    orientation: str = "portrait"
    margins: PageMargins = field(default_factory=PageMargins)
    background: Optional[PageBackground] = None

    def __post_init__(self) -> None:
        if self.number < 1:
            raise ValueError(f"Page numbers start at 1, got {self.number}")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Page {self.number} has invalid size {self.width}x{self.height}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PageDefinition":
        margins = data.get("margins")
        background = data.get("background")
        return cls(
            number=int(data["number"]),
            width=float(data.get("width", 612)),
            height=float(data.get("height", 792)),
            orientation=str(data.get("orientation", "portrait")),
            margins=PageMargins(**margins) if margins else PageMargins(),
            background=PageBackground(
                color=Color.parse(background.get("color")),
                image=background.get("image"),
                opacity=float(background.get("opacity", 1.0)),
            )
            if background
            else None,
        )


@dataclass
class TemplateMetadata:
    version: str = "1.0.0"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    created_by: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    category: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "TemplateMetadata":
        data = data or {}
        return cls(
            version=str(data.get("version", "1.0.0")),
            created_at=_pick(data, "createdAt", "created_at"),
            updated_at=_pick(data, "updatedAt", "updated_at"),
            created_by=_pick(data, "createdBy", "created_by"),
            tags=list(data.get("tags") or []),
            category=data.get("category"),
        )


@dataclass
class TemplateSettings:
    default_font: Optional[FontConfig] = None
    default_color: Optional[Color] = None
    allow_overflow: bool = False
    auto_resize: bool = True
    quality: str = "medium"
    compression: bool = True

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "TemplateSettings":
        data = data or {}
        default_font = _pick(data, "defaultFont", "default_font")
        return cls(
            default_font=_font_config(default_font),
            default_color=Color.parse(_pick(data, "defaultColor", "default_color")),
            allow_overflow=bool(_pick(data, "allowOverflow", "allow_overflow", default=False)),
            auto_resize=bool(_pick(data, "autoResize", "auto_resize", default=True)),
            quality=str(data.get("quality", "medium")),
            compression=bool(data.get("compression", True)),
        )


@dataclass
class TemplateDocument:
    """Template metadata as read from the template store."""

    id: str
    name: str
    pages: List[PageDefinition] = field(default_factory=list)
    description: Optional[str] = None
    base_document: Optional[str] = None
    metadata: TemplateMetadata = field(default_factory=TemplateMetadata)
    settings: TemplateSettings = field(default_factory=TemplateSettings)

    def get_page(self, number: int) -> Optional[PageDefinition]:
        for page in self.pages:
            if page.number == number:
                return page
        return None

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TemplateDocument":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            description=data.get("description"),
            base_document=_pick(data, "baseDocument", "templateUrl", "base_document"),
            pages=[PageDefinition.from_dict(page) for page in data.get("pages") or []],
            metadata=TemplateMetadata.from_dict(data.get("metadata")),
            settings=TemplateSettings.from_dict(data.get("settings")),
        )


# ----------------------------------------------------------------------
# Composite field values
# ----------------------------------------------------------------------
@dataclass
class TableData:
    headers: List[str]
    rows: List[List[Any]] = field(default_factory=list)

    @classmethod
    def parse(cls, value: Any) -> Optional["TableData"]:
        if isinstance(value, TableData):
            return value
        if not isinstance(value, Mapping):
            return None
        headers = value.get("headers")
        rows = value.get("rows")
        if not headers or rows is None:
            return None
        return cls(headers=[str(header) for header in headers], rows=[list(row) for row in rows])


@dataclass
class CertificateInfo:
    signer_name: str
    signing_date: str
    signer_email: Optional[str] = None
    reason: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CertificateInfo":
        return cls(
            signer_name=str(_pick(data, "signerName", "signer_name", default="")),
            signing_date=str(_pick(data, "signingDate", "signing_date", default="")),
            signer_email=_pick(data, "signerEmail", "signer_email"),
            reason=data.get("reason"),
            location=data.get("location"),
        )


@dataclass
class SignatureConfig:
    type: str
    image_url: Optional[str] = None
    signature_data: Optional[str] = None
    timestamp: bool = False
    certificate_info: Optional[CertificateInfo] = None

    @classmethod
    def parse(cls, value: Any) -> Optional["SignatureConfig"]:
        if isinstance(value, SignatureConfig):
            return value
        if isinstance(value, str):
            if value.startswith("data:image/") or value.startswith(("http://", "https://")):
                return cls(type="image", image_url=value)
            return cls(type="typed", signature_data=value)
        if not isinstance(value, Mapping):
            return None
        certificate = _pick(value, "certificateInfo", "certificate_info")
        return cls(
            type=str(value.get("type", "typed")),
            image_url=_pick(value, "imageUrl", "image_url"),
            signature_data=_pick(value, "signatureData", "signature_data"),
            timestamp=bool(value.get("timestamp", False)),
            certificate_info=CertificateInfo.from_dict(certificate) if certificate else None,
        )


def parse_fields(records: Sequence[Mapping[str, Any] | FieldDefinition]) -> List[FieldDefinition]:
    return [
        record if isinstance(record, FieldDefinition) else FieldDefinition.from_dict(record)
        for record in records
    ]


__all__ = [
    "FieldType",
    "TransformerKind",
    "RuleKind",
    "FontConfig",
    "Padding",
    "FieldStyle",
    "FieldPosition",
    "FieldDimensions",
    "ValidationRule",
    "TransformerOptions",
    "FieldTransformer",
    "FieldDefinition",
    "PageMargins",
    "PageBackground",
    "PageDefinition",
    "TemplateMetadata",
    "TemplateSettings",
    "TemplateDocument",
    "TableData",
    "CertificateInfo",
    "SignatureConfig",
    "parse_fields",
]
