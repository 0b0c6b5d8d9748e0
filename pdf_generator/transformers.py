"""
Value transformers turning raw input data into render-ready values.

Every transformer is a pure function of ``(value, options)``. A transformer
never raises for bad input; it degrades to a string representation instead.
"""

from __future__ import annotations

import base64
import io
import re
from datetime import date, datetime, time, timezone
from typing import Any, Callable, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import qrcode
from qrcode.exceptions import DataOverflowError
from babel.core import Locale, UnknownLocaleError
from babel.numbers import format_currency

from .types import FieldDefinition, FieldTransformer, FieldType, TransformerKind, TransformerOptions
from .utils import get_logger

LOGGER = get_logger("pdf_generator.transformers")

_DATE_TOKENS = re.compile(r"YYYY|MM|DD|HH|mm|ss")

_ERROR_CORRECTION = {
    "L": qrcode.constants.ERROR_CORRECT_L,
    "M": qrcode.constants.ERROR_CORRECT_M,
    "Q": qrcode.constants.ERROR_CORRECT_Q,
    "H": qrcode.constants.ERROR_CORRECT_H,
}

_FALSE_STRINGS = {"", "false", "0", "no", "off", "n"}

# field types whose values are formatted even without an explicit transformer
_IMPLIED = {
    FieldType.NUMBER: TransformerKind.NUMBER,
    FieldType.DATE: TransformerKind.DATE,
    FieldType.QRCODE: TransformerKind.QRCODE,
}


# ----------------------------------------------------------------------
# Formatting primitives
# ----------------------------------------------------------------------
def format_number(
    value: Any,
    decimals: int = 2,
    thousands_separator: str = ",",
    decimal_separator: str = ".",
) -> str:
    """Format *value* with fixed decimals and custom separators.

    Non-numeric input is returned as its string form.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return str(value)

    try:
        places = max(0, int(decimals))
    except (TypeError, ValueError):
        places = 2

    text = f"{number:,.{places}f}"
    # swap through a placeholder so "." and "," may trade places
    text = text.replace(",", "\0").replace(".", decimal_separator)
    return text.replace("\0", thousands_separator or "")


def coerce_datetime(value: Any) -> Optional[datetime]:
    """Interpret *value* as a datetime, or return ``None`` when impossible."""

    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def format_date(value: Any, date_format: str = "YYYY-MM-DD", tz: Optional[str] = None) -> str:
    moment = coerce_datetime(value)
    if moment is None:
        return str(value)

    if tz:
        try:
            zone = ZoneInfo(tz)
        except (ZoneInfoNotFoundError, ValueError):
            LOGGER.warning("Unknown timezone %r, keeping original offset", tz)
        else:
            if moment.tzinfo is None:
                moment = moment.replace(tzinfo=timezone.utc)
            moment = moment.astimezone(zone)

    if date_format == "ISO":
        return moment.isoformat()

    tokens = {
        "YYYY": f"{moment.year:04d}",
        "MM": f"{moment.month:02d}",
        "DD": f"{moment.day:02d}",
        "HH": f"{moment.hour:02d}",
        "mm": f"{moment.minute:02d}",
        "ss": f"{moment.second:02d}",
    }
    return _DATE_TOKENS.sub(lambda match: tokens[match.group(0)], date_format)


def format_money(
    value: Any,
    currency: str = "USD",
    locale: str = "en-US",
    display: str = "symbol",
) -> str:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return f"{currency} {value}"

    try:
        babel_locale = Locale.parse(locale.replace("-", "_"))
        if display == "code":
            return format_currency(amount, currency, "¤¤ #,##0.00", locale=babel_locale)
        if display == "name":
            return format_currency(amount, currency, locale=babel_locale, format_type="name")
        return format_currency(amount, currency, locale=babel_locale)
    except (UnknownLocaleError, ValueError, TypeError, KeyError) as exc:
        LOGGER.debug("Currency formatting failed for %s/%s: %s", currency, locale, exc)
        return f"{currency} {amount:.2f}"


def to_boolean(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def generate_qr_png(
    value: str,
    error_correction_level: str = "M",
    margin: int = 4,
    scale: int = 4,
) -> bytes:
    """Render *value* as a QR code and return the PNG bytes."""

    qr = qrcode.QRCode(
        version=None,
        error_correction=_ERROR_CORRECTION.get(str(error_correction_level).upper(), qrcode.constants.ERROR_CORRECT_M),
        box_size=max(1, int(scale)),
        border=max(0, int(margin)),
    )
    qr.add_data(value)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def png_data_uri(data: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(data).decode("ascii")


# ----------------------------------------------------------------------
# Transformer
# ----------------------------------------------------------------------
class DataTransformer:
    """Stateless dispatcher over :class:`TransformerKind`."""

    def __init__(self) -> None:
        self._handlers: Dict[TransformerKind, Callable[[Any, TransformerOptions], Any]] = {
            TransformerKind.TEXT: self._text,
            TransformerKind.NUMBER: self._number,
            TransformerKind.DATE: self._date,
            TransformerKind.CURRENCY: self._currency,
            TransformerKind.BOOLEAN: self._boolean,
            TransformerKind.IMAGE: self._image,
            TransformerKind.QRCODE: self._qrcode,
            TransformerKind.BARCODE: self._barcode,
        }

    def transform(self, value: Any, transformer: Optional[FieldTransformer]) -> Any:
        if transformer is None or value is None:
            return value
        handler = self._handlers[TransformerKind(transformer.kind)]
        return handler(value, transformer.options)

    @staticmethod
    def _text(value: Any, options: TransformerOptions) -> str:
        result = str(value)
        if options.uppercase:
            result = result.upper()
        if options.lowercase:
            result = result.lower()
        if options.capitalize:
            result = result[:1].upper() + result[1:].lower()
        if options.truncate and len(result) > options.truncate:
            result = result[: options.truncate] + "..."
        if options.prefix:
            result = options.prefix + result
        if options.suffix:
            result = result + options.suffix
        return result

    @staticmethod
    def _number(value: Any, options: TransformerOptions) -> str:
        return format_number(
            value,
            decimals=options.decimals,
            thousands_separator=options.thousands_separator,
            decimal_separator=options.decimal_separator,
        )

    @staticmethod
    def _date(value: Any, options: TransformerOptions) -> str:
        return format_date(value, options.date_format, options.timezone)

    @staticmethod
    def _currency(value: Any, options: TransformerOptions) -> str:
        return format_money(value, options.currency, options.locale, options.currency_display)

    @staticmethod
    def _boolean(value: Any, options: TransformerOptions) -> str:
        return options.true_text if to_boolean(value) else options.false_text

    @staticmethod
    def _image(value: Any, options: TransformerOptions) -> Dict[str, Any]:
        result = dict(value) if isinstance(value, dict) else {"src": value}
        result.update(
            {
                "maxWidth": options.max_width,
                "maxHeight": options.max_height,
                "aspectRatio": options.aspect_ratio,
            }
        )
        return result

    @staticmethod
    def _qrcode(value: Any, options: TransformerOptions) -> str:
        text = str(value)
        if text.startswith("data:image/"):
            return text
        try:
            png = generate_qr_png(
                text,
                error_correction_level=options.error_correction_level,
                margin=options.margin,
                scale=options.scale,
            )
        except (ValueError, OSError, DataOverflowError) as exc:
            LOGGER.warning("QR code generation failed: %s", exc)
            return text
        return png_data_uri(png)

    @staticmethod
    def _barcode(value: Any, options: TransformerOptions) -> Dict[str, Any]:
        return {"value": str(value), "type": "code128", "options": options}


def implied_transformer(field: FieldDefinition, qr_scale: int = 4) -> Optional[FieldTransformer]:
    """Return the explicit transformer of *field* or the one its type implies."""

    if field.transformer is not None:
        return field.transformer
    kind = _IMPLIED.get(field.type) if isinstance(field.type, FieldType) else None
    if kind is None:
        return None
    if kind is TransformerKind.QRCODE:
        return FieldTransformer(kind=kind, options=TransformerOptions(scale=qr_scale))
    return FieldTransformer(kind=kind)


_DEFAULT = DataTransformer()


def transform(value: Any, transformer: Optional[FieldTransformer]) -> Any:
    return _DEFAULT.transform(value, transformer)


__all__ = [
    "DataTransformer",
    "transform",
    "implied_transformer",
    "format_number",
    "format_date",
    "format_money",
    "coerce_datetime",
    "to_boolean",
    "generate_qr_png",
    "png_data_uri",
]
