"""Color construction helpers producing normalized RGB values."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from reportlab.lib.colors import Color as ReportlabColor

_RGB_PATTERN = re.compile(
    r"^rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*(?:,\s*([\d.]+)\s*)?\)$"
)
_HSL_PATTERN = re.compile(r"^hsl\(\s*([\d.]+)\s*,\s*([\d.]+)%?\s*,\s*([\d.]+)%?\s*\)$")


@dataclass(frozen=True)
class Color:
    """RGB color with components normalized to ``[0, 1]``."""

    r: float
    g: float
    b: float

    def __post_init__(self) -> None:
        for name in ("r", "g", "b"):
            component = getattr(self, name)
            if not 0.0 <= float(component) <= 1.0:
                raise ValueError(f"Color component {name}={component} must be within [0, 1]")

    def to_reportlab(self, alpha: Optional[float] = None) -> ReportlabColor:
        if alpha is None:
            return ReportlabColor(self.r, self.g, self.b)
        return ReportlabColor(self.r, self.g, self.b, alpha=alpha)

    def to_dict(self) -> dict[str, float]:
        return {"r": self.r, "g": self.g, "b": self.b}

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def from_hex(cls, value: str) -> "Color":
        hex_value = value.strip().lstrip("#")
        if len(hex_value) == 3:
            hex_value = "".join(ch * 2 for ch in hex_value)
        if len(hex_value) != 6 or any(ch not in "0123456789abcdefABCDEF" for ch in hex_value):
            raise ValueError(f"Invalid hex color: {value!r}")
        return cls(
            int(hex_value[0:2], 16) / 255.0,
            int(hex_value[2:4], 16) / 255.0,
            int(hex_value[4:6], 16) / 255.0,
        )

    @classmethod
    def from_rgba(cls, r: float, g: float, b: float, a: float = 1.0) -> "Color":
        """Build a color from 0-255 channel values; alpha is accepted and ignored."""

        channels = [max(0.0, min(255.0, float(channel))) / 255.0 for channel in (r, g, b)]
        return cls(*channels)

    @classmethod
    def from_hsl(cls, h: float, s: float, l: float) -> "Color":
        """Build a color from hue in degrees and saturation/lightness in percent."""

        hue = (float(h) % 360) / 360.0
        saturation = max(0.0, min(100.0, float(s))) / 100.0
        lightness = max(0.0, min(100.0, float(l))) / 100.0

        if saturation == 0:
            return cls(lightness, lightness, lightness)

        def hue_to_rgb(p: float, q: float, t: float) -> float:
            if t < 0:
                t += 1
            if t > 1:
                t -= 1
            if t < 1 / 6:
                return p + (q - p) * 6 * t
            if t < 1 / 2:
                return q
            if t < 2 / 3:
                return p + (q - p) * (2 / 3 - t) * 6
            return p

        q = lightness * (1 + saturation) if lightness < 0.5 else lightness + saturation - lightness * saturation
        p = 2 * lightness - q
        return cls(
            _clamp(hue_to_rgb(p, q, hue + 1 / 3)),
            _clamp(hue_to_rgb(p, q, hue)),
            _clamp(hue_to_rgb(p, q, hue - 1 / 3)),
        )

    @classmethod
    def parse(cls, value: Any) -> Optional["Color"]:
        """Coerce dicts, CSS-like strings and 3-sequences into a :class:`Color`."""

        if value is None or isinstance(value, Color):
            return value
        if isinstance(value, Mapping):
            return cls(float(value["r"]), float(value["g"]), float(value["b"]))
        if isinstance(value, str):
            text = value.strip().lower()
            if text in NAMED_COLORS:
                return NAMED_COLORS[text]
            if text.startswith("#"):
                return cls.from_hex(text)
            match = _RGB_PATTERN.match(text)
            if match:
                return cls.from_rgba(*(float(group) for group in match.groups()[:3]))
            match = _HSL_PATTERN.match(text)
            if match:
                return cls.from_hsl(*(float(group) for group in match.groups()))
            raise ValueError(f"Unrecognised color value: {value!r}")
        if isinstance(value, Sequence) and len(value) == 3:
            return cls(float(value[0]), float(value[1]), float(value[2]))
        raise ValueError(f"Unrecognised color value: {value!r}")


def _clamp(component: float) -> float:
    return max(0.0, min(1.0, component))


BLACK = Color(0, 0, 0)
WHITE = Color(1, 1, 1)
RED = Color(1, 0, 0)
GREEN = Color(0, 1, 0)
BLUE = Color(0, 0, 1)
GRAY = Color(0.5, 0.5, 0.5)
LIGHT_GRAY = Color(0.8, 0.8, 0.8)
DARK_GRAY = Color(0.3, 0.3, 0.3)

NAMED_COLORS = {
    "black": BLACK,
    "white": WHITE,
    "red": RED,
    "green": GREEN,
    "blue": BLUE,
    "gray": GRAY,
    "grey": GRAY,
    "lightgray": LIGHT_GRAY,
    "darkgray": DARK_GRAY,
}


def hex_to_rgb(value: str) -> Color:
    return Color.from_hex(value)


__all__ = [
    "Color",
    "hex_to_rgb",
    "BLACK",
    "WHITE",
    "RED",
    "GREEN",
    "BLUE",
    "GRAY",
    "LIGHT_GRAY",
    "DARK_GRAY",
    "NAMED_COLORS",
]
