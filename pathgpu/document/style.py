"""Style cascade, paint and length resolution for SVG elements.

Only the properties that decide whether a shape is emitted are tracked:

    fill        inherited, initial "black"
    color       inherited, initial "black" (target of currentColor)
    visibility  inherited, initial "visible"
    display     not inherited, initial "inline"

Precedence follows CSS: ``style="..."`` declarations beat presentation
attributes, which beat the inherited value.  Solid colors are parsed with
Pillow's ImageColor (hex, rgb()/hsl() functions, named colors).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from PIL import ImageColor

INHERITED_DEFAULTS: Dict[str, str] = {
    "fill": "black",
    "color": "black",
    "visibility": "visible",
}

# CSS absolute units at 96 dpi
_UNIT_SCALE: Dict[str, float] = {
    "": 1.0,
    "px": 1.0,
    "mm": 96.0 / 25.4,
    "cm": 96.0 / 2.54,
    "in": 96.0,
    "pt": 96.0 / 72.0,
    "pc": 16.0,
}

_LENGTH_RE = re.compile(
    r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)\s*([a-zA-Z%]*)\s*$"
)
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_style_attribute(style: Optional[str]) -> Dict[str, str]:
    """Split ``"fill:red; stroke:none"`` into {"fill": "red", "stroke": "none"}."""
    decls: Dict[str, str] = {}
    if not style:
        return decls
    for item in style.split(';'):
        if ':' not in item:
            continue
        key, value = item.split(':', 1)
        value = value.replace('!important', '').strip()
        key = key.strip().lower()
        if key and value:
            decls[key] = value
    return decls


def declared_value(attrib: Mapping[str, str], style: Mapping[str, str], prop: str) -> Optional[str]:
    """Value set on the element itself, style declaration first."""
    if prop in style:
        return style[prop]
    value = attrib.get(prop)
    return value.strip() if value is not None else None


@dataclass(frozen=True)
class StyleState:
    """Computed values of the tracked properties for one element."""

    fill: str = INHERITED_DEFAULTS["fill"]
    color: str = INHERITED_DEFAULTS["color"]
    visibility: str = INHERITED_DEFAULTS["visibility"]
    display: str = "inline"

    def child(self, attrib: Mapping[str, str]) -> "StyleState":
        """Cascade an element's own declarations over this (parent) state."""
        style = parse_style_attribute(attrib.get("style"))
        values = {}
        for prop in INHERITED_DEFAULTS:
            value = declared_value(attrib, style, prop)
            if value is None or value.lower() == "inherit":
                value = getattr(self, prop)
            values[prop] = value
        display = declared_value(attrib, style, "display")
        if display is None or display.lower() == "inherit":
            display = "inline" if display is None else self.display
        return StyleState(display=display, **values)

    @property
    def is_displayed(self) -> bool:
        return self.display.lower() != "none"

    @property
    def is_visible(self) -> bool:
        return self.visibility.lower() not in ("hidden", "collapse")


class PaintKind(Enum):
    NONE = "none"
    SOLID = "solid"
    NON_SOLID = "non_solid"
    INVALID = "invalid"


@dataclass(frozen=True)
class Paint:
    """Resolved fill paint."""

    kind: PaintKind
    rgb: Optional[Tuple[int, int, int]] = None
    detail: str = ""


def resolve_paint(value: str, current_color: str = "black") -> Paint:
    """Classify a fill value.

    Parameters
    ----------
    value : str
        Computed ``fill`` value
    current_color : str
        Computed ``color`` value, used for ``currentColor``

    Returns
    -------
    Paint
        NONE for "none" and "transparent", NON_SOLID for url(...) references (gradients,
        patterns), SOLID with an (r, g, b) tuple, or INVALID when the color
        cannot be parsed.
    """
    v = value.strip()
    lowered = v.lower()
    if lowered in ("none", "transparent"):
        return Paint(PaintKind.NONE)
    if lowered.startswith("url("):
        return Paint(PaintKind.NON_SOLID, detail=v)
    if lowered == "currentcolor":
        v = current_color.strip()
        if v.lower() in ("currentcolor", "inherit"):
            v = INHERITED_DEFAULTS["color"]
    try:
        rgba = ImageColor.getrgb(v)
    except ValueError:
        return Paint(PaintKind.INVALID, detail=f"unparsable color {v!r}")
    return Paint(PaintKind.SOLID, rgb=(rgba[0], rgba[1], rgba[2]))


def parse_length(value: Optional[str], default: Optional[float] = None) -> float:
    """Parse an SVG length into user units.

    Parameters
    ----------
    value : str, optional
        Attribute value such as "10", "2.5mm", "1in"
    default : float, optional
        Returned when value is None or blank

    Raises
    ------
    ValueError
        Missing value without default, malformed number, or a relative /
        unknown unit (%, em, ex)
    """
    if value is None or not value.strip():
        if default is None:
            raise ValueError("Missing required length")
        return default
    m = _LENGTH_RE.match(value)
    if m is None:
        raise ValueError(f"Malformed length {value!r}")
    number, unit = m.groups()
    try:
        scale = _UNIT_SCALE[unit.lower()]
    except KeyError:
        raise ValueError(f"Unsupported length unit {unit!r} in {value!r}") from None
    length = float(number) * scale
    if not math.isfinite(length):
        raise ValueError(f"Length out of range {value!r}")
    return length


def parse_number_list(value: Optional[str]) -> list:
    """All numbers in a whitespace/comma separated list (points, viewBox)."""
    if not value:
        return []
    nums = [float(n) for n in _NUMBER_RE.findall(value)]
    if not all(math.isfinite(n) for n in nums):
        raise ValueError(f"Number out of range in {value!r}")
    return nums
