"""Semantic style keys and the value shapes each key accepts.

Style keys describe intent ("fill colour", "hide the legend") rather than any
grammar's parameter names. Validation here is grammar-neutral; whether a
grammar can express a key is decided later by the capability registry.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Final

from .errors import InvalidStyleValue, UnknownStyleKey


class StyleKey(StrEnum):
    """Closed set of semantic style keys, in canonical processing order."""

    title = "title"
    x_label = "xLabel"
    y_label = "yLabel"
    fill_color = "fillColor"
    outline_color = "outlineColor"
    opacity = "opacity"
    point_shape = "pointShape"
    line_width = "lineWidth"
    line_style = "lineStyle"
    bin_width = "binWidth"
    bin_count = "binCount"
    group_layout = "groupLayout"
    theme_tone = "themeTone"
    legend_visible = "legendVisible"
    axis_limit_x = "axisLimitX"
    axis_limit_y = "axisLimitY"
    flip_axes = "flipAxes"


MANDATORY_KEYS: Final[tuple[StyleKey, ...]] = (StyleKey.title, StyleKey.x_label, StyleKey.y_label)

# binWidth and binCount are mutually exclusive on a spec.
EXCLUSIVE_KEYS: Final[dict[StyleKey, StyleKey]] = {
    StyleKey.bin_width: StyleKey.bin_count,
    StyleKey.bin_count: StyleKey.bin_width,
}

POINT_SHAPES: Final[frozenset[str]] = frozenset(
    {"circle", "square", "triangle", "diamond", "cross", "plus", "filled_circle", "filled_square"}
)
LINE_STYLES: Final[frozenset[str]] = frozenset({"solid", "dashed", "dotted", "dotdash", "longdash", "twodash"})
GROUP_LAYOUTS: Final[frozenset[str]] = frozenset({"dodge", "stack", "fill"})
THEME_TONES: Final[frozenset[str]] = frozenset({"grey", "minimal", "classic", "bw", "light", "dark", "void"})

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_NAMED_COLOR = re.compile(r"^[A-Za-z][A-Za-z0-9 ]*$")


class _Unset:
    """Sentinel type for clearing a style key."""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()


@dataclass(frozen=True, slots=True)
class StyleKeySpec:
    """Describe the value shape accepted by a style key.

    Args:
        key: The semantic StyleKey.
        expected: Human-readable description used in error messages.
        normalize: Returns the normalized value, or raises ValueError when invalid.
    """

    key: StyleKey
    expected: str
    normalize: Callable[[Any], Any]


def _is_number(value: Any) -> bool:
    """Finite int or float; booleans, NaN and infinities are rejected."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def _text(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("not a string")
    return value


def _color(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("not a string")
    candidate = value.strip()
    if not (_HEX_COLOR.match(candidate) or _NAMED_COLOR.match(candidate)):
        raise ValueError("not a colour name or hex code")
    return candidate


def _unit_interval(value: Any) -> float:
    if not _is_number(value) or not 0 <= value <= 1:
        raise ValueError("outside [0, 1]")
    return float(value)


def _positive_number(value: Any) -> float | int:
    if not _is_number(value) or value <= 0:
        raise ValueError("not a positive number")
    return value


def _positive_int(value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ValueError("not a positive integer")
    return value


def _flag(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError("not a boolean")
    return value


def _one_of(choices: frozenset[str]) -> Callable[[Any], str]:
    def normalize(value: Any) -> str:
        if not isinstance(value, str) or value not in choices:
            raise ValueError("not an allowed choice")
        return value

    return normalize


def _ordered_pair(value: Any) -> tuple[float | int, float | int]:
    if not isinstance(value, (tuple, list)) or len(value) != 2:
        raise ValueError("not a pair")
    lower, upper = value
    if not (_is_number(lower) and _is_number(upper)):
        raise ValueError("pair members must be numbers")
    if lower > upper:
        raise ValueError("lower bound exceeds upper bound")
    return (lower, upper)


STYLE_KEY_SPECS: Final[dict[StyleKey, StyleKeySpec]] = {
    spec.key: spec
    for spec in (
        StyleKeySpec(StyleKey.title, "a string", _text),
        StyleKeySpec(StyleKey.x_label, "a string", _text),
        StyleKeySpec(StyleKey.y_label, "a string", _text),
        StyleKeySpec(StyleKey.fill_color, "a colour name or hex code", _color),
        StyleKeySpec(StyleKey.outline_color, "a colour name or hex code", _color),
        StyleKeySpec(StyleKey.opacity, "a number in [0, 1]", _unit_interval),
        StyleKeySpec(StyleKey.point_shape, f"one of {sorted(POINT_SHAPES)}", _one_of(POINT_SHAPES)),
        StyleKeySpec(StyleKey.line_width, "a positive number", _positive_number),
        StyleKeySpec(StyleKey.line_style, f"one of {sorted(LINE_STYLES)}", _one_of(LINE_STYLES)),
        StyleKeySpec(StyleKey.bin_width, "a positive number", _positive_number),
        StyleKeySpec(StyleKey.bin_count, "a positive integer", _positive_int),
        StyleKeySpec(StyleKey.group_layout, f"one of {sorted(GROUP_LAYOUTS)}", _one_of(GROUP_LAYOUTS)),
        StyleKeySpec(StyleKey.theme_tone, f"one of {sorted(THEME_TONES)}", _one_of(THEME_TONES)),
        StyleKeySpec(StyleKey.legend_visible, "a boolean", _flag),
        StyleKeySpec(StyleKey.axis_limit_x, "an ordered pair of numbers (lower <= upper)", _ordered_pair),
        StyleKeySpec(StyleKey.axis_limit_y, "an ordered pair of numbers (lower <= upper)", _ordered_pair),
        StyleKeySpec(StyleKey.flip_axes, "a boolean", _flag),
    )
}


@dataclass(frozen=True, slots=True)
class LiteralRoleSpec:
    """Value shape accepted by a literal binding on one role."""

    role: str
    expected: str
    normalize: Callable[[Any], Any]


# Roles that may bind a literal, keyed by role name.
LITERAL_ROLE_SPECS: Final[dict[str, LiteralRoleSpec]] = {
    spec.role: spec
    for spec in (
        LiteralRoleSpec("fill", "a colour name or hex code", _color),
        LiteralRoleSpec("outline", "a colour name or hex code", _color),
        LiteralRoleSpec("size", "a positive number", _positive_number),
        LiteralRoleSpec("shape", f"one of {sorted(POINT_SHAPES)}", _one_of(POINT_SHAPES)),
    )
}


def parse_style_key(key: StyleKey | str) -> StyleKey:
    """Return the StyleKey for `key`.

    Raises:
        UnknownStyleKey: When `key` is outside the closed set.
    """

    try:
        return StyleKey(key)
    except ValueError:
        raise UnknownStyleKey(key=str(key)) from None


def normalize_style_value(key: StyleKey, value: Any) -> Any:
    """Validate and normalize a style value for `key`.

    Raises:
        InvalidStyleValue: When `value` does not match the key's expected shape.
    """

    spec = STYLE_KEY_SPECS[key]
    try:
        return spec.normalize(value)
    except ValueError:
        raise InvalidStyleValue(key=key.value, value=value, expected=spec.expected) from None
