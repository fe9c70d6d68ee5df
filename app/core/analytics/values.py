"""
Cell Values — Tagged Row Values & Guarded Arithmetic
======================================================
Rows arrive from the parser as loosely-typed dicts. Everything downstream
reads them through the helpers here so that coercion rules live in one place:

  - is_null / to_number      — what counts as missing, what counts as numeric
  - to_cell                  — tagged variant chosen by the column's inferred type;
                               a value that does not fit the type stays TextCell
  - cell_number              — the float inside a NumberCell, else None
  - canonical_key            — structural-equality key (dedupe composite values)
  - display_value / value_kind
  - safe_div                 — division by zero yields 0, never NaN/Infinity
"""

import json
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Hashable, Optional, Union

from dateutil import parser as date_parser


# ═══════════════════════════════════════════════════════════════
# TAGGED CELL VARIANTS
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class NumberCell:
    value: float


@dataclass(frozen=True)
class TextCell:
    value: str


@dataclass(frozen=True)
class BooleanCell:
    value: bool


@dataclass(frozen=True)
class DateCell:
    value: datetime


class _NullCell:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NULL"

    def __bool__(self) -> bool:
        return False


NULL = _NullCell()

Cell = Union[NumberCell, TextCell, BooleanCell, DateCell, _NullCell]

BOOLEAN_TOKENS = {"true", "false", "0", "1", "yes", "no"}
_TRUE_TOKENS = {"true", "1", "yes"}

# two parses with different defaults disagree on any component the text lacks
_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


# ═══════════════════════════════════════════════════════════════
# GUARDED ARITHMETIC
# ═══════════════════════════════════════════════════════════════

def safe_div(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 when the denominator is zero or the result is not finite."""
    if denominator == 0:
        return 0.0
    result = numerator / denominator
    if not math.isfinite(result):
        return 0.0
    return result


# ═══════════════════════════════════════════════════════════════
# COERCION
# ═══════════════════════════════════════════════════════════════

def is_null(value: Any) -> bool:
    """None and empty strings are missing; NaN floats (pandas holes) too."""
    if value is None:
        return True
    if isinstance(value, str) and value == "":
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def to_number(value: Any) -> Optional[float]:
    """Coerce a raw value to a finite float, or None when it is not numeric."""
    if is_null(value):
        return None
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        # float() accepts digit separators; "1_000" is text
        if "_" in value:
            return None
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def boolean_token(value: Any) -> str:
    """Lower-cased text form used for boolean-literal detection (1.0 reads as '1')."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).lower()


def is_boolean_like(value: Any) -> bool:
    return isinstance(value, bool) or boolean_token(value) in BOOLEAN_TOKENS


def to_date(value: Any) -> Optional[datetime]:
    """
    Parse a calendar date from a datetime/date object or a date-like string.

    Text must carry digits and an explicit year: dateutil would otherwise
    complete "Jan", "Wed" or "1st" from the current date.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not any(ch.isdigit() for ch in value):
        return None
    try:
        first = date_parser.parse(value, default=_DATE_DEFAULTS[0])
        second = date_parser.parse(value, default=_DATE_DEFAULTS[1])
    except (ValueError, OverflowError):
        return None
    if first.year != second.year:
        return None
    return first


def to_cell(value: Any, column_type: str) -> Cell:
    """Map a raw value onto the variant for the column's inferred type."""
    if is_null(value):
        return NULL
    if column_type == "number":
        number = to_number(value)
        if number is not None:
            return NumberCell(number)
    elif column_type == "boolean":
        if is_boolean_like(value):
            return BooleanCell(boolean_token(value) in _TRUE_TOKENS)
    elif column_type == "date":
        parsed = to_date(value)
        if parsed is not None:
            return DateCell(parsed)
    return TextCell(display_value(value))


def cell_number(cell: Cell) -> Optional[float]:
    return cell.value if isinstance(cell, NumberCell) else None


# ═══════════════════════════════════════════════════════════════
# STRUCTURAL IDENTITY & DISPLAY
# ═══════════════════════════════════════════════════════════════

def canonical_key(value: Any) -> Hashable:
    """
    Hashable key with structural equality: two equal dicts/lists map to the
    same key regardless of identity or key order.
    """
    if is_null(value):
        return ("null",)
    if isinstance(value, bool):
        return ("bool", value)
    if isinstance(value, (int, float)):
        return ("num", float(value))
    if isinstance(value, str):
        return ("text", value)
    if isinstance(value, (datetime, date)):
        return ("date", value.isoformat())
    if isinstance(value, dict):
        return ("map", tuple(sorted((str(k), canonical_key(v)) for k, v in value.items())))
    if isinstance(value, (list, tuple)):
        return ("seq", tuple(canonical_key(v) for v in value))
    return ("other", repr(value))


def display_value(value: Any) -> str:
    """Human-facing text for a raw value (integral floats drop the '.0')."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


def value_kind(value: Any) -> str:
    """Coarse runtime kind, used to spot columns holding mixed value types."""
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (datetime, date)):
        return "date"
    return "object"


def format_number(value: float) -> str:
    """Thousands-separated; integral values without decimals, others to 2 places."""
    if float(value).is_integer():
        return f"{value:,.0f}"
    return f"{round(value, 2):,}"
