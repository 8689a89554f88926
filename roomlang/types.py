"""Runtime values and helpers for roomlang.

This module defines the runtime value model shared by the parser and the
interpreter. A roomlang value is exactly one of:

* a 32-bit signed integer (a Python ``int`` kept inside the int32 range),
* a single-precision float (a Python ``float`` rounded to binary32),
* a string (``str``),
* a bool (``bool``),
* an array, called a *room* (``ArrayVal``).

It also provides the canonical text rendering used for all output and
error messages, and the numeric conversions the evaluator and the
builtins rely on.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List
import math
import struct

INT32_MIN = -2 ** 31
INT32_MAX = 2 ** 31 - 1


@dataclass
class ErrorVal:
    """Describes a roomlang error: a kind name and a message.

    The kind is one of 'LexError', 'ParseError', 'NameError', 'TypeError',
    'ArityError', 'DivisionByZero', 'DomainError', 'IndexError',
    'InvalidOperation' or 'RecursionError'.
    """
    name: str
    message: str

    def __repr__(self) -> str:
        return f"Error(name={self.name!r}, message={self.message!r})"


@dataclass
class ArrayVal:
    """Represents a roomlang array ("room").

    Items may be of any value kind. Arrays have value semantics: whenever
    an array is bound to a name it is copied with `copy_value`, so the only
    way to change an array in place is element assignment through the
    variable that owns it.
    """
    items: List[Any]

    def __repr__(self) -> str:
        return f"Room({self.items!r})"


def to_i32(value: int) -> int:
    """Wrap an arbitrary Python int into the signed 32-bit range."""
    return (value - INT32_MIN) % 2 ** 32 + INT32_MIN


def to_f32(value: float) -> float:
    """Round a Python float to the nearest single-precision value."""
    if math.isnan(value) or math.isinf(value):
        return value
    try:
        return struct.unpack('f', struct.pack('f', value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def round_to_int_away_from_zero(x: float) -> int:
    """Round a floating point number to the nearest integer away from zero.

    Python's built-in round uses bankers rounding, so we implement the
    rule the `round` builtin needs: halves are rounded away from zero.
    """
    return math.floor(x + 0.5) if x >= 0 else math.ceil(x - 0.5)


def real_pow(base: float, exponent: float) -> float:
    """Real exponentiation with IEEE results instead of Python exceptions."""
    try:
        return to_f32(math.pow(base, exponent))
    except OverflowError:
        return math.inf
    except ValueError:
        # negative base with a fractional exponent, or zero to a negative power
        if base == 0:
            return math.inf
        return math.nan


def is_numeric(value: Any) -> bool:
    # bool is a subclass of int but is not a number in roomlang
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def type_name(value: Any) -> str:
    """Return the roomlang kind name of a runtime value."""
    if isinstance(value, bool):
        return 'bool'
    if isinstance(value, int):
        return 'int'
    if isinstance(value, float):
        return 'float'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, ArrayVal):
        return 'room'
    return type(value).__name__


def format_float(value: float) -> str:
    """Shortest positional decimal text that reads back as the same float32."""
    if math.isnan(value):
        return 'nan'
    if math.isinf(value):
        return 'inf' if value > 0 else '-inf'
    text = repr(value)
    for precision in range(1, 10):
        candidate = f"{value:.{precision}g}"
        if to_f32(float(candidate)) == value:
            text = candidate
            break
    text = format(Decimal(text), 'f')
    if '.' not in text:
        text += '.0'
    return text


def to_string(value: Any) -> str:
    """Render a value in its canonical text form.

    Bools render as `true`/`false`, strings are wrapped in double quotes,
    numbers use decimal notation (floats always carry a `.`), and rooms are
    rendered recursively as `[a, b, c]`.
    """
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_float(value)
    if isinstance(value, str):
        return '"' + value + '"'
    if isinstance(value, ArrayVal):
        return '[' + ', '.join(to_string(item) for item in value.items) + ']'
    return str(value)


def copy_value(value: Any) -> Any:
    """Copy a value so that the copy shares no room with the original."""
    if isinstance(value, ArrayVal):
        return ArrayVal([copy_value(item) for item in value.items])
    return value


def is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return len(value) > 0
    if isinstance(value, ArrayVal):
        return len(value.items) > 0
    return False
