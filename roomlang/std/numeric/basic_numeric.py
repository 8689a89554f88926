import math
from typing import Union
from roomlang.errors import fail
from roomlang.types import round_to_int_away_from_zero, real_pow, to_f32, to_i32

Number = Union[int, float]


class BasicMath:
    def _to_int(self, name: str, value: float) -> int:
        if math.isnan(value) or math.isinf(value):
            raise fail('DomainError', f'{name}() cannot convert {value} to int')
        return to_i32(int(value))

    def round(self, value: Number) -> int:
        if isinstance(value, int):
            return value
        return self._to_int('round', round_to_int_away_from_zero(value) if math.isfinite(value) else value)

    def floor(self, value: Number) -> int:
        if isinstance(value, int):
            return value
        return self._to_int('floor', math.floor(value) if math.isfinite(value) else value)

    def ceil(self, value: Number) -> int:
        if isinstance(value, int):
            return value
        return self._to_int('ceil', math.ceil(value) if math.isfinite(value) else value)

    def abs(self, value: Number) -> Number:
        if isinstance(value, int):
            return to_i32(abs(value))
        return abs(value)

    def min(self, a: Number, b: Number) -> float:
        return to_f32(min(float(a), float(b)))

    def max(self, a: Number, b: Number) -> float:
        return to_f32(max(float(a), float(b)))

    def sqrt(self, value: Number) -> float:
        if value < 0:
            raise fail('DomainError', 'sqrt() requires non-negative argument')
        return to_f32(math.sqrt(value))

    def pow(self, base: Number, exponent: Number) -> float:
        return real_pow(float(base), float(exponent))
