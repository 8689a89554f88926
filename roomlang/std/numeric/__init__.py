from .basic_numeric import BasicMath
from roomlang.builtin_function import BuiltinCatalog
from roomlang.errors import fail
from roomlang.types import is_numeric, type_name
from typing import List, Any


def populate_numeric_catalog(catalog: BuiltinCatalog) -> BuiltinCatalog:
        basic_math = BasicMath()

        def numeric_arg(name: str, value: Any) -> Any:
            if not is_numeric(value):
                raise fail('TypeError', f'{name}() requires numeric argument, got {type_name(value)}')
            return value

        def std_round(args: List[Any]) -> Any:
            return basic_math.round(numeric_arg('round', args[0]))

        def std_floor(args: List[Any]) -> Any:
            return basic_math.floor(numeric_arg('floor', args[0]))

        def std_ceil(args: List[Any]) -> Any:
            return basic_math.ceil(numeric_arg('ceil', args[0]))

        def std_abs(args: List[Any]) -> Any:
            return basic_math.abs(numeric_arg('abs', args[0]))

        def std_min(args: List[Any]) -> Any:
            return basic_math.min(numeric_arg('min', args[0]), numeric_arg('min', args[1]))

        def std_max(args: List[Any]) -> Any:
            return basic_math.max(numeric_arg('max', args[0]), numeric_arg('max', args[1]))

        def std_sqrt(args: List[Any]) -> Any:
            return basic_math.sqrt(numeric_arg('sqrt', args[0]))

        def std_pow(args: List[Any]) -> Any:
            return basic_math.pow(numeric_arg('pow', args[0]), numeric_arg('pow', args[1]))

        catalog.register('round', 1, std_round)
        catalog.register('floor', 1, std_floor)
        catalog.register('ceil', 1, std_ceil)
        catalog.register('abs', 1, std_abs)
        catalog.register('min', 2, std_min)
        catalog.register('max', 2, std_max)
        catalog.register('sqrt', 1, std_sqrt)
        catalog.register('pow', 2, std_pow)

        return catalog
