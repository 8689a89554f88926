from .basic_rooms import BasicRooms
from roomlang.builtin_function import BuiltinCatalog
from roomlang.errors import fail
from roomlang.types import ArrayVal, type_name
from typing import List, Any


def populate_rooms_catalog(catalog: BuiltinCatalog) -> BuiltinCatalog:
        basic_rooms = BasicRooms()

        def std_len(args: List[Any]) -> Any:
            value = args[0]
            if not isinstance(value, (ArrayVal, str)):
                raise fail('TypeError', f'len() requires room or string argument, got {type_name(value)}')
            return basic_rooms.length(value)

        def std_frag(args: List[Any]) -> Any:
            room, start, end = args
            if not isinstance(room, ArrayVal):
                raise fail('TypeError', f'frag() room argument must be room, got {type_name(room)}')
            if not isinstance(start, int) or isinstance(start, bool):
                raise fail('TypeError', f'frag() start argument must be int, got {type_name(start)}')
            if not isinstance(end, int) or isinstance(end, bool):
                raise fail('TypeError', f'frag() end argument must be int, got {type_name(end)}')
            return basic_rooms.frag(room, start, end)

        catalog.register('len', 1, std_len)
        catalog.register('frag', 3, std_frag)

        return catalog
