from typing import Union
from roomlang.errors import fail
from roomlang.types import ArrayVal, copy_value


class BasicRooms:
    def length(self, value: Union[ArrayVal, str]) -> int:
        if isinstance(value, ArrayVal):
            return len(value.items)
        return len(value)

    def frag(self, room: ArrayVal, start: int, end: int) -> ArrayVal:
        size = len(room.items)
        if start < 0 or end < 0 or start >= end or end > size:
            raise fail('IndexError', f'frag() range [{start}, {end}) invalid for room of length {size}')
        return ArrayVal([copy_value(item) for item in room.items[start:end]])
