from typing import Any, Dict, Optional
from roomlang.errors import fail
from roomlang.types import copy_value


class Environment:
    """The flat runtime environment of one program run.

    Variables and functions live in two independent namespaces. There are
    no nested scopes: blocks and function bodies all read and write the
    same variable mapping, and calls isolate themselves with
    `snapshot`/`restore` instead.
    """
    def __init__(self):
        self.values: Dict[str, Any] = {}
        self.functions: Dict[str, Any] = {}

    def get(self, name: str) -> Any:
        if name in self.values:
            return self.values[name]
        raise fail('NameError', f'undefined variable {name}')

    def has(self, name: str) -> bool:
        return name in self.values

    def set(self, name: str, value: Any):
        # rooms are stored by value
        self.values[name] = copy_value(value)

    def declare(self, name: str, value: Any):
        # redeclaration silently overwrites
        self.set(name, value)

    def define_function(self, name: str, func: Any):
        self.functions[name] = func

    def get_function(self, name: str) -> Optional[Any]:
        return self.functions.get(name)

    def snapshot(self) -> Dict[str, Any]:
        return {name: copy_value(value) for name, value in self.values.items()}

    def restore(self, saved: Dict[str, Any]):
        self.values = saved
