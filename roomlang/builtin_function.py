from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from roomlang.errors import fail


@dataclass
class BuiltinFunction:
    name: str
    arity: int
    fn: Callable[[List[Any]], Any]

    def call(self, args: List[Any]) -> Any:
        if len(args) != self.arity:
            plural = 'argument' if self.arity == 1 else 'arguments'
            raise fail('ArityError', f'{self.name}() expects {self.arity} {plural}, got {len(args)}')
        return self.fn(args)

    def __repr__(self) -> str:
        return f"<builtin {self.name}/{self.arity}>"


@dataclass
class BuiltinCatalog:
    """Name to builtin mapping consulted after user-defined functions."""
    functions: Dict[str, BuiltinFunction] = field(default_factory=dict)

    def register(self, name: str, arity: int, fn: Callable[[List[Any]], Any]):
        self.functions[name] = BuiltinFunction(name, arity, fn)

    def get(self, name: str) -> Optional[BuiltinFunction]:
        return self.functions.get(name)

    def names(self) -> List[str]:
        return sorted(self.functions)

    def __contains__(self, name: str) -> bool:
        return name in self.functions
