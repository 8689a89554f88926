from typing import Any
from roomlang.types import ErrorVal


class RoomError(Exception):
    """Exception type used to propagate roomlang errors to the host."""
    def __init__(self, err: ErrorVal):
        super().__init__(f"RoomError: {err.name}: {err.message}")
        self.err = err


class LexerError(RoomError):
    def __init__(self, message: str):
        super().__init__(ErrorVal('LexError', message))


class ParseError(RoomError):
    def __init__(self, message: str):
        super().__init__(ErrorVal('ParseError', message))


def fail(name: str, message: str) -> RoomError:
    """Build a RoomError of the given kind, ready to be raised."""
    return RoomError(ErrorVal(name, message))


class ReturnSignal:
    """Result of executing `ret`; unwinds to the nearest call or program end."""
    def __init__(self, value: Any):
        self.value = value


class BreakSignal:
    """Result of executing `break` inside a loop body."""


class ContinueSignal:
    """Result of executing `continue` inside a loop body."""
