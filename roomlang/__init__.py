# roomlang language package
# This package provides a parser and a tree-walking interpreter for roomlang.
from .interpreter import parse_program, run_program, run_file, tokenize, Interpreter
from .errors import RoomError, ParseError, LexerError
from .types import to_string

__all__ = [
    'parse_program',
    'run_program',
    'run_file',
    'tokenize',
    'Interpreter',
    'RoomError',
    'ParseError',
    'LexerError',
    'to_string',
]
