"""CLI entry point for the roomlang interpreter.

Usage:
    python -m roomlang [-v|-vv|-vvv] [--parser {native,lark}] <program_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --parser      Front-end used to parse the program (default: native)

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. When the program leaves through a top-level
`ret`, the returned value is reported after the program's own output.
"""

import argparse
import sys
from pathlib import Path
from .interpreter import FRONTENDS, get_frontend, Interpreter
from .errors import RoomError
from .types import to_string


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="roomlang interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--parser', choices=sorted(FRONTENDS), default='native', help='parser front-end to use')
    parser.add_argument('program', help='roomlang program file (.room) to execute')
    args = parser.parse_args(argv)

    program_file = Path(args.program)
    if not program_file.exists():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        sys.exit(1)
    with open(program_file, 'r', encoding='utf-8') as f:
        source = f.read()

    interpreter = Interpreter(debug_level=args.v)
    try:
        ast_program = get_frontend(args.parser)(source)
        result = interpreter.run(ast_program)
    except RoomError as e:
        print(f"Error: {e.err.name}: {e.err.message}", file=sys.stderr)
        sys.exit(1)
    if result is not None:
        print(f"Program exited with return value: {to_string(result)}")


if __name__ == '__main__':
    main()
