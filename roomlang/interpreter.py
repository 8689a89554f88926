"""Interpreter for the roomlang language.

This module implements the complete roomlang toolchain: a tokenizer, a
precedence-climbing / recursive-descent parser producing an AST, and a
tree-walking interpreter that executes that AST directly. There is no
bytecode and no separate compilation pass.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from .ast import (
    Program, VarDecl, Assign, ExprStmt, IfStmt, WhileStmt, ForStmt,
    BreakStmt, ContinueStmt, Block, ReturnStmt, FuncDecl, IndexAssign,
    Literal, Ident, BinaryOp, UnaryOp, ParenExpr, Call, ArrayLit, Index,
    Node, Expr, Stmt, check_int_literals, check_loop_control, int_literal,
    float_literal, string_literal,
)
from .builtin_function import BuiltinCatalog
from .environment import Environment
from .errors import (
    LexerError, ParseError, ReturnSignal, BreakSignal, ContinueSignal, fail,
)
from .std import populate_numeric_catalog, populate_rooms_catalog
from .types import (
    ArrayVal, copy_value, is_numeric, is_truthy, real_pow, to_f32, to_i32,
    to_string, type_name,
)
from . import parser as grammar

###############################################################################
# Tokenizer
###############################################################################

KEYWORDS = {
    'if', 'then', 'else', 'while', 'for', 'in', 'ret', 'room', 'var',
    'func', 'continue', 'break',
}
BUILTIN_NAMES = {
    'print', 'round', 'floor', 'ceil', 'abs', 'min', 'max', 'sqrt', 'pow',
    'len', 'frag',
}
SINGLE_CHAR_TOKENS = set('+-=*/()[]{},;:^')
DIGITS = '0123456789'
LETTERS = 'abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ'
ROOM_SUFFIX = '_ROOM'


@dataclass
class Token:
    type: str
    value: str
    line: int
    column: int


def classify_word(word: str) -> str:
    """Return the token type for an identifier-shaped word."""
    if len(word) > len(ROOM_SUFFIX) and word.endswith(ROOM_SUFFIX):
        return 'ROOM_IDENT'
    if word in KEYWORDS:
        return word
    if word in ('true', 'false'):
        return 'BOOL'
    if word in BUILTIN_NAMES:
        return 'BUILTIN'
    return 'IDENT'


def tokenize(source: str) -> List[Token]:
    """Convert source code into a list of tokens.

    The scanner makes a single forward pass. Whitespace and any character
    that starts no token are skipped. String and char literals keep their
    quotes. A number containing a `.` or ending in `f` is a FLOAT, any
    other digit run an INT. Minus signs are always separate tokens;
    negative numbers are handled by the parser's unary rule.
    """
    tokens: List[Token] = []
    i = 0
    line = 1
    col = 1
    length = len(source)

    def advance(n: int = 1):
        nonlocal i, col, line
        for _ in range(n):
            if i < length and source[i] == '\n':
                line += 1
                col = 1
            else:
                col += 1
            i += 1

    while i < length:
        c = source[i]
        if c.isspace():
            advance()
            continue
        if c in SINGLE_CHAR_TOKENS:
            tokens.append(Token(c, c, line, col))
            advance()
            continue
        # String and char literals
        if c == '"' or c == '\'':
            start_line, start_col = line, col
            start_i = i
            advance()
            while i < length and source[i] != c:
                advance()
            if i >= length:
                kind = 'string' if c == '"' else 'char'
                raise LexerError(f"unterminated {kind} literal at {start_line}:{start_col}")
            advance()  # closing quote
            token_type = 'STRING' if c == '"' else 'CHAR'
            tokens.append(Token(token_type, source[start_i:i], start_line, start_col))
            continue
        # Numbers (int or float)
        if c in DIGITS:
            start_col = col
            start_i = i
            has_dot = False
            while i < length and (source[i] in DIGITS or (source[i] == '.' and not has_dot)):
                if source[i] == '.':
                    has_dot = True
                advance()
            is_float = has_dot
            if i < length and source[i] == 'f':
                advance()
                is_float = True
            value = source[start_i:i]
            tokens.append(Token('FLOAT' if is_float else 'INT', value, line, start_col))
            continue
        # Identifiers, keywords, builtins and room identifiers
        if c in LETTERS or c == '_':
            start_col = col
            start_i = i
            while i < length and (source[i] in LETTERS or source[i] in DIGITS or source[i] == '_'):
                advance()
            word = source[start_i:i]
            tokens.append(Token(classify_word(word), word, line, start_col))
            continue
        advance()
    return tokens


###############################################################################
# Parser implementation
###############################################################################

# '=' is reserved at the lowest level: it parses, but fails when evaluated
BINDING_POWER = {'=': 1, '+': 2, '-': 2, '*': 3, '/': 3, '^': 4}
RIGHT_ASSOCIATIVE = {'^'}


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def peek(self, offset: int = 0) -> Optional[Token]:
        if self.pos + offset < len(self.tokens):
            return self.tokens[self.pos + offset]
        return None

    def consume(self, expected: Union[str, List[str]]) -> Token:
        token = self.peek()
        if token is None:
            raise ParseError(f"unexpected end of input, expected {expected}")
        if isinstance(expected, list):
            if token.type not in expected:
                raise ParseError(f"expected one of {expected} at {token.line}:{token.column}, got {token.type} {token.value}")
        elif token.type != expected:
            raise ParseError(f"expected {expected} at {token.line}:{token.column}, got {token.type} {token.value}")
        self.pos += 1
        return token

    def match(self, expected: Union[str, List[str]], offset: int = 0) -> bool:
        token = self.peek(offset)
        if token is None:
            return False
        if isinstance(expected, list):
            return token.type in expected
        return token.type == expected

    def parse_program(self) -> Program:
        statements: List[Node] = []
        while self.peek() is not None:
            # stray statement terminators
            if self.match(';'):
                self.consume(';')
                continue
            statements.append(self.parse_statement())
        return check_loop_control(check_int_literals(Program(statements)))

    def parse_statement(self) -> Node:
        token = self.peek()
        if token is None:
            raise ParseError("unexpected end of input, expected a statement")
        if token.type == 'var':
            return self.parse_var_decl()
        if token.type == 'room':
            return self.parse_room_decl()
        if token.type == 'func':
            return self.parse_func_decl()
        if token.type == 'if':
            return self.parse_if_stmt()
        if token.type == 'while':
            return self.parse_while_stmt()
        if token.type == 'for':
            return self.parse_for_stmt()
        if token.type == 'ret':
            return self.parse_return_stmt()
        if token.type in ('break', 'continue'):
            self.consume(token.type)
            self.consume(';')
            return BreakStmt() if token.type == 'break' else ContinueStmt()
        if token.type == '{':
            return self.parse_block()
        return self.parse_simple_statement()

    def parse_var_decl(self) -> VarDecl:
        self.consume('var')
        name_token = self.consume('IDENT')
        expr: Optional[Node] = None
        if self.match('='):
            self.consume('=')
            expr = self.parse_expression()
        self.consume(';')
        return VarDecl(name_token.value, expr)

    def parse_room_decl(self) -> VarDecl:
        self.consume('room')
        name_token = self.consume('ROOM_IDENT')
        expr: Optional[Node] = None
        if self.match('='):
            self.consume('=')
            expr = self.parse_expression()
        self.consume(';')
        return VarDecl(name_token.value, expr, is_room=True)

    def parse_func_decl(self) -> FuncDecl:
        self.consume('func')
        name_token = self.consume('IDENT')
        self.consume('(')
        params: List[str] = []
        if not self.match(')'):
            while True:
                params.append(self.consume(['IDENT', 'ROOM_IDENT']).value)
                if not self.match(','):
                    break
                self.consume(',')
        self.consume(')')
        body = self.parse_statement()
        return FuncDecl(name_token.value, params, body)

    def parse_if_stmt(self) -> IfStmt:
        self.consume('if')
        self.consume('(')
        condition = self.parse_expression()
        self.consume(')')
        self.consume('then')
        then_branch = self.parse_statement()
        else_branch = None
        if self.match('else'):
            self.consume('else')
            else_branch = self.parse_statement()
        return IfStmt(condition, then_branch, else_branch)

    def parse_while_stmt(self) -> WhileStmt:
        self.consume('while')
        self.consume('(')
        condition = self.parse_expression()
        self.consume(')')
        body = self.parse_statement()
        return WhileStmt(condition, body)

    def parse_for_stmt(self) -> ForStmt:
        self.consume('for')
        self.consume('(')
        var_token = self.consume(['IDENT', 'ROOM_IDENT'])
        self.consume('in')
        iterable = self.parse_expression()
        self.consume(')')
        body = self.parse_statement()
        return ForStmt(var_token.value, iterable, body)

    def parse_return_stmt(self) -> ReturnStmt:
        self.consume('ret')
        if self.match(';'):
            self.consume(';')
            return ReturnStmt(None)
        value = self.parse_expression()
        self.consume(';')
        return ReturnStmt(value)

    def parse_block(self) -> Block:
        self.consume('{')
        statements: List[Node] = []
        while not self.match('}'):
            if self.peek() is None:
                raise ParseError("unterminated block")
            if self.match(';'):
                self.consume(';')
                continue
            statements.append(self.parse_statement())
        self.consume('}')
        return Block(statements)

    def parse_simple_statement(self) -> Node:
        """Assignment, element assignment or expression statement."""
        token = self.peek()
        if token.type in ('IDENT', 'ROOM_IDENT') and self.match('=', offset=1):
            self.consume(token.type)
            self.consume('=')
            value = self.parse_expression()
            self.consume(';')
            return Assign(token.value, value)
        if token.type == 'ROOM_IDENT' and self.match('[', offset=1):
            self.consume('ROOM_IDENT')
            index = self.parse_index()
            if self.match('='):
                self.consume('=')
                value = self.parse_expression()
                self.consume(';')
                return IndexAssign(token.value, index, value)
            # an element read that starts a larger expression
            expr = self.parse_expression(0, Index(token.value, index))
            self.consume(';')
            return ExprStmt(expr)
        expr = self.parse_expression()
        self.consume(';')
        return ExprStmt(expr)

    # Expression parsing (precedence climbing)
    def parse_expression(self, min_precedence: int = 0, left: Optional[Node] = None) -> Node:
        if left is None:
            left = self.parse_primary()
        while True:
            token = self.peek()
            if token is None:
                break
            precedence = BINDING_POWER.get(token.type, 0)
            if precedence <= min_precedence:
                break
            self.consume(token.type)
            next_min = precedence - 1 if token.type in RIGHT_ASSOCIATIVE else precedence
            right = self.parse_expression(next_min)
            left = BinaryOp(token.type, left, right)
        return left

    def parse_index(self) -> Node:
        self.consume('[')
        index = self.parse_expression()
        self.consume(']')
        return index

    def parse_arguments(self) -> List[Node]:
        self.consume('(')
        args: List[Node] = []
        if not self.match(')'):
            args.append(self.parse_expression())
            while self.match(','):
                self.consume(',')
                args.append(self.parse_expression())
        self.consume(')')
        return args

    def parse_primary(self) -> Node:
        token = self.peek()
        if token is None:
            raise ParseError("unexpected end of input in expression")
        # Literals
        if token.type == 'INT':
            self.consume('INT')
            return int_literal(token.value)
        if token.type == 'FLOAT':
            self.consume('FLOAT')
            return float_literal(token.value)
        if token.type in ('STRING', 'CHAR'):
            self.consume(token.type)
            return string_literal(token.value)
        if token.type == 'BOOL':
            self.consume('BOOL')
            return Literal(token.value == 'true', 'bool')
        # Identifier or call of a user function
        if token.type == 'IDENT':
            self.consume('IDENT')
            if self.match('('):
                return Call(token.value, self.parse_arguments())
            return Ident(token.value)
        # Room variable or element access
        if token.type == 'ROOM_IDENT':
            self.consume('ROOM_IDENT')
            if self.match('['):
                return Index(token.value, self.parse_index())
            return Ident(token.value)
        if token.type == 'BUILTIN':
            self.consume('BUILTIN')
            return Call(token.value, self.parse_arguments())
        # Grouping
        if token.type == '(':
            self.consume('(')
            expr = self.parse_expression()
            self.consume(')')
            return ParenExpr(expr)
        # Prefix sign binds at the additive level
        if token.type in ('+', '-'):
            self.consume(token.type)
            operand = self.parse_expression(BINDING_POWER[token.type])
            return UnaryOp(token.type, operand)
        # Room literal
        if token.type == '[':
            self.consume('[')
            elements: List[Node] = []
            if not self.match(']'):
                elements.append(self.parse_expression())
                while self.match(','):
                    self.consume(',')
                    elements.append(self.parse_expression())
            self.consume(']')
            return ArrayLit(elements)
        raise ParseError(f"unexpected token {token.type} {token.value} at {token.line}:{token.column}")


def parse_program(source: str) -> Program:
    """Parse the given source code into a Program AST using the hand-written parser."""
    tokens = tokenize(source)
    parser = Parser(tokens)
    return parser.parse_program()


FRONTENDS: Dict[str, Callable[[str], Program]] = {
    'native': parse_program,
    'lark': grammar.parse_program,
}


def get_frontend(name: str) -> Callable[[str], Program]:
    if name not in FRONTENDS:
        raise ValueError(f"unknown parser front-end {name!r}; choose from {sorted(FRONTENDS)}")
    return FRONTENDS[name]


###############################################################################
# Interpreter implementation
###############################################################################

# Deepest nesting of user function calls. Each call takes up to twenty
# Python frames, which RECURSION_LIMIT has to accommodate.
MAX_CALL_DEPTH = 1000
RECURSION_LIMIT = MAX_CALL_DEPTH * 20 + 1000


class FunctionValue:
    """A user-defined function: parameter names and a reference to the body.

    The body node belongs to the Program tree; the function only refers to it.
    """
    def __init__(self, name: str, params: List[str], body: Node):
        self.name = name
        self.params = params
        self.body = body

    def __repr__(self) -> str:
        return f"<function {self.name}>"


class Interpreter:
    """Core interpreter that executes a roomlang AST."""
    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt'):
        self.global_env = Environment()
        self.builtins = BuiltinCatalog()
        self.debug_level = debug_level
        self.debug_file = debug_file
        self.debug_fp = None
        self.call_depth = 0
        self.load_standard_module()

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    # Standard module loading
    def load_standard_module(self):
        def std_print(args: List[Any]) -> Any:
            print(to_string(args[0]))
            return 0

        self.builtins.register('print', 1, std_print)
        populate_numeric_catalog(self.builtins)
        populate_rooms_catalog(self.builtins)

    # Public API
    def run(self, program: Program, env: Optional[Environment] = None) -> Any:
        """Execute a program and return the value of a top-level `ret`.

        Returns None when the program runs to completion without one. Each
        roomlang call costs several Python frames, so the interpreter's
        recursion limit is raised for the duration of the run.
        """
        if env is None:
            env = Environment()
        self.global_env = env
        self.call_depth = 0
        if self.debug_level > 0:
            self.debug_fp = open(self.debug_file, 'w', encoding='utf-8')
        saved_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(saved_limit, RECURSION_LIMIT))
        try:
            self.debug(f"run program with {len(program.body)} statements")
            result = self.execute_block(program.body, env)
            if isinstance(result, ReturnSignal):
                self.debug(f"program returned {to_string(result.value)}")
                return result.value
            self.debug("program finished")
            return None
        except RecursionError:
            # deeply nested expressions can exhaust the stack outside of calls
            raise fail('RecursionError', 'maximum nesting depth exceeded')
        finally:
            sys.setrecursionlimit(saved_limit)
            if self.debug_fp:
                self.debug_fp.close()
                self.debug_fp = None

    def execute_block(self, statements: List[Stmt], env: Environment) -> Any:
        for stmt in statements:
            result = self.execute(stmt, env)
            # propagate return, break and continue signals
            if result is not None:
                return result
        return None

    def execute(self, node: Stmt, env: Environment) -> Any:
        if isinstance(node, VarDecl):
            if node.expr is not None:
                value = self.evaluate(node.expr, env)
            else:
                value = ArrayVal([]) if node.is_room else 0
            if node.is_room and not isinstance(value, ArrayVal):
                raise fail('TypeError', f'room {node.name} must hold a room, got {type_name(value)}')
            env.declare(node.name, value)
            if self.debug_level >= 2:
                self.debug(f"declare {node.name} = {to_string(value)}")
            return None
        if isinstance(node, FuncDecl):
            env.define_function(node.name, FunctionValue(node.name, node.params, node.body))
            if self.debug_level >= 2:
                self.debug(f"define function {node.name}({', '.join(node.params)})")
            return None
        if isinstance(node, Assign):
            env.set(node.name, self.evaluate(node.value, env))
            return None
        if isinstance(node, IndexAssign):
            if not env.has(node.name):
                raise fail('NameError', f'undefined room {node.name}')
            index = self.evaluate(node.index, env)
            value = self.evaluate(node.value, env)
            # fetched after evaluation: a call in either expression restores the mapping
            room = self.room_of(node.name, env)
            room.items[self.index_of(room, index)] = copy_value(value)
            return None
        if isinstance(node, ExprStmt):
            self.evaluate(node.expr, env)
            return None
        if isinstance(node, IfStmt):
            cond = self.evaluate(node.condition, env)
            truthy = is_truthy(cond)
            if self.debug_level >= 3:
                self.debug(f"if condition {to_string(cond)} -> {truthy}")
            if truthy:
                return self.execute(node.then_branch, env)
            if node.else_branch is not None:
                return self.execute(node.else_branch, env)
            return None
        if isinstance(node, WhileStmt):
            while True:
                cond = self.evaluate(node.condition, env)
                if self.debug_level >= 3:
                    self.debug(f"while condition {to_string(cond)}")
                if not is_truthy(cond):
                    break
                res = self.execute(node.body, env)
                if isinstance(res, ReturnSignal):
                    return res
                if isinstance(res, BreakSignal):
                    break
            return None
        if isinstance(node, ForStmt):
            iterable = self.evaluate(node.iterable, env)
            if not isinstance(iterable, ArrayVal):
                raise fail('TypeError', f'for loop expects a room, got {type_name(iterable)}')
            for item in copy_value(iterable).items:
                if self.debug_level >= 3:
                    self.debug(f"for {node.var} = {to_string(item)}")
                env.set(node.var, item)
                res = self.execute(node.body, env)
                if isinstance(res, ReturnSignal):
                    return res
                if isinstance(res, BreakSignal):
                    break
            return None
        if isinstance(node, BreakStmt):
            return BreakSignal()
        if isinstance(node, ContinueStmt):
            return ContinueSignal()
        if isinstance(node, Block):
            # no new scope: blocks share the flat environment
            return self.execute_block(node.statements, env)
        if isinstance(node, ReturnStmt):
            value = self.evaluate(node.value, env) if node.value is not None else 0
            return ReturnSignal(value)
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def evaluate(self, node: Expr, env: Environment) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Ident):
            return env.get(node.name)
        if isinstance(node, ParenExpr):
            return self.evaluate(node.expr, env)
        if isinstance(node, UnaryOp):
            operand = self.evaluate(node.operand, env)
            if not is_numeric(operand):
                raise fail('TypeError', f'unary {node.op} expects numeric, got {type_name(operand)}')
            if node.op == '-':
                return to_i32(-operand) if isinstance(operand, int) else -operand
            return operand
        if isinstance(node, BinaryOp):
            left = self.evaluate(node.left, env)
            right = self.evaluate(node.right, env)
            return self.apply_binary_op(node.op, left, right)
        if isinstance(node, Call):
            args = [self.evaluate(arg, env) for arg in node.args]
            return self.call_function(node.name, args, env)
        if isinstance(node, ArrayLit):
            return ArrayVal([copy_value(self.evaluate(el, env)) for el in node.elements])
        if isinstance(node, Index):
            room = self.room_of(node.name, env)
            index = self.evaluate(node.index, env)
            return room.items[self.index_of(room, index)]
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def room_of(self, name: str, env: Environment) -> ArrayVal:
        if not env.has(name):
            raise fail('NameError', f'undefined room {name}')
        room = env.get(name)
        if not isinstance(room, ArrayVal):
            raise fail('TypeError', f'{name} is not a room, got {type_name(room)}')
        return room

    def index_of(self, room: ArrayVal, index: Any) -> int:
        if not is_numeric(index):
            raise fail('TypeError', f'room index must be numeric, got {type_name(index)}')
        if isinstance(index, float) and not math.isfinite(index):
            raise fail('IndexError', f'room index {to_string(index)} out of bounds')
        position = int(index)  # truncates toward zero
        if position < 0 or position >= len(room.items):
            raise fail('IndexError', f'room index {position} out of bounds for length {len(room.items)}')
        return position

    def call_function(self, name: str, args: List[Any], env: Environment) -> Any:
        func = env.get_function(name)
        if func is not None:
            return self.call_user_function(func, args, env)
        builtin = self.builtins.get(name)
        if builtin is not None:
            return builtin.call(args)
        raise fail('NameError', f'undefined function {name}')

    def call_user_function(self, func: FunctionValue, args: List[Any], env: Environment) -> Any:
        if len(args) != len(func.params):
            raise fail('ArityError', f"{func.name}() expects {len(func.params)} arguments, got {len(args)}")
        if self.call_depth >= MAX_CALL_DEPTH:
            raise fail('RecursionError', f'maximum call depth {MAX_CALL_DEPTH} exceeded in {func.name}()')
        if self.debug_level >= 1:
            self.debug(f"call {func.name}({', '.join(to_string(a) for a in args)})")
        # checkpoint: every mutation made by the body is discarded on exit
        saved = env.snapshot()
        self.call_depth += 1
        try:
            for param, arg in zip(func.params, args):
                env.set(param, arg)
            res = self.execute(func.body, env)
        except RecursionError:
            raise fail('RecursionError', f'maximum call depth exceeded in {func.name}()')
        finally:
            self.call_depth -= 1
            env.restore(saved)
        ret_val = res.value if isinstance(res, ReturnSignal) else 0
        if self.debug_level >= 2:
            self.debug(f"return {to_string(ret_val)} from {func.name}")
        return ret_val

    def apply_binary_op(self, op: str, a: Any, b: Any) -> Any:
        if op == '=':
            raise fail('InvalidOperation', 'assignment is not an expression')
        if not is_numeric(a) or not is_numeric(b):
            raise fail('TypeError', f'unsupported {op} for {type_name(a)} and {type_name(b)}')
        if op == '^':
            return real_pow(float(a), float(b))
        if op == '/' and b == 0:
            raise fail('DivisionByZero', 'division by zero')
        if isinstance(a, float) or isinstance(b, float):
            x, y = float(a), float(b)
            if op == '+':
                return to_f32(x + y)
            if op == '-':
                return to_f32(x - y)
            if op == '*':
                return to_f32(x * y)
            if op == '/':
                return to_f32(x / y)
        else:
            if op == '+':
                return to_i32(a + b)
            if op == '-':
                return to_i32(a - b)
            if op == '*':
                return to_i32(a * b)
            if op == '/':
                # integer division truncating toward zero
                quotient = abs(a) // abs(b)
                return to_i32(-quotient if (a < 0) != (b < 0) else quotient)
        raise fail('InvalidOperation', f'unknown operator {op}')


def run_program(source: str, debug_level: int = 0, frontend: str = 'native') -> Any:
    """Convenience function to parse and run a roomlang program from source."""
    ast_program = get_frontend(frontend)(source)
    interpreter = Interpreter(debug_level=debug_level)
    return interpreter.run(ast_program)


def run_file(file_path: str, debug_level: int = 0, frontend: str = 'native') -> Any:
    """Parse and run a roomlang file, returning the top-level `ret` value."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    return run_program(source, debug_level=debug_level, frontend=frontend)
