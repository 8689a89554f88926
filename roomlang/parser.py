"""Grammar-driven parser for roomlang.

This module is a second front-end for the language, built on a Lark
LALR(1) parser configured with a declarative grammar. The resulting parse
tree is transformed into exactly the same AST classes the hand-written
parser in `roomlang.interpreter` produces, so the two front-ends can be
used interchangeably and checked against each other.

Operator precedence is encoded in the rule layering (`sum`, `product`,
`power`). Two shift/reduce conflicts are intentional and resolved by
Lark in favour of shifting: the dangling `else` attaches to the nearest
`if`, and a prefix sign takes the longest multiplicative operand, which
matches the additive binding power of unary `+`/`-` in the hand-written
parser.

Errors never leave this module as Lark exceptions: an unterminated
string or char literal becomes a `LexerError`, anything else a
`ParseError`.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List

from lark import Lark, Transformer
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, VisitError

from .ast import (
    Program, VarDecl, Assign, ExprStmt, IfStmt, WhileStmt, ForStmt,
    BreakStmt, ContinueStmt, Block, ReturnStmt, FuncDecl, IndexAssign,
    BinaryOp, UnaryOp, ParenExpr, Call, ArrayLit, Index, Ident, Literal,
    check_int_literals, check_loop_control, int_literal, float_literal,
    string_literal,
)
from .errors import LexerError, ParseError, RoomError


ROOMLANG_GRAMMAR = r"""
    start: (statement | ";")*

    // Statements
    ?statement: var_decl
              | room_decl
              | func_decl
              | if_stmt
              | while_stmt
              | for_stmt
              | return_stmt
              | break_stmt
              | continue_stmt
              | block
              | assign
              | index_assign
              | expr_stmt

    var_decl: "var" IDENT ("=" expression)? ";"
    room_decl: "room" ROOM_IDENT ("=" expression)? ";"
    func_decl: "func" IDENT "(" param_list? ")" statement
    param_list: param ("," param)*
    ?param: IDENT | ROOM_IDENT
    if_stmt: "if" "(" expression ")" "then" statement ("else" statement)?
    while_stmt: "while" "(" expression ")" statement
    for_stmt: "for" "(" param "in" expression ")" statement
    return_stmt: "ret" expression? ";"
    break_stmt: "break" ";"
    continue_stmt: "continue" ";"
    block: "{" (statement | ";")* "}"
    assign: param "=" expression ";"
    index_assign: ROOM_IDENT "[" expression "]" "=" expression ";"
    expr_stmt: expression ";"

    // Expressions with precedence
    ?expression: sum
    ?sum: product
        | sum (PLUS | MINUS) product -> binary
    ?product: power
        | product (STAR | SLASH) power -> binary
    ?power: primary
        | primary CARET power -> binary
    ?primary: INT -> int_lit
            | FLOAT -> float_lit
            | STRING -> string_lit
            | CHAR -> string_lit
            | BOOL -> bool_lit
            | IDENT "(" args? ")" -> call
            | BUILTIN "(" args? ")" -> call
            | IDENT -> ident
            | ROOM_IDENT -> ident
            | ROOM_IDENT "[" expression "]" -> index
            | "(" expression ")" -> paren
            | "[" args? "]" -> array_lit
            | (PLUS | MINUS) product -> unary
    args: expression ("," expression)*

    // Tokens
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    CARET: "^"
    ROOM_IDENT.2: /[A-Za-z_][A-Za-z0-9_]*_ROOM(?![A-Za-z0-9_])/
    BOOL.2: /(?:true|false)(?![A-Za-z0-9_])/
    BUILTIN.2: /(?:print|round|floor|ceil|abs|min|max|sqrt|pow|len|frag)(?![A-Za-z0-9_])/
    IDENT: /[A-Za-z_][A-Za-z0-9_]*/
    FLOAT.2: /[0-9]+\.[0-9]*f?|[0-9]+f/
    INT: /[0-9]+/
    STRING: /"[^"]*"/
    CHAR: /'[^']*'/

    // Characters that start no token are skipped, like the hand-written tokenizer does
    STRAY: /[^\sA-Za-z0-9_"'+\-=*\/()\[\]{},;:^]/
    %ignore STRAY
    WHITESPACE: /\s+/
    %ignore WHITESPACE
"""


@lru_cache(maxsize=None)
def get_parser() -> Lark:
    return Lark(
        ROOMLANG_GRAMMAR,
        parser='lalr',
        lexer='basic',
        maybe_placeholders=False,
    )


class ASTTransformer(Transformer):
    """Transforms the raw parse tree into an AST."""

    def start(self, items):
        return Program(body=list(items))

    # Statements
    def var_decl(self, items):
        expr = items[1] if len(items) > 1 else None
        return VarDecl(name=str(items[0]), expr=expr)

    def room_decl(self, items):
        expr = items[1] if len(items) > 1 else None
        return VarDecl(name=str(items[0]), expr=expr, is_room=True)

    def func_decl(self, items):
        name = str(items[0])
        params: List[str] = items[1] if len(items) == 3 else []
        return FuncDecl(name=name, params=params, body=items[-1])

    def param_list(self, items):
        return [str(item) for item in items]

    def if_stmt(self, items):
        else_branch = items[2] if len(items) > 2 else None
        return IfStmt(items[0], items[1], else_branch)

    def while_stmt(self, items):
        return WhileStmt(items[0], items[1])

    def for_stmt(self, items):
        return ForStmt(str(items[0]), items[1], items[2])

    def return_stmt(self, items):
        return ReturnStmt(items[0] if items else None)

    def break_stmt(self, items):
        return BreakStmt()

    def continue_stmt(self, items):
        return ContinueStmt()

    def block(self, items):
        return Block(statements=list(items))

    def assign(self, items):
        return Assign(str(items[0]), items[1])

    def index_assign(self, items):
        return IndexAssign(str(items[0]), items[1], items[2])

    def expr_stmt(self, items):
        return ExprStmt(items[0])

    # Expressions
    def binary(self, items):
        left, op, right = items
        return BinaryOp(op=str(op), left=left, right=right)

    def unary(self, items):
        op, operand = items
        return UnaryOp(op=str(op), operand=operand)

    def int_lit(self, items):
        return int_literal(str(items[0]))

    def float_lit(self, items):
        return float_literal(str(items[0]))

    def string_lit(self, items):
        return string_literal(str(items[0]))

    def bool_lit(self, items):
        return Literal(str(items[0]) == 'true', 'bool')

    def call(self, items):
        args = items[1] if len(items) > 1 else []
        return Call(str(items[0]), args)

    def args(self, items):
        return list(items)

    def ident(self, items):
        return Ident(str(items[0]))

    def index(self, items):
        return Index(str(items[0]), items[1])

    def paren(self, items):
        return ParenExpr(items[0])

    def array_lit(self, items):
        return ArrayLit(items[0] if items else [])


def parse_program(source: str) -> Program:
    """Parse roomlang source code into a Program AST using the Lark grammar."""
    try:
        tree = get_parser().parse(source)
    except UnexpectedCharacters as e:
        if e.char in ('"', '\''):
            kind = 'string' if e.char == '"' else 'char'
            raise LexerError(f"unterminated {kind} literal at {e.line}:{e.column}")
        raise ParseError(f"unexpected character {e.char!r} at {e.line}:{e.column}")
    except UnexpectedInput as e:
        raise ParseError(f"unexpected input at {e.line}:{e.column}: {e}")
    try:
        program = ASTTransformer().transform(tree)
    except VisitError as e:
        # literal conversion errors raised inside the transformer
        if isinstance(e.orig_exc, RoomError):
            raise e.orig_exc
        raise
    return check_loop_control(check_int_literals(program))
