"""Abstract Syntax Tree (AST) definitions for roomlang.

The AST classes defined in this module represent the syntactic structure
of parsed roomlang programs. Both front-ends (the hand-written parser in
`roomlang.interpreter` and the grammar-driven one in `roomlang.parser`)
produce these nodes, and the interpreter evaluates them directly.

The node set is closed: `Expr` and `Stmt` list every variant, and the
interpreter dispatches over exactly those classes. Each composite node
owns its children; the `Program` root owns the whole tree.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import List, Optional, Any, Union

from .errors import ParseError
from .types import INT32_MAX, to_f32


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


# Expressions

@dataclass
class Literal(Node):
    value: Any
    literal_type: str  # 'int', 'float', 'string', 'bool'


@dataclass
class Ident(Node):
    name: str


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass
class UnaryOp(Node):
    op: str
    operand: Node


@dataclass
class ParenExpr(Node):
    expr: Node


@dataclass
class Call(Node):
    name: str
    args: List[Node]


@dataclass
class ArrayLit(Node):
    elements: List[Node]


@dataclass
class Index(Node):
    name: str  # rooms are indexed by variable name only
    index: Node


# Statements

@dataclass
class VarDecl(Node):
    name: str
    expr: Optional[Node]  # initial value
    is_room: bool = False


@dataclass
class Assign(Node):
    name: str
    value: Node


@dataclass
class ExprStmt(Node):
    expr: Node


@dataclass
class IfStmt(Node):
    condition: Node
    then_branch: Node
    else_branch: Optional[Node]


@dataclass
class WhileStmt(Node):
    condition: Node
    body: Node


@dataclass
class ForStmt(Node):
    var: str
    iterable: Node
    body: Node


@dataclass
class BreakStmt(Node):
    pass


@dataclass
class ContinueStmt(Node):
    pass


@dataclass
class Block(Node):
    statements: List[Node]


@dataclass
class ReturnStmt(Node):
    value: Optional[Node]


@dataclass
class FuncDecl(Node):
    name: str
    params: List[str]
    body: Node


@dataclass
class IndexAssign(Node):
    name: str
    index: Node
    value: Node


@dataclass
class Program(Node):
    body: List[Node]


Expr = Union[Literal, Ident, BinaryOp, UnaryOp, ParenExpr, Call, ArrayLit, Index]
Stmt = Union[
    VarDecl, Assign, ExprStmt, IfStmt, WhileStmt, ForStmt, BreakStmt,
    ContinueStmt, Block, ReturnStmt, FuncDecl, IndexAssign,
]


def int_literal(lexeme: str) -> Literal:
    value = int(lexeme)
    # 2147483648 is only legal right after a minus sign, see check_int_literals
    if value > INT32_MAX + 1:
        raise ParseError(f"integer literal {lexeme} out of range")
    return Literal(value, 'int')


def float_literal(lexeme: str) -> Literal:
    text = lexeme[:-1] if lexeme.endswith('f') else lexeme
    try:
        return Literal(to_f32(float(text)), 'float')
    except ValueError:
        raise ParseError(f"malformed float literal {lexeme}")


def string_literal(lexeme: str) -> Literal:
    # string and char literals keep their quotes in the token
    return Literal(lexeme[1:-1], 'string')


def check_loop_control(program: Program) -> Program:
    """Reject `break` and `continue` that have no enclosing loop.

    A function body starts a fresh context: a loop around a `func`
    statement does not make `break` legal inside the function.
    """
    def visit(node: Optional[Node], in_loop: bool):
        if node is None:
            return
        if isinstance(node, (BreakStmt, ContinueStmt)):
            if not in_loop:
                word = 'break' if isinstance(node, BreakStmt) else 'continue'
                raise ParseError(f"'{word}' outside of a loop")
        elif isinstance(node, Block):
            for stmt in node.statements:
                visit(stmt, in_loop)
        elif isinstance(node, IfStmt):
            visit(node.then_branch, in_loop)
            visit(node.else_branch, in_loop)
        elif isinstance(node, (WhileStmt, ForStmt)):
            visit(node.body, True)
        elif isinstance(node, FuncDecl):
            visit(node.body, False)

    for stmt in program.body:
        visit(stmt, False)
    return program


def check_int_literals(program: Program) -> Program:
    """Reject integer literals outside the int32 range.

    The magnitude 2147483648 is accepted only as the leftmost operand of a
    prefix minus, so that `-2147483648` can be written.
    """
    def visit(node: Node, negated: bool):
        if isinstance(node, Literal):
            if node.literal_type == 'int' and node.value > INT32_MAX and not negated:
                raise ParseError(f"integer literal {node.value} out of range")
            return
        if isinstance(node, UnaryOp):
            visit(node.operand, node.op == '-')
            return
        if isinstance(node, BinaryOp):
            visit(node.left, negated)
            visit(node.right, False)
            return
        for f in fields(node):
            child = getattr(node, f.name)
            if isinstance(child, Node):
                visit(child, False)
            elif isinstance(child, list):
                for item in child:
                    if isinstance(item, Node):
                        visit(item, False)

    for stmt in program.body:
        visit(stmt, False)
    return program
