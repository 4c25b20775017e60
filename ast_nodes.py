"""
Lox syntax tree
Tokens with source spans, and the closed set of statement and expression nodes
consumed by the resolver and the interpreter
"""

from typing import Any, List, Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class SourceSpan:
    """Source location information carried by every token"""
    filename: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    text: str = ""

    def __str__(self) -> str:
        if self.start_line == self.end_line:
            return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_col}"
        return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


@dataclass(frozen=True)
class Token:
    """Lox token with source information"""
    type: str
    lexeme: str
    span: Optional[SourceSpan] = None

    @property
    def line(self) -> int:
        return self.span.start_line if self.span else 0

    def __str__(self) -> str:
        return f"{self.type}({self.lexeme})"


def synthetic_token(lexeme: str, type_name: str = "IDENTIFIER") -> Token:
    """Token for names the runtime introduces itself ('this', 'super', natives)"""
    return Token(type_name, lexeme, None)


# ============================================================================
# EXPRESSIONS
# ============================================================================
# Nodes compare and hash by identity (eq=False): the resolver's side table is
# keyed on the node object, and two `x` references are distinct occurrences.

class Expr:
    """Base class of all expression nodes"""


@dataclass(eq=False)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(eq=False)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Call(Expr):
    callee: Expr
    paren: Token
    arguments: List[Expr]


@dataclass(eq=False)
class Get(Expr):
    target: Expr
    name: Token


@dataclass(eq=False)
class Grouping(Expr):
    expression: Expr


@dataclass(eq=False)
class Literal(Expr):
    value: Any


@dataclass(eq=False)
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Set(Expr):
    target: Expr
    name: Token
    value: Expr


@dataclass(eq=False)
class Super(Expr):
    keyword: Token
    method: Token


@dataclass(eq=False)
class This(Expr):
    keyword: Token


@dataclass(eq=False)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(eq=False)
class Variable(Expr):
    name: Token


# ============================================================================
# STATEMENTS
# ============================================================================

class Stmt:
    """Base class of all statement nodes"""


@dataclass(eq=False)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(eq=False)
class Expression(Stmt):
    expression: Expr


@dataclass(eq=False)
class Function(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(eq=False)
class Class(Stmt):
    name: Token
    superclass: Optional[Variable]
    methods: List[Function]
    static_methods: List[Function]


@dataclass(eq=False)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None


@dataclass(eq=False)
class Print(Stmt):
    expression: Expr


@dataclass(eq=False)
class Return(Stmt):
    keyword: Token
    value: Optional[Expr] = None


@dataclass(eq=False)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr] = None


@dataclass(eq=False)
class While(Stmt):
    condition: Expr
    body: Stmt
