"""
Lox Semantic Analysis - static scope resolution
Computes a lexical distance for every local variable access and enforces the
scoping rules that can be checked before execution
"""

from typing import Any, Dict, List, Optional
from enum import Enum
import sys

from ast_nodes import (
    Token,
    Expr, Assign, Binary, Call, Get, Grouping, Literal, Logical, Set, Super, This, Unary, Variable,
    Stmt, Block, Class, Expression, Function, If, Print, Return, Var, While,
)
from error_handling import LoxResolveError, make_static_error


class FunctionType(Enum):
  NONE = "none"
  FUNCTION = "function"
  INITIALIZER = "initializer"
  METHOD = "method"


class ClassType(Enum):
  NONE = "none"
  CLASS = "class"
  SUBCLASS = "subclass"


# Side table: expression node (by identity) -> number of frames to walk out
SideTable = Dict[Expr, int]


class Resolver:
  """
  Single depth-first walk over the statement tree.

  Each scope maps a name to False while it is declared and to True once it
  is defined. Globals are never put on the stack: a name found in no scope
  stays out of the side table and is looked up in the globals at run time.
  """

  def __init__(self, debug: bool = False):
    self.debug = debug
    self._reset()

  def _reset(self):
    self.scopes: List[Dict[str, bool]] = []
    self.locals: SideTable = {}
    self.errors: List[Dict] = []
    self.current_function = FunctionType.NONE
    self.current_class = ClassType.NONE

  def resolve(self, statements: List[Stmt]) -> SideTable:
    """
    Resolve a whole program.

    Returns the side table, or raises LoxResolveError carrying every static
    error found; the walk does not stop at the first one.
    """
    self._reset()
    self.resolve_statements(statements)

    if self.debug:
      print(f"[resolve] {len(self.locals)} local reference(s), {len(self.errors)} error(s)",
            file=sys.stderr)

    table, errors = self.locals, self.errors
    # Hold no nodes between passes
    self._reset()
    if errors:
      raise LoxResolveError(errors)
    return table

  def resolve_statements(self, statements: List[Stmt]) -> None:
    for statement in statements:
      self.resolve_stmt(statement)

  # ==================== STATEMENTS ====================

  def resolve_stmt(self, stmt: Stmt) -> None:
    if isinstance(stmt, Block):
      self.begin_scope()
      self.resolve_statements(stmt.statements)
      self.end_scope()
    elif isinstance(stmt, Var):
      self.declare(stmt.name)
      if stmt.initializer is not None:
        self.resolve_expr(stmt.initializer)
      self.define(stmt.name)
    elif isinstance(stmt, Function):
      # Defined before the body so the function can recurse
      self.declare(stmt.name)
      self.define(stmt.name)
      self.resolve_function(stmt, FunctionType.FUNCTION)
    elif isinstance(stmt, Class):
      self.resolve_class(stmt)
    elif isinstance(stmt, Expression):
      self.resolve_expr(stmt.expression)
    elif isinstance(stmt, If):
      self.resolve_expr(stmt.condition)
      self.resolve_stmt(stmt.then_branch)
      if stmt.else_branch is not None:
        self.resolve_stmt(stmt.else_branch)
    elif isinstance(stmt, Print):
      self.resolve_expr(stmt.expression)
    elif isinstance(stmt, Return):
      self.resolve_return(stmt)
    elif isinstance(stmt, While):
      self.resolve_expr(stmt.condition)
      self.resolve_stmt(stmt.body)
    else:
      raise TypeError(f"Unknown statement node: {type(stmt).__name__}")

  def resolve_return(self, stmt: Return) -> None:
    if self.current_function == FunctionType.NONE:
      self.error(stmt.keyword, "Can't return from top-level code.")

    if stmt.value is not None:
      if self.current_function == FunctionType.INITIALIZER:
        self.error(stmt.keyword, "Can't return a value from an initializer.")
      self.resolve_expr(stmt.value)

  def resolve_class(self, stmt: Class) -> None:
    enclosing_class = self.current_class
    self.current_class = ClassType.CLASS

    self.declare(stmt.name)
    self.define(stmt.name)

    if stmt.superclass is not None:
      if stmt.superclass.name.lexeme == stmt.name.lexeme:
        self.error(stmt.superclass.name, "A class can't inherit from itself.")
      self.current_class = ClassType.SUBCLASS
      self.resolve_expr(stmt.superclass)

      self.begin_scope()
      self.scopes[-1]["super"] = True

    # `this` sits one scope inside `super`; super-call evaluation relies on it
    self.begin_scope()
    self.scopes[-1]["this"] = True

    for method in stmt.methods:
      kind = FunctionType.INITIALIZER if method.name.lexeme == "init" else FunctionType.METHOD
      self.resolve_function(method, kind)

    for method in stmt.static_methods:
      self.resolve_function(method, FunctionType.METHOD)

    self.end_scope()

    if stmt.superclass is not None:
      self.end_scope()

    self.current_class = enclosing_class

  def resolve_function(self, function: Function, kind: FunctionType) -> None:
    enclosing_function = self.current_function
    self.current_function = kind

    self.begin_scope()
    for param in function.params:
      self.declare(param)
      self.define(param)
    self.resolve_statements(function.body)
    self.end_scope()

    self.current_function = enclosing_function

  # ==================== EXPRESSIONS ====================

  def resolve_expr(self, expr: Expr) -> None:
    if isinstance(expr, Variable):
      if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
        self.error(expr.name, "Can't read local variable in its own initializer.")
      self.resolve_local(expr, expr.name)
    elif isinstance(expr, Assign):
      self.resolve_expr(expr.value)
      self.resolve_local(expr, expr.name)
    elif isinstance(expr, (Binary, Logical)):
      self.resolve_expr(expr.left)
      self.resolve_expr(expr.right)
    elif isinstance(expr, Call):
      self.resolve_expr(expr.callee)
      for argument in expr.arguments:
        self.resolve_expr(argument)
    elif isinstance(expr, Get):
      self.resolve_expr(expr.target)
    elif isinstance(expr, Set):
      self.resolve_expr(expr.value)
      self.resolve_expr(expr.target)
    elif isinstance(expr, Grouping):
      self.resolve_expr(expr.expression)
    elif isinstance(expr, Unary):
      self.resolve_expr(expr.right)
    elif isinstance(expr, Literal):
      pass
    elif isinstance(expr, This):
      if self.current_class == ClassType.NONE:
        self.error(expr.keyword, "Can't use 'this' outside of a class.")
        return
      self.resolve_local(expr, expr.keyword)
    elif isinstance(expr, Super):
      if self.current_class == ClassType.NONE:
        self.error(expr.keyword, "Can't use 'super' outside of a class.")
      elif self.current_class != ClassType.SUBCLASS:
        self.error(expr.keyword, "Can't use 'super' in a class with no superclass.")
      self.resolve_local(expr, expr.keyword)
    else:
      raise TypeError(f"Unknown expression node: {type(expr).__name__}")

  # ==================== SCOPES ====================

  def begin_scope(self) -> None:
    self.scopes.append({})

  def end_scope(self) -> None:
    self.scopes.pop()

  def declare(self, name: Token) -> None:
    if not self.scopes:
      return

    scope = self.scopes[-1]
    if name.lexeme in scope:
      self.error(name, "Already a variable with this name in this scope.")
    scope[name.lexeme] = False

  def define(self, name: Token) -> None:
    if not self.scopes:
      return
    self.scopes[-1][name.lexeme] = True

  def resolve_local(self, expr: Expr, name: Token) -> None:
    for i in range(len(self.scopes) - 1, -1, -1):
      if name.lexeme in self.scopes[i]:
        distance = len(self.scopes) - 1 - i
        self.locals[expr] = distance
        if self.debug:
          print(f"[resolve] {name.lexeme} (line {name.line}) -> {distance}", file=sys.stderr)
        return
    # Not found: global

  def error(self, token: Optional[Token], message: str) -> None:
    self.errors.append(make_static_error(token, message))


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_resolver(debug: bool = False) -> Resolver:
  """Factory function returning a resolver"""
  return Resolver(debug=debug)


def create_debug_resolver() -> Resolver:
  """Factory function returning a debug resolver"""
  return Resolver(debug=True)
