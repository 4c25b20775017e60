"""
Lox Interpreter - tree-walking evaluator
Executes resolved statement trees against a chain of environments
"""

from typing import Any, Dict, List, Optional, TextIO
import sys
import weakref

from ast_nodes import (
    Token,
    Expr, Assign, Binary, Call, Get, Grouping, Literal, Logical, Set, Super, This, Unary, Variable,
    Stmt, Block, Class, Expression, Function, If, Print, Return, Var, While,
)
from environment import Environment, UNASSIGNED
from error_handling import LoxRuntimeError
from runtime import LoxCallable, LoxClass, LoxFunction, LoxInstance, ReturnSignal
from stdlib import create_globals
from utilities import (
  is_truthy,
  is_equal,
  stringify,
  check_number_operand,
  check_number_operands,
  divide,
  add,
  raise_recursion_limit,
)


class Interpreter:
  """
  Evaluator state: the globals, the current environment and the side table
  of resolved distances.

  Statement execution returns None, or a ReturnSignal when a `return` is
  unwinding towards the enclosing call. Runtime faults are raised as
  LoxRuntimeError.
  """

  def __init__(self, debug: bool = False, stdout: Optional[TextIO] = None, echo_expressions: bool = False):
    self.debug = debug
    # None means "whatever sys.stdout is at print time"
    self.stdout = stdout
    self.echo_expressions = echo_expressions
    self.globals: Environment = create_globals()
    self.environment: Environment = self.globals
    # Entries live as long as the tree nodes they belong to
    self.locals: "weakref.WeakKeyDictionary[Expr, int]" = weakref.WeakKeyDictionary()
    raise_recursion_limit()

  # ==================== ENTRY POINTS ====================

  def resolve(self, expr: Expr, depth: int) -> None:
    """Record one resolved distance"""
    self.locals[expr] = depth

  def interpret(self, statements: List[Stmt], side_table: Optional[Dict[Expr, int]] = None) -> None:
    """
    Run a resolved program.

    A runtime error stops this call and propagates; whatever already ran
    keeps its effect on the globals, so a REPL can carry on afterwards.
    """
    if side_table is not None:
      self.locals.update(side_table)

    try:
      for statement in statements:
        if self.echo_expressions and isinstance(statement, Expression):
          self._print(stringify(self.evaluate(statement.expression)))
        else:
          self.execute(statement)
    except RecursionError:
      self.environment = self.globals
      raise LoxRuntimeError(None, "Stack overflow.") from None

  # ==================== STATEMENTS ====================

  def execute(self, stmt: Stmt) -> Optional[ReturnSignal]:
    if self.debug:
      print(f"[exec] {type(stmt).__name__}", file=sys.stderr)

    if isinstance(stmt, Expression):
      self.evaluate(stmt.expression)
    elif isinstance(stmt, Print):
      self._print(stringify(self.evaluate(stmt.expression)))
    elif isinstance(stmt, Var):
      value = UNASSIGNED
      if stmt.initializer is not None:
        value = self.evaluate(stmt.initializer)
      self.environment.define(stmt.name.lexeme, value)
    elif isinstance(stmt, Block):
      return self.execute_block(stmt.statements, Environment(self.environment))
    elif isinstance(stmt, If):
      if is_truthy(self.evaluate(stmt.condition)):
        return self.execute(stmt.then_branch)
      if stmt.else_branch is not None:
        return self.execute(stmt.else_branch)
    elif isinstance(stmt, While):
      while is_truthy(self.evaluate(stmt.condition)):
        outcome = self.execute(stmt.body)
        if outcome is not None:
          return outcome
    elif isinstance(stmt, Function):
      # Closes over the environment of the declaration, not of the call
      function = LoxFunction(stmt, self.environment, False)
      self.environment.define(stmt.name.lexeme, function)
    elif isinstance(stmt, Return):
      value = None
      if stmt.value is not None:
        value = self.evaluate(stmt.value)
      return ReturnSignal(value)
    elif isinstance(stmt, Class):
      self.execute_class(stmt)
    else:
      raise TypeError(f"Unknown statement node: {type(stmt).__name__}")
    return None

  def execute_block(self, statements: List[Stmt], environment: Environment) -> Optional[ReturnSignal]:
    """Run statements in `environment`, restoring the current one on every exit"""
    previous = self.environment
    try:
      self.environment = environment
      for statement in statements:
        outcome = self.execute(statement)
        if outcome is not None:
          return outcome
    finally:
      self.environment = previous
    return None

  def execute_class(self, stmt: Class) -> None:
    superclass = None
    if stmt.superclass is not None:
      superclass = self.evaluate(stmt.superclass)
      if not isinstance(superclass, LoxClass):
        raise LoxRuntimeError(stmt.superclass.name, "Superclass must be a class.")

    # Declared first so methods can name the class
    self.environment.define(stmt.name.lexeme, None)

    enclosing = self.environment
    if superclass is not None:
      self.environment = Environment(self.environment)
      self.environment.define("super", superclass)

    try:
      methods = {
          method.name.lexeme: LoxFunction(method, self.environment, method.name.lexeme == "init")
          for method in stmt.methods
      }
      static_methods = {
          method.name.lexeme: LoxFunction(method, self.environment, False)
          for method in stmt.static_methods
      }
      klass = LoxClass(stmt.name.lexeme, superclass, methods, static_methods)
    finally:
      self.environment = enclosing

    self.environment.assign(stmt.name, klass)

  # ==================== EXPRESSIONS ====================

  def evaluate(self, expr: Expr) -> Any:
    if isinstance(expr, Literal):
      return expr.value
    elif isinstance(expr, Grouping):
      return self.evaluate(expr.expression)
    elif isinstance(expr, Variable):
      return self.look_up_variable(expr.name, expr)
    elif isinstance(expr, Assign):
      return self.eval_assign(expr)
    elif isinstance(expr, Unary):
      return self.eval_unary(expr)
    elif isinstance(expr, Binary):
      return self.eval_binary(expr)
    elif isinstance(expr, Logical):
      return self.eval_logical(expr)
    elif isinstance(expr, Call):
      return self.eval_call(expr)
    elif isinstance(expr, Get):
      return self.eval_get(expr)
    elif isinstance(expr, Set):
      return self.eval_set(expr)
    elif isinstance(expr, This):
      return self.look_up_variable(expr.keyword, expr)
    elif isinstance(expr, Super):
      return self.eval_super(expr)
    raise TypeError(f"Unknown expression node: {type(expr).__name__}")

  def look_up_variable(self, name: Token, expr: Expr) -> Any:
    distance = self.locals.get(expr)
    if distance is not None:
      return self.environment.get_at(distance, name.lexeme, name)
    return self.globals.get(name)

  def eval_assign(self, expr: Assign) -> Any:
    value = self.evaluate(expr.value)
    distance = self.locals.get(expr)
    if distance is not None:
      self.environment.assign_at(distance, expr.name, value)
    else:
      self.globals.assign(expr.name, value)
    return value

  def eval_unary(self, expr: Unary) -> Any:
    right = self.evaluate(expr.right)
    op = expr.operator.lexeme

    if op == "!":
      return not is_truthy(right)
    if op == "-":
      check_number_operand(expr.operator, right)
      return -right
    raise LoxRuntimeError(expr.operator, f"Unknown unary operator '{op}'.")

  def eval_binary(self, expr: Binary) -> Any:
    # Both sides are always evaluated, left first
    left = self.evaluate(expr.left)
    right = self.evaluate(expr.right)
    operator = expr.operator
    op = operator.lexeme

    if op == "==":
      return is_equal(left, right)
    if op == "!=":
      return not is_equal(left, right)
    if op == "+":
      return add(operator, left, right)

    check_number_operands(operator, left, right)
    if op == "-":
      return left - right
    if op == "*":
      return left * right
    if op == "/":
      return divide(left, right)
    if op == ">":
      return left > right
    if op == ">=":
      return left >= right
    if op == "<":
      return left < right
    if op == "<=":
      return left <= right
    raise LoxRuntimeError(operator, f"Unknown binary operator '{op}'.")

  def eval_logical(self, expr: Logical) -> Any:
    left = self.evaluate(expr.left)

    if expr.operator.lexeme == "or":
      if is_truthy(left):
        return left
    elif not is_truthy(left):
      return left

    return self.evaluate(expr.right)

  def eval_call(self, expr: Call) -> Any:
    callee = self.evaluate(expr.callee)
    arguments = [self.evaluate(argument) for argument in expr.arguments]

    if not isinstance(callee, LoxCallable):
      raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")

    if len(arguments) != callee.arity():
      raise LoxRuntimeError(expr.paren,
                            f"Expected {callee.arity()} arguments but got {len(arguments)}.")

    if self.debug:
      print(f"[call] {callee} with {len(arguments)} argument(s)", file=sys.stderr)
    return callee.call(self, arguments)

  def _property_holder(self, target: Any) -> Optional[LoxInstance]:
    """The instance that answers property access on `target`, if any"""
    if isinstance(target, LoxInstance):
      return target
    if isinstance(target, LoxClass):
      return target.metaclass_instance
    return None

  def eval_get(self, expr: Get) -> Any:
    holder = self._property_holder(self.evaluate(expr.target))
    if holder is None:
      raise LoxRuntimeError(expr.name, "Only instances have properties.")
    return holder.get(expr.name)

  def eval_set(self, expr: Set) -> Any:
    holder = self._property_holder(self.evaluate(expr.target))
    if holder is None:
      raise LoxRuntimeError(expr.name, "Only instances have fields.")

    value = self.evaluate(expr.value)
    holder.set(expr.name, value)
    return value

  def eval_super(self, expr: Super) -> Any:
    distance = self.locals[expr]
    superclass = self.environment.get_at(distance, "super")
    # `this` is always bound one frame inside `super`
    instance = self.environment.get_at(distance - 1, "this")

    method = superclass.find_method(expr.method.lexeme)
    if method is None:
      raise LoxRuntimeError(expr.method, f"Undefined property '{expr.method.lexeme}'.")
    return method.bind(instance)

  def _print(self, text: str) -> None:
    print(text, file=self.stdout)


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False, stdout: Optional[TextIO] = None,
                       echo_expressions: bool = False) -> Interpreter:
  """Factory function returning an interpreter"""
  return Interpreter(debug=debug, stdout=stdout, echo_expressions=echo_expressions)


def create_debug_interpreter() -> Interpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True)
