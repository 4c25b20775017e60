"""
Utilities module for the Lox interpreter
Value helpers shared by the evaluator, the runtime object model and the stdlib
"""

from typing import Any
import math
import sys

from error_handling import LoxRuntimeError


# Each Lox call, and each level of nested grammar, costs many Python frames
RECURSION_LIMIT = 10000


def raise_recursion_limit() -> None:
  """Make room for deep Lox recursion and nested source in every stage"""
  if sys.getrecursionlimit() < RECURSION_LIMIT:
    sys.setrecursionlimit(RECURSION_LIMIT)


# ==================== VALUE PREDICATES ====================

def is_truthy(value: Any) -> bool:
  """
  Lox truthiness

  Only nil and false are falsy; 0 and "" are truthy.
  """
  if value is None:
    return False
  if isinstance(value, bool):
    return value
  return True


def is_number(value: Any) -> bool:
  """True for Lox numbers (bool is not a number even though Python says so)"""
  return isinstance(value, float) and not isinstance(value, bool)


def is_equal(a: Any, b: Any) -> bool:
  """
  Lox equality

  nil equals only nil; booleans, numbers and strings compare by value within
  their own kind; callables and instances compare by identity.
  """
  if a is None or b is None:
    return a is b
  if isinstance(a, bool) or isinstance(b, bool):
    return a is b
  if is_number(a) and is_number(b):
    return a == b
  if isinstance(a, str) and isinstance(b, str):
    return a == b
  return a is b


# ==================== STRINGIFICATION ====================

def stringify_number(value: float) -> str:
  """Textual form of a number: integral values drop their trailing '.0'"""
  if math.isnan(value):
    return "nan"
  if math.isinf(value):
    return "inf" if value > 0 else "-inf"
  text = repr(value)
  if text.endswith(".0"):
    text = text[:-2]
  return text


def stringify(value: Any) -> str:
  """Textual form of any Lox value, as produced by print"""
  if value is None:
    return "nil"
  if isinstance(value, bool):
    return "true" if value else "false"
  if is_number(value):
    return stringify_number(value)
  return str(value)


# ==================== OPERAND CHECKS ====================

def check_number_operand(operator: Any, operand: Any) -> None:
  """Raise unless the unary operand is a number"""
  if not is_number(operand):
    raise LoxRuntimeError(operator, "Operand must be a number.")


def check_number_operands(operator: Any, left: Any, right: Any) -> None:
  """Raise unless both binary operands are numbers"""
  if not (is_number(left) and is_number(right)):
    raise LoxRuntimeError(operator, "Operands must be numbers.")


def divide(left: float, right: float) -> float:
  """IEEE-754 division: x/0 is +-inf, 0/0 is nan"""
  if right == 0.0:
    if left == 0.0 or math.isnan(left):
      return math.nan
    # Sign of a zero divisor matters: 1/-0 is -inf
    return math.copysign(math.inf, left) * math.copysign(1.0, right)
  return left / right


def add(operator: Any, left: Any, right: Any) -> Any:
  """
  The '+' operator

  Number + Number sums, String + String concatenates, and a String mixed with
  a Number concatenates with the number's textual form.
  """
  if is_number(left) and is_number(right):
    return left + right
  if isinstance(left, str) and isinstance(right, str):
    return left + right
  if isinstance(left, str) and is_number(right):
    return left + stringify_number(right)
  if is_number(left) and isinstance(right, str):
    return stringify_number(left) + right
  raise LoxRuntimeError(operator, "Operands must be two numbers or two strings.")
