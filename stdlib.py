"""
Lox Standard Library
Native functions and the global environment they are seeded into
"""

from typing import Any, Callable, Dict, List
import time

from environment import Environment
from runtime import LoxCallable


class NativeFunction(LoxCallable):
  """A host-implemented callable exposed to Lox code"""

  def __init__(self, name: str, arity: int, fn: Callable[..., Any]):
    self.name = name
    self._arity = arity
    self.fn = fn

  def arity(self) -> int:
    return self._arity

  def call(self, interpreter: Any, arguments: List[Any]) -> Any:
    result = self.fn(*arguments)
    # Host code may hand back ints; Lox numbers are always floats
    if isinstance(result, int) and not isinstance(result, bool):
      return float(result)
    return result

  def __str__(self) -> str:
    return "<native fn>"

  __repr__ = __str__


# ============================================================================
# NATIVE FUNCTIONS
# ============================================================================

def lox_clock() -> float:
  """Wall-clock time in milliseconds"""
  return time.time() * 1000.0


NATIVES: Dict[str, NativeFunction] = {
    "clock": NativeFunction("clock", 0, lox_clock),
}


def create_globals() -> Environment:
  """A fresh global environment seeded with the native functions"""
  globals_env = Environment()
  for name, native in NATIVES.items():
    globals_env.define(name, native)
  return globals_env
