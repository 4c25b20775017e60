"""
Lox runtime environments
Chained name -> value frames with explicit parent links
"""

from typing import Any, Dict, Optional, Set

from error_handling import LoxRuntimeError


class _Unassigned:
  """Marker for `var x;` declarations that carry no value yet"""

  def __repr__(self) -> str:
    return "UNASSIGNED"


UNASSIGNED = _Unassigned()


class Environment:
  """
  One scope frame.

  A name lives either in `values` (assigned, possibly to nil) or in
  `unassigned` (declared without an initializer), never in both.
  Frames are shared by aliasing: a closure and the block that created it
  see the same frame object.
  """

  def __init__(self, enclosing: Optional['Environment'] = None):
    self.enclosing = enclosing
    self.values: Dict[str, Any] = {}
    self.unassigned: Set[str] = set()

  def define(self, name: str, value: Any = UNASSIGNED) -> None:
    """Declare `name` in this frame; without a value it stays unassigned"""
    if value is UNASSIGNED:
      self.values.pop(name, None)
      self.unassigned.add(name)
    else:
      self.unassigned.discard(name)
      self.values[name] = value

  def ancestor(self, distance: int) -> 'Environment':
    environment = self
    for _ in range(distance):
      environment = environment.enclosing
    return environment

  def get(self, name: Any) -> Any:
    """Look `name` up through the chain"""
    environment = self
    while environment is not None:
      if name.lexeme in environment.values:
        return environment.values[name.lexeme]
      if name.lexeme in environment.unassigned:
        raise LoxRuntimeError(name, f"Unassigned variable '{name.lexeme}'.")
      environment = environment.enclosing

    raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

  def assign(self, name: Any, value: Any) -> None:
    """Overwrite an existing binding; never creates one"""
    environment = self
    while environment is not None:
      if name.lexeme in environment.values:
        environment.values[name.lexeme] = value
        return
      if name.lexeme in environment.unassigned:
        environment.unassigned.discard(name.lexeme)
        environment.values[name.lexeme] = value
        return
      environment = environment.enclosing

    raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

  def get_at(self, distance: int, name: str, token: Any = None) -> Any:
    """Local-only lookup in the frame `distance` links out"""
    environment = self.ancestor(distance)
    if name in environment.unassigned:
      raise LoxRuntimeError(token, f"Unassigned variable '{name}'.")
    return environment.values.get(name)

  def assign_at(self, distance: int, name: Any, value: Any) -> None:
    environment = self.ancestor(distance)
    environment.unassigned.discard(name.lexeme)
    environment.values[name.lexeme] = value

  def __repr__(self) -> str:
    depth = 0
    environment = self.enclosing
    while environment is not None:
      depth += 1
      environment = environment.enclosing
    return f"<Environment depth={depth} names={sorted(self.values) + sorted(self.unassigned)}>"
