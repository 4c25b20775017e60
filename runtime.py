"""
Lox runtime object model
Callables (user functions, classes), instances and the return signal
"""

from typing import Any, Dict, List, Optional

from ast_nodes import Function as FunctionDecl
from environment import Environment
from error_handling import LoxRuntimeError


class ReturnSignal:
  """
  Outcome of executing a `return` statement.

  Statement execution hands this back up the call chain instead of raising;
  only LoxFunction.call consumes it.
  """
  __slots__ = ('value',)

  def __init__(self, value: Any = None):
    self.value = value

  def __repr__(self) -> str:
    return f"ReturnSignal({self.value!r})"


class LoxCallable:
  """Anything that can appear left of a call's parentheses"""

  def arity(self) -> int:
    raise NotImplementedError

  def call(self, interpreter: Any, arguments: List[Any]) -> Any:
    raise NotImplementedError


class LoxFunction(LoxCallable):
  """A user-defined function or method closed over its defining environment"""

  def __init__(self, declaration: FunctionDecl, closure: Environment, is_initializer: bool = False):
    self.declaration = declaration
    self.closure = closure
    self.is_initializer = is_initializer

  @property
  def name(self) -> str:
    return self.declaration.name.lexeme

  def bind(self, instance: Any) -> 'LoxFunction':
    """Same declaration, closure wrapped in one frame holding `this`"""
    environment = Environment(self.closure)
    environment.define("this", instance)
    return LoxFunction(self.declaration, environment, self.is_initializer)

  def arity(self) -> int:
    return len(self.declaration.params)

  def call(self, interpreter: Any, arguments: List[Any]) -> Any:
    environment = Environment(self.closure)
    for param, argument in zip(self.declaration.params, arguments):
      environment.define(param.lexeme, argument)

    outcome = interpreter.execute_block(self.declaration.body, environment)

    # init() always yields the instance, even after a bare `return;`
    if self.is_initializer:
      return self.closure.get_at(0, "this")
    if outcome is not None:
      return outcome.value
    return None

  def __str__(self) -> str:
    return f"<fn {self.name}>"

  __repr__ = __str__


class LoxInstance:
  """
  An object with open fields.

  `klass` is None only for the metaclass instance that hosts a class's
  static methods.
  """

  def __init__(self, klass: Optional['LoxClass'] = None, fields: Optional[Dict[str, Any]] = None):
    self.klass = klass
    self.fields: Dict[str, Any] = dict(fields or {})

  def get(self, name: Any) -> Any:
    if name.lexeme in self.fields:
      return self.fields[name.lexeme]

    if self.klass is not None:
      method = self.klass.find_method(name.lexeme)
      if method is not None:
        return method.bind(self)

    raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

  def set(self, name: Any, value: Any) -> None:
    self.fields[name.lexeme] = value

  def __str__(self) -> str:
    if self.klass is None:
      return "metaclass instance"
    return f"{self.klass.name} instance"

  __repr__ = __str__


class LoxClass(LoxCallable):
  """
  A class value.

  Calling it constructs an instance. When the class declares static methods
  it also carries `metaclass_instance`, through which property access on the
  class itself reaches those statics.
  """

  def __init__(self, name: str, superclass: Optional['LoxClass'], methods: Dict[str, LoxFunction],
               static_methods: Optional[Dict[str, LoxFunction]] = None):
    self.name = name
    self.superclass = superclass
    self.methods = methods
    self.metaclass_instance: Optional[LoxInstance] = None
    if static_methods:
      # Statics see the class itself as `this`
      bound = {method_name: method.bind(self) for method_name, method in static_methods.items()}
      self.metaclass_instance = LoxInstance(None, bound)

  def find_method(self, name: str) -> Optional[LoxFunction]:
    klass = self
    while klass is not None:
      if name in klass.methods:
        return klass.methods[name]
      klass = klass.superclass
    return None

  def call(self, interpreter: Any, arguments: List[Any]) -> Any:
    instance = LoxInstance(self)
    initializer = self.find_method("init")
    if initializer is not None:
      initializer.bind(instance).call(interpreter, arguments)
    return instance

  def arity(self) -> int:
    initializer = self.find_method("init")
    if initializer is None:
      return 0
    return initializer.arity()

  def __str__(self) -> str:
    return self.name

  __repr__ = __str__
