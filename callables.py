"""
Lox callables
User-defined functions (with their closure) and host-native functions share one interface
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, List, TYPE_CHECKING

from environment import Environment
from syntax import Function

if TYPE_CHECKING:
  from interpreter import Interpreter


class LoxCallable(ABC):
  """Anything a Lox call expression can invoke"""

  @abstractmethod
  def arity(self) -> int:
    """Exact number of arguments accepted"""

  @abstractmethod
  def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
    """Invoke with already-evaluated arguments"""

  @abstractmethod
  def __str__(self) -> str:
    """Display form used by print and diagnostics"""


class LoxFunction(LoxCallable):
  """A `func` declaration paired with the environment it was declared in"""

  def __init__(self, declaration: Function, closure: Environment):
    self.declaration = declaration
    self.closure = closure

  def arity(self) -> int:
    return len(self.declaration.params)

  def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
    # Parent is the closure, not the caller's environment
    environment = Environment(self.closure)
    for param, argument in zip(self.declaration.params, arguments):
      environment.define(param.lexeme, argument)

    if interpreter.debug:
      print(f"Calling {self}", file=interpreter.stderr)

    completion = interpreter.execute_block(self.declaration.body, environment)
    if completion.returned:
      return completion.value
    return None

  def __str__(self) -> str:
    return f"<fn {self.declaration.name.lexeme}>"

  def __repr__(self) -> str:
    return f"LoxFunction({self.declaration.name.lexeme!r})"


class NativeFunction(LoxCallable):
  """A host function exposed to Lox with a fixed arity"""

  def __init__(self, name: str, arity: int, function: Callable[..., Any]):
    self.name = name
    self._arity = arity
    self.function = function

  def arity(self) -> int:
    return self._arity

  def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
    return self.function(*arguments)

  def __str__(self) -> str:
    return "<native fn>"

  def __repr__(self) -> str:
    return f"NativeFunction({self.name!r}, {self._arity})"
