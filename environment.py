"""
Lox runtime environments
A scope maps names to values and links to its lexically enclosing scope
"""

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from error_handling import LoxRuntimeError
from tokens import Token


class Environment:
  """One scope in the chain; closures and child scopes keep their parents alive"""

  def __init__(self, enclosing: Optional["Environment"] = None):
    self.enclosing = enclosing
    self._values: Dict[str, Any] = {}

  @property
  def bindings(self) -> Mapping[str, Any]:
    """Read-only view of this scope's own bindings"""
    return MappingProxyType(self._values)

  def define(self, name: str, value: Any) -> None:
    """Bind in this scope, shadowing any outer binding"""
    self._values[name] = value

  def get(self, name: Token) -> Any:
    env = self
    while env is not None:
      if name.lexeme in env._values:
        return env._values[name.lexeme]
      env = env.enclosing
    raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

  def assign(self, name: Token, value: Any) -> None:
    """Rebind the nearest existing binding; never creates one"""
    env = self
    while env is not None:
      if name.lexeme in env._values:
        env._values[name.lexeme] = value
        return
      env = env.enclosing
    raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

  def __contains__(self, name: str) -> bool:
    env = self
    while env is not None:
      if name in env._values:
        return True
      env = env.enclosing
    return False
