"""
Lox Standard Library
Value semantics shared by the interpreter (truthiness, equality, display)
and the native functions installed in the global environment
"""

import math
import time
from typing import Any

from callables import LoxCallable, NativeFunction
from environment import Environment


# ============================================================================
# VALUE SEMANTICS
# ============================================================================

def is_number(value: Any) -> bool:
  """Lox numbers are floats; a Python bool is never a number"""
  return isinstance(value, float)


def is_truthy(value: Any) -> bool:
  """nil and false are falsy, everything else (0, "") is truthy"""
  if value is None:
    return False
  if isinstance(value, bool):
    return value
  return True


def is_equal(left: Any, right: Any) -> bool:
  """Equality without coercion: values of different types are never equal"""
  if left is None or right is None:
    return left is None and right is None
  if isinstance(left, LoxCallable) or isinstance(right, LoxCallable):
    return left is right
  if type(left) is not type(right):
    return False
  return left == right


def _expand_exponent(mantissa: str, exponent: int) -> str:
  """Write mantissa * 10**exponent in positional notation"""
  sign = "-" if mantissa.startswith("-") else ""
  whole, _, fraction = mantissa.lstrip("-").partition(".")
  digits = whole + fraction
  point = len(whole) + exponent
  if point >= len(digits):
    return sign + digits + "0" * (point - len(digits))
  if point <= 0:
    return sign + "0." + "0" * -point + digits
  return sign + digits[:point] + "." + digits[point:]


def format_number(value: float) -> str:
  """
  Shortest round-trip digits, positional between 1e-6 and 1e21 and
  exponent form outside it (1e+21, 1e-7); integral numbers drop the .0
  """
  if math.isnan(value):
    return "NaN"
  if math.isinf(value):
    return "Infinity" if value > 0 else "-Infinity"
  text = repr(value)
  if "e" in text:
    mantissa, exponent = text.split("e")
    if 1e-6 <= abs(value) < 1e21:
      text = _expand_exponent(mantissa, int(exponent))
    else:
      sign = "-" if exponent.startswith("-") else "+"
      return f"{mantissa}e{sign}{exponent.lstrip('+-').lstrip('0')}"
  if text.endswith(".0"):
    text = text[:-2]
  return text


def stringify(value: Any) -> str:
  """Convert a runtime value to its display string"""
  if value is None:
    return "nil"
  elif isinstance(value, bool):
    return "true" if value else "false"
  elif isinstance(value, float):
    return format_number(value)
  elif isinstance(value, str):
    return value
  elif isinstance(value, LoxCallable):
    return str(value)
  raise TypeError(f"Not a Lox value: {value!r}")


# ============================================================================
# NATIVE FUNCTIONS
# ============================================================================

def lox_clock() -> float:
  """Wall-clock seconds, for timing scripts"""
  return time.time()


NATIVES = [
    NativeFunction("clock", 0, lox_clock),
]


def define_natives(env: Environment) -> Environment:
  """Install every native function into the given (global) environment"""
  for native in NATIVES:
    env.define(native.name, native)
  return env


def create_globals() -> Environment:
  """Create the global environment with built-in functions"""
  return define_natives(Environment())
