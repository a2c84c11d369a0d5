"""
Utilities module for the Lox interpreter
Operator factories and error message builders shared by the evaluator
"""

import math
import operator
from typing import Any, Callable, Dict

from error_handling import LoxRuntimeError
from stdlib import is_number
from tokens import Token, TokenType


# ==================== ERROR MESSAGE BUILDERS ====================

def operand_error(op: Token) -> LoxRuntimeError:
  """Unary operator applied to a non-number"""
  return LoxRuntimeError(op, "Operand must be a number.")


def operands_error(op: Token) -> LoxRuntimeError:
  """Binary numeric operator applied to a non-number"""
  return LoxRuntimeError(op, "Operand(s) must be a number.")


def plus_error(op: Token) -> LoxRuntimeError:
  return LoxRuntimeError(op, "Operands must be two numbers or two strings.")


def arity_error(paren: Token, expected: int, got: int) -> LoxRuntimeError:
  """
  Generate arity mismatch error

  Args:
    paren: Closing paren of the call, for the error line
    expected: Callee's arity
    got: Number of arguments supplied

  Returns:
    LoxRuntimeError with formatted message
  """
  return LoxRuntimeError(paren, f"Expected {expected} arguments but got {got}.")


def not_callable_error(paren: Token) -> LoxRuntimeError:
  return LoxRuntimeError(paren, "Can only call functions and classes.")


# ==================== VALIDATION UTILITIES ====================

def check_number_operand(op: Token, operand: Any) -> None:
  if not is_number(operand):
    raise operand_error(op)


def check_number_operands(op: Token, left: Any, right: Any) -> None:
  if not (is_number(left) and is_number(right)):
    raise operands_error(op)


# ==================== BINARY OPERATION FACTORIES ====================

def divide(left: float, right: float) -> float:
  """IEEE 754 division: dividing by zero gives an infinity or NaN"""
  if right == 0.0:
    if left == 0.0 or math.isnan(left):
      return math.nan
    sign = math.copysign(1.0, left) * math.copysign(1.0, right)
    return math.copysign(math.inf, sign)
  return left / right


def binary_arithmetic_op(op: Callable[[float, float], Any]) -> Callable[[Token, Any, Any], Any]:
  """
  Factory for binary operators that require two numbers

  Args:
    op: Python operator function (e.g., operator.sub)

  Returns:
    Function (operator_token, left, right) -> result

  Examples:
    lox_sub = binary_arithmetic_op(operator.sub)
    lox_sub(token, 3.0, 1.0) -> 2.0
  """
  def arithmetic(token: Token, left: Any, right: Any) -> Any:
    check_number_operands(token, left, right)
    return op(left, right)

  return arithmetic


def lox_add(token: Token, left: Any, right: Any) -> Any:
  """`+` adds two numbers or concatenates two strings, nothing else"""
  if is_number(left) and is_number(right):
    return left + right
  if isinstance(left, str) and isinstance(right, str):
    return left + right
  raise plus_error(token)


BINARY_OPERATORS: Dict[TokenType, Callable[[Token, Any, Any], Any]] = {
    TokenType.PLUS: lox_add,
    TokenType.MINUS: binary_arithmetic_op(operator.sub),
    TokenType.STAR: binary_arithmetic_op(operator.mul),
    TokenType.SLASH: binary_arithmetic_op(divide),
    TokenType.GREATER: binary_arithmetic_op(operator.gt),
    TokenType.GREATER_EQUAL: binary_arithmetic_op(operator.ge),
    TokenType.LESS: binary_arithmetic_op(operator.lt),
    TokenType.LESS_EQUAL: binary_arithmetic_op(operator.le),
}
