"""
Lox Interpreter - tree-walking evaluator
Statements produce a Completion (normal, or returned-with-value) instead of
unwinding through exceptions; runtime errors are LoxRuntimeError
"""

import sys
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, TextIO

from callables import LoxCallable, LoxFunction
from environment import Environment
from error_handling import LoxRuntimeError, format_runtime_error
from stdlib import create_globals, is_equal, is_truthy, stringify
from syntax import (
  Assign, Binary, Block, Call, Expr, Expression, Function, Grouping, If, Literal, Logical,
  Print, Return, Stmt, Unary, Var, Variable, While,
)
from tokens import TokenType
from utilities import (
  BINARY_OPERATORS,
  arity_error,
  check_number_operand,
  not_callable_error,
)


# ============================================================================
# COMPLETIONS
# ============================================================================

@dataclass(frozen=True)
class Completion:
  """How a statement finished: normally, or by `return` carrying a value"""
  returned: bool = False
  value: Any = None


NORMAL = Completion()


def returned(value: Any) -> Completion:
  return Completion(True, value)


# ============================================================================
# INTERPRETER
# ============================================================================

class Interpreter:
  """Evaluates statements against a persistent global environment"""

  def __init__(self, debug: bool = False, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None):
    self.debug = debug
    self._stdout = stdout
    self._stderr = stderr
    self.globals = create_globals()
    self.environment = self.globals

  @property
  def stdout(self) -> TextIO:
    return self._stdout if self._stdout is not None else sys.stdout

  @property
  def stderr(self) -> TextIO:
    return self._stderr if self._stderr is not None else sys.stderr

  def interpret(self, statements: Sequence[Stmt]) -> Optional[LoxRuntimeError]:
    """
    Execute statements; the first runtime error is reported and stops the run.

    Returns:
      The runtime error that aborted execution, or None
    """
    try:
      for statement in statements:
        self.execute(statement)
    except LoxRuntimeError as error:
      print(format_runtime_error(error), file=self.stderr)
      return error
    return None

  # --------------------------------------------------------------------------
  # Statements
  # --------------------------------------------------------------------------

  def execute(self, stmt: Stmt) -> Completion:
    if self.debug:
      print(f"Executing {type(stmt).__name__}", file=self.stderr)

    if isinstance(stmt, Expression):
      self.evaluate(stmt.expression)
      return NORMAL
    elif isinstance(stmt, Print):
      value = self.evaluate(stmt.expression)
      self.stdout.write(stringify(value) + "\n")
      return NORMAL
    elif isinstance(stmt, Var):
      value = None
      if stmt.initializer is not None:
        value = self.evaluate(stmt.initializer)
      self.environment.define(stmt.name.lexeme, value)
      return NORMAL
    elif isinstance(stmt, Block):
      return self.execute_block(stmt.statements, Environment(self.environment))
    elif isinstance(stmt, If):
      if is_truthy(self.evaluate(stmt.condition)):
        return self.execute(stmt.then_branch)
      elif stmt.else_branch is not None:
        return self.execute(stmt.else_branch)
      return NORMAL
    elif isinstance(stmt, While):
      while is_truthy(self.evaluate(stmt.condition)):
        completion = self.execute(stmt.body)
        if completion.returned:
          return completion
      return NORMAL
    elif isinstance(stmt, Function):
      # The closure is the environment active when the declaration runs,
      # which also holds the function's own name (recursion)
      function = LoxFunction(stmt, self.environment)
      self.environment.define(stmt.name.lexeme, function)
      return NORMAL
    elif isinstance(stmt, Return):
      value = None
      if stmt.value is not None:
        value = self.evaluate(stmt.value)
      return returned(value)
    raise TypeError(f"Unknown statement node: {type(stmt).__name__}")

  def execute_block(self, statements: Sequence[Stmt], environment: Environment) -> Completion:
    """Run statements in the given environment, restoring the current one on every exit"""
    previous = self.environment
    try:
      self.environment = environment
      for statement in statements:
        completion = self.execute(statement)
        if completion.returned:
          return completion
      return NORMAL
    finally:
      self.environment = previous

  # --------------------------------------------------------------------------
  # Expressions
  # --------------------------------------------------------------------------

  def evaluate(self, expr: Expr) -> Any:
    if isinstance(expr, Literal):
      return expr.value
    elif isinstance(expr, Grouping):
      return self.evaluate(expr.expression)
    elif isinstance(expr, Unary):
      return self._eval_unary(expr)
    elif isinstance(expr, Binary):
      return self._eval_binary(expr)
    elif isinstance(expr, Logical):
      return self._eval_logical(expr)
    elif isinstance(expr, Variable):
      return self.environment.get(expr.name)
    elif isinstance(expr, Assign):
      value = self.evaluate(expr.value)
      self.environment.assign(expr.name, value)
      return value
    elif isinstance(expr, Call):
      return self._eval_call(expr)
    raise TypeError(f"Unknown expression node: {type(expr).__name__}")

  def _eval_unary(self, expr: Unary) -> Any:
    right = self.evaluate(expr.right)

    if expr.operator.type == TokenType.BANG:
      return not is_truthy(right)
    elif expr.operator.type == TokenType.MINUS:
      check_number_operand(expr.operator, right)
      return -right
    raise TypeError(f"Unknown unary operator: {expr.operator.lexeme}")

  def _eval_binary(self, expr: Binary) -> Any:
    left = self.evaluate(expr.left)
    right = self.evaluate(expr.right)
    op_type = expr.operator.type

    if op_type == TokenType.EQUAL_EQUAL:
      return is_equal(left, right)
    elif op_type == TokenType.BANG_EQUAL:
      return not is_equal(left, right)
    elif op_type in BINARY_OPERATORS:
      return BINARY_OPERATORS[op_type](expr.operator, left, right)
    raise TypeError(f"Unknown binary operator: {expr.operator.lexeme}")

  def _eval_logical(self, expr: Logical) -> Any:
    left = self.evaluate(expr.left)

    if expr.operator.type == TokenType.OR:
      if is_truthy(left):
        return left
    elif not is_truthy(left):
      return left

    return self.evaluate(expr.right)

  def _eval_call(self, expr: Call) -> Any:
    callee = self.evaluate(expr.callee)
    arguments: List[Any] = [self.evaluate(argument) for argument in expr.arguments]

    if not isinstance(callee, LoxCallable):
      raise not_callable_error(expr.paren)
    if len(arguments) != callee.arity():
      raise arity_error(expr.paren, callee.arity(), len(arguments))

    return callee.call(self, arguments)


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False, stdout: Optional[TextIO] = None,
                       stderr: Optional[TextIO] = None) -> Interpreter:
  """Factory function returning an interpreter"""
  return Interpreter(debug=debug, stdout=stdout, stderr=stderr)


def create_debug_interpreter(stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None) -> Interpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True, stdout=stdout, stderr=stderr)


def interpret(statements: Sequence[Stmt], interpreter: Interpreter) -> Optional[LoxRuntimeError]:
  """Run statements on an interpreter instance"""
  return interpreter.interpret(statements)
