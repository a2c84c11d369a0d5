"""
Lox syntax tree
Expression and statement nodes produced by the parser and consumed by the interpreter
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from tokens import Token


# ============================================================================
# EXPRESSIONS
# ============================================================================

@dataclass(frozen=True)
class Literal:
  value: Any


@dataclass(frozen=True)
class Grouping:
  expression: "Expr"


@dataclass(frozen=True)
class Unary:
  operator: Token
  right: "Expr"


@dataclass(frozen=True)
class Binary:
  left: "Expr"
  operator: Token
  right: "Expr"


@dataclass(frozen=True)
class Logical:
  """`and` / `or`; kept apart from Binary because the right side is conditional"""
  left: "Expr"
  operator: Token
  right: "Expr"


@dataclass(frozen=True)
class Variable:
  name: Token


@dataclass(frozen=True)
class Assign:
  name: Token
  value: "Expr"


@dataclass(frozen=True)
class Call:
  callee: "Expr"
  paren: Token  # closing paren, used to locate runtime errors
  arguments: Tuple["Expr", ...]


Expr = Union[Literal, Grouping, Unary, Binary, Logical, Variable, Assign, Call]


# ============================================================================
# STATEMENTS
# ============================================================================

@dataclass(frozen=True)
class Expression:
  expression: Expr


@dataclass(frozen=True)
class Print:
  expression: Expr


@dataclass(frozen=True)
class Var:
  name: Token
  initializer: Optional[Expr] = None


@dataclass(frozen=True)
class Block:
  statements: Tuple["Stmt", ...]


@dataclass(frozen=True)
class If:
  condition: Expr
  then_branch: "Stmt"
  else_branch: Optional["Stmt"] = None


@dataclass(frozen=True)
class While:
  condition: Expr
  body: "Stmt"


@dataclass(frozen=True)
class Function:
  name: Token
  params: Tuple[Token, ...]
  body: Tuple["Stmt", ...]


@dataclass(frozen=True)
class Return:
  keyword: Token
  value: Optional[Expr] = None


Stmt = Union[Expression, Print, Var, Block, If, While, Function, Return]
