"""
Arith abstract syntax tree
A closed set of immutable statement and expression nodes
"""

from typing import List, Optional, Tuple
from dataclasses import dataclass, field, fields


@dataclass(frozen=True)
class SourceSpan:
  """Source location information for diagnostics"""
  filename: str
  start_line: int
  start_col: int
  end_line: int
  end_col: int
  text: str = ""

  def __str__(self) -> str:
    if self.start_line == self.end_line:
      return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_col}"
    return f"{self.filename}:{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


# ============================================================================
# BASE CLASSES
# ============================================================================

class Node:
  """Base class for all AST nodes"""
  __slots__ = ()


class Stmt(Node):
  """Statement: executed for its control-flow and side effects"""
  __slots__ = ()


class Expr(Node):
  """Expression: evaluated to an integer value"""
  __slots__ = ()


# ============================================================================
# STATEMENTS
# ============================================================================

@dataclass(frozen=True)
class EmptyStatement(Stmt):
  pass


@dataclass(frozen=True)
class Block(Stmt):
  statements: Tuple[Stmt, ...] = ()


@dataclass(frozen=True)
class If(Stmt):
  condition: Expr
  then_branch: Stmt


@dataclass(frozen=True)
class IfElse(If):
  else_branch: Stmt


@dataclass(frozen=True)
class While(Stmt):
  condition: Expr
  body: Stmt


@dataclass(frozen=True)
class DoWhile(Stmt):
  body: Stmt
  condition: Expr


@dataclass(frozen=True)
class For(Stmt):
  init: Stmt
  condition: Expr
  step: Expr
  body: Stmt


@dataclass(frozen=True)
class ExpressionStatement(Stmt):
  expressions: Tuple[Expr, ...]


@dataclass(frozen=True)
class Print(Stmt):
  expression: Expr


# ============================================================================
# EXPRESSIONS
# ============================================================================

# Plain assignment; the only operator whose left side is never evaluated
ASSIGNMENT_OPERATOR = '='


@dataclass(frozen=True)
class NumberLiteral(Expr):
  value: int


@dataclass(frozen=True)
class Variable(Expr):
  name: str
  span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class UnaryOp(Expr):
  op: str
  operand: Expr
  span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class BinaryOp(Expr):
  op: str
  left: Expr
  right: Expr
  span: Optional[SourceSpan] = field(default=None, compare=False, repr=False)


# ============================================================================
# DEBUG RENDERING
# ============================================================================

def _children(node: Node) -> List[Tuple[str, object]]:
  return [(f.name, getattr(node, f.name)) for f in fields(node) if f.name != 'span']


def pretty_print_ast(node: Node, indent: int = 0) -> str:
  """Render an AST as an indented tree"""
  prefix = "  " * indent
  if isinstance(node, NumberLiteral):
    return f"{prefix}NumberLiteral({node.value})"
  if isinstance(node, Variable):
    return f"{prefix}Variable({node.name})"

  header = type(node).__name__
  if isinstance(node, (UnaryOp, BinaryOp)):
    header += f"({node.op})"
  lines = [f"{prefix}{header}"]

  for name, value in _children(node):
    if name == 'op':
      continue
    if isinstance(value, tuple):
      lines.append(f"{prefix}  {name}:")
      lines.extend(pretty_print_ast(child, indent + 2) for child in value)
    elif isinstance(value, Node):
      lines.append(f"{prefix}  {name}:")
      lines.append(pretty_print_ast(value, indent + 2))
  return '\n'.join(lines)
