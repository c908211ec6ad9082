"""
Utilities module for the Arith interpreter
Integer model helpers and operator factories shared by stdlib and interpreter
"""

from typing import Any, Callable, Optional


# ==================== INTEGER MODEL ====================

# Width of the single value type (two's complement)
INT_BITS = 64

# Width the bitwise complement operator flips
COMPLEMENT_BITS = 32

INT_MIN = -(1 << (INT_BITS - 1))
INT_MAX = (1 << (INT_BITS - 1)) - 1


def wrap_int(value: int) -> int:
  """
  Wrap an arbitrary Python int into the signed INT_BITS range

  Examples:
    wrap_int(INT_MAX + 1) -> INT_MIN
    wrap_int(-1) -> -1
  """
  mask = (1 << INT_BITS) - 1
  value &= mask
  if value > INT_MAX:
    value -= 1 << INT_BITS
  return value


def to_boolean(value: Optional[int]) -> bool:
  """Truthiness: non-zero is true, an absent value is false"""
  return value is not None and value != 0


def from_boolean(flag: bool) -> int:
  """Encode a Python bool as the language's 1/0"""
  return 1 if flag else 0


def truncating_div(x: int, y: int) -> int:
  """Integer division rounding toward zero (C semantics, not Python floor)"""
  quotient = abs(x) // abs(y)
  if (x < 0) != (y < 0):
    quotient = -quotient
  return quotient


# ==================== OPERATOR FACTORIES ====================

def binary_arithmetic_op(op: Callable[[int, int], int]) -> Callable[[int, int], int]:
  """
  Factory for wrapping arithmetic operations

  Args:
    op: Python operator function (e.g., operator.add)

  Returns:
    Function computing op(x, y) wrapped into the value range

  Examples:
    arith_add = binary_arithmetic_op(operator.add)
    arith_add(INT_MAX, 1) -> INT_MIN
  """
  def arithmetic(x: int, y: int) -> int:
    return wrap_int(op(x, y))

  arithmetic.__name__ = getattr(op, '__name__', 'arithmetic')
  return arithmetic


def binary_comparison_op(op: Callable[[Any, Any], bool]) -> Callable[[int, int], int]:
  """
  Factory for comparisons producing 1 or 0

  Examples:
    arith_lt = binary_comparison_op(operator.lt)
    arith_lt(1, 2) -> 1
  """
  def comparison(x: int, y: int) -> int:
    return from_boolean(op(x, y))

  comparison.__name__ = getattr(op, '__name__', 'comparison')
  return comparison


def binary_logical_op(op: Callable[[bool, bool], bool]) -> Callable[[int, int], int]:
  """
  Factory for logical connectives over truthiness

  Both operands are already evaluated by the caller; nothing short-circuits.
  """
  def logical(x: int, y: int) -> int:
    return from_boolean(op(to_boolean(x), to_boolean(y)))

  return logical


def logical_and(x: bool, y: bool) -> bool:
  return x and y


def logical_or(x: bool, y: bool) -> bool:
  return x or y


def format_frame(frame: dict, limit: int = 60) -> str:
  """Render one scope frame as 'a = 1, b = 2', truncated to limit chars"""
  text = ", ".join(f"{name} = {value}" for name, value in frame.items())
  if len(text) > limit:
    text = text[:limit - 3] + "..."
  return text

