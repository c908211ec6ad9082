"""
Arith Standard Library
Operator implementations over the single integer value type, and the print sink
"""

from typing import Callable, Dict, TextIO
import operator

from error_handling import DivisionByZero
from utilities import (
  COMPLEMENT_BITS,
  binary_arithmetic_op,
  binary_comparison_op,
  binary_logical_op,
  logical_and,
  logical_or,
  truncating_div,
  wrap_int
)


# ============================================================================
# ARITHMETIC
# ============================================================================

arith_add = binary_arithmetic_op(operator.add)
arith_sub = binary_arithmetic_op(operator.sub)
arith_mul = binary_arithmetic_op(operator.mul)


def arith_div(x: int, y: int) -> int:
  """Integer division truncating toward zero"""
  if y == 0:
    raise DivisionByZero()
  return wrap_int(truncating_div(x, y))


def arith_negate(x: int) -> int:
  return wrap_int(-x)


# ============================================================================
# BITWISE
# ============================================================================

arith_and = binary_arithmetic_op(operator.and_)
arith_or = binary_arithmetic_op(operator.or_)
arith_xor = binary_arithmetic_op(operator.xor)


def arith_complement(x: int) -> int:
  """Flip every bit of the low COMPLEMENT_BITS bits; the result is unsigned

  arith_complement(0) -> 4294967295, arith_complement(-1) -> 0
  """
  return ~x & ((1 << COMPLEMENT_BITS) - 1)


# ============================================================================
# COMPARISON AND LOGIC
# ============================================================================

arith_eq = binary_comparison_op(operator.eq)
arith_ne = binary_comparison_op(operator.ne)
arith_lt = binary_comparison_op(operator.lt)
arith_le = binary_comparison_op(operator.le)
arith_gt = binary_comparison_op(operator.gt)
arith_ge = binary_comparison_op(operator.ge)

arith_land = binary_logical_op(logical_and)
arith_lor = binary_logical_op(logical_or)


# ============================================================================
# OUTPUT
# ============================================================================

def arith_println(value: int, stream: TextIO) -> None:
  """Write one value as a decimal line"""
  print(value, file=stream, flush=True)


# ============================================================================
# OPERATOR TABLES
# ============================================================================

BUILTIN_OPERATORS: Dict[str, Callable[[int, int], int]] = {
    '+': arith_add,
    '-': arith_sub,
    '*': arith_mul,
    '/': arith_div,
    '&': arith_and,
    '|': arith_or,
    '^': arith_xor,
    '==': arith_eq,
    '!=': arith_ne,
    '<': arith_lt,
    '<=': arith_le,
    '>': arith_gt,
    '>=': arith_ge,
    '&&': arith_land,
    '||': arith_lor,
}

# Compound assignment: read, combine, write back
COMPOUND_ASSIGNMENT_OPERATORS: Dict[str, Callable[[int, int], int]] = {
    '+=': arith_add,
    '-=': arith_sub,
    '*=': arith_mul,
    '/=': arith_div,
    '&=': arith_and,
    '|=': arith_or,
    '^=': arith_xor,
}

PURE_UNARY_OPERATORS: Dict[str, Callable[[int], int]] = {
    '~': arith_complement,
    '-': arith_negate,
}

# Increment/decrement: delta written back through the environment
STEP_OPERATORS: Dict[str, int] = {
    '++': 1,
    '--': -1,
}
