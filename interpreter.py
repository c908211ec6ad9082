"""
Arith Interpreter
Direct tree-walking evaluation of statement/expression ASTs over a scope stack
"""

from typing import Dict, List, Optional, TextIO
import sys

from ast_nodes import (
  Stmt, Expr, EmptyStatement, Block, If, IfElse, While, DoWhile, For,
  ExpressionStatement, Print, NumberLiteral, Variable, UnaryOp, BinaryOp,
  ASSIGNMENT_OPERATOR
)
from error_handling import (
  ArithRuntimeError,
  DivisionByZero,
  ExpectedVariable,
  MalformedNode,
  ScopeUnderflow,
  UndefinedVariable
)
from stdlib import (
  BUILTIN_OPERATORS,
  COMPOUND_ASSIGNMENT_OPERATORS,
  PURE_UNARY_OPERATORS,
  STEP_OPERATORS,
  arith_println
)
from utilities import format_frame, to_boolean, wrap_int


# ============================================================================
# DATA STRUCTURES
# ============================================================================

class Environment:
  """Stack of scope frames, innermost last.

  frames[0] is the program-global frame. It exists from construction and is
  never popped, so lookups and assignments always have a frame to work on.
  """

  def __init__(self):
    self.frames: List[Dict[str, int]] = [{}]

  def push_scope(self) -> None:
    self.frames.append({})

  def pop_scope(self) -> Dict[str, int]:
    """Remove and return the innermost frame"""
    if len(self.frames) <= 1:
      raise ScopeUnderflow()
    return self.frames.pop()

  def _frame_defining(self, name: str) -> Optional[Dict[str, int]]:
    for frame in reversed(self.frames):
      if name in frame:
        return frame
    return None

  def lookup(self, name: str) -> int:
    """Value of the nearest binding of name"""
    frame = self._frame_defining(name)
    if frame is None:
      raise UndefinedVariable(name)
    return frame[name]

  def assign(self, name: str, value: int) -> None:
    """Update the nearest existing binding, or declare name in the innermost frame"""
    frame = self._frame_defining(name)
    if frame is None:
      frame = self.frames[-1]
    frame[name] = value

  def is_defined(self, name: str) -> bool:
    return self._frame_defining(name) is not None

  @property
  def depth(self) -> int:
    return len(self.frames)

  def snapshot(self) -> List[Dict[str, int]]:
    """Copies of all frames, outermost first"""
    return [dict(frame) for frame in self.frames]

  def reset(self) -> None:
    """Forget every binding and return to a lone, empty global frame"""
    self.frames = [{}]

  def __repr__(self) -> str:
    rendered = " | ".join(f"{{{format_frame(frame)}}}" for frame in self.frames)
    return f"Environment({rendered})"


def make_execution_context(debug: bool = False, output: Optional[TextIO] = None) -> Dict:
  """Create the per-run configuration threaded through evaluation"""
  return {
      'debug': debug,
      # None means whatever sys.stdout is at print time
      'output': output
  }


def _trace(context: Dict, message: str) -> None:
  if context.get('debug'):
    print(message, file=sys.stderr)


def enter_scope(env: Environment, context: Dict, owner: str) -> None:
  env.push_scope()
  _trace(context, f"Entering {owner} scope (depth {env.depth})")


def leave_scope(env: Environment, context: Dict, owner: str) -> Dict[str, int]:
  frame = env.pop_scope()
  _trace(context, f"Leaving {owner} scope: {{{format_frame(frame)}}}")
  return frame


# ============================================================================
# STATEMENT EVALUATION
# ============================================================================

def exec_statement(node: Stmt, env: Environment, context: Optional[Dict] = None) -> None:
  """Execute one statement for its effects on env and the output stream"""
  if context is None:
    context = make_execution_context()

  _trace(context, f"Executing: {type(node).__name__}")

  try:
    if isinstance(node, EmptyStatement):
      return
    elif isinstance(node, Block):
      exec_block(node, env, context)
    elif isinstance(node, If):
      exec_if(node, env, context)
    elif isinstance(node, While):
      exec_while(node, env, context)
    elif isinstance(node, DoWhile):
      exec_do_while(node, env, context)
    elif isinstance(node, For):
      exec_for(node, env, context)
    elif isinstance(node, ExpressionStatement):
      exec_expression_statement(node, env, context)
    elif isinstance(node, Print):
      exec_print(node, env, context)
    else:
      raise MalformedNode(node, "statement")
  except ArithRuntimeError as e:
    # Innermost handler wins: capture the frames before enclosing scopes unwind
    if e.env_snapshot is None:
      e.env_snapshot = env.snapshot()
    raise


def exec_block(node: Block, env: Environment, context: Dict) -> None:
  enter_scope(env, context, "block")
  try:
    for statement in node.statements:
      exec_statement(statement, env, context)
  finally:
    leave_scope(env, context, "block")


def exec_if(node: If, env: Environment, context: Dict) -> None:
  """Condition and the taken branch share one frame"""
  enter_scope(env, context, "if")
  try:
    if to_boolean(eval_expression(node.condition, env, context)):
      exec_statement(node.then_branch, env, context)
    elif isinstance(node, IfElse):
      exec_statement(node.else_branch, env, context)
  finally:
    leave_scope(env, context, "if")


def exec_while(node: While, env: Environment, context: Dict) -> None:
  """One frame for the whole loop; bindings persist across iterations"""
  enter_scope(env, context, "while")
  try:
    while to_boolean(eval_expression(node.condition, env, context)):
      exec_statement(node.body, env, context)
  finally:
    leave_scope(env, context, "while")


def exec_do_while(node: DoWhile, env: Environment, context: Dict) -> None:
  """Body runs at least once; one frame for the whole loop, popped on exit"""
  enter_scope(env, context, "do-while")
  try:
    exec_statement(node.body, env, context)
    while to_boolean(eval_expression(node.condition, env, context)):
      exec_statement(node.body, env, context)
  finally:
    leave_scope(env, context, "do-while")


def exec_for(node: For, env: Environment, context: Dict) -> None:
  """init, condition, step and body all share one frame"""
  enter_scope(env, context, "for")
  try:
    exec_statement(node.init, env, context)
    while to_boolean(eval_expression(node.condition, env, context)):
      exec_statement(node.body, env, context)
      eval_expression(node.step, env, context)
  finally:
    leave_scope(env, context, "for")


def exec_expression_statement(node: ExpressionStatement, env: Environment, context: Dict) -> None:
  for expression in node.expressions:
    eval_expression(expression, env, context)


def exec_print(node: Print, env: Environment, context: Dict) -> None:
  value = eval_expression(node.expression, env, context)
  stream = context.get('output')
  arith_println(value, sys.stdout if stream is None else stream)


# ============================================================================
# EXPRESSION EVALUATION
# ============================================================================

def eval_expression(node: Expr, env: Environment, context: Optional[Dict] = None) -> int:
  """Evaluate an expression to an integer, applying any assignments it makes"""
  if context is None:
    context = make_execution_context()

  _trace(context, f"Evaluating: {type(node).__name__}")

  if isinstance(node, NumberLiteral):
    return node.value
  elif isinstance(node, Variable):
    return eval_variable(node, env)
  elif isinstance(node, UnaryOp):
    return eval_unary(node, env, context)
  elif isinstance(node, BinaryOp):
    return eval_binary(node, env, context)
  raise MalformedNode(node, "expression")


def eval_variable(node: Variable, env: Environment) -> int:
  try:
    return env.lookup(node.name)
  except UndefinedVariable:
    raise UndefinedVariable(node.name, node.span) from None


def eval_unary(node: UnaryOp, env: Environment, context: Dict) -> int:
  if node.op in STEP_OPERATORS:
    return eval_step(node, env, context)

  op_func = PURE_UNARY_OPERATORS.get(node.op)
  if op_func is None:
    raise MalformedNode(node, "unary operator")
  return op_func(eval_expression(node.operand, env, context))


def eval_step(node: UnaryOp, env: Environment, context: Dict) -> int:
  """++/--: write current +/- 1 back to the variable and yield the new value"""
  target = node.operand
  if not isinstance(target, Variable):
    raise ExpectedVariable(node.op, node.span)

  new_value = wrap_int(eval_variable(target, env) + STEP_OPERATORS[node.op])
  env.assign(target.name, new_value)
  return new_value


def eval_binary(node: BinaryOp, env: Environment, context: Dict) -> int:
  """Right operand first, then left; '=' never evaluates its left side"""
  if node.op == ASSIGNMENT_OPERATOR:
    return eval_assignment(node, env, context)

  right = eval_expression(node.right, env, context)
  left = eval_expression(node.left, env, context)

  if node.op in BUILTIN_OPERATORS:
    return _apply(node, BUILTIN_OPERATORS[node.op], left, right)
  if node.op in COMPOUND_ASSIGNMENT_OPERATORS:
    return eval_compound_assignment(node, left, right, env)
  raise MalformedNode(node, "binary operator")


def eval_assignment(node: BinaryOp, env: Environment, context: Dict) -> int:
  value = eval_expression(node.right, env, context)
  if not isinstance(node.left, Variable):
    raise ExpectedVariable(node.op, node.span)
  env.assign(node.left.name, value)
  return value


def eval_compound_assignment(node: BinaryOp, left: int, right: int, env: Environment) -> int:
  """x op= y with both sides already evaluated: combine and write back"""
  result = _apply(node, COMPOUND_ASSIGNMENT_OPERATORS[node.op], left, right)
  if not isinstance(node.left, Variable):
    raise ExpectedVariable(node.op, node.span)
  env.assign(node.left.name, result)
  return result


def _apply(node: BinaryOp, op_func, left: int, right: int) -> int:
  try:
    return op_func(left, right)
  except DivisionByZero:
    raise DivisionByZero(node.op, node.span) from None


# ============================================================================
# PROGRAM EVALUATION
# ============================================================================

def execute_program(statements: List[Stmt], env: Optional[Environment] = None,
                    context: Optional[Dict] = None) -> Environment:
  """
  Run a program and return the environment it leaves behind.
  Empty statements are dropped from the top level once, before anything runs.
  Any ArithRuntimeError aborts the whole program and propagates to the caller.
  """
  if context is None:
    context = make_execution_context()
  if env is None:
    env = Environment()

  program = [statement for statement in statements if not isinstance(statement, EmptyStatement)]
  _trace(context, f"Running {len(program)} statements")

  for statement in program:
    exec_statement(statement, env, context)

  return env


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

class ArithInterpreter:
  """Interpreter bound to one execution context and one session environment"""

  def __init__(self, debug: bool = False, output: Optional[TextIO] = None):
    self.context = make_execution_context(debug, output)
    self.environment = Environment()

  def interpret_program(self, statements: List[Stmt]) -> Environment:
    """Run a whole program in a fresh environment"""
    return execute_program(statements, Environment(), self.context)

  def interpret_session(self, statements: List[Stmt]) -> Environment:
    """Run statements against the session environment (REPL lines)"""
    return execute_program(statements, self.environment, self.context)

  def evaluate(self, expression: Expr) -> int:
    """Evaluate one expression against the session environment"""
    return eval_expression(expression, self.environment, self.context)


def create_interpreter(debug: bool = False, output: Optional[TextIO] = None) -> ArithInterpreter:
  """Factory function returning an interpreter"""
  return ArithInterpreter(debug=debug, output=output)


def create_debug_interpreter(output: Optional[TextIO] = None) -> ArithInterpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True, output=output)
