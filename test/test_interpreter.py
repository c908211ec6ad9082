"""
Statement evaluation tests on hand-built ASTs
Scoping lifetime, loop shapes, program-level filtering and error abort
"""

import io

import pytest
from ast_nodes import (
  Stmt, EmptyStatement, Block, If, IfElse, While, DoWhile, For,
  ExpressionStatement, Print, NumberLiteral, Variable, UnaryOp, BinaryOp
)
from error_handling import MalformedNode, UndefinedVariable
from interpreter import (
  Environment, exec_statement, execute_program, make_execution_context,
  create_interpreter
)


def num(value):
  return NumberLiteral(value)


def var(name):
  return Variable(name)


def assign(name, expr):
  return ExpressionStatement((BinaryOp('=', var(name), expr),))


def print_(expr):
  return Print(expr)


class RecordingEnvironment(Environment):
  """Keeps a copy of every frame at the moment it is popped"""

  def __init__(self):
    super().__init__()
    self.popped = []

  def pop_scope(self):
    frame = super().pop_scope()
    self.popped.append(dict(frame))
    return frame


class TestStatements:
  """Control flow of each statement kind"""

  @pytest.fixture
  def setup(self):
    output = io.StringIO()
    return RecordingEnvironment(), make_execution_context(output=output), output

  def test_print_writes_decimal_lines(self, setup):
    env, context, output = setup
    execute_program([print_(num(42)), print_(UnaryOp('-', num(3)))], env, context)
    assert output.getvalue() == "42\n-3\n"

  def test_while_false_runs_nothing(self, setup):
    env, context, output = setup
    execute_program([While(num(0), print_(num(1)))], env, context)
    assert output.getvalue() == ""

  def test_do_while_runs_body_once(self, setup):
    env, context, output = setup
    execute_program([DoWhile(print_(num(1)), num(0))], env, context)
    assert output.getvalue() == "1\n"

  def test_do_while_scope_is_balanced(self, setup):
    """The do-while frame is popped when the loop ends"""
    env, context, output = setup
    body = ExpressionStatement((BinaryOp('=', var("seen"), num(1)),))
    execute_program([DoWhile(body, num(0))], env, context)
    assert env.depth == 1
    assert env.popped == [{"seen": 1}]
    assert not env.is_defined("seen")

  def test_do_while_repeats_until_false(self, setup):
    env, context, output = setup
    program = [
        assign("n", num(3)),
        DoWhile(
            ExpressionStatement((UnaryOp('--', var("n")),)),
            BinaryOp('>', var("n"), num(0))
        ),
        print_(var("n")),
    ]
    execute_program(program, env, context)
    assert output.getvalue() == "0\n"

  def test_for_loop_scope_boundary(self, setup):
    """i is 3 in the loop frame when popped, and undefined afterwards"""
    env, context, output = setup
    loop = For(
        assign("i", num(0)),
        BinaryOp('<', var("i"), num(3)),
        BinaryOp('+=', var("i"), num(1)),
        print_(var("i"))
    )
    execute_program([loop], env, context)

    assert output.getvalue() == "0\n1\n2\n"
    assert env.popped == [{"i": 3}]
    with pytest.raises(UndefinedVariable):
      env.lookup("i")

  def test_for_with_empty_init_uses_outer_variable(self, setup):
    env, context, output = setup
    program = [
        assign("i", num(2)),
        For(EmptyStatement(), BinaryOp('<', var("i"), num(4)),
            UnaryOp('++', var("i")), print_(var("i"))),
        print_(var("i")),
    ]
    execute_program(program, env, context)
    assert output.getvalue() == "2\n3\n4\n"

  def test_while_frame_persists_across_iterations(self, setup):
    """A name declared in the loop frame keeps its value into the next iteration"""
    env, context, output = setup
    program = [
        assign("c", num(0)),
        While(
            BinaryOp('<', var("c"), num(2)),
            ExpressionStatement((
                BinaryOp('+=', var("c"), num(1)),
                BinaryOp('=', var("last"), var("c")),
            ))
        ),
    ]
    execute_program(program, env, context)
    assert env.popped == [{"last": 2}]
    assert env.lookup("c") == 2

  def test_while_body_block_gets_fresh_frame_each_iteration(self, setup):
    env, context, output = setup
    program = [
        assign("c", num(0)),
        While(
            BinaryOp('<', var("c"), num(2)),
            Block((
                ExpressionStatement((BinaryOp('+=', var("c"), num(1)),)),
                assign("tmp", var("c")),
            ))
        ),
    ]
    execute_program(program, env, context)
    # two block frames, then the while frame
    assert env.popped == [{"tmp": 1}, {"tmp": 2}, {}]

  def test_if_branch_declarations_do_not_escape(self, setup):
    env, context, output = setup
    execute_program([If(num(1), assign("inner", num(5)))], env, context)
    assert env.popped == [{"inner": 5}]
    assert not env.is_defined("inner")

  def test_if_false_without_else_still_balances(self, setup):
    env, context, output = setup
    execute_program([If(num(0), print_(num(1)))], env, context)
    assert output.getvalue() == ""
    assert env.popped == [{}]

  def test_if_else_picks_branch(self, setup):
    env, context, output = setup
    program = [
        IfElse(num(0), print_(num(1)), print_(num(2))),
        IfElse(num(-4), print_(num(3)), print_(num(4))),
    ]
    execute_program(program, env, context)
    assert output.getvalue() == "2\n3\n"

  def test_block_updates_outer_and_drops_inner(self, setup):
    env, context, output = setup
    program = [
        assign("x", num(1)),
        Block((assign("x", num(2)), assign("y", num(3)))),
        print_(var("x")),
    ]
    execute_program(program, env, context)
    assert output.getvalue() == "2\n"
    assert not env.is_defined("y")

  def test_expression_statement_runs_in_order(self, setup):
    env, context, output = setup
    statement = ExpressionStatement((
        BinaryOp('=', var("a"), num(1)),
        BinaryOp('=', var("b"), BinaryOp('+', var("a"), num(1))),
    ))
    execute_program([statement], env, context)
    assert env.lookup("b") == 2

  def test_nested_empty_statement_is_noop(self, setup):
    env, context, output = setup
    exec_statement(EmptyStatement(), env, context)
    assert env.depth == 1

  def test_top_level_empty_statements_are_dropped(self, setup):
    env, context, output = setup
    program = [EmptyStatement(), print_(num(1)), EmptyStatement()]
    execute_program(program, env, context)
    assert output.getvalue() == "1\n"

  def test_unknown_statement_kind(self, setup):
    env, context, output = setup

    class Goto(Stmt):
      pass

    with pytest.raises(MalformedNode):
      exec_statement(Goto(), env, context)

  def test_expression_in_statement_position(self, setup):
    env, context, output = setup
    with pytest.raises(MalformedNode):
      execute_program([num(1)], env, context)


class TestErrorAbort:
  """Runtime errors stop the whole program"""

  def test_statements_after_error_do_not_run(self):
    output = io.StringIO()
    program = [print_(num(1)), print_(var("nope")), print_(num(2))]
    with pytest.raises(UndefinedVariable):
      execute_program(program, Environment(), make_execution_context(output=output))
    assert output.getvalue() == "1\n"

  def test_error_carries_scopes_at_failure(self):
    env = Environment()
    program = [
        assign("g", num(1)),
        Block((assign("local", num(2)), print_(var("nope")))),
    ]
    with pytest.raises(UndefinedVariable) as excinfo:
      execute_program(program, env, make_execution_context(output=io.StringIO()))

    assert excinfo.value.env_snapshot == [{"g": 1}, {"local": 2}]
    # frames pushed before the failure are unwound
    assert env.depth == 1


class TestInterpreterFactory:
  """create_interpreter wiring"""

  def test_program_runs_in_fresh_environment(self):
    output = io.StringIO()
    interpreter = create_interpreter(output=output)
    env = interpreter.interpret_program([assign("x", num(1))])
    assert env.lookup("x") == 1
    assert not interpreter.environment.is_defined("x")

  def test_session_keeps_bindings(self):
    output = io.StringIO()
    interpreter = create_interpreter(output=output)
    interpreter.interpret_session([assign("x", num(1))])
    interpreter.interpret_session([print_(BinaryOp('+', var("x"), num(1)))])
    assert output.getvalue() == "2\n"
    assert interpreter.evaluate(var("x")) == 1

  def test_debug_trace_goes_to_stderr(self, capsys):
    output = io.StringIO()
    interpreter = create_interpreter(debug=True, output=output)
    interpreter.interpret_program([Block((print_(num(5)),))])
    captured = capsys.readouterr()
    assert output.getvalue() == "5\n"
    assert "Entering block scope" in captured.err
    assert "Executing: Print" in captured.err
    assert captured.out == ""
