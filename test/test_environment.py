"""
Scope stack tests
"""

import pytest
from interpreter import Environment
from error_handling import InternalInvariantError, ScopeUnderflow, UndefinedVariable


class TestEnvironment:
  """Frame push/pop, lookup and assign-or-declare"""

  @pytest.fixture
  def env(self):
    return Environment()

  def test_starts_with_global_frame(self, env):
    assert env.depth == 1
    assert env.snapshot() == [{}]

  def test_write_then_read(self, env):
    env.assign("x", 7)
    assert env.lookup("x") == 7

  def test_first_write_declares_in_innermost_frame(self, env):
    env.push_scope()
    env.assign("x", 1)
    assert env.frames[-1] == {"x": 1}
    assert env.frames[0] == {}

    env.pop_scope()
    assert not env.is_defined("x")

  def test_assign_updates_existing_outer_binding(self, env):
    """An outer binding is updated in place, not shadowed"""
    env.assign("x", 1)
    env.push_scope()
    env.assign("x", 2)
    assert env.frames[-1] == {}
    env.pop_scope()
    assert env.lookup("x") == 2

  def test_outer_write_visible_in_inner_scope(self, env):
    env.assign("x", 3)
    env.push_scope()
    env.push_scope()
    assert env.lookup("x") == 3

  def test_lookup_prefers_innermost_frame(self, env):
    env.frames[0]["x"] = 1
    env.push_scope()
    env.frames[-1]["x"] = 2
    assert env.lookup("x") == 2

  def test_lookup_undefined(self, env):
    with pytest.raises(UndefinedVariable) as excinfo:
      env.lookup("missing")
    assert excinfo.value.name == "missing"

  def test_pop_returns_frame(self, env):
    env.push_scope()
    env.assign("i", 3)
    assert env.pop_scope() == {"i": 3}
    assert env.depth == 1

  def test_global_frame_cannot_be_popped(self, env):
    with pytest.raises(ScopeUnderflow):
      env.pop_scope()

  def test_underflow_is_internal_error(self):
    assert issubclass(ScopeUnderflow, InternalInvariantError)

  def test_snapshot_is_a_copy(self, env):
    env.assign("x", 1)
    snapshot = env.snapshot()
    snapshot[0]["x"] = 99
    assert env.lookup("x") == 1

  def test_reset(self, env):
    env.assign("x", 1)
    env.push_scope()
    env.reset()
    assert env.depth == 1
    assert not env.is_defined("x")

  def test_repr_lists_frames(self, env):
    env.assign("a", 1)
    env.push_scope()
    env.assign("b", 2)
    assert repr(env) == "Environment({a = 1} | {b = 2})"
