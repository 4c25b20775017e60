"""
Tests for runtime environments
"""

import pytest
from ast_nodes import synthetic_token
from environment import Environment
from error_handling import LoxRuntimeError


def tok(name):
  return synthetic_token(name)


class TestEnvironment:
  """Test define / get / assign on a single chain"""

  @pytest.fixture
  def globals_env(self):
    return Environment()

  def test_define_and_get(self, globals_env):
    globals_env.define("a", 1.0)
    assert globals_env.get(tok("a")) == 1.0

  def test_nil_is_a_value(self, globals_env):
    globals_env.define("a", None)
    assert globals_env.get(tok("a")) is None

  def test_undefined_variable(self, globals_env):
    with pytest.raises(LoxRuntimeError) as exc_info:
      globals_env.get(tok("missing"))
    assert exc_info.value.message == "Undefined variable 'missing'."

  def test_unassigned_variable(self, globals_env):
    globals_env.define("a")
    with pytest.raises(LoxRuntimeError) as exc_info:
      globals_env.get(tok("a"))
    assert exc_info.value.message == "Unassigned variable 'a'."

  def test_assign_promotes_unassigned(self, globals_env):
    globals_env.define("a")
    globals_env.assign(tok("a"), 2.0)
    assert globals_env.get(tok("a")) == 2.0
    assert "a" not in globals_env.unassigned

  def test_assign_never_creates(self, globals_env):
    with pytest.raises(LoxRuntimeError) as exc_info:
      globals_env.assign(tok("a"), 1.0)
    assert exc_info.value.message == "Undefined variable 'a'."
    assert "a" not in globals_env.values

  def test_redefine_without_value(self, globals_env):
    globals_env.define("a", 1.0)
    globals_env.define("a")
    assert "a" not in globals_env.values
    assert "a" in globals_env.unassigned


class TestEnclosing:
  """Test lookups through enclosing frames"""

  @pytest.fixture
  def chain(self):
    outer = Environment()
    middle = Environment(outer)
    inner = Environment(middle)
    return outer, middle, inner

  def test_get_walks_outward(self, chain):
    outer, middle, inner = chain
    outer.define("x", "outer")
    assert inner.get(tok("x")) == "outer"

  def test_inner_shadows_outer(self, chain):
    outer, middle, inner = chain
    outer.define("x", "outer")
    inner.define("x", "inner")
    assert inner.get(tok("x")) == "inner"
    assert middle.get(tok("x")) == "outer"

  def test_assign_updates_owning_frame(self, chain):
    outer, middle, inner = chain
    outer.define("x", 1.0)
    inner.assign(tok("x"), 2.0)
    assert outer.values["x"] == 2.0
    assert "x" not in inner.values

  def test_ancestor(self, chain):
    outer, middle, inner = chain
    assert inner.ancestor(0) is inner
    assert inner.ancestor(1) is middle
    assert inner.ancestor(2) is outer

  def test_get_at_and_assign_at(self, chain):
    outer, middle, inner = chain
    middle.define("x", 1.0)
    outer.define("x", 99.0)
    assert inner.get_at(1, "x") == 1.0

    inner.assign_at(1, tok("x"), 5.0)
    assert middle.values["x"] == 5.0
    assert outer.values["x"] == 99.0

  def test_get_at_unassigned(self, chain):
    outer, middle, inner = chain
    middle.define("x")
    with pytest.raises(LoxRuntimeError) as exc_info:
      inner.get_at(1, "x", tok("x"))
    assert exc_info.value.message == "Unassigned variable 'x'."

  def test_assign_at_consumes_unassigned_marker(self, chain):
    outer, middle, inner = chain
    middle.define("x")
    inner.assign_at(1, tok("x"), 3.0)
    assert inner.get_at(1, "x") == 3.0
    assert "x" not in middle.unassigned
