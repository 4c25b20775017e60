"""
Tests for classes, instances, inheritance and static methods
"""

import pytest
from error_handling import LoxRuntimeError


class TestInstances:
  """Test construction, fields and methods"""

  def test_class_and_instance_text(self, run):
    assert run("class Point {} print Point; print Point();") == "Point\nPoint instance\n"

  def test_initializer_sets_fields(self, run):
    code = """
    class C { init(v) { this.v = v; } }
    var c = C(5);
    print c.v;
    """
    assert run(code) == "5\n"

  def test_fields_are_open(self, run):
    code = """
    class Bag {}
    var b = Bag();
    b.anything = "yes";
    print b.anything;
    """
    assert run(code) == "yes\n"

  def test_set_returns_value(self, run):
    assert run("class A {} var a = A(); print a.x = 3;") == "3\n"

  def test_method_uses_this(self, run):
    code = """
    class Counter {
      init() { this.count = 0; }
      bump() { this.count = this.count + 1; return this; }
    }
    print Counter().bump().bump().count;
    """
    assert run(code) == "2\n"

  def test_bound_method_remembers_instance(self, run):
    code = """
    class Person {
      init(name) { this.name = name; }
      greet() { return "hi " + this.name; }
    }
    var greet = Person("ann").greet;
    print greet();
    """
    assert run(code) == "hi ann\n"

  def test_fields_shadow_methods(self, run):
    code = """
    class A { m() { return "method"; } }
    var a = A();
    a.m = "field";
    print a.m;
    """
    assert run(code) == "field\n"

  def test_undefined_property(self, run):
    with pytest.raises(LoxRuntimeError) as exc_info:
      run("class A {} A().missing;")
    assert exc_info.value.message == "Undefined property 'missing'."

  def test_property_on_non_instance(self, run):
    with pytest.raises(LoxRuntimeError) as exc_info:
      run('"str".length;')
    assert exc_info.value.message == "Only instances have properties."

  def test_field_on_non_instance(self, run):
    with pytest.raises(LoxRuntimeError) as exc_info:
      run("var n = 1; n.x = 2;")
    assert exc_info.value.message == "Only instances have fields."

  def test_class_arity_comes_from_init(self, run):
    with pytest.raises(LoxRuntimeError) as exc_info:
      run("class A { init(a) {} } A(1, 2);")
    assert exc_info.value.message == "Expected 1 arguments but got 2."

  def test_class_without_init_takes_no_arguments(self, run):
    with pytest.raises(LoxRuntimeError) as exc_info:
      run("class A {} A(1);")
    assert exc_info.value.message == "Expected 0 arguments but got 1."

  def test_class_refers_to_itself(self, run):
    code = """
    class Node {
      init(next) { this.next = next; }
      prepend() { return Node(this); }
    }
    print Node(nil).prepend().next.next;
    """
    assert run(code) == "nil\n"


class TestInitializer:
  """Test the constructor protocol"""

  def test_direct_init_call_returns_instance(self, run):
    code = """
    class C { init(v) { this.v = v; } }
    var c = C(1);
    var again = c.init(7);
    print again == c;
    print c.v;
    """
    assert run(code) == "true\n7\n"

  def test_bare_return_in_init(self, run):
    code = """
    class C {
      init() {
        this.done = true;
        return;
      }
    }
    var c = C();
    print c.init();
    print c.done;
    """
    assert run(code) == "C instance\ntrue\n"


class TestInheritance:
  """Test method lookup along the superclass chain"""

  def test_inherited_method(self, run):
    code = """
    class A { hello() { return "A"; } }
    class B < A {}
    print B().hello();
    """
    assert run(code) == "A\n"

  def test_override_prefers_most_derived(self, run):
    code = """
    class A { name() { return "A"; } describe() { return "I am " + this.name(); } }
    class B < A { name() { return "B"; } }
    print B().describe();
    """
    assert run(code) == "I am B\n"

  def test_super_calls_superclass_version(self, run):
    code = """
    class A { method() { return "A method"; } }
    class B < A {
      method() { return "B method"; }
      test() { return super.method(); }
    }
    class C < B {}
    print C().test();
    """
    assert run(code) == "A method\n"

  def test_super_init(self, run):
    code = """
    class Animal { init(name) { this.name = name; } }
    class Dog < Animal {
      init(name, breed) {
        super.init(name);
        this.breed = breed;
      }
    }
    var d = Dog("Rex", "collie");
    print d.name + " " + d.breed;
    """
    assert run(code) == "Rex collie\n"

  def test_undefined_super_method(self, run):
    with pytest.raises(LoxRuntimeError) as exc_info:
      run("class A {} class B < A { m() { return super.nope; } } B().m();")
    assert exc_info.value.message == "Undefined property 'nope'."

  def test_superclass_must_be_class(self, run):
    with pytest.raises(LoxRuntimeError) as exc_info:
      run('var NotAClass = "x"; class B < NotAClass {}')
    assert exc_info.value.message == "Superclass must be a class."

  def test_instance_equality_is_identity(self, run):
    assert run("class A {} var a = A(); print a == a; print a == A();") == "true\nfalse\n"


class TestStaticMethods:
  """Test methods declared with `class` inside a class body"""

  def test_static_call(self, run):
    code = """
    class Math {
      class square(n) { return n * n; }
    }
    print Math.square(4);
    """
    assert run(code) == "16\n"

  def test_static_this_is_the_class(self, run):
    code = """
    class Math {
      class square(n) { return n * n; }
      class twice(n) { return this.square(n) * 2; }
    }
    print Math.twice(3);
    """
    assert run(code) == "18\n"

  def test_static_factory(self, run):
    code = """
    class Point {
      init(x, y) { this.x = x; this.y = y; }
      class origin() { return this(0, 0); }
    }
    var p = Point.origin();
    print p;
    print p.x + p.y;
    """
    assert run(code) == "Point instance\n0\n"

  def test_statics_are_not_instance_methods(self, run):
    with pytest.raises(LoxRuntimeError) as exc_info:
      run("class A { class make() { return 1; } } A().make();")
    assert exc_info.value.message == "Undefined property 'make'."

  def test_class_without_statics_has_no_properties(self, run):
    with pytest.raises(LoxRuntimeError) as exc_info:
      run("class A { m() {} } A.m;")
    assert exc_info.value.message == "Only instances have properties."

  def test_static_in_subclass_can_use_super(self, run):
    code = """
    class Base { describe() { return "base"; } }
    class Derived < Base {
      describe() { return "derived"; }
      class baseDescription() { return super.describe(); }
    }
    print Derived.baseDescription();
    """
    assert run(code) == "base\n"
