"""
Tests for the command line entry point
"""

import pytest
from main import main, EXIT_DATAERR, EXIT_SOFTWARE, EXIT_IOERR


def write_script(tmp_path, code, name="script.lox"):
  path = tmp_path / name
  path.write_text(code, encoding="utf-8")
  return str(path)


class TestCommandLine:
  """Test running scripts through main()"""

  def test_run_script(self, examples_dir, capsys):
    main([str(examples_dir / "closures.lox")])
    assert capsys.readouterr().out == "1\n2\n1\n3\n"

  def test_static_error_exit_code(self, tmp_path, capsys):
    script = write_script(tmp_path, 'print "never";\n{ var a = 1; var a = 2; }')
    with pytest.raises(SystemExit) as exc_info:
      main([script])
    assert exc_info.value.code == EXIT_DATAERR

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "[line 2] Error at 'a': Already a variable with this name in this scope." in captured.err

  def test_parse_error_exit_code(self, tmp_path, capsys):
    script = write_script(tmp_path, "print 1")
    with pytest.raises(SystemExit) as exc_info:
      main([script])
    assert exc_info.value.code == EXIT_DATAERR
    assert "Parse error" in capsys.readouterr().err

  def test_runtime_error_exit_code(self, tmp_path, capsys):
    script = write_script(tmp_path, 'print "first";\nprint 1 + true;')
    with pytest.raises(SystemExit) as exc_info:
      main([script])
    assert exc_info.value.code == EXIT_SOFTWARE

    captured = capsys.readouterr()
    assert captured.out == "first\n"
    assert "Operands must be two numbers or two strings.\n[line 2]" in captured.err

  def test_missing_script(self, tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
      main([str(tmp_path / "nope.lox")])
    assert exc_info.value.code == EXIT_IOERR

  def test_parse_flag(self, examples_dir, capsys):
    main(["--parse", str(examples_dir / "fibonacci.lox")])
    out = capsys.readouterr().out
    assert out.startswith("Parsed 2 top-level statements:")
    assert "Function(name=fib, params=[n])" in out
    assert "While" in out

  def test_resolve_flag(self, tmp_path, capsys):
    script = write_script(tmp_path, "fun f(a) { return a; }")
    main(["--resolve", script])
    out = capsys.readouterr().out
    assert out.startswith("Resolved 1 local references:")
    assert "Variable" in out
    assert "-> 0" in out

  def test_version(self, capsys):
    with pytest.raises(SystemExit) as exc_info:
      main(["--version"])
    assert exc_info.value.code == 0
    assert "Lox" in capsys.readouterr().out

  def test_parse_flag_on_nested_source(self, tmp_path, capsys):
    script = write_script(tmp_path, "print " + "(" * 40 + "1" + ")" * 40 + ";")
    main(["--parse", script])
    out = capsys.readouterr().out
    assert out.startswith("Parsed 1 top-level statements:")
    assert out.count("Grouping") == 40

  def test_too_deep_nesting_exit_code(self, tmp_path, capsys):
    script = write_script(tmp_path, "print " + "(" * 3000 + "1" + ")" * 3000 + ";")
    with pytest.raises(SystemExit) as exc_info:
      main([script])
    assert exc_info.value.code == EXIT_DATAERR
    assert "Expression nesting too deep." in capsys.readouterr().err
