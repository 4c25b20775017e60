"""
Test configuration for Lox interpreter tests
"""

import io
import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import create_parser
from semantics import create_resolver
from interpreter import create_interpreter


@pytest.fixture
def setup():
  """Fresh parser, resolver and interpreter"""
  return create_parser(), create_resolver(), create_interpreter()


@pytest.fixture
def run(setup):
  """Run Lox source through all three stages and return what it printed"""
  parser, resolver, interpreter = setup

  def run_source(code: str) -> str:
    output = io.StringIO()
    interpreter.stdout = output
    try:
      statements = parser.parse_string(code)
      interpreter.interpret(statements, resolver.resolve(statements))
    finally:
      interpreter.stdout = None
    return output.getvalue()

  return run_source


@pytest.fixture
def examples_dir():
  """Get the examples directory path"""
  return project_root / "examples"
