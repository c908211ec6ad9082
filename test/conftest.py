"""
Test configuration for Arith tests
"""

import io
import sys
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import create_parser
from interpreter import execute_program, make_execution_context


@pytest.fixture(scope="session")
def parser():
  """One parser for the whole run; grammar construction is the slow part"""
  return create_parser()


@pytest.fixture
def run(parser):
  """Parse and execute source text; returns (printed lines, final environment)"""
  def _run(code, env=None):
    output = io.StringIO()
    statements = parser.parse_string(code)
    final_env = execute_program(statements, env, make_execution_context(output=output))
    return output.getvalue().splitlines(), final_env
  return _run
