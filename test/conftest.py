"""
Test configuration for Lox interpreter tests
"""

import io
import sys
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from session import create_session


class LoxRun:
  """Captured result of running some source through a fresh session"""

  def __init__(self, outcome, out: str, err: str):
    self.outcome = outcome
    self.out = out
    self.err = err

  @property
  def lines(self):
    return self.out.splitlines()


@pytest.fixture
def run_lox():
  """Run source in a fresh session, capturing stdout and stderr"""
  def run(source: str, debug: bool = False) -> LoxRun:
    out, err = io.StringIO(), io.StringIO()
    session = create_session(debug=debug, stdout=out, stderr=err)
    outcome = session.run(source)
    return LoxRun(outcome, out.getvalue(), err.getvalue())
  return run
