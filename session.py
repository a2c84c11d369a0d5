"""
Session control for Lox: one interpreter (and so one global environment)
shared by every run, whether a whole script or successive REPL lines
"""

import sys
from dataclasses import dataclass
from typing import Optional, TextIO, Tuple

from error_handling import Diagnostic, LoxRuntimeError, format_diagnostics
from interpreter import Interpreter, create_debug_interpreter, create_interpreter
from parsing import LoxParser, create_parser


EXIT_OK = 0
EXIT_USAGE = 64
EXIT_DATA_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_SOFTWARE = 70


@dataclass(frozen=True)
class Outcome:
  """Result of running one piece of source text"""
  diagnostics: Tuple[Diagnostic, ...] = ()
  runtime_error: Optional[LoxRuntimeError] = None

  @property
  def had_error(self) -> bool:
    """A static (scan or parse) error occurred"""
    return bool(self.diagnostics)

  @property
  def had_runtime_error(self) -> bool:
    return self.runtime_error is not None

  @property
  def exit_code(self) -> int:
    if self.had_error or self.had_runtime_error:
      return EXIT_DATA_ERROR
    return EXIT_OK


class Session:
  """Runs source text through scanner, parser and interpreter"""

  def __init__(self, interpreter: Optional[Interpreter] = None, parser: Optional[LoxParser] = None,
               stderr: Optional[TextIO] = None, debug: bool = False):
    self.debug = debug
    self._stderr = stderr
    self.parser = parser or create_parser(debug)
    self.interpreter = interpreter or create_interpreter(debug, stderr=stderr)

  @property
  def stderr(self) -> TextIO:
    return self._stderr if self._stderr is not None else sys.stderr

  def run(self, text: str) -> Outcome:
    """Scan, parse and (only if both were clean) interpret text"""
    statements, diagnostics = self.parser.parse_string(text)

    if diagnostics:
      source = text if self.debug else None
      print(format_diagnostics(diagnostics, source), file=self.stderr)
      return Outcome(diagnostics=tuple(diagnostics))

    runtime_error = self.interpreter.interpret(statements)
    return Outcome(runtime_error=runtime_error)

  def run_file(self, path: str) -> Outcome:
    """Run a script file; OSError and UnicodeDecodeError propagate to the caller"""
    with open(path, 'r', encoding='utf-8') as f:
      return self.run(f.read())


def create_session(debug: bool = False, stdout: Optional[TextIO] = None,
                   stderr: Optional[TextIO] = None) -> Session:
  """Factory function returning a session with its own interpreter"""
  if debug:
    interpreter = create_debug_interpreter(stdout=stdout, stderr=stderr)
  else:
    interpreter = create_interpreter(stdout=stdout, stderr=stderr)
  return Session(interpreter=interpreter, stderr=stderr, debug=debug)
