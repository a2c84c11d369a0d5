"""
Lox Programming Language - Main Entry Point
Runs a script file or an interactive prompt on top of a Session
"""

import sys
import argparse
import os
from typing import List, Optional

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from error_handling import LoxParseError, LoxScanError, format_diagnostics
from parsing import create_debug_parser, create_parser, pretty_print_ast
from session import (
  EXIT_DATA_ERROR,
  EXIT_NO_INPUT,
  EXIT_OK,
  EXIT_SOFTWARE,
  EXIT_USAGE,
  Session,
  create_session,
)
from stdlib import stringify
from tokens import KEYWORDS


VERSION = "Lox v0.3.0 (Tree-walking Interpreter)"
DEFAULT_RECURSION_LIMIT = 10000
HISTORY_FILE = os.environ.get("LOX_HISTORY", os.path.expanduser("~/.lox_history"))


class LoxArgumentParser(argparse.ArgumentParser):
  """Argument parser whose usage errors exit with the usage status"""

  def error(self, message):
    self.print_usage(sys.stderr)
    print(f"{self.prog}: error: {message}", file=sys.stderr)
    sys.exit(EXIT_USAGE)


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = LoxArgumentParser(
      prog='lox',
      description='Lox Programming Language - tree-walking interpreter',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.lox             # Run a Lox script
  %(prog)s                        # Interactive mode
  %(prog)s --parse script.lox     # Parse and show the AST
  %(prog)s --tokens script.lox    # Scan and show the tokens
  %(prog)s --debug script.lox     # Run with debug output
        """
  )

  parser.add_argument(
      'script',
      nargs='*',
      help='Lox script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show the AST (for debugging)'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Scan file and show the tokens (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--recursion-limit',
      type=int,
      default=DEFAULT_RECURSION_LIMIT,
      help='Host recursion limit, bounds Lox call depth (default: %(default)s)'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def read_source(script_path: str) -> str:
  """Read a script, exiting with the no-input status if it cannot be read"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found", file=sys.stderr)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'", file=sys.stderr)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}", file=sys.stderr)
  except OSError as e:
    print(f"Error: Cannot read '{script_path}': {e}", file=sys.stderr)
  sys.exit(EXIT_NO_INPUT)


def tokens_file(script_path: str, debug: bool = False) -> int:
  """Scan a Lox script file and show its tokens"""
  source = read_source(script_path)
  parser = create_debug_parser() if debug else create_parser()
  tokens, diagnostics = parser.tokenize(source)

  for token in tokens:
    print(f"{token.line:4d}  {token}")

  if diagnostics:
    print(format_diagnostics(diagnostics, source if debug else None), file=sys.stderr)
    return EXIT_DATA_ERROR
  return EXIT_OK


def parse_file(script_path: str, debug: bool = False) -> int:
  """Parse a Lox script file and show the AST"""
  source = read_source(script_path)
  parser = create_debug_parser() if debug else create_parser()
  statements, diagnostics = parser.parse_string(source)

  for statement in statements:
    print(pretty_print_ast(statement))

  if diagnostics:
    print(format_diagnostics(diagnostics, source if debug else None), file=sys.stderr)
    return EXIT_DATA_ERROR
  return EXIT_OK


def run_script_file(script_path: str, debug: bool = False) -> int:
  """Run a Lox script file with full interpretation"""
  source = read_source(script_path)
  session = create_session(debug=debug)
  outcome = session.run(source)
  return outcome.exit_code


def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  try:
    readline.read_history_file(HISTORY_FILE)
  except OSError:
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  completions = sorted(KEYWORDS) + ["clock", ":parse", ":tokens", ":env", ":help", "exit"]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  # Save history on exit
  import atexit
  atexit.register(_write_history)


def _write_history():
  try:
    readline.write_history_file(HISTORY_FILE)
  except OSError:
    pass


def show_repl_help() -> None:
  print("REPL Commands:")
  print("  :parse <expr>     - Show the parsed AST of an expression")
  print("  :tokens <source>  - Show the tokens of some source")
  print("  :env              - Show global bindings")
  print("  :help             - Show this help")
  print("  exit              - Exit REPL")
  print()
  print("Language features:")
  print("  var x = 5;                      - Variable declaration")
  print("  func add(a, b) { return a + b; } - Function declaration")
  print("  print add(1, 2);                - Print a value")
  print("  for (var i = 0; i < 3; i = i + 1) print i;")


def handle_repl_command(code: str, session: Session) -> bool:
  """Handle a ':' command; returns False when the line is ordinary source"""
  stripped = code.strip()

  if stripped.startswith(":parse "):
    try:
      print(pretty_print_ast(session.parser.parse_expression(stripped[len(":parse "):])))
    except (LoxParseError, LoxScanError) as e:
      print(e.to_diagnostic(), file=sys.stderr)
    return True

  if stripped.startswith(":tokens "):
    tokens, diagnostics = session.parser.tokenize(stripped[len(":tokens "):])
    for token in tokens:
      print(f"  {token}")
    if diagnostics:
      print(format_diagnostics(diagnostics), file=sys.stderr)
    return True

  if stripped == ":env":
    globals_env = session.interpreter.globals
    user_bindings = {name: value for name, value in globals_env.bindings.items() if name != "clock"}
    if user_bindings:
      for name, value in user_bindings.items():
        print(f"  {name} = {stringify(value)}")
    else:
      print("  (no user-defined bindings)")
    return True

  if stripped == ":help":
    show_repl_help()
    return True

  return False


def run_interactive_mode(debug: bool = False, session: Optional[Session] = None) -> None:
  """Run Lox in interactive mode; globals persist across lines"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()
  if session is None:
    session = create_session(debug=debug)

  while True:
    try:
      code = input("> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    if code.strip() == "exit":
      break
    if not code.strip():
      continue
    if handle_repl_command(code, session):
      continue

    # Each line is its own run, so an error never blocks the next line
    session.run(code)


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for Lox"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if len(args.script) > 1:
    print("Usage: lox [script]", file=sys.stderr)
    sys.exit(EXIT_USAGE)

  sys.setrecursionlimit(max(args.recursion_limit, 1000))

  try:
    if args.script and args.interactive:
      # Run the script, then keep its globals in the prompt
      session = create_session(debug=args.debug)
      session.run(read_source(args.script[0]))
      run_interactive_mode(debug=args.debug, session=session)
    elif args.script:
      script = args.script[0]
      if args.tokens:
        sys.exit(tokens_file(script, debug=args.debug))
      elif args.parse:
        sys.exit(parse_file(script, debug=args.debug))
      sys.exit(run_script_file(script, debug=args.debug))
    else:
      run_interactive_mode(debug=args.debug)
  except RecursionError:
    print("Fatal: maximum recursion depth exceeded.", file=sys.stderr)
    sys.exit(EXIT_SOFTWARE)


if __name__ == "__main__":
  main()
