"""
Arith Programming Language - Main Entry Point
An integer-only imperative language with C-like control flow and block scoping
"""

from typing import List, Optional
import sys
import argparse
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from ast_nodes import pretty_print_ast
from error_handling import ArithParseError, ArithRuntimeError
from interpreter import Environment, create_interpreter, create_debug_interpreter
from parsing import create_parser, create_debug_parser
from utilities import format_frame


VERSION = "Arith v1.0.0"


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='arith',
      description='Arith Programming Language - integer-only, C-like control flow',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.arith            # Run an Arith script
  %(prog)s -c 'print 1 + 2;'       # Run a program given on the command line
  %(prog)s -i                      # Interactive mode
  %(prog)s --parse script.arith    # Parse and show the AST
  %(prog)s --debug script.arith    # Run with evaluation trace on stderr
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Arith script file to execute'
  )

  parser.add_argument(
      '-c', '--command',
      metavar='CODE',
      help='Program text to execute instead of a script file'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse the program and show the AST instead of running it'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Trace parsing, evaluation and scope changes on stderr'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def report_runtime_error(e: ArithRuntimeError, source_name: str, debug: bool = False) -> None:
  """Print a runtime error report to stderr"""
  out = sys.stderr
  print(f"\n{'='*70}", file=out)
  print(f"Runtime Error in '{source_name}'", file=out)
  print(f"{'='*70}", file=out)
  print(f"\nError: {e.message}", file=out)

  if e.span:
    print(f"\nLocation: {e.span}", file=out)

  if e.source_line:
    print("\nSource:", file=out)
    print(f"  {e.source_line}", file=out)
    print(f"  {'~' * len(e.source_line)}", file=out)

  if e.env_snapshot and debug:
    print("\nScopes at error (outermost first):", file=out)
    for depth, frame in enumerate(e.env_snapshot):
      print(f"  [{depth}] {{{format_frame(frame)}}}", file=out)

  print(f"\n{'='*70}\n", file=out)


def parse_source(script_path: Optional[str], code: Optional[str], debug: bool = False) -> None:
  """Parse a script or command string and show the AST"""
  parser = create_debug_parser() if debug else create_parser()
  try:
    if script_path:
      statements = parser.parse_file(script_path)
    else:
      statements = parser.parse_string(code, "<command>")
  except ArithParseError as e:
    print(str(e), file=sys.stderr)
    sys.exit(1)

  print(f"Parsed {len(statements)} top-level statements:")
  print("=" * 50)
  for i, statement in enumerate(statements, 1):
    print(f"\nStatement {i}:")
    print(pretty_print_ast(statement))


def run_source(script_path: Optional[str], code: Optional[str], debug: bool = False) -> None:
  """Run a script file or command string; exit with status 1 on any error"""
  source_name = script_path or "<command>"
  try:
    parser = create_debug_parser() if debug else create_parser()
    interpreter = create_debug_interpreter() if debug else create_interpreter()

    if script_path:
      statements = parser.parse_file(script_path)
    else:
      statements = parser.parse_string(code, source_name)

    interpreter.interpret_program(statements)

  except ArithParseError as e:
    print(str(e), file=sys.stderr)
    sys.exit(1)
  except ArithRuntimeError as e:
    report_runtime_error(e, source_name, debug)
    sys.exit(1)
  except KeyboardInterrupt:
    print("\nInterrupted", file=sys.stderr)
    sys.exit(130)
  except RecursionError:
    print(f"Error: '{source_name}' nests too deeply to evaluate", file=sys.stderr)
    sys.exit(1)


def setup_readline() -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE or not sys.stdin.isatty():
    return

  history_file = os.path.expanduser("~/.arith_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First run: no history yet

  readline.set_history_length(1000)

  completions = [
      "if", "else", "while", "do", "for", "print",
      ":env", ":parse", ":reset", ":help", "exit",
  ]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def show_environment(env: Environment) -> None:
  """Print every binding of the session, outermost frame first"""
  snapshot = env.snapshot()
  if not any(snapshot):
    print("  (no variables defined)")
    return
  for depth, frame in enumerate(snapshot):
    for name, value in frame.items():
      print(f"  {name} = {value}" if depth == 0 else f"  [{depth}] {name} = {value}")


def show_repl_help() -> None:
  print("REPL Commands:")
  print("  :parse <code>     - Show the AST for a statement or expression")
  print("  :env              - Show current variables")
  print("  :reset            - Forget all variables")
  print("  :help             - Show this help")
  print("  exit              - Exit REPL")
  print()
  print("Language features:")
  print("  x = 5;                         - Assignment (declares on first write)")
  print("  print x * 2;                   - Print a value")
  print("  for (i = 0; i < 3; i += 1) print i;")
  print("  x + 1                          - Bare expression: show its value")


def handle_repl_line(code: str, parser, interpreter) -> None:
  """Execute one REPL line; errors propagate to the loop"""
  stripped = code.strip()

  if stripped == ":env":
    show_environment(interpreter.environment)
    return

  if stripped == ":reset":
    interpreter.environment.reset()
    print("Environment cleared")
    return

  if stripped == ":help":
    show_repl_help()
    return

  if stripped.startswith(":parse "):
    text = stripped[len(":parse "):]
    try:
      nodes = parser.parse_string(text, "<repl>")
    except ArithParseError:
      nodes = [parser.parse_expression(text, "<repl>")]
    for node in nodes:
      print(pretty_print_ast(node))
    return

  try:
    statements = parser.parse_string(code, "<repl>")
  except ArithParseError as statement_error:
    # Not a statement list; maybe a bare expression to show
    try:
      expression = parser.parse_expression(code, "<repl>")
    except ArithParseError:
      raise statement_error from None
    print(f"=> {interpreter.evaluate(expression)}")
    return

  interpreter.interpret_session(statements)


def run_interactive_mode(debug: bool = False) -> None:
  """Run Arith in interactive mode with one environment for the session"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_debug_parser() if debug else create_parser()
  interpreter = create_debug_interpreter() if debug else create_interpreter()

  while True:
    try:
      code = input("arith> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    if code.strip() in ("exit", "exit;"):
      break

    if not code.strip():
      continue

    try:
      handle_repl_line(code, parser, interpreter)
    except ArithParseError as e:
      print(str(e))
    except ArithRuntimeError as e:
      print("\nRuntime Error:")
      print(f"  {e.message}")
      if e.span:
        print(f"  Location: {e.span}")
      print()
    except KeyboardInterrupt:
      print("\nInterrupted")


def show_language_info() -> None:
  """Show Arith language information"""
  print("Arith Programming Language")
  print("=" * 50)
  print("An imperative language with:")
  print("• A single 64-bit integer value type")
  print("• C-like if/while/do-while/for statements")
  print("• Block scoping with assign-or-declare variables")
  print()


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for Arith"""
  if argv is None:
    argv = sys.argv[1:]

  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if not argv:
    # No arguments - show info and start interactive mode
    show_language_info()
    run_interactive_mode(debug=False)
    return

  if args.script and args.command is not None:
    arg_parser.error("give either a script file or -c CODE, not both")

  if args.script or args.command is not None:
    if args.parse:
      parse_source(args.script, args.command, debug=args.debug)
    else:
      run_source(args.script, args.command, debug=args.debug)

  elif args.interactive:
    run_interactive_mode(debug=args.debug)

  else:
    arg_parser.print_help()
    print()
    show_language_info()


if __name__ == "__main__":
  main()
