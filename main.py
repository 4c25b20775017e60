"""
Lox Programming Language - Main Entry Point
A small dynamically-typed, class-based scripting language
"""

import sys
import argparse
from pathlib import Path
from typing import List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from parsing import create_parser, create_debug_parser, pretty_print_ast, KEYWORDS
from semantics import create_resolver, create_debug_resolver
from interpreter import create_interpreter, create_debug_interpreter
from error_handling import LoxParseError, LoxResolveError, LoxRuntimeError


VERSION = "Lox v1.0.0 (Tree-walking Interpreter)"

# Exit codes (sysexits.h)
EXIT_DATAERR = 65
EXIT_SOFTWARE = 70
EXIT_IOERR = 74


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      description='Lox Programming Language - tree-walking interpreter',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.lox             # Run a Lox script
  %(prog)s -i                     # Interactive mode
  %(prog)s --parse script.lox     # Parse and show the syntax tree
  %(prog)s --resolve script.lox   # Parse, resolve and show local distances
  %(prog)s --debug script.lox     # Run with debug output
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
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
      help='Parse file and show the syntax tree (for debugging)'
  )

  parser.add_argument(
      '--resolve',
      action='store_true',
      help='Parse and resolve file, show resolved distances (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def read_source(script_path: str) -> str:
  """Read a script, exiting with a readable message when that fails"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found", file=sys.stderr)
    print(f"  Hint: Check the file path and make sure the file exists", file=sys.stderr)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'", file=sys.stderr)
    print(f"  Hint: Make sure you have read permissions for this file", file=sys.stderr)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}", file=sys.stderr)
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding", file=sys.stderr)
  sys.exit(EXIT_IOERR)


def parse_file(script_path: str, debug: bool = False) -> None:
  """Parse a Lox script file and show the syntax tree"""
  parser = create_debug_parser() if debug else create_parser()
  source = read_source(script_path)

  try:
    statements = parser.parse_string(source, script_path)
  except LoxParseError as e:
    print(f"Parse error in '{script_path}': {e}", file=sys.stderr)
    sys.exit(EXIT_DATAERR)

  print(f"Parsed {len(statements)} top-level statements:")
  print("=" * 50)
  print(pretty_print_ast(statements), end='')


def resolve_file(script_path: str, debug: bool = False) -> None:
  """Parse and resolve a Lox script file and show every local distance"""
  parser = create_debug_parser() if debug else create_parser()
  resolver = create_debug_resolver() if debug else create_resolver()
  source = read_source(script_path)

  try:
    statements = parser.parse_string(source, script_path)
    side_table = resolver.resolve(statements)
  except LoxParseError as e:
    print(f"Parse error in '{script_path}': {e}", file=sys.stderr)
    sys.exit(EXIT_DATAERR)
  except LoxResolveError as e:
    print(f"Static error(s) in '{script_path}':\n{e}", file=sys.stderr)
    sys.exit(EXIT_DATAERR)

  print(f"Resolved {len(side_table)} local references:")
  print("=" * 50)
  entries = []
  for expr, distance in side_table.items():
    token = getattr(expr, 'name', None) or getattr(expr, 'keyword', None)
    entries.append((token.line, token.lexeme, type(expr).__name__, distance))
  for line, lexeme, kind, distance in sorted(entries):
    print(f"  line {line:4d}  {kind:<8} {lexeme:<16} -> {distance}")


def run_source(source: str, filename: str, parser, resolver, interpreter) -> None:
  """Parse, resolve and interpret one chunk of source; errors propagate"""
  statements = parser.parse_string(source, filename)
  side_table = resolver.resolve(statements)
  interpreter.interpret(statements, side_table)


def run_script_file(script_path: str, debug: bool = False) -> None:
  """Run a Lox script file with full interpretation"""
  parser = create_debug_parser() if debug else create_parser()
  resolver = create_debug_resolver() if debug else create_resolver()
  interpreter = create_debug_interpreter() if debug else create_interpreter()
  source = read_source(script_path)

  try:
    run_source(source, script_path, parser, resolver, interpreter)
  except LoxParseError as e:
    print(f"Parse error in '{script_path}': {e}", file=sys.stderr)
    sys.exit(EXIT_DATAERR)
  except LoxResolveError as e:
    print(e, file=sys.stderr)
    sys.exit(EXIT_DATAERR)
  except LoxRuntimeError as e:
    print(e, file=sys.stderr)
    if debug and e.span:
      print(f"Location: {e.span}", file=sys.stderr)
    sys.exit(EXIT_SOFTWARE)
  except Exception as e:
    print(f"Unexpected error while executing '{script_path}': {e}", file=sys.stderr)
    if debug:
      import traceback
      traceback.print_exc()
    sys.exit(EXIT_SOFTWARE)


def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.lox_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  completions = list(KEYWORDS) + ["clock", ":parse", ":help", ":quit"]

  def completer(text, state):
    options = [word for word in completions if word.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  # Save history on exit
  import atexit
  atexit.register(readline.write_history_file, history_file)


def run_interactive_mode(debug: bool = False, preload: Optional[str] = None) -> None:
  """Run Lox in interactive mode; globals persist between lines"""
  print(f"{VERSION} - Interactive Mode")
  print("Type ':quit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_debug_parser() if debug else create_parser()
  resolver = create_debug_resolver() if debug else create_resolver()
  interpreter = create_interpreter(debug=debug)

  if preload is not None:
    # Declarations from the script stay visible at the prompt
    try:
      run_source(read_source(preload), preload, parser, resolver, interpreter)
    except (LoxParseError, LoxResolveError, LoxRuntimeError) as e:
      print(e)
  interpreter.echo_expressions = True

  while True:
    try:
      code = input("> ")
    except KeyboardInterrupt:
      print("\nGoodbye!")
      break
    except EOFError:
      print("\nGoodbye!")
      break

    stripped = code.strip()
    if not stripped:
      continue

    if stripped in (":quit", ":q"):
      break

    if stripped == ":help":
      print("REPL Commands:")
      print("  :parse <code>     - Show the syntax tree")
      print("  :help             - Show this help")
      print("  :quit             - Exit REPL")
      print()
      print("Expression statements print their value: `1 + 2;` shows 3")
      continue

    if stripped.startswith(":parse "):
      try:
        print(pretty_print_ast(parser.parse_string(stripped[7:], "<repl>")), end='')
      except LoxParseError as e:
        print(f"Parse error: {e}")
      continue

    try:
      run_source(code, "<repl>", parser, resolver, interpreter)
    except LoxParseError as e:
      print(f"Parse error: {e}")
    except LoxResolveError as e:
      print(e)
    except LoxRuntimeError as e:
      print(e)
    except Exception as e:
      print(f"Unexpected error: {e}")
      if debug:
        import traceback
        traceback.print_exc()


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for Lox"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.script and not args.interactive:
    if not Path(args.script).exists():
      print(f"Error: Script file '{args.script}' does not exist", file=sys.stderr)
      sys.exit(EXIT_IOERR)

    if args.parse:
      parse_file(args.script, debug=args.debug)
    elif args.resolve:
      resolve_file(args.script, debug=args.debug)
    else:
      run_script_file(args.script, debug=args.debug)

  else:
    # No script, or -i: interactive mode, preloading the script if one was given
    run_interactive_mode(debug=args.debug, preload=args.script)


if __name__ == "__main__":
  main()
