"""
Lox sessions for multi-threaded hosts
One interpreter per actor; pykka's mailbox runs the host's requests one at a time
"""

from typing import Any, Callable, Dict, Optional
import io
import uuid

import pykka

from parsing import create_parser
from semantics import create_resolver
from interpreter import create_interpreter
from error_handling import LoxParseError, LoxResolveError, LoxRuntimeError
from stdlib import NativeFunction


# ============================================================================
# DATA STRUCTURES (Plain Dictionaries)
# ============================================================================

def make_run_result(status: str, output: str = "", phase: Optional[str] = None,
                    error: Optional[str] = None) -> Dict:
  """Create the record returned for one `run` request"""
  return {
      'status': status,
      'phase': phase,
      'output': output,
      'error': error
  }


# ============================================================================
# ACTOR SYSTEM (Using Pykka)
# ============================================================================

class SessionRegistry:
  """Registry for managing live sessions"""

  def __init__(self):
    self.sessions: Dict[str, pykka.ActorRef] = {}

  def register(self, session_id: str, actor_ref: pykka.ActorRef):
    """Register a session"""
    self.sessions[session_id] = actor_ref

  def get_session(self, session_id: str) -> Optional[pykka.ActorRef]:
    """Get session by ID"""
    return self.sessions.get(session_id)

  def unregister(self, session_id: str):
    self.sessions.pop(session_id, None)

  def terminate_all(self):
    """Stop every session that is still running"""
    for actor_ref in list(self.sessions.values()):
      if actor_ref.is_alive():
        actor_ref.stop()
    self.sessions.clear()


# Global session registry
_session_registry = SessionRegistry()


class LoxSessionActor(pykka.ThreadingActor):
  """
  Owns one parser, resolver and interpreter.

  Globals persist across `run` calls, as they do in the REPL.
  """

  def __init__(self, session_id: str, debug: bool = False, echo_expressions: bool = False):
    super().__init__()
    self.session_id = session_id
    self.parser = create_parser(debug)
    self.resolver = create_resolver(debug)
    self.interpreter = create_interpreter(debug, echo_expressions=echo_expressions)

  def on_stop(self):
    _session_registry.unregister(self.session_id)

  def run(self, source: str, filename: str = "<session>") -> Dict:
    """Parse, resolve and execute `source`, capturing what it prints"""
    output = io.StringIO()
    self.interpreter.stdout = output
    try:
      statements = self.parser.parse_string(source, filename)
      side_table = self.resolver.resolve(statements)
      self.interpreter.interpret(statements, side_table)
    except LoxParseError as e:
      return make_run_result("error", output.getvalue(), "parse", str(e))
    except LoxResolveError as e:
      return make_run_result("error", output.getvalue(), "resolve", str(e))
    except LoxRuntimeError as e:
      return make_run_result("error", output.getvalue(), "runtime", str(e))
    finally:
      self.interpreter.stdout = None
    return make_run_result("ok", output.getvalue())

  def define_native(self, name: str, arity: int, fn: Callable[..., Any]) -> None:
    """Expose a host function to Lox code as a global"""
    self.interpreter.globals.define(name, NativeFunction(name, arity, fn))

  def get_global(self, name: str) -> Any:
    """Current value of a global, or None when it is not defined"""
    return self.interpreter.globals.values.get(name)


def start_session(debug: bool = False, echo_expressions: bool = False) -> pykka.ActorProxy:
  """Start a session actor and return its proxy"""
  session_id = str(uuid.uuid4())
  actor_ref = LoxSessionActor.start(session_id, debug, echo_expressions)
  _session_registry.register(session_id, actor_ref)
  return actor_ref.proxy()


def get_session(session_id: str) -> Optional[pykka.ActorProxy]:
  actor_ref = _session_registry.get_session(session_id)
  if actor_ref is None:
    return None
  return actor_ref.proxy()


def terminate_all() -> None:
  """Stop all sessions started through start_session"""
  _session_registry.terminate_all()
