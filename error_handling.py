"""
Error handling for the Lox front end, resolver and interpreter
Plain record factories and formatters, plus the exception classes raised at each stage
"""

from typing import Any, List, Optional, Dict
from pyparsing import ParseBaseException
import re


# ============================================================================
# ERROR RECORDS
# ============================================================================

def make_parse_error(message: str, line: int, lexeme: Optional[str], expected: Optional[List[str]] = None,
                     excerpt: str = "", hints: Optional[List[str]] = None, filename: str = "<input>") -> Dict:
    """
    Record for a syntax error that stopped the parse.

    `lexeme` is None when the parser ran off the end of the input.
    """
    return {
        'message': message,
        'line': line,
        'lexeme': lexeme,
        'expected': expected or [],
        'excerpt': excerpt,
        'hints': hints or [],
        'filename': filename
    }


def format_parse_error(error: Dict) -> str:
    """'[line N] Error at 'x': Expect ...' with the offending line and any hints below"""
    where = " at end" if error['lexeme'] is None else f" at '{error['lexeme']}'"
    parts = [f"[line {error['line']}] Error{where}: {error['message']}"]
    if error['excerpt']:
        parts.append(error['excerpt'])
    parts.extend(f"  hint: {hint}" for hint in error['hints'])
    return '\n'.join(parts)


def make_static_error(token: Any, message: str) -> Dict:
    """Create a static (resolver or non-fatal syntax) error record"""
    return {
        'message': message,
        'line': token.line if token is not None else 0,
        'lexeme': token.lexeme if token is not None else "",
        'span': token.span if token is not None else None
    }


def format_static_error(error: Dict) -> str:
    """Format a static error as '[line N] Error at 'x': message'"""
    where = f" at '{error['lexeme']}'" if error['lexeme'] else ""
    return f"[line {error['line']}] Error{where}: {error['message']}"


# ============================================================================
# SYNTAX ERROR DIAGNOSIS
# ============================================================================

# One Lox token: word, number, string opening, two-char operator or single char
_TOKEN_AT = re.compile(r'[A-Za-z_][A-Za-z0-9_]*|\d+(?:\.\d+)?|"|[=!<>]=|\S')


def token_at(source_text: str, loc: int) -> Optional[str]:
    """The lexeme starting at (or after whitespace following) `loc`, None at end of input"""
    match = _TOKEN_AT.search(source_text, loc)
    return match.group(0) if match else None


def source_excerpt(source_text: str, line_num: int, col_num: int) -> str:
    """The offending line with a caret under the error column"""
    lines = source_text.split('\n')
    if not 0 < line_num <= len(lines):
        return ""
    gutter = f"{line_num:4d} | "
    return f"{gutter}{lines[line_num - 1]}\n{' ' * (len(gutter) + col_num - 1)}^"


def expected_items(exc: ParseBaseException) -> List[str]:
    """What the grammar wanted, taken from pyparsing's 'Expected X, found Y' message"""
    match = re.match(r"Expected\s+(.+?)(?:,\s+found\b.*)?$", str(exc.msg))
    if not match:
        return []
    wanted = match.group(1)
    if wanted == "end of text":
        return ["declaration"]
    return [wanted]


def syntax_hints(lexeme: Optional[str], expected: List[str], source_line: str = "") -> List[str]:
    """Likely causes for common Lox syntax mistakes"""
    hints = []
    wanted = " ".join(expected)

    if "';'" in wanted:
        hints.append("statements end with ';', check the end of the previous line")
    if "'}'" in wanted:
        hints.append("a block or class body is missing its closing '}'")
    if "')'" in wanted:
        hints.append("every '(' needs a matching ')'")
    if lexeme == "}" and wanted == "declaration":
        hints.append("this '}' has no matching '{'")

    first_word = source_line.strip().split(" ", 1)[0]
    if first_word in ("let", "const"):
        hints.append("variables are declared with 'var'")
    elif first_word in ("function", "def", "func"):
        hints.append("functions are declared with 'fun'")
    elif first_word == "else" and "if" not in source_line:
        hints.append("'else' must directly follow the statement of an 'if'")

    return hints


def diagnose_parse_exception(exc: ParseBaseException, source_text: str, filename: str = "<input>") -> Dict:
    """Turn a pyparsing failure into a parse error record"""
    lexeme = token_at(source_text, exc.loc)
    # Report the line of the offending token, not of the whitespace before it
    loc = exc.loc
    if lexeme is not None:
        loc = source_text.index(lexeme, exc.loc)
    line_num = source_text.count('\n', 0, loc) + 1
    col_num = loc - (source_text.rfind('\n', 0, loc) + 1) + 1

    expected = expected_items(exc)
    message = f"Expect {' or '.join(expected)}." if expected else "Invalid syntax."
    lines = source_text.split('\n')
    source_line = lines[line_num - 1] if 0 < line_num <= len(lines) else ""

    return make_parse_error(
        message=message,
        line=line_num,
        lexeme=lexeme,
        expected=expected,
        excerpt=source_excerpt(source_text, line_num, col_num),
        hints=syntax_hints(lexeme, expected, source_line),
        filename=filename
    )


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class LoxParseError(Exception):
    """
    Syntax errors from the front end.

    A parse stopped by the grammar carries one diagnosed record in `error`;
    a parse that completed but broke a non-fatal rule (bad assignment
    target, too many arguments) carries every such record in `errors`.
    """
    def __init__(self, message: str, line: int = 0, filename: str = "<input>",
                 error: Optional[Dict] = None, errors: Optional[List[Dict]] = None):
        self.message = message
        self.line = line
        self.filename = filename
        self.error = error
        self.errors = errors or []
        super().__init__(message)

    @property
    def expected(self) -> List[str]:
        return self.error['expected'] if self.error else []

    def __str__(self) -> str:
        if self.errors:
            return '\n'.join(format_static_error(error) for error in self.errors)
        if self.error:
            return format_parse_error(self.error)
        return self.message


class LoxResolveError(Exception):
    """All static errors found by one resolver pass"""
    def __init__(self, errors: List[Dict]):
        self.errors = list(errors)
        self.message = f"{len(self.errors)} static error(s)"
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        return '\n'.join(format_static_error(error) for error in self.errors)


class LoxRuntimeError(Exception):
    """Runtime error carrying the offending token"""
    def __init__(self, token: Any, message: str):
        self.token = token
        self.message = message
        super().__init__(message)

    @property
    def line(self) -> int:
        return self.token.line if self.token is not None else 0

    @property
    def span(self) -> Any:
        return self.token.span if self.token is not None else None

    def __str__(self) -> str:
        return format_runtime_error(self)


def format_runtime_error(error: LoxRuntimeError) -> str:
    """Format a runtime error as 'message' followed by '[line N]'"""
    if error.token is None or error.line == 0:
        return error.message
    return f"{error.message}\n[line {error.line}]"


class LoxErrorHandler:
    """Turns parse failures for one source text into LoxParseError"""
    def __init__(self, source_text: str, filename: str = "<input>"):
        self.source_text = source_text
        self.filename = filename

    def enhance_parse_exception(self, exc: ParseBaseException) -> LoxParseError:
        """Diagnose a pyparsing exception against the source text"""
        error = diagnose_parse_exception(exc, self.source_text, self.filename)
        return LoxParseError(error['message'], line=error['line'], filename=self.filename, error=error)

    def collected_errors(self, errors: List[Dict]) -> LoxParseError:
        """Wrap non-fatal syntax errors into a single exception"""
        first = errors[0]
        return LoxParseError(first['message'], line=first['line'], filename=self.filename, errors=errors)
