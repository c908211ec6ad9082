"""
Error taxonomy and error reporting for the Arith interpreter
Runtime errors abort the whole program; parse errors carry source context
"""

from typing import Any, Dict, List, Optional
from pyparsing import ParseBaseException
import re

from ast_nodes import SourceSpan


# ============================================================================
# RUNTIME ERRORS
# ============================================================================

class ArithRuntimeError(Exception):
  """Base class for every error that aborts evaluation"""

  def __init__(self, message: str, span: Optional[SourceSpan] = None):
    self.message = message
    self.span = span
    self.source_line = span.text if span else None
    # Filled in by the innermost exec_statement the error passes through
    self.env_snapshot: Optional[List[Dict[str, int]]] = None
    super().__init__(message)

  def __str__(self) -> str:
    if self.span:
      return f"{self.message} (at {self.span})"
    return self.message


class ExpectedVariable(ArithRuntimeError):
  """An assigning operator was applied to something other than a variable"""

  def __init__(self, operator: str, span: Optional[SourceSpan] = None):
    self.operator = operator
    super().__init__(f"Expected a variable as the target of '{operator}'", span)


class UndefinedVariable(ArithRuntimeError):
  """A read referenced a name that no active scope defines"""

  def __init__(self, name: str, span: Optional[SourceSpan] = None):
    self.name = name
    super().__init__(f"Undefined variable '{name}'", span)


class DivisionByZero(ArithRuntimeError):
  """Integer division (or /=) with a zero divisor"""

  def __init__(self, operator: str = "/", span: Optional[SourceSpan] = None):
    self.operator = operator
    super().__init__(f"Division by zero in '{operator}'", span)


class InternalInvariantError(ArithRuntimeError):
  """A bug in AST construction or in the evaluator, never a user error"""
  pass


class MalformedNode(InternalInvariantError):
  """A node kind reached a dispatch point that does not handle it"""

  def __init__(self, node: Any, expected: str = "node"):
    self.node = node
    super().__init__(f"Malformed {expected}: {type(node).__name__} {node!r}")


class ScopeUnderflow(InternalInvariantError):
  """pop_scope was asked to remove the global frame"""

  def __init__(self):
    super().__init__("Scope stack underflow: the global frame cannot be popped")


# ============================================================================
# PARSE ERRORS
# ============================================================================

def make_parse_error(
    message: str,
    line: int,
    column: int,
    expected: Optional[List[str]] = None,
    got: Optional[str] = None,
    context: Optional[str] = None,
    suggestions: Optional[List[str]] = None
) -> Dict:
  """Create a parse error description"""
  return {
      'message': message,
      'line': line,
      'column': column,
      'expected': expected or [],
      'got': got,
      'context': context,
      'suggestions': suggestions or []
  }


def format_parse_error(error: Dict) -> str:
  """Render a parse error description as an indented multi-line report"""
  report = [
      f"Parse error at line {error['line']}, column {error['column']}:",
      f"  {error['message']}",
  ]
  if error['expected']:
    report.append("  Expected: " + ", ".join(error['expected']))
  if error['got']:
    report.append(f"  Got: {error['got']}")
  if error['context']:
    report.append("  Context:")
    report.append(error['context'])
  if error['suggestions']:
    report.append("  Suggestions:")
    report.extend(f"    - {hint}" for hint in error['suggestions'])
  return "\n".join(report) + "\n"


def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
  """Numbered source lines around line_num, with a caret under col_num"""
  source_lines = source_text.splitlines() or [""]
  first = max(1, line_num - context_lines)
  last = min(len(source_lines), line_num + context_lines)

  rendered = []
  for number in range(first, last + 1):
    rendered.append(f"{number:4d}: {source_lines[number - 1]}")
    if number == line_num:
      rendered.append(" " * (6 + col_num - 1) + "^ Error here")
  return "\n".join(rendered)


def extract_expected(exc: ParseBaseException) -> List[str]:
  """Extract the expected element from a pyparsing exception message"""
  expected_match = re.search(r"Expected\s+(.+?)(?:,\s+found|\s+\(at|$)", str(exc))
  if expected_match:
    return [expected_match.group(1)]
  return ["valid syntax"]


def extract_got(source_text: str, line_num: int, col_num: int) -> str:
  """Up to ten characters of source starting at the error column"""
  source_lines = source_text.splitlines()
  if not 0 < line_num <= len(source_lines):
    return "end of input"

  snippet = source_lines[line_num - 1][col_num - 1:col_num + 10].strip()
  return f"'{snippet}'" if snippet else "end of line"


def generate_suggestions(got: str, expected: List[str]) -> List[str]:
  """Generate hints for the mistakes people usually make"""
  suggestions = []
  expected_text = " ".join(expected)

  if "';'" in expected_text or got in ("end of line", "end of input"):
    suggestions.append("Statements end with ';' (a do-while may omit it)")

  if "'('" in expected_text:
    suggestions.append("Conditions of if/while/for must be parenthesized")

  if got.startswith("'\"") or got.startswith("''"):
    suggestions.append("Only integer values exist; string literals are not supported")

  if re.match(r"'\d+\.\d", got):
    suggestions.append("Only integer literals are supported")

  return suggestions


def enhance_parse_exception_dict(exc: ParseBaseException, source_text: str) -> Dict:
  """Convert pyparsing exception to an error description"""
  line_num = exc.lineno
  col_num = exc.column

  context = get_context_lines(source_text, line_num, col_num)
  expected = extract_expected(exc)
  got = extract_got(source_text, line_num, col_num)
  suggestions = generate_suggestions(got, expected)

  return make_parse_error(
      message=exc.msg,
      line=line_num,
      column=col_num,
      expected=expected,
      got=got,
      context=context,
      suggestions=suggestions
  )


class ArithParseError(Exception):
  """Parse error with source location and a rendered report"""

  def __init__(self, message: str, span: Optional[SourceSpan] = None, context: str = "",
               expected: Optional[List[str]] = None, got: Optional[str] = None,
               suggestions: Optional[List[str]] = None):
    self.message = message
    self.span = span
    self.context = context
    self.expected = expected or []
    self.got = got
    self.suggestions = suggestions or []
    super().__init__(message)

  def __str__(self) -> str:
    if not self.span:
      return f"Parse error: {self.message}"
    error_dict = make_parse_error(
        self.message, self.span.start_line, self.span.start_col,
        self.expected, self.got, self.context, self.suggestions
    )
    return f"{self.span.filename}: " + format_parse_error(error_dict)


class ArithErrorHandler:
  """Turns pyparsing exceptions into ArithParseError for one source text"""

  def __init__(self, source_text: str, filename: str = "<input>"):
    self.source_text = source_text
    self.filename = filename

  def enhance_parse_exception(self, exc: ParseBaseException) -> ArithParseError:
    error_dict = enhance_parse_exception_dict(exc, self.source_text)
    span = SourceSpan(self.filename, error_dict['line'], error_dict['column'],
                      error_dict['line'], error_dict['column'] + 1, exc.line)
    return ArithParseError(
        message=error_dict['message'],
        span=span,
        context=error_dict['context'],
        expected=error_dict['expected'],
        got=error_dict['got'],
        suggestions=error_dict['suggestions']
    )
