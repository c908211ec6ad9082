"""
Arith Programming Language Parser
pyparsing grammar for the C-like surface syntax, producing AST nodes directly
"""

from typing import List
import sys

from pyparsing import (
    Forward, Group, Keyword, Literal, MatchFirst, OpAssoc, Opt, ParseBaseException,
    ParserElement, Regex, StringEnd, Suppress, ZeroOrMore, DelimitedList,
    cpp_style_comment, infix_notation, col, line, lineno
)

from ast_nodes import (
    SourceSpan, Stmt, Expr, EmptyStatement, Block, If, IfElse, While, DoWhile, For,
    ExpressionStatement, Print, NumberLiteral, Variable, UnaryOp, BinaryOp
)
from error_handling import ArithParseError, ArithErrorHandler
from utilities import wrap_int

# Enable packrat parsing; infix_notation backtracks heavily without it
ParserElement.enable_packrat()


KEYWORDS = ('if', 'else', 'while', 'do', 'for', 'print')

# Prefix spellings mapped to the node operator
PREFIX_ALIASES = {'!': '~'}


class ArithGrammar:
  """Arith grammar definition using pyparsing"""

  def __init__(self, debug: bool = False):
    self.debug = debug
    self.filename = "<input>"
    self._setup_grammar()

  def _span(self, source: str, loc: int) -> SourceSpan:
    """Location of the first non-blank character at or after loc"""
    while loc < len(source) and source[loc].isspace():
      loc += 1
    line_num = lineno(loc, source)
    col_num = col(loc, source)
    return SourceSpan(self.filename, line_num, col_num, line_num, col_num + 1,
                      line(loc, source).strip())

  def _operand_span(self, operand, source: str, loc: int) -> SourceSpan:
    """Span of an operator node: where its leftmost operand starts"""
    span = getattr(operand, 'span', None)
    return span if span is not None else self._span(source, loc)

  def _setup_grammar(self):
    """Setup the expression and statement grammar"""

    # Punctuation
    LPAR, RPAR, LBRACE, RBRACE, SEMI = map(Suppress, "(){};")

    # Keywords
    IF, ELSE, WHILE, DO, FOR, PRINT = (Suppress(Keyword(k)) for k in KEYWORDS)
    reserved = MatchFirst([Keyword(k) for k in KEYWORDS])

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    expression = Forward()

    number = Regex(r'\d+').set_parse_action(lambda t: NumberLiteral(wrap_int(int(t[0]))))

    name = Regex(r'[A-Za-z_][A-Za-z0-9_]*').set_parse_action(
        lambda s, loc, t: Variable(t[0], self._span(s, loc))
    )
    identifier = ~reserved + name

    operand = number | identifier

    def make_postfix(s, loc, tokens):
      items = list(tokens[0])
      node = items[0]
      span = self._operand_span(node, s, loc)
      for op in items[1:]:
        node = UnaryOp(op, node, span)
      return node

    def make_prefix(s, loc, tokens):
      op, node = tokens[0]
      return UnaryOp(PREFIX_ALIASES.get(op, op), node, self._span(s, loc))

    def make_left_binary(s, loc, tokens):
      items = list(tokens[0])
      node = items[0]
      span = self._operand_span(node, s, loc)
      for i in range(1, len(items), 2):
        node = BinaryOp(items[i], node, items[i + 1], span)
      return node

    def make_right_binary(s, loc, tokens):
      items = list(tokens[0])
      node = items[-1]
      for i in range(len(items) - 2, 0, -2):
        node = BinaryOp(items[i], items[i - 1], node, self._operand_span(items[i - 1], s, loc))
      return node

    # Lookaheads keep single-character operators off their compound forms
    # ('&' must not eat '&&' or '&=', '-' must not eat '--' or '-=')
    expression <<= infix_notation(
        operand,
        [
            (Regex(r'\+\+|--'), 1, OpAssoc.LEFT, make_postfix),
            (Regex(r'\+\+|--|[-!~]'), 1, OpAssoc.RIGHT, make_prefix),
            (Regex(r'[*/](?!=)'), 2, OpAssoc.LEFT, make_left_binary),
            (Regex(r'\+(?![+=])|-(?![-=])'), 2, OpAssoc.LEFT, make_left_binary),
            (Regex(r'<=|>=|<|>'), 2, OpAssoc.LEFT, make_left_binary),
            (Regex(r'==|!='), 2, OpAssoc.LEFT, make_left_binary),
            (Regex(r'&(?![&=])'), 2, OpAssoc.LEFT, make_left_binary),
            (Regex(r'\^(?!=)'), 2, OpAssoc.LEFT, make_left_binary),
            (Regex(r'\|(?![|=])'), 2, OpAssoc.LEFT, make_left_binary),
            (Literal('&&'), 2, OpAssoc.LEFT, make_left_binary),
            (Literal('||'), 2, OpAssoc.LEFT, make_left_binary),
            (Regex(r'[-+*/&|^]?=(?!=)'), 2, OpAssoc.RIGHT, make_right_binary),
        ],
    )

    expression_list = Group(DelimitedList(expression))

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    statement = Forward()

    empty_statement = Literal(';').set_parse_action(lambda: EmptyStatement())

    block = (
        LBRACE + Group(ZeroOrMore(statement)) + RBRACE
    ).set_parse_action(lambda t: Block(tuple(t[0])))

    def make_if(tokens):
      if len(tokens) == 3:
        return IfElse(tokens[0], tokens[1], tokens[2])
      return If(tokens[0], tokens[1])

    if_statement = (
        IF + LPAR + expression + RPAR + statement + Opt(ELSE + statement)
    ).set_parse_action(make_if)

    while_statement = (
        WHILE + LPAR + expression + RPAR + statement
    ).set_parse_action(lambda t: While(t[0], t[1]))

    do_while_statement = (
        DO + statement + WHILE + LPAR + expression + RPAR + Opt(SEMI)
    ).set_parse_action(lambda t: DoWhile(t[0], t[1]))

    def make_for(tokens):
      init_exprs, condition, step, body = tokens
      init = ExpressionStatement(tuple(init_exprs)) if len(init_exprs) else EmptyStatement()
      return For(init, condition, step, body)

    for_init = Group(Opt(DelimitedList(expression)))
    for_statement = (
        FOR + LPAR + for_init + SEMI + expression + SEMI + expression + RPAR + statement
    ).set_parse_action(make_for)

    print_statement = (
        PRINT + expression + SEMI
    ).set_parse_action(lambda t: Print(t[0]))

    expression_statement = (
        expression_list + SEMI
    ).set_parse_action(lambda t: ExpressionStatement(tuple(t[0])))

    statement <<= (
        block |
        if_statement |
        while_statement |
        do_while_statement |
        for_statement |
        print_statement |
        empty_statement |
        expression_statement
    )

    program = ZeroOrMore(statement) + StringEnd()
    single_expression = expression + StringEnd()

    program.ignore(cpp_style_comment)
    single_expression.ignore(cpp_style_comment)

    # Store the main parsers
    self.program = program
    self.statement = statement
    self.expression = expression
    self.single_expression = single_expression

  def parse_program(self, text: str, filename: str = "<input>") -> List[Stmt]:
    """Parse a complete Arith program"""
    self.filename = filename
    try:
      result = self.program.parse_string(text, parse_all=True)
    except ParseBaseException as e:
      raise ArithErrorHandler(text, filename).enhance_parse_exception(e) from e
    statements = list(result)
    if self.debug:
      print(f"Parsed {len(statements)} top-level statements from {filename}", file=sys.stderr)
    return statements

  def parse_expression(self, text: str, filename: str = "<input>") -> Expr:
    """Parse a single Arith expression"""
    self.filename = filename
    try:
      result = self.single_expression.parse_string(text, parse_all=True)
    except ParseBaseException as e:
      raise ArithErrorHandler(text, filename).enhance_parse_exception(e) from e
    return result[0]


class ArithParser:
  """Main Arith parser: reads files and strings into AST statement lists"""

  def __init__(self, debug: bool = False):
    self.debug = debug
    self.grammar = ArithGrammar(debug)

  def parse_file(self, filepath: str) -> List[Stmt]:
    """Parse an Arith source file"""
    try:
      with open(filepath, 'r', encoding='utf-8') as f:
        content = f.read()
    except FileNotFoundError:
      raise ArithParseError(f"File not found: {filepath}")
    except UnicodeDecodeError as e:
      raise ArithParseError(f"Cannot decode file {filepath}: {e}")
    return self.grammar.parse_program(content, filepath)

  def parse_string(self, text: str, filename: str = "<input>") -> List[Stmt]:
    """Parse Arith source code from string"""
    return self.grammar.parse_program(text, filename)

  def parse_expression(self, text: str, filename: str = "<input>") -> Expr:
    """Parse a single Arith expression"""
    return self.grammar.parse_expression(text, filename)


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> ArithParser:
  """Create an Arith parser"""
  return ArithParser(debug=debug)


def create_debug_parser() -> ArithParser:
  """Create an Arith parser with debug enabled"""
  return ArithParser(debug=True)
