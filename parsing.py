"""
Lox Programming Language Parser
pyparsing grammar producing the statement/expression tree consumed by the resolver
"""

from typing import List, Dict, Any, Optional, Callable
from dataclasses import fields, is_dataclass
import sys

# Import pyparsing with error handling
try:
    import pyparsing as pp
    # Enable packrat parsing for performance
    pp.ParserElement.enable_packrat()
except ImportError:
    raise ImportError("pyparsing library not found. Install with: pip install pyparsing")

from ast_nodes import (
    SourceSpan, Token,
    Expr, Assign, Binary, Call, Get, Grouping, Literal, Logical, Set, Super, This, Unary, Variable,
    Stmt, Block, Class, Expression, Function, If, Print, Return, Var, While,
)
from error_handling import LoxErrorHandler, LoxParseError, make_static_error
from utilities import raise_recursion_limit


KEYWORDS = (
    "and", "class", "else", "false", "for", "fun", "if", "nil",
    "or", "print", "return", "super", "this", "true", "var", "while",
)

MAX_ARGUMENTS = 255


class LoxGrammar:
    """Lox grammar definition using pyparsing"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.filename = "<input>"
        # Non-fatal syntax errors recorded by parse actions during one parse
        self.errors: List[Dict] = []
        raise_recursion_limit()
        self._setup_grammar()

    # ------------------------------------------------------------------
    # Token and node builders (parse actions)
    # ------------------------------------------------------------------

    def _span(self, s: str, loc: int, text: str) -> SourceSpan:
        line = pp.lineno(loc, s)
        column = pp.col(loc, s)
        end = loc + len(text)
        return SourceSpan(self.filename, line, column, pp.lineno(end, s), pp.col(end, s), text)

    def _token(self, token_type: str) -> Callable:
        def action(s, loc, toks):
            text = toks[0]
            return Token(token_type, text, self._span(s, loc, text))
        return action

    def _error(self, token: Token, message: str) -> None:
        self.errors.append(make_static_error(token, message))

    def _fold_binary(self, node_class: type) -> Callable:
        """Left-associative fold of `operand (op operand)*`"""
        def action(s, loc, toks):
            items = list(toks)
            result = items[0]
            for i in range(1, len(items), 2):
                result = node_class(result, items[i], items[i + 1])
            return result
        return action

    def _make_unary(self, s, loc, toks):
        return Unary(toks[0], toks[1])

    def _make_call_chain(self, s, loc, toks):
        items = list(toks)
        expr = items[0]
        for suffix in items[1:]:
            if suffix[0] == "CALL":
                expr = Call(expr, suffix[1], suffix[2])
            else:
                expr = Get(expr, suffix[1])
        return expr

    def _make_call_suffix(self, s, loc, toks):
        arguments = list(toks[0])
        paren = toks[1]
        if len(arguments) > MAX_ARGUMENTS:
            self._error(paren, f"Can't have more than {MAX_ARGUMENTS} arguments.")
        return ("CALL", paren, arguments)

    def _make_assignment(self, s, loc, toks):
        items = list(toks)
        target = items[0]
        if len(items) == 1:
            return target
        equals, value = items[1], items[2]
        if isinstance(target, Variable):
            return Assign(target.name, value)
        if isinstance(target, Get):
            return Set(target.target, target.name, value)
        self._error(equals, "Invalid assignment target.")
        return target

    def _make_function(self, s, loc, toks):
        name = toks[0]
        params = list(toks[1])
        if len(params) > MAX_ARGUMENTS:
            self._error(params[MAX_ARGUMENTS], f"Can't have more than {MAX_ARGUMENTS} parameters.")
        return Function(name, params, list(toks[2]))

    def _make_class(self, s, loc, toks):
        name = toks[0]
        superclass = toks[1][0] if len(toks[1]) else None
        methods = []
        static_methods = []
        for member in toks[2]:
            if isinstance(member, tuple):
                static_methods.append(member[1])
            else:
                methods.append(member)
        return Class(name, superclass, methods, static_methods)

    def _make_var(self, s, loc, toks):
        initializer = toks[1][0] if len(toks[1]) else None
        return Var(toks[0], initializer)

    def _make_if(self, s, loc, toks):
        else_branch = toks[2][0] if len(toks[2]) else None
        return If(toks[0], toks[1], else_branch)

    def _make_return(self, s, loc, toks):
        value = toks[1][0] if len(toks[1]) else None
        return Return(toks[0], value)

    def _make_for(self, s, loc, toks):
        """Desugar a for loop into blocks and a while loop"""
        initializer = toks[0][0] if len(toks[0]) else None
        condition = toks[1][0] if len(toks[1]) else None
        increment = toks[2][0] if len(toks[2]) else None
        body = toks[3]

        if increment is not None:
            body = Block([body, Expression(increment)])
        if condition is None:
            condition = Literal(True)
        body = While(condition, body)
        if initializer is not None:
            body = Block([initializer, body])
        return body

    # ------------------------------------------------------------------
    # Grammar
    # ------------------------------------------------------------------

    def _setup_grammar(self):
        """Setup the Lox grammar"""

        # Forward declarations for recursive structures
        expression = pp.Forward()
        declaration = pp.Forward()
        statement = pp.Forward()
        unary = pp.Forward()
        assignment = pp.Forward()

        # Keywords
        kw = {name: pp.Keyword(name) for name in KEYWORDS}
        reserved = "|".join(KEYWORDS)

        # Punctuation
        LPAREN, RPAREN = pp.Suppress("("), pp.Suppress(")")
        LBRACE, RBRACE = pp.Suppress("{"), pp.Suppress("}")
        SEMI, COMMA, DOT = pp.Suppress(";"), pp.Suppress(","), pp.Suppress(".")

        # Literals and identifiers
        identifier = pp.Regex(rf"(?!(?:{reserved})\b)[A-Za-z_][A-Za-z0-9_]*").set_name("identifier")
        identifier.set_parse_action(self._token("IDENTIFIER"))
        number = pp.Regex(r"\d+(?:\.\d+)?").set_parse_action(lambda s, loc, toks: Literal(float(toks[0])))
        # Strings may span lines and carry no escape sequences
        string = pp.Regex(r'"[^"]*"').set_parse_action(lambda s, loc, toks: Literal(toks[0][1:-1]))

        # Operators (tokens keep their lexeme and position for diagnostics)
        equals = pp.Regex(r"=(?!=)").set_parse_action(self._token("OPERATOR"))
        equality_op = pp.Regex(r"==|!=").set_parse_action(self._token("OPERATOR"))
        comparison_op = pp.Regex(r"<=|>=|<|>").set_parse_action(self._token("OPERATOR"))
        term_op = pp.Regex(r"[-+]").set_parse_action(self._token("OPERATOR"))
        factor_op = pp.Regex(r"\*|/(?![/*])").set_parse_action(self._token("OPERATOR"))
        unary_op = pp.Regex(r"!(?!=)|-").set_parse_action(self._token("OPERATOR"))
        and_op = pp.Keyword("and").set_parse_action(self._token("AND"))
        or_op = pp.Keyword("or").set_parse_action(self._token("OR"))
        right_paren = pp.Literal(")").set_parse_action(self._token("RIGHT_PAREN"))

        super_kw = pp.Keyword("super").set_parse_action(self._token("SUPER"))
        return_kw = pp.Keyword("return").set_parse_action(self._token("RETURN"))

        # Primary expressions
        true_lit = pp.Keyword("true").set_parse_action(lambda s, loc, toks: Literal(True))
        false_lit = pp.Keyword("false").set_parse_action(lambda s, loc, toks: Literal(False))
        nil_lit = pp.Keyword("nil").set_parse_action(lambda s, loc, toks: Literal(None))
        this_expr = pp.Keyword("this").set_parse_action(
            self._token("THIS"), lambda s, loc, toks: This(toks[0]))
        super_expr = (super_kw - DOT - identifier).set_parse_action(
            lambda s, loc, toks: Super(toks[0], toks[1]))
        variable = identifier.copy().add_parse_action(lambda s, loc, toks: Variable(toks[0]))
        grouping = (LPAREN - expression - RPAREN).set_parse_action(lambda s, loc, toks: Grouping(toks[0]))

        primary = (true_lit | false_lit | nil_lit | number | string | this_expr | super_expr | variable
                   | grouping).set_name("expression")

        # Calls and property access
        arguments = expression + pp.ZeroOrMore(COMMA + expression)
        call_suffix = (LPAREN - pp.Group(pp.Optional(arguments)) - right_paren).set_parse_action(
            self._make_call_suffix)
        get_suffix = (DOT - identifier).set_parse_action(lambda s, loc, toks: ("GET", toks[0]))
        call = (primary + pp.ZeroOrMore(call_suffix | get_suffix)).set_parse_action(self._make_call_chain)

        # Operator precedence, lowest binding last
        unary <<= ((unary_op - unary).set_parse_action(self._make_unary) | call).set_name("expression")
        factor = (unary + pp.ZeroOrMore(factor_op - unary)).set_parse_action(self._fold_binary(Binary))
        term = (factor + pp.ZeroOrMore(term_op - factor)).set_parse_action(self._fold_binary(Binary))
        comparison = (term + pp.ZeroOrMore(comparison_op - term)).set_parse_action(self._fold_binary(Binary))
        equality = (comparison + pp.ZeroOrMore(equality_op - comparison)).set_parse_action(
            self._fold_binary(Binary))
        logic_and = (equality + pp.ZeroOrMore(and_op - equality)).set_parse_action(self._fold_binary(Logical))
        logic_or = (logic_and + pp.ZeroOrMore(or_op - logic_and)).set_parse_action(self._fold_binary(Logical))
        assignment <<= (logic_or + pp.Optional(equals - assignment)).set_parse_action(self._make_assignment)
        expression <<= assignment

        # Statements
        expr_stmt = (expression - SEMI).set_parse_action(lambda s, loc, toks: Expression(toks[0]))
        print_stmt = (pp.Suppress(kw["print"]) - expression - SEMI).set_parse_action(
            lambda s, loc, toks: Print(toks[0]))
        return_stmt = (return_kw - pp.Group(pp.Optional(expression)) - SEMI).set_parse_action(
            self._make_return)
        var_decl = (pp.Suppress(kw["var"]) - identifier - pp.Group(pp.Optional(pp.Suppress(equals) - expression))
                    - SEMI).set_parse_action(self._make_var)
        block = (LBRACE - pp.Group(pp.ZeroOrMore(declaration)) - RBRACE).set_parse_action(
            lambda s, loc, toks: Block(list(toks[0])))
        if_stmt = (pp.Suppress(kw["if"]) - LPAREN - expression - RPAREN - statement
                   - pp.Group(pp.Optional(pp.Suppress(kw["else"]) - statement))).set_parse_action(self._make_if)
        while_stmt = (pp.Suppress(kw["while"]) - LPAREN - expression - RPAREN - statement).set_parse_action(
            lambda s, loc, toks: While(toks[0], toks[1]))
        for_init = pp.Group(var_decl | expr_stmt | SEMI)
        for_stmt = (pp.Suppress(kw["for"]) - LPAREN - for_init
                    - pp.Group(pp.Optional(expression)) - SEMI
                    - pp.Group(pp.Optional(expression)) - RPAREN
                    - statement).set_parse_action(self._make_for)

        statement <<= (for_stmt | if_stmt | print_stmt | return_stmt | while_stmt | block
                       | expr_stmt).set_name("statement")

        # Declarations
        params = identifier + pp.ZeroOrMore(COMMA + identifier)
        function = (identifier + LPAREN - pp.Group(pp.Optional(params)) - RPAREN
                    - LBRACE - pp.Group(pp.ZeroOrMore(declaration)) - RBRACE).set_parse_action(self._make_function)
        fun_decl = pp.Suppress(kw["fun"]) - function
        static_method = (pp.Suppress(kw["class"]) - function).set_parse_action(
            lambda s, loc, toks: ("STATIC", toks[0]))
        superclass = (pp.Suppress("<") - identifier).set_parse_action(lambda s, loc, toks: Variable(toks[0]))
        class_decl = (pp.Suppress(kw["class"]) - identifier - pp.Group(pp.Optional(superclass))
                      - LBRACE - pp.Group(pp.ZeroOrMore(static_method | function)) - RBRACE).set_parse_action(
            self._make_class)

        declaration <<= (class_decl | fun_decl | var_decl | statement).set_name("declaration")

        program = pp.ZeroOrMore(declaration) + pp.StringEnd()
        single_expression = expression + pp.StringEnd()

        comment = pp.dbl_slash_comment | pp.c_style_comment
        program.ignore(comment)
        single_expression.ignore(comment)

        # Store the main parsers
        self.program = program
        self.single_expression = single_expression
        self.declaration = declaration
        self.statement = statement
        self.expression = expression
        self.primary = primary
        self.identifier = identifier

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def parse_program(self, text: str, filename: str = "<input>") -> List[Stmt]:
        """Parse a complete Lox program"""
        return self._run(self.program, text, filename)

    def parse_expression(self, text: str, filename: str = "<input>") -> Expr:
        """Parse a single Lox expression"""
        result = self._run(self.single_expression, text, filename)
        return result[0]

    def _run(self, parser: pp.ParserElement, text: str, filename: str) -> List[Any]:
        self.filename = filename
        self.errors = []
        handler = LoxErrorHandler(text, filename)
        try:
            result = parser.parse_string(text, parse_all=True)
        except pp.ParseBaseException as e:
            raise handler.enhance_parse_exception(e) from None
        except RecursionError:
            raise LoxParseError("Expression nesting too deep.", filename=filename) from None
        finally:
            pp.ParserElement.reset_cache()

        if self.errors:
            raise handler.collected_errors(self._unique_errors())

        nodes = list(result)
        if self.debug:
            print(f"[parse] {filename}: {len(nodes)} top-level node(s)", file=sys.stderr)
        return nodes

    def _unique_errors(self) -> List[Dict]:
        # A node rebuilt while backtracking reports the same error again
        seen = set()
        unique = []
        for error in self.errors:
            key = (error["message"], error["line"], error["lexeme"], error["span"])
            if key not in seen:
                seen.add(key)
                unique.append(error)
        return unique


class LoxParser:
    """Main Lox parser wrapping the grammar with file handling"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = LoxGrammar(debug)

    def parse_file(self, filepath: str) -> List[Stmt]:
        """Parse a Lox source file"""
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise LoxParseError(f"File not found: {filepath}", filename=filepath)
        except UnicodeDecodeError as e:
            raise LoxParseError(f"Cannot decode file {filepath}: {e}", filename=filepath)
        return self.grammar.parse_program(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> List[Stmt]:
        """Parse Lox source code from string"""
        return self.grammar.parse_program(text, filename)

    def parse_expression(self, text: str, filename: str = "<input>") -> Expr:
        """Parse a single Lox expression"""
        return self.grammar.parse_expression(text, filename)


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> LoxParser:
    """Create a Lox parser"""
    return LoxParser(debug=debug)


def create_debug_parser() -> LoxParser:
    """Create a Lox parser with debug enabled"""
    return LoxParser(debug=True)


# Utility functions for working with the tree
def find_nodes_by_type(root: Any, node_type: type) -> List[Any]:
    """Find all nodes of a specific class in a tree or statement list"""
    result = []

    def search(node: Any):
        if isinstance(node, list):
            for item in node:
                search(item)
            return
        if not is_dataclass(node) or isinstance(node, (Token, SourceSpan)):
            return
        if isinstance(node, node_type):
            result.append(node)
        for f in fields(node):
            search(getattr(node, f.name))

    search(root)
    return result


def pretty_print_ast(node: Any, indent: int = 0) -> str:
    """Pretty print a statement or expression for debugging"""
    pad = "  " * indent
    if isinstance(node, list):
        return "".join(pretty_print_ast(item, indent) for item in node)

    result = pad + type(node).__name__
    scalars = []
    children = []
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, Token):
            scalars.append(f"{f.name}={value.lexeme}")
        elif isinstance(value, list) and value and isinstance(value[0], Token):
            scalars.append(f"{f.name}=[{', '.join(t.lexeme for t in value)}]")
        elif isinstance(value, (Expr, Stmt)):
            children.append((f.name, [value]))
        elif isinstance(value, list):
            children.append((f.name, value))
        elif value is not None or f.name == "value":
            scalars.append(f"{f.name}={value!r}")
    if scalars:
        result += f"({', '.join(scalars)})"
    result += "\n"

    for name, items in children:
        if len(children) > 1 or isinstance(node, (Block, Class, Function)):
            result += f"{pad}  .{name}\n"
            result += "".join(pretty_print_ast(item, indent + 2) for item in items)
        else:
            result += "".join(pretty_print_ast(item, indent + 1) for item in items)

    return result
