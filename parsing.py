"""
Lox Programming Language Parser
Hand-written scanner and recursive-descent parser with statement-level error recovery
"""

import re
import sys
from typing import List, Optional, Tuple

from error_handling import Diagnostic, LoxParseError, LoxScanError, make_scan_diagnostic, make_token_diagnostic
from stdlib import stringify
from syntax import (
    Assign, Binary, Block, Call, Expr, Expression, Function, Grouping, If, Literal, Logical,
    Print, Return, Stmt, Unary, Var, Variable, While,
)
from tokens import KEYWORDS, Token, TokenType


MAX_ARGUMENTS = 255


class LoxScanner:
    """Lox scanner: a single left-to-right pass producing tokens"""

    def __init__(self, source: str, debug: bool = False):
        self.source = source
        self.debug = debug
        self.tokens: List[Token] = []
        self.diagnostics: List[Diagnostic] = []
        self.start = 0
        self.current = 0
        self.line = 1
        self._setup_token_patterns()

    def _setup_token_patterns(self):
        """Setup lexeme tables and patterns"""

        self.single_char_tokens = {
            '(': TokenType.LEFT_PAREN,
            ')': TokenType.RIGHT_PAREN,
            '{': TokenType.LEFT_BRACE,
            '}': TokenType.RIGHT_BRACE,
            ',': TokenType.COMMA,
            '.': TokenType.DOT,
            '-': TokenType.MINUS,
            '+': TokenType.PLUS,
            ';': TokenType.SEMICOLON,
            '*': TokenType.STAR,
        }

        # Operators that may be followed by '=' (one character of lookahead)
        self.operator_tokens = {
            '!': (TokenType.BANG, TokenType.BANG_EQUAL),
            '=': (TokenType.EQUAL, TokenType.EQUAL_EQUAL),
            '<': (TokenType.LESS, TokenType.LESS_EQUAL),
            '>': (TokenType.GREATER, TokenType.GREATER_EQUAL),
        }

        self.whitespace = {' ', '\r', '\t'}

        # Numbers: digits with an optional fraction, no leading or trailing dot
        self.number_pattern = re.compile(r'[0-9]+(?:\.[0-9]+)?')

        # Identifiers: alphabetic-or-underscore start, ASCII only
        self.identifier_pattern = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')

    def scan_tokens(self) -> List[Token]:
        """Scan the whole source; the result always ends with an EOF token"""
        while not self._is_at_end():
            # We are at the beginning of the next lexeme
            self.start = self.current
            self._scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line, self.current))
        if self.debug:
            print(f"Scanned {len(self.tokens)} tokens, {len(self.diagnostics)} errors", file=sys.stderr)
        return self.tokens

    def _scan_token(self):
        c = self._advance()

        if c in self.single_char_tokens:
            self._add_token(self.single_char_tokens[c])
        elif c in self.operator_tokens:
            single, double = self.operator_tokens[c]
            self._add_token(double if self._match('=') else single)
        elif c == '/':
            if self._match('/'):
                # A comment goes until the end of the line
                end = self.source.find('\n', self.current)
                self.current = len(self.source) if end == -1 else end
            else:
                self._add_token(TokenType.SLASH)
        elif c in self.whitespace:
            pass
        elif c == '\n':
            self.line += 1
        elif c == '"':
            self._string()
        elif '0' <= c <= '9':
            self._number()
        elif c.isascii() and (c.isalpha() or c == '_'):
            self._identifier()
        else:
            self._report(f"Unexpected character '{c}'.", self.start)

    def _string(self):
        end = self.source.find('"', self.current)
        if end == -1:
            self.line += self.source.count('\n', self.current)
            self.current = len(self.source)
            self._report("Unterminated string.", self.start)
            return

        # Strings may span lines
        self.line += self.source.count('\n', self.current, end)
        self.current = end + 1
        self._add_token(TokenType.STRING, self.source[self.start + 1:end])

    def _number(self):
        number_match = self.number_pattern.match(self.source, self.start)
        self.current = number_match.end()
        self._add_token(TokenType.NUMBER, float(number_match.group(0)))

    def _identifier(self):
        id_match = self.identifier_pattern.match(self.source, self.start)
        self.current = id_match.end()
        text = id_match.group(0)
        self._add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))

    def _add_token(self, token_type: TokenType, literal=None):
        text = self.source[self.start:self.current]
        self.tokens.append(Token(token_type, text, literal, self.line, self.start))

    def _report(self, message: str, offset: int):
        self.diagnostics.append(make_scan_diagnostic(self.line, message, offset))

    def _advance(self) -> str:
        self.current += 1
        return self.source[self.current - 1]

    def _match(self, expected: str) -> bool:
        if self._is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def _is_at_end(self) -> bool:
        return self.current >= len(self.source)


class LoxGrammar:
    """Recursive-descent parser over a token list, one method per grammar rule"""

    # Tokens that begin a statement; synchronisation stops before them
    STATEMENT_STARTS = {
        TokenType.CLASS, TokenType.FUNC, TokenType.VAR, TokenType.FOR,
        TokenType.IF, TokenType.WHILE, TokenType.PRINT, TokenType.RETURN,
    }

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.current = 0
        self.function_depth = 0
        self.diagnostics: List[Diagnostic] = []

    def parse_program(self) -> List[Stmt]:
        """program -> declaration* EOF"""
        statements = []
        while not self._is_at_end():
            statement = self._declaration()
            if statement is not None:
                statements.append(statement)
        return statements

    def parse_expression(self) -> Expr:
        """Parse a lone expression; raises LoxParseError on failure"""
        expr = self._expression()
        if not self._is_at_end():
            raise self._error(self._peek(), "Expect end of expression.")
        return expr

    # ------------------------------------------------------------------
    # Declarations and statements
    # ------------------------------------------------------------------

    def _declaration(self) -> Optional[Stmt]:
        try:
            if self._match(TokenType.FUNC):
                return self._function("function")
            if self._match(TokenType.VAR):
                return self._var_declaration()
            return self._statement()
        except LoxParseError:
            self._synchronize()
            return None

    def _function(self, kind: str) -> Function:
        name = self._consume(TokenType.IDENTIFIER, f"Expect {kind} name.")
        self._consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self._error(self._peek(), f"Can't have more than {MAX_ARGUMENTS} parameters.")
                params.append(self._consume(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self._match(TokenType.COMMA):
                    break
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")

        self._consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        self.function_depth += 1
        try:
            body = self._block()
        finally:
            self.function_depth -= 1
        return Function(name, tuple(params), tuple(body))

    def _var_declaration(self) -> Var:
        name = self._consume(TokenType.IDENTIFIER, "Expect variable name.")
        initializer = None
        if self._match(TokenType.EQUAL):
            initializer = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return Var(name, initializer)

    def _statement(self) -> Stmt:
        if self._match(TokenType.FOR):
            return self._for_statement()
        if self._match(TokenType.IF):
            return self._if_statement()
        if self._match(TokenType.PRINT):
            return self._print_statement()
        if self._match(TokenType.RETURN):
            return self._return_statement()
        if self._match(TokenType.WHILE):
            return self._while_statement()
        if self._match(TokenType.LEFT_BRACE):
            return Block(tuple(self._block()))
        return self._expression_statement()

    def _for_statement(self) -> Stmt:
        """Desugar `for` into an optional initializer block around a While"""
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")

        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._match(TokenType.VAR):
            initializer = self._var_declaration()
        else:
            initializer = self._expression_statement()

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self._check(TokenType.RIGHT_PAREN):
            increment = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self._statement()

        if increment is not None:
            body = Block((body, Expression(increment)))
        if condition is None:
            condition = Literal(True)
        body = While(condition, body)
        if initializer is not None:
            body = Block((initializer, body))
        return body

    def _if_statement(self) -> If:
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self._statement()
        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._statement()
        return If(condition, then_branch, else_branch)

    def _print_statement(self) -> Print:
        value = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return Print(value)

    def _return_statement(self) -> Return:
        keyword = self._previous()
        if self.function_depth == 0:
            self._error(keyword, "Can't return from top-level code.")
        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return Return(keyword, value)

    def _while_statement(self) -> While:
        self._consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self._expression()
        self._consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        return While(condition, self._statement())

    def _block(self) -> List[Stmt]:
        statements = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            statement = self._declaration()
            if statement is not None:
                statements.append(statement)
        self._consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def _expression_statement(self) -> Expression:
        expr = self._expression()
        self._consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return Expression(expr)

    # ------------------------------------------------------------------
    # Expressions, lowest precedence first
    # ------------------------------------------------------------------

    def _expression(self) -> Expr:
        return self._assignment()

    def _assignment(self) -> Expr:
        expr = self._or()

        if self._match(TokenType.EQUAL):
            equals = self._previous()
            value = self._assignment()

            if isinstance(expr, Variable):
                return Assign(expr.name, value)

            # Reported but not fatal; keep parsing with the right-hand side
            self._error(equals, "Invalid assignment target.")
            return value

        return expr

    def _or(self) -> Expr:
        expr = self._and()
        while self._match(TokenType.OR):
            operator = self._previous()
            expr = Logical(expr, operator, self._and())
        return expr

    def _and(self) -> Expr:
        expr = self._equality()
        while self._match(TokenType.AND):
            operator = self._previous()
            expr = Logical(expr, operator, self._equality())
        return expr

    def _binary_level(self, operand, *operators: TokenType) -> Expr:
        """Left-associative fold for one binary precedence level"""
        expr = operand()
        while self._match(*operators):
            operator = self._previous()
            expr = Binary(expr, operator, operand())
        return expr

    def _equality(self) -> Expr:
        return self._binary_level(self._comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def _comparison(self) -> Expr:
        return self._binary_level(
            self._term,
            TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL,
        )

    def _term(self) -> Expr:
        return self._binary_level(self._factor, TokenType.MINUS, TokenType.PLUS)

    def _factor(self) -> Expr:
        return self._binary_level(self._unary, TokenType.SLASH, TokenType.STAR)

    def _unary(self) -> Expr:
        if self._match(TokenType.BANG, TokenType.MINUS):
            operator = self._previous()
            return Unary(operator, self._unary())
        return self._call()

    def _call(self) -> Expr:
        expr = self._primary()
        while self._match(TokenType.LEFT_PAREN):
            expr = self._finish_call(expr)
        return expr

    def _finish_call(self, callee: Expr) -> Call:
        arguments = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    self._error(self._peek(), f"Can't have more than {MAX_ARGUMENTS} arguments.")
                arguments.append(self._expression())
                if not self._match(TokenType.COMMA):
                    break
        paren = self._consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, tuple(arguments))

    def _primary(self) -> Expr:
        if self._match(TokenType.FALSE):
            return Literal(False)
        if self._match(TokenType.TRUE):
            return Literal(True)
        if self._match(TokenType.NIL):
            return Literal(None)
        if self._match(TokenType.NUMBER, TokenType.STRING):
            return Literal(self._previous().literal)
        if self._match(TokenType.IDENTIFIER):
            return Variable(self._previous())
        if self._match(TokenType.LEFT_PAREN):
            expr = self._expression()
            self._consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)

        raise self._error(self._peek(), "Expect expression.")

    # ------------------------------------------------------------------
    # Token stream helpers
    # ------------------------------------------------------------------

    def _match(self, *types: TokenType) -> bool:
        for token_type in types:
            if self._check(token_type):
                self._advance()
                return True
        return False

    def _consume(self, token_type: TokenType, message: str) -> Token:
        if self._check(token_type):
            return self._advance()
        raise self._error(self._peek(), message)

    def _check(self, token_type: TokenType) -> bool:
        if self._is_at_end():
            return False
        return self._peek().type == token_type

    def _advance(self) -> Token:
        if not self._is_at_end():
            self.current += 1
        return self._previous()

    def _is_at_end(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _previous(self) -> Token:
        return self.tokens[self.current - 1]

    def _error(self, token: Token, message: str) -> LoxParseError:
        """Record a diagnostic; the caller decides whether to raise"""
        error = LoxParseError(token, message)
        self.diagnostics.append(error.to_diagnostic())
        return error

    def _synchronize(self):
        """Discard tokens until a likely statement boundary"""
        self._advance()
        while not self._is_at_end():
            if self._previous().type == TokenType.SEMICOLON:
                return
            if self._peek().type in self.STATEMENT_STARTS:
                return
            self._advance()


class LoxParser:
    """Main Lox parser combining scanner and grammar"""

    def __init__(self, debug: bool = False):
        self.debug = debug

    def tokenize(self, text: str) -> Tuple[List[Token], List[Diagnostic]]:
        """Scan Lox source code"""
        scanner = LoxScanner(text, self.debug)
        return scanner.scan_tokens(), scanner.diagnostics

    def parse_tokens(self, tokens: List[Token]) -> Tuple[List[Stmt], List[Diagnostic]]:
        """Parse a token list into top-level statements"""
        grammar = LoxGrammar(tokens)
        statements = grammar.parse_program()
        if self.debug:
            print(f"Parsed {len(statements)} statements, {len(grammar.diagnostics)} errors", file=sys.stderr)
        return statements, grammar.diagnostics

    def parse_string(self, text: str) -> Tuple[List[Stmt], List[Diagnostic]]:
        """Scan and parse Lox source code; diagnostics of both stages are returned"""
        tokens, scan_diagnostics = self.tokenize(text)
        statements, parse_diagnostics = self.parse_tokens(tokens)
        return statements, scan_diagnostics + parse_diagnostics

    def parse_expression(self, text: str) -> Expr:
        """Parse a single Lox expression; raises LoxScanError or LoxParseError"""
        tokens, scan_diagnostics = self.tokenize(text)
        if scan_diagnostics:
            raise LoxScanError(scan_diagnostics[0])
        return LoxGrammar(tokens).parse_expression()


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> LoxParser:
    """Create a Lox parser"""
    return LoxParser(debug=debug)


def create_debug_parser() -> LoxParser:
    """Create a Lox parser with debug enabled"""
    return LoxParser(debug=True)


def scan(source: str) -> Tuple[List[Token], List[Diagnostic]]:
    """Scan source text into tokens and scan diagnostics"""
    return LoxParser().tokenize(source)


def parse(tokens: List[Token]) -> Tuple[List[Stmt], List[Diagnostic]]:
    """Parse tokens into statements and parse diagnostics"""
    return LoxParser().parse_tokens(tokens)


# ============================================================================
# AST PRINTER
# ============================================================================

def _parenthesize(name: str, *parts) -> str:
    pieces = [name]
    for part in parts:
        pieces.append(part if isinstance(part, str) else pretty_print_ast(part))
    return "(" + " ".join(pieces) + ")"


def pretty_print_ast(node) -> str:
    """Render an expression or statement in parenthesized prefix form"""
    if isinstance(node, Literal):
        return stringify(node.value)
    elif isinstance(node, Grouping):
        return _parenthesize("group", node.expression)
    elif isinstance(node, Unary):
        return _parenthesize(node.operator.lexeme, node.right)
    elif isinstance(node, (Binary, Logical)):
        return _parenthesize(node.operator.lexeme, node.left, node.right)
    elif isinstance(node, Variable):
        return node.name.lexeme
    elif isinstance(node, Assign):
        return _parenthesize("=", node.name.lexeme, node.value)
    elif isinstance(node, Call):
        return _parenthesize("call", node.callee, *node.arguments)
    elif isinstance(node, Expression):
        return _parenthesize(";", node.expression)
    elif isinstance(node, Print):
        return _parenthesize("print", node.expression)
    elif isinstance(node, Var):
        if node.initializer is None:
            return _parenthesize("var", node.name.lexeme)
        return _parenthesize("var", node.name.lexeme, "=", node.initializer)
    elif isinstance(node, Block):
        return _parenthesize("block", *node.statements)
    elif isinstance(node, If):
        if node.else_branch is None:
            return _parenthesize("if", node.condition, node.then_branch)
        return _parenthesize("if-else", node.condition, node.then_branch, node.else_branch)
    elif isinstance(node, While):
        return _parenthesize("while", node.condition, node.body)
    elif isinstance(node, Function):
        params = "(" + " ".join(param.lexeme for param in node.params) + ")"
        return _parenthesize("func", node.name.lexeme, params, *node.body)
    elif isinstance(node, Return):
        if node.value is None:
            return "(return)"
        return _parenthesize("return", node.value)
    raise TypeError(f"Unknown syntax node: {type(node).__name__}")
