"""
Error handling for the Lox interpreter
Static diagnostics (scan/parse) and runtime errors, plus source context display
"""

from dataclasses import dataclass
from typing import List, Optional

from pyparsing import col, line, lineno

from tokens import Token, TokenType


# ============================================================================
# DATA STRUCTURES (Immutable)
# ============================================================================

@dataclass(frozen=True)
class Diagnostic:
    """A single static (scan or parse) error report"""
    line: int
    location: str
    message: str
    offset: Optional[int] = None

    def __str__(self) -> str:
        return f"[line {self.line}] Error {self.location}: {self.message}"


def make_scan_diagnostic(line_num: int, message: str, offset: Optional[int] = None) -> Diagnostic:
    """Create a scanner diagnostic (scan errors carry no location)"""
    return Diagnostic(line_num, "", message, offset)


def make_token_diagnostic(token: Token, message: str) -> Diagnostic:
    """Create a parser diagnostic located at the offending token"""
    if token.type == TokenType.EOF:
        location = "at end"
    else:
        location = f"at '{token.lexeme}'"
    return Diagnostic(token.line, location, message, token.offset)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LoxScanError(Exception):
    """Raised when a lone expression cannot be scanned"""
    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        self.message = diagnostic.message
        super().__init__(diagnostic.message)

    def to_diagnostic(self) -> Diagnostic:
        return self.diagnostic


class LoxParseError(Exception):
    """Raised inside the parser; caught at the declaration boundary"""
    def __init__(self, token: Token, message: str):
        self.token = token
        self.message = message
        super().__init__(message)

    def to_diagnostic(self) -> Diagnostic:
        return make_token_diagnostic(self.token, self.message)


class LoxRuntimeError(Exception):
    """Runtime error with the token that triggered it"""
    def __init__(self, token: Token, message: str):
        self.token = token
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return format_runtime_error(self)


def format_runtime_error(error: LoxRuntimeError) -> str:
    """Format runtime error the way the harness reports it"""
    return f"{error.message}\n[line: {error.token.line}]"


# ============================================================================
# SOURCE CONTEXT
# ============================================================================

def get_context_lines(source_text: str, offset: int, context_lines: int = 0) -> str:
    """Get the source line(s) around an offset with a caret under the column"""
    if not source_text:
        return ""
    offset = max(0, min(offset, len(source_text) - 1))
    line_num = lineno(offset, source_text)
    col_num = col(offset, source_text)

    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        if i == line_num - 1:
            context_parts.append(f"{line_prefix}{line(offset, source_text)}")
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^")
        else:
            context_parts.append(f"{line_prefix}{lines[i]}")

    return '\n'.join(context_parts)


def format_diagnostics(diagnostics: List[Diagnostic], source_text: Optional[str] = None) -> str:
    """Format a list of diagnostics, optionally followed by source context"""
    parts = []
    for diagnostic in diagnostics:
        parts.append(str(diagnostic))
        if source_text is not None and diagnostic.offset is not None:
            context = get_context_lines(source_text, diagnostic.offset)
            if context:
                parts.append(context)
    return '\n'.join(parts)
