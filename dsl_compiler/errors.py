"""
Script DSL Errors

Defines exception classes for lexing, parsing and script building.
"""

from typing import List, Optional, Sequence

from .tokens import Span


class ScriptDslError(Exception):
    """Base exception for all script DSL errors."""

    def __init__(self, message: str, span: Optional[Span] = None,
                 filename: Optional[str] = None):
        self.message = message
        self.span = span
        self.filename = filename
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        return self.span.line if self.span is not None else None

    @property
    def column(self) -> Optional[int]:
        return self.span.column if self.span is not None else None

    def _format_message(self) -> str:
        """Format the error message with location information."""
        parts = []

        if self.filename:
            parts.append(self.filename)

        if self.line is not None:
            if parts:
                parts.append(f"{self.line}")
            else:
                parts.append(f"line {self.line}")

            if self.column is not None:
                parts.append(f"{self.column}")

        if parts:
            return f"{':'.join(parts)}: {self.message}"
        return self.message


class SyntaxError(ScriptDslError):
    """Raised when the lexer cannot split the source into tokens."""
    pass


class ParseDiagnostic(ScriptDslError):
    """
    A problem found while parsing.

    Fatal diagnostics stop the scan (the parser raises them); the others
    are recorded and parsing continues with a placeholder node.
    """

    fatal = False


class UnknownOpcode(ParseDiagnostic):
    """Identifier that does not name an opcode."""
    pass


class InvalidHexLiteral(ParseDiagnostic):
    """``0x`` literal with an odd digit count or a non-hex digit."""
    pass


class InvalidNumberLiteral(ParseDiagnostic):
    """Literal that is not a signed 64-bit decimal integer."""
    pass


class MalformedNegation(ParseDiagnostic):
    """``-`` not followed by a decimal literal."""
    pass


class InvalidEscape(ParseDiagnostic):
    """Escape whose contents are not a Python expression."""
    pass


class UnterminatedEscape(ParseDiagnostic):
    """``<`` without a closing ``>`` before end of input."""
    fatal = True


class UnexpectedToken(ParseDiagnostic):
    """Token that cannot start an item."""
    fatal = True


class CompileError(ScriptDslError):
    """Raised when a compilation produced one or more diagnostics."""

    def __init__(self, diagnostics: Sequence[ParseDiagnostic],
                 filename: Optional[str] = None):
        self.diagnostics: List[ParseDiagnostic] = list(diagnostics)
        count = len(self.diagnostics)
        lines = [f"compilation failed with {count} error{'s' if count != 1 else ''}"]
        lines.extend(str(d) for d in self.diagnostics)
        super().__init__("\n".join(lines), None, filename)


class ScriptBuildError(ScriptDslError, ValueError):
    """Raised when the builder is given a value it cannot encode."""
    pass


class UnsupportedPushType(ScriptDslError, TypeError):
    """Raised when an escape evaluates to a value that cannot be pushed."""
    pass
