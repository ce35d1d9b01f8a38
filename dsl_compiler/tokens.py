"""
Script DSL Token Definitions

Defines token types, source spans and the Token class for lexical analysis.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Iterable, List


class TokenType(Enum):
    """Lexical classes delivered to the parser."""

    IDENTIFIER = auto()    # OP_CHECKSIG, foo, b
    PUNCT = auto()         # any single punctuation character: < > - + ( ...
    LITERAL = auto()       # 1234, 0xabcd, 12g34, "text"

    # Special
    EOF = auto()


@dataclass(frozen=True)
class Span:
    """
    Source range of a token or syntax node.

    ``start`` and ``end`` are character offsets into the source text
    (end exclusive); ``line`` and ``column`` locate ``start``.
    """

    start: int
    end: int
    line: int = 1
    column: int = 1

    def join(self, other: 'Span') -> 'Span':
        """Return the smallest span covering both spans."""
        first = self if self.start <= other.start else other
        return Span(first.start, max(self.end, other.end), first.line, first.column)

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass
class Token:
    """Represents a single token from the source code."""

    type: TokenType
    lexeme: str
    span: Span

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.lexeme!r}, line={self.line})"

    @property
    def line(self) -> int:
        return self.span.line

    @property
    def column(self) -> int:
        return self.span.column

    def is_punct(self, char: str) -> bool:
        """Check if this token is the given punctuation character."""
        return self.type == TokenType.PUNCT and self.lexeme == char


def render_tokens(tokens: Iterable[Token]) -> str:
    """
    Turn a token sub-sequence back into source text.

    Adjacent tokens stay adjacent; any gap in the original source
    becomes a single space.
    """
    parts: List[str] = []
    previous = None
    for token in tokens:
        if previous is not None and token.span.start > previous.span.end:
            parts.append(" ")
        parts.append(token.lexeme)
        previous = token
    return "".join(parts)
