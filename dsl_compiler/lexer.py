"""
Script DSL Lexer

Tokenizes script DSL source code into a stream of tokens.
"""

from typing import List, Optional
from .tokens import Token, TokenType, Span
from .errors import SyntaxError


class Lexer:
    """Lexical analyzer for script DSL source code."""

    def __init__(self, source: str, filename: Optional[str] = None):
        """
        Initialize the lexer.

        Args:
            source: Script DSL source code to tokenize
            filename: Optional name used in error messages
        """
        self.source = source
        self.filename = filename
        self.tokens: List[Token] = []
        self.start = 0      # Start of current token
        self.current = 0    # Current position
        self.line = 1       # Current line number
        self.line_start = 0 # Position of current line start
        self.start_line = 1

    def tokenize(self) -> List[Token]:
        """
        Tokenize the entire source code.

        Returns:
            List of tokens, terminated by an EOF token
        """
        while not self.is_at_end():
            self.start = self.current
            self.start_line = self.line
            self.scan_token()

        self.start = self.current
        self.start_line = self.line
        self.add_token(TokenType.EOF)
        return self.tokens

    def scan_token(self) -> None:
        """Scan the next token."""
        c = self.advance()

        # Skip whitespace
        if c in ' \t\r':
            return

        # Newline
        if c == '\n':
            self.line += 1
            self.line_start = self.current
            return

        # Comments
        if c == '#':
            while self.peek() != '\n' and not self.is_at_end():
                self.advance()
            return

        # String literals
        if c == '"' or c == "'":
            self.string(c)

        # Numbers, hex data and malformed numeric literals
        elif c.isdigit():
            self.literal()

        # Identifiers (opcode names inside the DSL, names inside escapes)
        elif c.isalpha() or c == '_':
            self.identifier()

        # Everything else is a single punctuation character
        else:
            self.add_token(TokenType.PUNCT)

    def advance(self) -> str:
        """Consume and return the current character."""
        c = self.source[self.current]
        self.current += 1
        return c

    def peek(self) -> str:
        """Return the current character without consuming it."""
        if self.is_at_end():
            return '\0'
        return self.source[self.current]

    def peek_next(self) -> str:
        """Return the next character without consuming it."""
        if self.current + 1 >= len(self.source):
            return '\0'
        return self.source[self.current + 1]

    def is_at_end(self) -> bool:
        """Check if we've reached the end of the source."""
        return self.current >= len(self.source)

    def add_token(self, type: TokenType) -> None:
        """Add a token to the token list."""
        lexeme = self.source[self.start:self.current]
        col = self.start - self.line_start + 1
        if self.start_line != self.line:
            # Token started on an earlier line (multi-line string)
            col = self.start - self.source.rfind('\n', 0, self.start)
        span = Span(self.start, self.current, self.start_line, col)
        self.tokens.append(Token(type, lexeme, span))

    def string(self, quote: str) -> None:
        """Scan a quoted literal, keeping escapes verbatim."""
        while self.peek() != quote and not self.is_at_end():
            if self.peek() == '\n':
                self.line += 1
                self.line_start = self.current + 1
            if self.peek() == '\\':
                self.advance()
                if self.is_at_end():
                    break
            self.advance()

        if self.is_at_end():
            col = self.start - self.source.rfind('\n', 0, self.start)
            raise SyntaxError("Unterminated string", Span(self.start, self.current,
                                                         self.start_line, col),
                              self.filename)

        # Consume closing quote
        self.advance()

        self.add_token(TokenType.LITERAL)

    def literal(self) -> None:
        """Scan a literal that starts with a digit."""
        while True:
            c = self.peek()
            if c.isalnum() or c == '_':
                self.advance()
            elif c == '.' and self.peek_next().isdigit():
                self.advance()
            else:
                break

        self.add_token(TokenType.LITERAL)

    def identifier(self) -> None:
        """Scan an identifier."""
        while self.peek().isalnum() or self.peek() == '_':
            self.advance()

        self.add_token(TokenType.IDENTIFIER)


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """Tokenize source code with a fresh Lexer."""
    return Lexer(source, filename).tokenize()
