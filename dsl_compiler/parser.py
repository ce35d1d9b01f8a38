"""
Script DSL Parser

Single-pass parser that turns a token stream into a ParsedProgram.

Problems the scanner can step over (unknown opcode, bad literal, bad
negation) are recorded as diagnostics and replaced by a placeholder node,
so one run reports as many mistakes as possible. Problems that leave the
scanner without a safe place to resume (unterminated escape, unexpected
token) are raised immediately.
"""

import logging
import re
from typing import List, Optional

from .tokens import Token, TokenType, Span
from .ast import (
    SyntaxNode, OpcodeNode, BytesNode, IntNode, EscapeNode, ParsedProgram,
)
from .opcodes import lookup, PLACEHOLDER_OPCODE
from .errors import (
    CompileError, ParseDiagnostic, UnknownOpcode, UnterminatedEscape,
    InvalidHexLiteral, InvalidNumberLiteral, MalformedNegation,
    UnexpectedToken,
)

logger = logging.getLogger(__name__)


HEX_PREFIX = "0x"
ESCAPE_OPEN = "<"
ESCAPE_CLOSE = ">"
NEGATIVE_SIGN = "-"

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

_DECIMAL = re.compile(r"[0-9]+")
_HEX_DIGIT = re.compile(r"[0-9a-fA-F]")


class Parser:
    """Parser for the script DSL."""

    def __init__(self, tokens: List[Token], filename: Optional[str] = None):
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from the lexer (a trailing EOF is optional)
            filename: Optional name attached to diagnostics
        """
        self.tokens = tokens
        self.filename = filename
        self.current = 0
        self.diagnostics: List[ParseDiagnostic] = []

    def parse(self) -> ParsedProgram:
        """
        Parse the token stream.

        Returns:
            ParsedProgram with one node per item; recoverable problems are
            left in ``self.diagnostics``

        Raises:
            UnterminatedEscape, UnexpectedToken: the scan cannot continue
        """
        nodes: List[SyntaxNode] = []

        while not self.is_at_end():
            nodes.append(self.item())

        logger.debug("Parsed %d items with %d diagnostics",
                     len(nodes), len(self.diagnostics))
        return ParsedProgram(nodes)

    # =========================================================================
    # Items
    # =========================================================================

    def item(self) -> SyntaxNode:
        """Parse one item."""
        token = self.advance()

        if token.type == TokenType.IDENTIFIER:
            return self.opcode(token)
        if token.type == TokenType.LITERAL:
            return self.data(token)
        if token.is_punct(ESCAPE_OPEN):
            return self.escape(token)
        if token.is_punct(NEGATIVE_SIGN):
            return self.negative_int(token)

        raise UnexpectedToken(f"unexpected token {token.lexeme!r}",
                              token.span, self.filename)

    def opcode(self, token: Token) -> OpcodeNode:
        """Look an identifier up in the opcode table."""
        opcode = lookup(token.lexeme)
        if opcode is None:
            self.error(UnknownOpcode, f"unknown opcode {token.lexeme!r}", token.span)
            opcode = PLACEHOLDER_OPCODE
        return OpcodeNode(opcode, token.span)

    def escape(self, opener: Token) -> EscapeNode:
        """
        Capture tokens up to the first '>'.

        The scan does not track nesting: a '>' inside the expression
        (a comparison, say) ends the escape early.
        """
        payload: List[Token] = []
        span = opener.span

        while True:
            if self.is_at_end():
                raise UnterminatedEscape("unterminated escape", opener.span,
                                         self.filename)
            token = self.advance()
            span = span.join(token.span)
            if token.is_punct(ESCAPE_CLOSE):
                break
            payload.append(token)

        return EscapeNode(tuple(payload), span)

    def data(self, token: Token) -> SyntaxNode:
        """Parse a literal as hex data or a decimal integer."""
        if token.lexeme.startswith(HEX_PREFIX):
            return self.hex_bytes(token)
        return self.int_literal(token)

    def hex_bytes(self, token: Token) -> BytesNode:
        """Decode the digits after '0x' into bytes."""
        digits = token.lexeme[len(HEX_PREFIX):]

        for char in digits:
            if not _HEX_DIGIT.fullmatch(char):
                self.error(InvalidHexLiteral,
                           f"invalid hex literal (invalid character {char!r})",
                           token.span)
                return BytesNode(b"", token.span)

        if len(digits) % 2:
            self.error(InvalidHexLiteral,
                       "invalid hex literal (odd number of digits)", token.span)
            return BytesNode(b"", token.span)

        return BytesNode(bytes.fromhex(digits), token.span)

    def int_literal(self, token: Token, negative: bool = False,
                    span: Optional[Span] = None) -> IntNode:
        """Parse a decimal literal as a signed 64-bit integer."""
        span = span or token.span

        if not _DECIMAL.fullmatch(token.lexeme):
            self.error(InvalidNumberLiteral,
                       f"invalid number literal {token.lexeme!r} "
                       "(invalid digit found in string)", token.span)
            return IntNode(0, span)

        value = int(token.lexeme)
        if negative:
            value = -value

        if not INT64_MIN <= value <= INT64_MAX:
            self.error(InvalidNumberLiteral,
                       f"invalid number literal {token.lexeme!r} "
                       "(number too large to fit in 64 bits)", token.span)
            return IntNode(0, span)

        return IntNode(value, span)

    def negative_int(self, sign: Token) -> IntNode:
        """
        Parse '-' followed by a decimal literal.

        The sign is applied before the 64-bit range check, so
        -9223372036854775808 is accepted although its magnitude alone
        does not fit.
        """
        if self.check(TokenType.LITERAL):
            token = self.advance()
            if not token.lexeme.startswith(HEX_PREFIX):
                return self.int_literal(token, negative=True,
                                        span=sign.span.join(token.span))
            # Negative hex data is not supported; drop the literal with the sign

        self.error(MalformedNegation,
                   "expected negative sign to be followed by number literal",
                   sign.span)
        return IntNode(0, sign.span)

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def error(self, kind: type, message: str, span: Span) -> None:
        """Record a recoverable diagnostic and keep scanning."""
        diagnostic = kind(message, span, self.filename)
        logger.debug("Recoverable parse error: %s", diagnostic)
        self.diagnostics.append(diagnostic)

    def check(self, type: TokenType) -> bool:
        """Check if current token is of given type."""
        if self.is_at_end():
            return False
        return self.peek().type == type

    def advance(self) -> Token:
        """Consume and return the current token."""
        if not self.is_at_end():
            self.current += 1
        return self.previous()

    def is_at_end(self) -> bool:
        """Check if we've reached the end of tokens."""
        return self.current >= len(self.tokens) or self.peek().type == TokenType.EOF

    def peek(self) -> Token:
        """Return the current token."""
        return self.tokens[self.current]

    def previous(self) -> Token:
        """Return the previous token."""
        return self.tokens[self.current - 1]


def parse(tokens: List[Token], filename: Optional[str] = None) -> ParsedProgram:
    """
    Parse a token stream, failing if anything was wrong with it.

    Raises:
        CompileError: carrying every diagnostic found, in source order,
            with a fatal one (if any) last
    """
    parser = Parser(tokens, filename)
    try:
        program = parser.parse()
    except ParseDiagnostic as fatal:
        raise CompileError(parser.diagnostics + [fatal], filename) from fatal

    if parser.diagnostics:
        raise CompileError(parser.diagnostics, filename)
    return program
