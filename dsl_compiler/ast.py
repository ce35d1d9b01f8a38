"""
Script DSL Syntax Nodes

Defines the intermediate representation produced by the parser: one
node per pushed item, in push order.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Tuple

from .opcodes import Opcode
from .tokens import Span, Token, render_tokens


# =============================================================================
# Base Classes
# =============================================================================

class SyntaxNode(ABC):
    """Base class for all syntax nodes."""

    span: Span

    @abstractmethod
    def accept(self, visitor: 'SyntaxVisitor') -> Any:
        """Accept a visitor for traversal."""
        pass


# =============================================================================
# Items
# =============================================================================

@dataclass
class OpcodeNode(SyntaxNode):
    """A bare opcode, pushed as-is."""
    opcode: Opcode
    span: Span

    def accept(self, visitor: 'SyntaxVisitor') -> Any:
        return visitor.visit_opcode(self)


@dataclass
class BytesNode(SyntaxNode):
    """Hex data (``0x...``), pushed as a byte string."""
    data: bytes
    span: Span

    def accept(self, visitor: 'SyntaxVisitor') -> Any:
        return visitor.visit_bytes(self)


@dataclass
class IntNode(SyntaxNode):
    """Decimal integer, pushed with minimal number encoding."""
    value: int
    span: Span

    def accept(self, visitor: 'SyntaxVisitor') -> Any:
        return visitor.visit_int(self)


@dataclass
class EscapeNode(SyntaxNode):
    """
    Embedded Python expression (``<expr>``).

    The tokens between the brackets are kept verbatim; their value is
    only known once the generated code is evaluated.
    """
    tokens: Tuple[Token, ...]
    span: Span

    @property
    def source(self) -> str:
        """The expression text, as written."""
        return render_tokens(self.tokens)

    def accept(self, visitor: 'SyntaxVisitor') -> Any:
        return visitor.visit_escape(self)


@dataclass
class ParsedProgram:
    """Ordered sequence of syntax nodes; order is push order."""
    nodes: List[SyntaxNode] = field(default_factory=list)

    def __iter__(self) -> Iterator[SyntaxNode]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index: int) -> SyntaxNode:
        return self.nodes[index]

    def accept(self, visitor: 'SyntaxVisitor') -> Any:
        return visitor.visit_program(self)

    @property
    def has_escapes(self) -> bool:
        return any(isinstance(node, EscapeNode) for node in self.nodes)


# =============================================================================
# Visitor
# =============================================================================

class SyntaxVisitor(ABC):
    """Base class for syntax node visitors."""

    @abstractmethod
    def visit_opcode(self, node: OpcodeNode) -> Any: pass

    @abstractmethod
    def visit_bytes(self, node: BytesNode) -> Any: pass

    @abstractmethod
    def visit_int(self, node: IntNode) -> Any: pass

    @abstractmethod
    def visit_escape(self, node: EscapeNode) -> Any: pass

    def visit_program(self, node: ParsedProgram) -> Any:
        return [item.accept(self) for item in node]


class SyntaxPrinter(SyntaxVisitor):
    """Pretty-prints a parsed program, one item per line."""

    def print(self, program: ParsedProgram) -> str:
        lines = program.accept(self)
        return "Program\n" + "\n".join(lines) if lines else "Program"

    def visit_opcode(self, node: OpcodeNode) -> str:
        return f"  {node.span}  Opcode({node.opcode.name})"

    def visit_bytes(self, node: BytesNode) -> str:
        return f"  {node.span}  Bytes({node.data.hex()})"

    def visit_int(self, node: IntNode) -> str:
        return f"  {node.span}  Int({node.value})"

    def visit_escape(self, node: EscapeNode) -> str:
        return f"  {node.span}  Escape({node.source})"
