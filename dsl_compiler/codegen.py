"""
Script DSL Code Generator

Turns a ParsedProgram into a chain of script builder calls.

The result is a small expression tree (``GeneratedExpression``) that can be
inspected directly or rendered to Python source with ``render``. Plain
items extend one linear call chain. An escape breaks the chain: everything
built so far becomes the first argument of a dispatch shim, the escaped
expression the second, and later calls continue on the shim's result.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Tuple, Union

from .ast import (
    SyntaxVisitor, ParsedProgram, OpcodeNode, BytesNode, IntNode, EscapeNode,
)
from .opcodes import Opcode
from .tokens import Span

logger = logging.getLogger(__name__)


# Names the rendered source expects in its evaluation namespace
BUILDER_NAME = "__script_builder__"
OPCODE_NAME = "__script_opcode__"
PUSH_NAME = "__script_push__"

# Rendered in place of an empty escape; fails when pushed
EMPTY_ESCAPE = "None"


# =============================================================================
# Generated expression tree
# =============================================================================

@dataclass(frozen=True)
class NewBuilder:
    """An empty builder: ``Builder()``."""


@dataclass(frozen=True)
class MethodCall:
    """``target.method(*arguments)``"""
    target: 'BuilderExpression'
    method: str
    arguments: Tuple[Any, ...] = ()
    span: Union[Span, None] = None


@dataclass(frozen=True)
class ShimCall:
    """
    ``(lambda builder, value: push(builder, value))(builder, escape)``

    One shim per escape. It hands the builder and the escape's value to
    the shared push dispatch, which picks the builder call by the value's
    kind at evaluation time.
    """
    builder: 'BuilderExpression'
    escape: EscapeNode

    @property
    def span(self) -> Span:
        return self.escape.span


BuilderExpression = Union[NewBuilder, MethodCall, ShimCall]

# The finished expression is always the trailing into_script() call
GeneratedExpression = MethodCall


def walk(expression: BuilderExpression) -> List[Union[MethodCall, ShimCall]]:
    """List the calls of an expression in evaluation order."""
    steps: List[Union[MethodCall, ShimCall]] = []
    while not isinstance(expression, NewBuilder):
        steps.append(expression)
        if isinstance(expression, MethodCall):
            expression = expression.target
        else:
            expression = expression.builder
    steps.reverse()
    return steps


# =============================================================================
# Generator
# =============================================================================

class CodeGenerator(SyntaxVisitor):
    """Generates builder call chains from a parsed program."""

    def __init__(self):
        self.chain: BuilderExpression = NewBuilder()
        self.shims = 0

    def generate(self, program: ParsedProgram) -> GeneratedExpression:
        """Generate the builder expression for a program."""
        self.chain = NewBuilder()
        self.shims = 0

        for node in program:
            node.accept(self)

        logger.debug("Generated %d calls (%d escapes)",
                     len(program) + 1, self.shims)
        return MethodCall(self.chain, "into_script")

    def push(self, method: str, argument: Any, span: Span) -> None:
        self.chain = MethodCall(self.chain, method, (argument,), span)

    def visit_opcode(self, node: OpcodeNode) -> None:
        self.push("push_opcode", node.opcode, node.span)

    def visit_bytes(self, node: BytesNode) -> None:
        self.push("push_slice", node.data, node.span)

    def visit_int(self, node: IntNode) -> None:
        self.push("push_int", node.value, node.span)

    def visit_escape(self, node: EscapeNode) -> None:
        self.chain = ShimCall(self.chain, node)
        self.shims += 1


def generate(program: ParsedProgram) -> GeneratedExpression:
    """Generate the builder expression for a program."""
    return CodeGenerator().generate(program)


# =============================================================================
# Rendering
# =============================================================================

def render_argument(value: Any) -> str:
    """Render a call argument as a Python literal."""
    if isinstance(value, Opcode):
        return f"{OPCODE_NAME}.{value.name}"
    if isinstance(value, (bytes, int)):
        return repr(value)
    raise TypeError(f"Cannot render argument {value!r}")


def render(expression: BuilderExpression) -> str:
    """
    Render an expression as Python source.

    The source refers to the builder class, the opcode enum and the push
    dispatch function by the names BUILDER_NAME, OPCODE_NAME and
    PUSH_NAME; escapes refer to whatever names they were written with.
    """
    source = f"{BUILDER_NAME}()"

    for step in walk(expression):
        if isinstance(step, MethodCall):
            arguments = ", ".join(render_argument(a) for a in step.arguments)
            source = f"{source}.{step.method}({arguments})"
        else:
            value = step.escape.source or EMPTY_ESCAPE
            source = (f"(lambda builder, value: {PUSH_NAME}(builder, value))"
                      f"({source}, ({value}))")

    return source
