"""
Script Context

The main interface for compiling script DSL source and evaluating it
into Script values.
"""

from typing import Any, Dict, List, Mapping, Optional
from collections import OrderedDict
from dataclasses import dataclass, field
from types import CodeType
import inspect
import logging

from dsl_compiler import Lexer, CodeGenerator, GeneratedExpression, parse, render
from dsl_compiler.ast import EscapeNode, ParsedProgram
from dsl_compiler.codegen import BUILDER_NAME, OPCODE_NAME, PUSH_NAME
from dsl_compiler.errors import CompileError, InvalidEscape, ParseDiagnostic
from dsl_compiler.opcodes import Opcode

from .script import Builder, Script
from .types import push_value

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "<bitcoin_script>"

# Compiled programs kept per context, least recently used dropped first
CACHE_SIZE = 256

# Names the generated code needs at evaluation time
RUNTIME_NAMESPACE = {
    BUILDER_NAME: Builder,
    OPCODE_NAME: Opcode,
    PUSH_NAME: push_value,
}


def check_escapes(program: ParsedProgram, filename: Optional[str] = None) -> None:
    """
    Check that every escape holds a single Python expression.

    Raises:
        CompileError: Listing one InvalidEscape per bad escape
    """
    diagnostics: List[ParseDiagnostic] = []
    for node in program:
        if not isinstance(node, EscapeNode):
            continue
        text = node.source or "None"
        try:
            compile(text, filename or DEFAULT_FILENAME, "eval")
        except SyntaxError as e:
            diagnostics.append(InvalidEscape(
                f"invalid escape expression {node.source!r} ({e.msg})",
                node.span, filename))
    if diagnostics:
        raise CompileError(diagnostics, filename)


@dataclass
class CompiledScript:
    """
    A compiled DSL program.

    Holds the parsed program, the generated builder expression and its
    rendered Python form, ready to be evaluated any number of times.
    """

    source: str
    program: ParsedProgram
    expression: GeneratedExpression
    source_code: str
    code: CodeType = field(repr=False)
    filename: Optional[str] = None

    @property
    def has_escapes(self) -> bool:
        return self.program.has_escapes

    def evaluate(self, namespace: Optional[Mapping[str, Any]] = None,
                 **names: Any) -> Script:
        """
        Evaluate the program into a Script.

        Args:
            namespace: Names visible to escapes
            **names: More names visible to escapes, taking precedence

        Raises:
            NameError, UnsupportedPushType, ScriptBuildError: from escapes
                and the builder
        """
        scope: Dict[str, Any] = dict(namespace or {})
        scope.update(names)
        scope.update(RUNTIME_NAMESPACE)
        return eval(self.code, scope)


class Context:
    """
    Script DSL compilation context.

    Example:
        ctx = Context()
        script = ctx.compile("OP_DUP OP_HASH160 <pubkey_hash> OP_EQUALVERIFY OP_CHECKSIG")
        locking = script.evaluate(pubkey_hash=bytes(20))
    """

    def __init__(self, debug: bool = False, cache_size: int = CACHE_SIZE):
        """
        Create a context.

        Args:
            debug: Log the rendered source of every compiled program
            cache_size: Number of compiled programs to keep
        """
        self.debug = debug
        self.cache_size = cache_size
        self._cache: "OrderedDict[str, CompiledScript]" = OrderedDict()

    def compile(self, source: str, filename: Optional[str] = None) -> CompiledScript:
        """
        Compile DSL source.

        Raises:
            SyntaxError: If the source cannot be tokenized
            CompileError: If parsing reported any diagnostic, or an escape
                is not a Python expression
        """
        key = source if filename is None else f"{filename}\0{source}"
        cached = self._cache.get(key)
        if cached is not None:
            self._cache.move_to_end(key)
            return cached

        tokens = Lexer(source, filename).tokenize()

        program = parse(tokens, filename)
        check_escapes(program, filename)

        expression = CodeGenerator().generate(program)
        source_code = render(expression)
        if self.debug:
            logger.debug("Generated: %s", source_code)

        code = compile(source_code, filename or DEFAULT_FILENAME, "eval")
        compiled = CompiledScript(source, program, expression, source_code,
                                  code, filename)
        self._cache[key] = compiled
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return compiled

    def evaluate(self, script: CompiledScript,
                 namespace: Optional[Mapping[str, Any]] = None,
                 **names: Any) -> Script:
        """Evaluate a compiled program into a Script."""
        return script.evaluate(namespace, **names)

    def run(self, source: str, namespace: Optional[Mapping[str, Any]] = None,
            **names: Any) -> Script:
        """Compile and evaluate in one step."""
        return self.compile(source).evaluate(namespace, **names)

    def clear_cache(self) -> None:
        self._cache.clear()


# =============================================================================
# Convenience functions
# =============================================================================

_default_context: Optional[Context] = None


def create_context(**kwargs) -> Context:
    """Create a new script context."""
    return Context(**kwargs)


def bitcoin_script(source: str, **names: Any) -> Script:
    """
    Compile and evaluate DSL source in the caller's scope.

    Escapes see the caller's globals and locals; keyword arguments
    override both.

    Example:
        foo = [1, 2, 3, 4]
        script = bitcoin_script("OP_HASH160 1234 <foo>")
    """
    global _default_context
    if _default_context is None:
        _default_context = Context()

    frame = inspect.currentframe().f_back
    try:
        namespace = dict(frame.f_globals)
        namespace.update(frame.f_locals)
    finally:
        del frame

    return _default_context.run(source, namespace, **names)
