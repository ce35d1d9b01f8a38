"""
Script DSL Compiler Package

A Python compiler for a compact Bitcoin script-assembly notation.
Compiles DSL source code to a chain of script builder calls.
"""

from typing import Optional

from .tokens import Token, TokenType, Span
from .lexer import Lexer, tokenize
from .ast import *
from .opcodes import Opcode, lookup, opcode_table
from .parser import Parser, parse
from .codegen import CodeGenerator, GeneratedExpression, generate, render, walk
from .errors import (
    ScriptDslError, SyntaxError, CompileError, ParseDiagnostic,
    UnknownOpcode, UnterminatedEscape, InvalidHexLiteral,
    InvalidNumberLiteral, MalformedNegation, UnexpectedToken, InvalidEscape,
    ScriptBuildError, UnsupportedPushType,
)

__version__ = "0.1.0"
__all__ = [
    "Token",
    "TokenType",
    "Span",
    "Lexer",
    "Parser",
    "CodeGenerator",
    "GeneratedExpression",
    "Opcode",
    "lookup",
    "opcode_table",
    "tokenize",
    "parse",
    "generate",
    "render",
    "walk",
    "compile_source",
    "compile_file",
    "ScriptDslError",
    "SyntaxError",
    "CompileError",
    "ParseDiagnostic",
    "UnknownOpcode",
    "UnterminatedEscape",
    "InvalidHexLiteral",
    "InvalidNumberLiteral",
    "MalformedNegation",
    "UnexpectedToken",
    "InvalidEscape",
    "ScriptBuildError",
    "UnsupportedPushType",
]


def compile_source(source: str, filename: Optional[str] = None) -> GeneratedExpression:
    """
    Compile script DSL source code to a builder expression.

    Args:
        source: Script DSL source code string
        filename: Optional name used in error messages

    Returns:
        GeneratedExpression ready for rendering or inspection

    Raises:
        SyntaxError: If the source cannot be tokenized
        CompileError: If parsing reported any diagnostic
    """
    lexer = Lexer(source, filename)
    tokens = lexer.tokenize()

    program = parse(tokens, filename)

    codegen = CodeGenerator()
    return codegen.generate(program)


def compile_file(filepath: str) -> GeneratedExpression:
    """
    Compile a script DSL source file to a builder expression.

    Args:
        filepath: Path to the source file

    Returns:
        GeneratedExpression ready for rendering or inspection
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        source = f.read()
    return compile_source(source, filepath)
