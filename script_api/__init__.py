"""
Script DSL Python API

Evaluates compiled script DSL programs into Bitcoin scripts.
"""

from .context import Context, CompiledScript, create_context, bitcoin_script
from .script import Builder, Script
from .types import PublicKey, PushBytes, PushInt, PushKey, push_value

__all__ = [
    'Context',
    'CompiledScript',
    'create_context',
    'bitcoin_script',
    'Builder',
    'Script',
    'PublicKey',
    'PushBytes',
    'PushInt',
    'PushKey',
    'push_value',
]
