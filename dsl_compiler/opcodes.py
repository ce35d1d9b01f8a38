"""
Script Opcodes

Defines the 256 script opcodes and the process-wide name lookup table
used by the parser.
"""

import logging
import threading
from enum import IntEnum
from types import MappingProxyType
from typing import List, Mapping, Optional

logger = logging.getLogger(__name__)


# Opcodes 0x61..0xb9, in numeric order
_NAMED_OPCODES = [
    "OP_NOP", "OP_VER", "OP_IF", "OP_NOTIF", "OP_VERIF", "OP_VERNOTIF",
    "OP_ELSE", "OP_ENDIF", "OP_VERIFY", "OP_RETURN",
    "OP_TOALTSTACK", "OP_FROMALTSTACK",
    "OP_2DROP", "OP_2DUP", "OP_3DUP", "OP_2OVER", "OP_2ROT", "OP_2SWAP",
    "OP_IFDUP", "OP_DEPTH", "OP_DROP", "OP_DUP", "OP_NIP", "OP_OVER",
    "OP_PICK", "OP_ROLL", "OP_ROT", "OP_SWAP", "OP_TUCK",
    "OP_CAT", "OP_SUBSTR", "OP_LEFT", "OP_RIGHT", "OP_SIZE",
    "OP_INVERT", "OP_AND", "OP_OR", "OP_XOR", "OP_EQUAL", "OP_EQUALVERIFY",
    "OP_RESERVED1", "OP_RESERVED2",
    "OP_1ADD", "OP_1SUB", "OP_2MUL", "OP_2DIV", "OP_NEGATE", "OP_ABS",
    "OP_NOT", "OP_0NOTEQUAL", "OP_ADD", "OP_SUB", "OP_MUL", "OP_DIV",
    "OP_MOD", "OP_LSHIFT", "OP_RSHIFT", "OP_BOOLAND", "OP_BOOLOR",
    "OP_NUMEQUAL", "OP_NUMEQUALVERIFY", "OP_NUMNOTEQUAL",
    "OP_LESSTHAN", "OP_GREATERTHAN", "OP_LESSTHANOREQUAL",
    "OP_GREATERTHANOREQUAL", "OP_MIN", "OP_MAX", "OP_WITHIN",
    "OP_RIPEMD160", "OP_SHA1", "OP_SHA256", "OP_HASH160", "OP_HASH256",
    "OP_CODESEPARATOR", "OP_CHECKSIG", "OP_CHECKSIGVERIFY",
    "OP_CHECKMULTISIG", "OP_CHECKMULTISIGVERIFY",
    "OP_NOP1", "OP_CLTV", "OP_CSV", "OP_NOP4", "OP_NOP5", "OP_NOP6",
    "OP_NOP7", "OP_NOP8", "OP_NOP9", "OP_NOP10",
]


def _opcode_names() -> List[str]:
    """Canonical name of every byte value, indexed by value."""
    names = [f"OP_PUSHBYTES_{n}" for n in range(0x4c)]
    names += ["OP_PUSHDATA1", "OP_PUSHDATA2", "OP_PUSHDATA4",
              "OP_PUSHNUM_NEG1", "OP_RESERVED"]
    names += [f"OP_PUSHNUM_{n}" for n in range(1, 17)]
    names += _NAMED_OPCODES
    names += [f"OP_RETURN_{n}" for n in range(len(names), 0x100)]
    return names


Opcode = IntEnum(
    "Opcode",
    [(name, value) for value, name in enumerate(_opcode_names())],
    module=__name__,
)
Opcode.__doc__ = "Script opcodes, named as in Bitcoin Core's script.h where assigned."


# Direct pushes are encoded by their length; these mark longer pushes
MAX_DIRECT_PUSH = 0x4b

# Substituted for unknown opcode names so parsing can continue
PLACEHOLDER_OPCODE = Opcode.OP_NOP


def build_table() -> Mapping[str, Opcode]:
    """
    Index all opcodes by canonical name.

    If two opcodes ever share a name, the one registered last wins;
    the size check below catches that once, when the table is built.
    """
    table = {}
    for value in range(256):
        opcode = Opcode(value)
        table[opcode.name] = opcode

    if len(table) != 256:
        raise RuntimeError(f"Opcode names are not unique ({len(table)} of 256)")

    logger.debug("Built opcode table with %d entries", len(table))
    return MappingProxyType(table)


_table: Optional[Mapping[str, Opcode]] = None
_table_lock = threading.Lock()


def opcode_table() -> Mapping[str, Opcode]:
    """Get the process-wide opcode table, building it on first use."""
    global _table
    if _table is None:
        with _table_lock:
            if _table is None:  # Double-checked locking
                _table = build_table()
    return _table


def lookup(name: str) -> Optional[Opcode]:
    """Look up an opcode by exact canonical name."""
    return opcode_table().get(name)


def is_push_opcode(value: int) -> bool:
    """Check if an opcode byte introduces push data."""
    return value <= Opcode.OP_PUSHDATA4
