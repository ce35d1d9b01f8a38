"""
Script Builder and Script Value

Accumulates opcodes and data pushes into a serialized script, using the
minimal push encodings of Bitcoin's standardness rules.
"""

from typing import Iterator, List, Optional, Tuple, Union
import struct

import numpy as np

from dsl_compiler.opcodes import Opcode, MAX_DIRECT_PUSH, is_push_opcode
from dsl_compiler.errors import ScriptBuildError

from .types import PublicKey


INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

# Largest push representable with OP_PUSHDATA4
MAX_PUSH_SIZE = 0xFFFFFFFF

# Size of the length field following each OP_PUSHDATA opcode
PUSHDATA_WIDTH = {
    Opcode.OP_PUSHDATA1: 1,
    Opcode.OP_PUSHDATA2: 2,
    Opcode.OP_PUSHDATA4: 4,
}

BytesLike = Union[bytes, bytearray, memoryview]


def build_scriptint(value: int) -> bytes:
    """
    Encode an integer as a script number.

    Little-endian magnitude with the sign in the top bit of the last byte;
    zero is the empty string.
    """
    if value == 0:
        return b""

    negative = value < 0
    magnitude = -value if negative else value

    result = bytearray()
    while magnitude:
        result.append(magnitude & 0xFF)
        magnitude >>= 8

    if result[-1] & 0x80:
        result.append(0x80 if negative else 0x00)
    elif negative:
        result[-1] |= 0x80

    return bytes(result)


class Script:
    """An immutable serialized script."""

    __slots__ = ("_data",)

    def __init__(self, data: BytesLike = b""):
        self._data = bytes(data)

    def to_bytes(self) -> bytes:
        return self._data

    def to_hex(self) -> str:
        return self._data.hex()

    def to_array(self) -> np.ndarray:
        """Get the script as a read-only uint8 array."""
        return np.frombuffer(self._data, dtype=np.uint8)

    @classmethod
    def from_hex(cls, text: str) -> 'Script':
        return cls(bytes.fromhex(text))

    def __len__(self) -> int:
        return len(self._data)

    def __bytes__(self) -> bytes:
        return self._data

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Script):
            return self._data == other._data
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"Script({self.asm()})"

    # =========================================================================
    # Disassembly
    # =========================================================================

    def instructions(self) -> Iterator[Tuple[Opcode, Optional[bytes]]]:
        """
        Iterate over (opcode, push data) pairs.

        Raises:
            ScriptBuildError: If a push runs past the end of the script
        """
        data = self._data
        offset = 0

        while offset < len(data):
            opcode = Opcode(data[offset])
            offset += 1

            if not is_push_opcode(opcode):
                yield opcode, None
                continue

            if opcode <= MAX_DIRECT_PUSH:
                size = int(opcode)
            else:
                width = PUSHDATA_WIDTH[opcode]
                if offset + width > len(data):
                    raise ScriptBuildError(f"truncated {opcode.name} length at offset {offset}")
                size = int.from_bytes(data[offset:offset + width], "little")
                offset += width

            if offset + size > len(data):
                raise ScriptBuildError(f"push of {size} bytes past end of script")

            yield opcode, data[offset:offset + size]
            offset += size

    def asm(self) -> str:
        """Render the script as space-separated opcodes and hex data."""
        parts: List[str] = []
        try:
            for opcode, push in self.instructions():
                parts.append(opcode.name)
                if push:
                    parts.append(push.hex())
        except ScriptBuildError:
            parts.append("<push past end>")
        return " ".join(parts)

    def disassemble(self) -> str:
        """Disassemble the script to one instruction per line."""
        lines = []
        offset = 0
        for opcode, push in self.instructions():
            if push is None:
                lines.append(f"{offset:04d}  {opcode.name}")
                offset += 1
            else:
                lines.append(f"{offset:04d}  {opcode.name} {push.hex()}".rstrip())
                header = 1
                if opcode > MAX_DIRECT_PUSH:
                    header += PUSHDATA_WIDTH[opcode]
                offset += header + len(push)
        return "\n".join(lines)


class Builder:
    """
    Accumulates pushes into a script.

    Every push returns the builder so calls can be chained;
    ``into_script`` produces the finished Script.
    """

    def __init__(self):
        self.code = bytearray()

    def __len__(self) -> int:
        return len(self.code)

    def __repr__(self) -> str:
        return f"Builder({Script(self.code).asm()})"

    def push_opcode(self, opcode: Opcode) -> 'Builder':
        """Push a bare opcode."""
        self.code.append(Opcode(opcode))
        return self

    def push_int(self, value: int) -> 'Builder':
        """
        Push an integer with the shortest encoding.

        -1 and 1..16 use their OP_PUSHNUM opcode, 0 an empty push,
        anything else a script number.
        """
        if not INT64_MIN <= value <= INT64_MAX:
            raise ScriptBuildError(f"integer {value} does not fit in 64 bits")

        if value == -1 or 1 <= value <= 16:
            return self.push_opcode(Opcode(Opcode.OP_PUSHNUM_1 + value - 1))
        if value == 0:
            return self.push_opcode(Opcode.OP_PUSHBYTES_0)
        return self.push_scriptint(value)

    def push_scriptint(self, value: int) -> 'Builder':
        """Push an integer as script number data, never as an opcode."""
        return self.push_slice(build_scriptint(value))

    def push_slice(self, data: BytesLike) -> 'Builder':
        """Push data with the smallest length prefix that fits."""
        data = bytes(data)
        size = len(data)

        if size <= MAX_DIRECT_PUSH:
            self.code.append(size)
        elif size < 0x100:
            self.code.append(Opcode.OP_PUSHDATA1)
            self.code.append(size)
        elif size < 0x10000:
            self.code.append(Opcode.OP_PUSHDATA2)
            self.code += struct.pack('<H', size)
        elif size <= MAX_PUSH_SIZE:
            self.code.append(Opcode.OP_PUSHDATA4)
            self.code += struct.pack('<I', size)
        else:
            raise ScriptBuildError(f"push of {size} bytes is too large for a script")

        self.code += data
        return self

    def push_key(self, key: PublicKey) -> 'Builder':
        """Push a public key in its serialized form."""
        return self.push_slice(key.to_bytes())

    def into_script(self) -> Script:
        """Finish building."""
        return Script(self.code)
