"""
Script Value Types

Python values an escape may evaluate to, and the dispatch that turns
them into builder pushes.
"""

from typing import Any, TYPE_CHECKING, Union
from dataclasses import dataclass
import numpy as np

from dsl_compiler.errors import ScriptBuildError, UnsupportedPushType

if TYPE_CHECKING:
    from .script import Builder


INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

COMPRESSED_KEY_SIZE = 33
UNCOMPRESSED_KEY_SIZE = 65


@dataclass(frozen=True)
class PublicKey:
    """
    A SEC1-serialized secp256k1 public key.

    Only the encoding is checked (length and prefix byte), not that the
    point is on the curve.
    """

    data: bytes

    def __post_init__(self):
        data = bytes(self.data)
        object.__setattr__(self, "data", data)

        if len(data) == COMPRESSED_KEY_SIZE and data[0] in (0x02, 0x03):
            return
        if len(data) == UNCOMPRESSED_KEY_SIZE and data[0] == 0x04:
            return
        raise ScriptBuildError(
            f"invalid public key encoding ({len(data)} bytes, prefix {data[:1].hex() or 'none'})"
        )

    @classmethod
    def from_hex(cls, text: str) -> 'PublicKey':
        return cls(bytes.fromhex(text))

    @property
    def compressed(self) -> bool:
        return len(self.data) == COMPRESSED_KEY_SIZE

    def to_bytes(self) -> bytes:
        return self.data

    def __repr__(self) -> str:
        return f"PublicKey({self.data.hex()})"


# =============================================================================
# Pushable kinds
# =============================================================================

@dataclass(frozen=True)
class PushBytes:
    """Data pushed with push_slice."""
    data: bytes

    def push_onto(self, builder: 'Builder') -> 'Builder':
        return builder.push_slice(self.data)


@dataclass(frozen=True)
class PushInt:
    """Number pushed with push_int."""
    value: int

    def push_onto(self, builder: 'Builder') -> 'Builder':
        return builder.push_int(self.value)


@dataclass(frozen=True)
class PushKey:
    """Public key pushed with push_key."""
    key: PublicKey

    def push_onto(self, builder: 'Builder') -> 'Builder':
        return builder.push_key(self.key)


Pushable = Union[PushBytes, PushInt, PushKey]


def to_pushable(value: Any) -> Pushable:
    """
    Classify an escape's value.

    Raises:
        UnsupportedPushType: If the value is none of the pushable kinds
    """
    if isinstance(value, (PushBytes, PushInt, PushKey)):
        return value
    if isinstance(value, PublicKey):
        return PushKey(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return PushBytes(bytes(value))
    if isinstance(value, np.ndarray):
        if value.dtype == np.uint8 and value.ndim == 1:
            return PushBytes(value.tobytes())
        raise UnsupportedPushType(
            f"cannot push array of dtype {value.dtype} with {value.ndim} dimensions"
        )
    if isinstance(value, (bool, np.bool_)):
        raise UnsupportedPushType("cannot push a bool; use 0 or 1")
    if isinstance(value, (int, np.integer)):
        number = int(value)
        if not INT64_MIN <= number <= INT64_MAX:
            raise UnsupportedPushType(f"integer {number} does not fit in 64 bits")
        return PushInt(number)
    if isinstance(value, (list, tuple)):
        if all(isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 0xFF
               for b in value):
            return PushBytes(bytes(value))
        raise UnsupportedPushType("cannot push a sequence that is not all byte values")

    raise UnsupportedPushType(f"cannot push value of type {type(value).__name__}")


def push_value(builder: 'Builder', value: Any) -> 'Builder':
    """Push an escape's value with the builder call matching its kind."""
    return to_pushable(value).push_onto(builder)
