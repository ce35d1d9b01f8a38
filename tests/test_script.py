"""
Unit tests for the script builder and script value types.
"""

import unittest
import sys
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dsl_compiler import Opcode
from dsl_compiler.errors import ScriptBuildError
from script_api.script import Builder, Script, build_scriptint
from script_api.types import PublicKey


COMPRESSED_KEY = "02" + "ab" * 32
UNCOMPRESSED_KEY = "04" + "cd" * 64


class TestScriptInt(unittest.TestCase):
    """Test script number encoding."""

    def test_zero_is_empty(self):
        self.assertEqual(build_scriptint(0), b"")

    def test_values(self):
        cases = {
            1: b"\x01",
            127: b"\x7f",
            128: b"\x80\x00",
            255: b"\xff\x00",
            1234: b"\xd2\x04",
            -1: b"\x81",
            -127: b"\xff",
            -128: b"\x80\x80",
            -255: b"\xff\x80",
        }
        for value, encoded in cases.items():
            with self.subTest(value=value):
                self.assertEqual(build_scriptint(value), encoded)


class TestBuilderPushInt(unittest.TestCase):
    """Test Builder.push_int() encodings."""

    def push(self, value):
        return list(Builder().push_int(value).into_script().to_bytes())

    def test_small_numbers_use_opcodes(self):
        self.assertEqual(self.push(0), [0x00])
        self.assertEqual(self.push(-1), [0x4f])
        self.assertEqual(self.push(1), [0x51])
        self.assertEqual(self.push(16), [0x60])

    def test_larger_numbers_push_data(self):
        self.assertEqual(self.push(17), [1, 17])
        self.assertEqual(self.push(-2), [1, 0x82])
        self.assertEqual(self.push(255), [2, 255, 0])
        self.assertEqual(self.push(-255), [2, 255, 128])
        self.assertEqual(self.push(1234), [2, 210, 4])

    def test_int64_limits(self):
        self.assertEqual(self.push(2 ** 63 - 1), [8] + [0xff] * 7 + [0x7f])
        self.assertEqual(self.push(-2 ** 63), [9] + [0x00] * 7 + [0x80, 0x80])

    def test_out_of_range(self):
        with self.assertRaises(ScriptBuildError):
            Builder().push_int(2 ** 63)
        with self.assertRaises(ValueError):
            Builder().push_int(-2 ** 63 - 1)

    def test_push_scriptint_never_uses_opcode(self):
        script = Builder().push_scriptint(5).into_script()
        self.assertEqual(script.to_bytes(), b"\x01\x05")


class TestBuilderPushSlice(unittest.TestCase):
    """Test Builder.push_slice() length prefixes."""

    def test_empty(self):
        self.assertEqual(Builder().push_slice(b"").into_script().to_bytes(), b"\x00")

    def test_direct_push(self):
        data = bytes(75)
        script = Builder().push_slice(data).into_script()
        self.assertEqual(script.to_bytes(), b"\x4b" + data)

    def test_pushdata1(self):
        data = bytes(76)
        script = Builder().push_slice(data).into_script()
        self.assertEqual(script.to_bytes()[:2], b"\x4c\x4c")
        self.assertEqual(len(script), 78)

    def test_pushdata2(self):
        data = bytes(256)
        script = Builder().push_slice(data).into_script()
        self.assertEqual(script.to_bytes()[:3], b"\x4d\x00\x01")

    def test_pushdata4(self):
        data = bytes(0x10000)
        script = Builder().push_slice(data).into_script()
        self.assertEqual(script.to_bytes()[:5], b"\x4e\x00\x00\x01\x00")

    def test_accepts_bytearray(self):
        script = Builder().push_slice(bytearray(b"\xab\xcd")).into_script()
        self.assertEqual(script.to_hex(), "02abcd")


class TestBuilderChaining(unittest.TestCase):
    """Test opcode pushes and chaining."""

    def test_chain(self):
        script = (Builder()
                  .push_opcode(Opcode.OP_DUP)
                  .push_opcode(Opcode.OP_HASH160)
                  .push_slice(bytes(20))
                  .push_opcode(Opcode.OP_EQUALVERIFY)
                  .push_opcode(Opcode.OP_CHECKSIG)
                  .into_script())
        self.assertEqual(script.to_hex(), "76a914" + "00" * 20 + "88ac")

    def test_push_opcode_accepts_int(self):
        script = Builder().push_opcode(0xac).into_script()
        self.assertEqual(script.to_bytes(), b"\xac")

    def test_push_key(self):
        compressed = PublicKey.from_hex(COMPRESSED_KEY)
        uncompressed = PublicKey.from_hex(UNCOMPRESSED_KEY)
        script = Builder().push_key(compressed).push_key(uncompressed).into_script()
        data = script.to_bytes()
        self.assertEqual(data[0], 33)
        self.assertEqual(data[1:34].hex(), COMPRESSED_KEY)
        self.assertEqual(data[34], 65)
        self.assertEqual(len(data), 34 + 66)

    def test_into_script_snapshot(self):
        builder = Builder().push_opcode(Opcode.OP_NOP)
        script = builder.into_script()
        builder.push_opcode(Opcode.OP_NOP)
        self.assertEqual(len(script), 1)


class TestScript(unittest.TestCase):
    """Test the Script value."""

    def setUp(self):
        self.script = (Builder()
                       .push_opcode(Opcode.OP_HASH160)
                       .push_int(1234)
                       .push_int(-1)
                       .push_slice(b"\xab\xcd")
                       .into_script())

    def test_equality_and_hash(self):
        other = Script.from_hex(self.script.to_hex())
        self.assertEqual(self.script, other)
        self.assertEqual(hash(self.script), hash(other))
        self.assertNotEqual(self.script, Script(b""))

    def test_to_array(self):
        array = self.script.to_array()
        self.assertEqual(array.dtype, np.uint8)
        np.testing.assert_array_equal(array, [169, 2, 210, 4, 79, 2, 171, 205])

    def test_asm(self):
        self.assertEqual(
            self.script.asm(),
            "OP_HASH160 OP_PUSHBYTES_2 d204 OP_PUSHNUM_NEG1 OP_PUSHBYTES_2 abcd",
        )

    def test_asm_truncated(self):
        self.assertEqual(Script(b"\x02\xab").asm(), "<push past end>")

    def test_instructions(self):
        instructions = list(self.script.instructions())
        self.assertEqual(instructions[0], (Opcode.OP_HASH160, None))
        self.assertEqual(instructions[1], (Opcode.OP_PUSHBYTES_2, b"\xd2\x04"))

    def test_instructions_truncated(self):
        with self.assertRaises(ScriptBuildError):
            list(Script(b"\x4d\x01").instructions())

    def test_disassemble(self):
        self.assertEqual(self.script.disassemble().splitlines(), [
            "0000  OP_HASH160",
            "0001  OP_PUSHBYTES_2 d204",
            "0004  OP_PUSHNUM_NEG1",
            "0005  OP_PUSHBYTES_2 abcd",
        ])

    def test_disassemble_pushdata(self):
        script = Builder().push_slice(bytes(80)).push_opcode(Opcode.OP_DROP).into_script()
        lines = script.disassemble().splitlines()
        self.assertTrue(lines[0].startswith("0000  OP_PUSHDATA1 00"))
        self.assertEqual(lines[1], "0082  OP_DROP")


class TestPublicKey(unittest.TestCase):
    """Test public key validation."""

    def test_compressed(self):
        key = PublicKey.from_hex(COMPRESSED_KEY)
        self.assertTrue(key.compressed)
        self.assertEqual(len(key.to_bytes()), 33)

    def test_uncompressed(self):
        key = PublicKey.from_hex(UNCOMPRESSED_KEY)
        self.assertFalse(key.compressed)

    def test_invalid(self):
        for text in ["", "02" + "ab" * 31, "05" + "ab" * 32, "02" + "ab" * 64]:
            with self.subTest(text=text):
                with self.assertRaises(ScriptBuildError):
                    PublicKey.from_hex(text)


if __name__ == '__main__':
    unittest.main()
