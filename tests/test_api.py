"""
Unit tests for the script DSL Python API.

Tests for compile, evaluate, escape dispatch and the bitcoin_script helper.
"""

import unittest
import sys
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dsl_compiler.errors import (
    CompileError, UnknownOpcode, UnsupportedPushType, ScriptBuildError,
    InvalidEscape,
)
from script_api import (
    Context, CompiledScript, Builder, Script, PublicKey, PushBytes, PushInt,
    PushKey, bitcoin_script, create_context, push_value,
)
from script_api.types import to_pushable


FIXTURE_BYTES = [169, 2, 210, 4, 2, 255, 0, 79, 2, 255, 128, 2, 171, 205]
KEY = PublicKey.from_hex("03" + "5a" * 32)


class TestContextBasic(unittest.TestCase):
    """Test basic Context functionality."""

    def test_create_context_default(self):
        ctx = Context()
        self.assertFalse(ctx.debug)

    def test_create_context_debug(self):
        ctx = create_context(debug=True)
        self.assertTrue(ctx.debug)

    def test_compile_simple(self):
        ctx = Context()
        script = ctx.compile("OP_DUP OP_DROP")
        self.assertIsInstance(script, CompiledScript)
        self.assertFalse(script.has_escapes)
        self.assertEqual(len(script.program), 2)

    def test_compile_is_cached(self):
        ctx = Context()
        self.assertIs(ctx.compile("OP_NOP"), ctx.compile("OP_NOP"))
        ctx.clear_cache()
        self.assertIsNot(ctx.compile("OP_NOP"), ctx.compile("OP_NOP", "other.bs"))

    def test_compile_error(self):
        ctx = Context()
        with self.assertRaises(CompileError) as info:
            ctx.compile("OP_DUP NOT_AN_OPCODE OP_DROP")
        self.assertIsInstance(info.exception.diagnostics[0], UnknownOpcode)

    def test_empty_program(self):
        script = Context().run("")
        self.assertEqual(script, Script(b""))

    def test_invalid_escape_is_compile_error(self):
        ctx = Context()
        with self.assertRaises(CompileError) as info:
            ctx.compile("OP_DUP <a b> OP_DROP <x)>")
        diagnostics = info.exception.diagnostics
        self.assertEqual(len(diagnostics), 2)
        self.assertIsInstance(diagnostics[0], InvalidEscape)
        self.assertEqual((diagnostics[0].line, diagnostics[0].column), (1, 8))
        self.assertEqual(diagnostics[1].column, 22)

    def test_cache_is_bounded(self):
        ctx = Context(cache_size=8)
        for i in range(100):
            ctx.run(f"{i} OP_DROP")
        self.assertEqual(len(ctx._cache), 8)

    def test_cache_keeps_recently_used(self):
        ctx = Context(cache_size=2)
        first = ctx.compile("OP_NOP")
        ctx.compile("OP_DUP")
        ctx.compile("OP_NOP")
        ctx.compile("OP_DROP")
        self.assertIs(ctx.compile("OP_NOP"), first)


class TestFixture(unittest.TestCase):
    """End-to-end reference scripts."""

    def test_fixture_without_escapes(self):
        script = Context().run("""
            OP_HASH160
            1234
            255
            -1
            -255
            0xabcd
        """)
        self.assertEqual(list(script.to_bytes()), FIXTURE_BYTES)

    def test_fixture_with_escapes(self):
        foo = [1, 2, 3, 4]
        script = bitcoin_script("""
            OP_HASH160
            1234
            255
            -1
            -255
            0xabcd
            <1 + 1>
            <foo>
        """)
        self.assertEqual(list(script.to_bytes()),
                         FIXTURE_BYTES + [82, 4, 1, 2, 3, 4])

    def test_escape_result_matches_direct_builder(self):
        compiled = Context().compile("OP_HASH160 <h> OP_EQUAL")
        expected = (Builder()
                    .push_opcode(0xa9)
                    .push_slice(bytes(20))
                    .push_opcode(0x87)
                    .into_script())
        self.assertEqual(compiled.evaluate(h=bytes(20)), expected)


class TestEscapes(unittest.TestCase):
    """Escape evaluation and dispatch."""

    def setUp(self):
        self.ctx = Context()

    def evaluate(self, source, **names):
        return list(self.ctx.run(source, **names).to_bytes())

    def test_bytes_values(self):
        self.assertEqual(self.evaluate("<x>", x=b"\x01\x02"), [2, 1, 2])
        self.assertEqual(self.evaluate("<x>", x=bytearray(b"\x01")), [1, 1])
        self.assertEqual(self.evaluate("<x>", x=memoryview(b"\x07")), [1, 7])
        self.assertEqual(self.evaluate("<x>", x=(9, 8)), [2, 9, 8])

    def test_numpy_values(self):
        self.assertEqual(self.evaluate("<x>", x=np.array([5, 6], dtype=np.uint8)), [2, 5, 6])
        self.assertEqual(self.evaluate("<x>", x=np.int64(1234)), [2, 210, 4])

    def test_int_values(self):
        self.assertEqual(self.evaluate("<x>", x=0), [0])
        self.assertEqual(self.evaluate("<x>", x=16), [0x60])
        self.assertEqual(self.evaluate("<x>", x=-255), [2, 255, 128])

    def test_public_key(self):
        result = self.evaluate("<k> OP_CHECKSIG", k=KEY)
        self.assertEqual(result[0], 33)
        self.assertEqual(bytes(result[1:34]), KEY.to_bytes())
        self.assertEqual(result[34], 0xac)

    def test_expression(self):
        self.assertEqual(self.evaluate("<n * 2 + 1>", n=8), [1, 17])
        self.assertEqual(self.evaluate("<data[:2]>", data=b"\xaa\xbb\xcc"), [2, 0xaa, 0xbb])

    def test_order_across_escapes(self):
        result = self.evaluate("OP_DUP <a> OP_DROP <b> OP_NOP", a=b"\x01", b=3)
        self.assertEqual(result, [0x76, 1, 1, 0x75, 0x53, 0x61])

    def test_unsupported_types(self):
        for value in ["text", 1.5, True, None, [300], {"a": 1},
                      np.zeros((2, 2), dtype=np.uint8), np.array([1.0])]:
            with self.subTest(value=value):
                with self.assertRaises(UnsupportedPushType):
                    self.ctx.run("<x>", x=value)

    def test_unsupported_type_is_type_error(self):
        with self.assertRaises(TypeError):
            self.ctx.run("<x>", x="text")

    def test_int_out_of_range(self):
        with self.assertRaises(UnsupportedPushType):
            self.ctx.run("<x>", x=2 ** 64)

    def test_empty_escape_fails_at_evaluation(self):
        compiled = self.ctx.compile("OP_NOP <>")
        with self.assertRaises(UnsupportedPushType):
            compiled.evaluate()

    def test_undefined_name(self):
        with self.assertRaises(NameError):
            self.ctx.run("<missing>")

    def test_names_do_not_clash_with_shim(self):
        self.assertEqual(self.evaluate("<value> <builder>", value=1, builder=2), [0x51, 0x52])

    def test_namespace_and_keywords(self):
        compiled = self.ctx.compile("<a> <b>")
        result = compiled.evaluate({"a": 1, "b": 2}, b=3)
        self.assertEqual(list(result.to_bytes()), [0x51, 0x53])

    def test_comprehension_sees_names(self):
        self.assertEqual(self.evaluate("<bytes(x + 1 for x in xs)>", xs=[1, 2]), [2, 2, 3])


class TestPushDispatch(unittest.TestCase):
    """The shared push dispatch."""

    def test_classification(self):
        self.assertEqual(to_pushable(b"\x01"), PushBytes(b"\x01"))
        self.assertEqual(to_pushable(7), PushInt(7))
        self.assertEqual(to_pushable(KEY), PushKey(KEY))

    def test_variants_pass_through(self):
        variant = PushInt(5)
        self.assertIs(to_pushable(variant), variant)

    def test_push_value_returns_builder(self):
        builder = Builder()
        self.assertIs(push_value(builder, 5), builder)
        self.assertEqual(builder.into_script().to_bytes(), b"\x55")

    def test_builder_errors_surface(self):
        with self.assertRaises(ScriptBuildError):
            PublicKey(b"\x02")


class TestBitcoinScript(unittest.TestCase):
    """Test the bitcoin_script() helper."""

    def test_sees_locals(self):
        pubkey_hash = bytes(range(20))
        script = bitcoin_script("OP_DUP OP_HASH160 <pubkey_hash> OP_EQUALVERIFY OP_CHECKSIG")
        self.assertEqual(script.to_hex(), "76a914" + pubkey_hash.hex() + "88ac")

    def test_sees_globals(self):
        script = bitcoin_script("<KEY> OP_CHECKSIG")
        self.assertEqual(len(script), 35)

    def test_keywords_override(self):
        n = 1
        script = bitcoin_script("<n>", n=2)
        self.assertEqual(script.to_bytes(), b"\x52")

    def test_compile_errors(self):
        with self.assertRaises(CompileError):
            bitcoin_script("OP_DUP <unterminated")


class TestDemo(unittest.TestCase):
    """The demo script runs."""

    def test_demo_main(self):
        import demo
        demo.main()


if __name__ == '__main__':
    unittest.main()
