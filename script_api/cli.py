"""
Command line entry point: compile a DSL file and print the script.
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from dsl_compiler import SyntaxPrinter, ScriptDslError, CompileError

from .context import Context

FORMATS = ("hex", "asm", "bytes", "python", "ast")


def parse_define(text: str) -> Any:
    """
    Parse a --define value.

    ``0x``-prefixed or even-length hex text becomes bytes, a decimal
    (optionally negative) becomes an int.
    """
    if text.startswith("0x"):
        return bytes.fromhex(text[2:])
    try:
        return int(text, 10)
    except ValueError:
        return bytes.fromhex(text)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bitcoin-script",
        description="Compile script DSL source into a Bitcoin script.",
    )
    parser.add_argument("file", nargs="?", help="source file (default: stdin)")
    parser.add_argument("-f", "--format", choices=FORMATS, default="hex",
                        help="output format (default: hex)")
    parser.add_argument("-D", "--define", action="append", default=[],
                        metavar="NAME=VALUE",
                        help="bind an escape name to hex bytes or a decimal integer")
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.debug:
        logging.basicConfig(level=logging.DEBUG,
                            format="%(levelname)s %(name)s: %(message)s")

    names: Dict[str, Any] = {}
    for item in args.define:
        name, sep, value = item.partition("=")
        if not sep or not name.isidentifier():
            print(f"error: invalid --define {item!r}, expected NAME=VALUE", file=sys.stderr)
            return 2
        try:
            names[name] = parse_define(value)
        except ValueError:
            print(f"error: invalid value for {name}: {value!r}", file=sys.stderr)
            return 2

    if args.file:
        with open(args.file, "r", encoding="utf-8") as f:
            source = f.read()
    else:
        source = sys.stdin.read()

    ctx = Context(debug=args.debug)
    try:
        compiled = ctx.compile(source, args.file)
    except CompileError as e:
        for diagnostic in e.diagnostics:
            print(diagnostic, file=sys.stderr)
        return 1
    except ScriptDslError as e:
        print(e, file=sys.stderr)
        return 1

    if args.format == "python":
        print(compiled.source_code)
        return 0
    if args.format == "ast":
        print(SyntaxPrinter().print(compiled.program))
        return 0

    try:
        script = compiled.evaluate(names)
    except Exception as e:
        print(f"error: {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    if args.format == "asm":
        print(script.asm())
    elif args.format == "bytes":
        print(list(script.to_bytes()))
    else:
        print(script.to_hex())
    return 0


if __name__ == "__main__":
    sys.exit(main())
