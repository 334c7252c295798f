"""Command line converter between JSON and TOON."""

import argparse
import json
import logging
import sys
from collections import OrderedDict
from pathlib import Path

from . import __version__
from .decode import decode
from .encode import encode
from .errors import ToonError
from .types import DecodeOptions, EncodeOptions

logger = logging.getLogger(__name__)

DELIMITERS = {
    "comma": ",",
    "tab": "\t",
    "pipe": "|",
}


def read_input(path: str | None) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def write_output(path: str | None, text: str) -> None:
    if path is None or path == "-":
        sys.stdout.write(text + "\n")
        return
    Path(path).write_text(text + "\n", encoding="utf-8")


def command_encode(args: argparse.Namespace) -> int:
    source = read_input(args.input)
    try:
        if args.sort_keys:
            data = json.loads(source)
        else:
            data = json.loads(source, object_pairs_hook=OrderedDict)
    except json.JSONDecodeError as exc:
        print(f"error: invalid JSON input: {exc}", file=sys.stderr)
        return 1

    options = EncodeOptions(
        indent=args.indent,
        delimiter=DELIMITERS[args.delimiter],
        length_marker=args.length_marker,
        flatten_paths=args.flatten,
        flatten_depth=args.flatten_depth,
        strict=args.strict_collisions,
        sort_keys=args.sort_keys,
    )
    write_output(args.output, encode(data, options))
    return 0


def command_decode(args: argparse.Namespace) -> int:
    options = DecodeOptions(
        strict=not args.lenient,
        indent=args.indent,
        expand_paths="safe" if args.expand_paths else "off",
    )
    data = decode(read_input(args.input), options)
    write_output(args.output, json.dumps(data, indent=args.json_indent, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toon-codec",
        description="Convert between JSON and TOON (Token-Oriented Object Notation).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log codec decisions to stderr (-vv for debug output).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_encode = subparsers.add_parser("encode", help="Convert JSON to TOON.")
    p_encode.add_argument("input", nargs="?", help="JSON file to read (defaults to stdin).")
    p_encode.add_argument("-o", "--output", help="File to write (defaults to stdout).")
    p_encode.add_argument("--indent", type=int, default=2, help="Spaces per indentation level.")
    p_encode.add_argument(
        "--delimiter",
        choices=sorted(DELIMITERS),
        default="comma",
        help="Delimiter for inline arrays and tabular rows.",
    )
    p_encode.add_argument(
        "--length-marker",
        default="",
        help="Prefix written before array lengths, e.g. '#'.",
    )
    p_encode.add_argument(
        "--flatten",
        action="store_true",
        help="Fold nested objects into dotted keys.",
    )
    p_encode.add_argument(
        "--flatten-depth",
        type=int,
        default=0,
        help="Maximum segments in a folded key (0 means unlimited).",
    )
    p_encode.add_argument(
        "--strict-collisions",
        action="store_true",
        help="Fail when flattening produces colliding keys.",
    )
    p_encode.add_argument(
        "--sort-keys",
        action="store_true",
        help="Sort object keys instead of keeping the input order.",
    )
    p_encode.set_defaults(func=command_encode)

    p_decode = subparsers.add_parser("decode", help="Convert TOON to JSON.")
    p_decode.add_argument("input", nargs="?", help="TOON file to read (defaults to stdin).")
    p_decode.add_argument("-o", "--output", help="File to write (defaults to stdout).")
    p_decode.add_argument(
        "--lenient",
        action="store_true",
        help="Disable strict validation of lengths, blank lines and indentation.",
    )
    p_decode.add_argument("--indent", type=int, default=2, help="Expected indentation size.")
    p_decode.add_argument(
        "--expand-paths",
        action="store_true",
        help="Expand dotted keys into nested objects.",
    )
    p_decode.add_argument(
        "--json-indent",
        type=int,
        default=2,
        help="Indentation of the JSON output.",
    )
    p_decode.set_defaults(func=command_decode)

    return parser


def configure_logging(verbosity: int) -> None:
    if verbosity <= 0:
        return
    level = logging.DEBUG if verbosity > 1 else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    try:
        return int(args.func(args))
    except ToonError as exc:
        logger.info("%s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
