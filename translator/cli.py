"""sil-translate — command-line front end for the translator."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from .api import translate_source
from .backends import SUPPORTED_BACKENDS
from .config import ServerConfig
from .errors import TranslationError
from . import constants

logger = logging.getLogger(__name__)

DEMO_SOURCE = """\
let a = 1;
let b = 2;
if (a < b && b < 10) {
    a = a + b;
} else {
    a = 0;
}
while (a < 10) {
    a = a * 2;
}
"""


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sil-translate",
        description="Translate a JavaScript subset to SIL, Python and C++",
    )
    parser.add_argument("file", nargs="?", help="Source file ('-' reads stdin)")
    parser.add_argument(
        "--backend",
        "-b",
        action="append",
        choices=SUPPORTED_BACKENDS,
        help="Backend to render (repeatable; default: all)",
    )
    parser.add_argument(
        "--ir-only", action="store_true", help="Only print the SIL instructions"
    )
    parser.add_argument(
        "--json", action="store_true", help="Print the {sil, python, cpp} payload"
    )
    parser.add_argument(
        "--serve", action="store_true", help="Run the HTTP translate endpoint"
    )
    parser.add_argument("--host", default=constants.DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=constants.DEFAULT_PORT)
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging and show source spans in the SIL",
    )
    return parser


def _read_source(path: str | None) -> str:
    if path is None:
        print("No file provided. Using built-in demo:\n", file=sys.stderr)
        print(DEMO_SOURCE, file=sys.stderr)
        return DEMO_SOURCE
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else (logging.INFO if args.serve else logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    backends = tuple(args.backend) if args.backend else constants.DEFAULT_BACKENDS

    if args.serve:
        from .server import serve

        serve(ServerConfig(host=args.host, port=args.port))
        return 0

    logger.debug("Translating %s with backends %s", args.file or "<demo>", backends)
    try:
        source = _read_source(args.file)
        result = translate_source(source, backends=backends)
    except (OSError, TranslationError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_payload(), indent=2))
        return 0

    print("═══ SIL ═══")
    for inst in result.instructions:
        print(f"  {inst.located() if args.verbose else inst}")
    if args.ir_only:
        return 0

    for name, text in result.outputs.items():
        print(f"\n═══ {name.upper()} ═══")
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
