from __future__ import annotations

import argparse
import logging
import sys

from .config import config_from_cli_options, register_cli_options
from .infrastructure.io import STDIO_PATH, open_output_stream, read_input_buffer
from .ir.registry import default_registry
from .use_cases.opt_main import as_exit_code, run_opt_main


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="iropt", description="Textual IR optimizer driver")
    parser.add_argument("input", nargs="?", default=STDIO_PATH, help="Input IR file ('-' reads stdin)")
    parser.add_argument("-o", "--output", default=STDIO_PATH, help="Output file ('-' writes stdout)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Driver log level (diagnostics are printed regardless)",
    )
    return register_cli_options(parser)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="[iropt] %(levelname)s %(name)s: %(message)s")
    config = config_from_cli_options(args)
    filename = "<stdin>" if args.input == STDIO_PATH else args.input

    try:
        buffer = read_input_buffer(args.input)
    except OSError as exc:
        print(f"[iropt] Failed to read {filename}: {exc}", file=sys.stderr)
        return 1

    try:
        with open_output_stream(args.output) as output:
            result = run_opt_main(output, buffer, default_registry(), config, filename=filename)
    except OSError as exc:
        print(f"[iropt] Failed to write {args.output}: {exc}", file=sys.stderr)
        return 1
    return as_exit_code(result)


if __name__ == "__main__":
    sys.exit(main())
