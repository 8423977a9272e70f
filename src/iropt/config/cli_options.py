from __future__ import annotations

import argparse

from .opt_config import (
    DEFAULT_SPLIT_MARKER,
    NoPipeline,
    OptConfig,
    TextualPipeline,
    VerbosityLevel,
    VerifyDiagnosticsLevel,
)

VERBOSITY_CHOICES = {
    "errors": VerbosityLevel.ERRORS_ONLY,
    "warnings": VerbosityLevel.ERRORS_AND_WARNINGS,
    "remarks": VerbosityLevel.ERRORS_WARNINGS_AND_REMARKS,
}


def register_cli_options(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.add_argument(
        "--allow-unregistered-dialect",
        action="store_true",
        help="Allow operations of dialects that are not registered (testing only)",
    )
    parser.add_argument(
        "--diagnostic-verbosity",
        choices=sorted(VERBOSITY_CHOICES),
        default="remarks",
        help="Most verbose diagnostic kind to print",
    )
    parser.add_argument("--show-notes", action="store_true", help="Print diagnostic notes")
    parser.add_argument("--emit-bytecode", action="store_true", help="Emit bytecode instead of textual IR")
    parser.add_argument("--emit-bytecode-version", type=int, default=None, help="Bytecode version to emit")
    parser.add_argument(
        "--elide-resource-data-from-bytecode",
        action="store_true",
        help="Strip resource payloads from emitted bytecode",
    )
    parser.add_argument("--irdl-file", type=str, default="", help="IRDL file with dialects to register")
    parser.add_argument("--list-passes", action="store_true", help="Print the registered passes and exit")
    parser.add_argument("--show-dialects", action="store_true", help="Print the registered dialects and exit")
    parser.add_argument(
        "--run-reproducer",
        action="store_true",
        help="Run the pipeline stored in the input's reproducer resource",
    )
    parser.add_argument("--dump-pass-pipeline", action="store_true", help="Print the pipeline before running it")
    parser.add_argument(
        "--split-input-file",
        nargs="?",
        const=DEFAULT_SPLIT_MARKER,
        default="",
        metavar="MARKER",
        help=f"Split the input on MARKER lines (default marker: '{DEFAULT_SPLIT_MARKER}')",
    )
    parser.add_argument(
        "--output-split-marker",
        nargs="?",
        const=DEFAULT_SPLIT_MARKER,
        default="",
        metavar="MARKER",
        help="Separate merged chunk outputs with MARKER",
    )
    parser.add_argument(
        "--no-implicit-module",
        action="store_true",
        help="Require a single explicit top-level operation",
    )
    parser.add_argument(
        "--verify-diagnostics",
        nargs="?",
        const=VerifyDiagnosticsLevel.BASIC.value,
        default=VerifyDiagnosticsLevel.OFF.value,
        choices=[level.value for level in VerifyDiagnosticsLevel],
        help="Check diagnostics against expected-* annotations",
    )
    parser.add_argument(
        "--verify-each",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Verify the IR after each pass",
    )
    parser.add_argument(
        "--disable-verifier-on-parsing",
        action="store_true",
        help="Skip verification right after parsing",
    )
    parser.add_argument("--verify-roundtrip", action="store_true", help="Check print/reparse roundtrips")
    parser.add_argument("--reproducer-file", type=str, default="", help="Write a reproducer to this path")
    parser.add_argument(
        "--crash-reproducer",
        type=str,
        default="",
        help="Write a reproducer to this path when a pass fails",
    )
    parser.add_argument("--pass-pipeline", type=str, default="", help="Textual pass pipeline to run")
    parser.add_argument("--max-workers", type=int, default=1, help="Chunk worker threads")
    parser.add_argument("--fail-fast", action="store_true", help="Stop after the first failing chunk")
    return parser


def config_from_cli_options(args: argparse.Namespace) -> OptConfig:
    return OptConfig(
        allow_unregistered_dialects=args.allow_unregistered_dialect,
        verbosity=VERBOSITY_CHOICES[args.diagnostic_verbosity],
        show_notes=args.show_notes,
        emit_bytecode=args.emit_bytecode,
        bytecode_version=args.emit_bytecode_version,
        elide_resource_data_from_bytecode=args.elide_resource_data_from_bytecode,
        irdl_file=args.irdl_file,
        list_passes=args.list_passes,
        show_dialects=args.show_dialects,
        run_reproducer=args.run_reproducer,
        dump_pass_pipeline=args.dump_pass_pipeline,
        input_split_marker=args.split_input_file,
        output_split_marker=args.output_split_marker,
        use_explicit_module=args.no_implicit_module,
        verify_diagnostics=VerifyDiagnosticsLevel(args.verify_diagnostics),
        verify_passes=args.verify_each,
        verify_on_parsing=not args.disable_verifier_on_parsing,
        verify_roundtrip=args.verify_roundtrip,
        reproducer_file=args.reproducer_file,
        crash_reproducer_file=args.crash_reproducer,
        pipeline=TextualPipeline(args.pass_pipeline) if args.pass_pipeline else NoPipeline(),
        max_workers=args.max_workers,
        fail_fast=args.fail_fast,
    )
