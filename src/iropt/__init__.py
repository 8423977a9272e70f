"""Driver core of a textual IR optimizer: split, parse, transform, verify, emit."""

from .config import (
    CallbackPipeline,
    NoPipeline,
    OptConfig,
    OptConfigBuilder,
    TextualPipeline,
    VerbosityLevel,
    VerifyDiagnosticsLevel,
)
from .domain.models import Chunk, ChunkResult, ChunkState, Diagnostic, DiagnosticKind, OptRunResult, SourceLocation
from .ir.registry import DialectRegistry, default_registry
from .passes.builtin import default_pass_registry
from .use_cases.opt_main import as_exit_code, run_opt_main
from .use_cases.splitting import merge_outputs, split_input_buffer

__all__ = [
    "CallbackPipeline",
    "Chunk",
    "ChunkResult",
    "ChunkState",
    "Diagnostic",
    "DiagnosticKind",
    "DialectRegistry",
    "NoPipeline",
    "OptConfig",
    "OptConfigBuilder",
    "OptRunResult",
    "SourceLocation",
    "TextualPipeline",
    "VerbosityLevel",
    "VerifyDiagnosticsLevel",
    "as_exit_code",
    "default_pass_registry",
    "default_registry",
    "merge_outputs",
    "run_opt_main",
    "split_input_buffer",
]
