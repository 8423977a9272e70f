"""Driver service layer for single-responsibility components."""

from .chunk_split_service import ChunkSplitService
from .diagnostic_sink_service import (
    DiagnosticSink,
    ExpectedDiagnostic,
    FilterDiagnosticSink,
    VerifyingDiagnosticSink,
    create_sink,
    parse_expectations,
)
from .output_emitter_service import OutputEmitterService
from .pipeline_runner_service import PipelineRunnerService
from .reproducer_service import REPRODUCER_RESOURCE_KEY, ReproducerService
from .roundtrip_service import RoundtripService

__all__ = [
    "ChunkSplitService",
    "DiagnosticSink",
    "ExpectedDiagnostic",
    "FilterDiagnosticSink",
    "OutputEmitterService",
    "PipelineRunnerService",
    "REPRODUCER_RESOURCE_KEY",
    "ReproducerService",
    "RoundtripService",
    "VerifyingDiagnosticSink",
    "create_sink",
    "parse_expectations",
]
