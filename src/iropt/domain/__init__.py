from .errors import (
    BytecodeError,
    BytecodeVersionUnsupportedError,
    ConfigurationError,
    DiagnosticExpectationMismatch,
    IRPrintError,
    IRSyntaxError,
    IRVerificationError,
    OptDriverError,
    ParseVerificationError,
    PassExecutionError,
    PipelinePopulationError,
    ReproducerIOError,
    RoundtripMismatchError,
    TransformVerificationError,
    UnregisteredDialectError,
)
from .models import (
    UNKNOWN_LOCATION,
    Chunk,
    ChunkResult,
    ChunkState,
    Diagnostic,
    DiagnosticKind,
    OptRunResult,
    ReproducerRecord,
    SourceLocation,
)

__all__ = [
    "UNKNOWN_LOCATION",
    "BytecodeError",
    "BytecodeVersionUnsupportedError",
    "Chunk",
    "ChunkResult",
    "ChunkState",
    "ConfigurationError",
    "Diagnostic",
    "DiagnosticExpectationMismatch",
    "DiagnosticKind",
    "IRPrintError",
    "IRSyntaxError",
    "IRVerificationError",
    "OptDriverError",
    "OptRunResult",
    "ParseVerificationError",
    "PassExecutionError",
    "PipelinePopulationError",
    "ReproducerIOError",
    "ReproducerRecord",
    "RoundtripMismatchError",
    "SourceLocation",
    "TransformVerificationError",
    "UnregisteredDialectError",
]
