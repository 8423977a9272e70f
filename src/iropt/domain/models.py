from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .errors import DiagnosticExpectationMismatch, OptDriverError


class DiagnosticKind(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    REMARK = "remark"
    NOTE = "note"


@dataclass(frozen=True)
class SourceLocation:
    filename: str = ""
    line: int = 0
    column: int = 0

    @property
    def is_known(self) -> bool:
        return self.line > 0

    def __str__(self) -> str:
        if not self.is_known:
            return "<unknown>"
        return f"{self.filename}:{self.line}:{self.column}"


UNKNOWN_LOCATION = SourceLocation()


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    location: SourceLocation = UNKNOWN_LOCATION
    notes: tuple[Diagnostic, ...] = ()

    def render(self) -> str:
        if self.location.is_known:
            return f"{self.location}: {self.kind.value}: {self.message}"
        return f"{self.kind.value}: {self.message}"


@dataclass(frozen=True)
class Chunk:
    index: int
    text: str
    start_line: int = 1

    @property
    def line_offset(self) -> int:
        return self.start_line - 1


class ChunkState(str, Enum):
    UNPARSED = "unparsed"
    PARSED = "parsed"
    VERIFIED_ON_PARSE = "verified_on_parse"
    PIPELINE_POPULATED = "pipeline_populated"
    TRANSFORMED = "transformed"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ReproducerRecord:
    """Pre-transformation IR plus the pipeline needed to replay it."""

    source: str
    pipeline: str
    chunk_index: int = 0


@dataclass
class ChunkResult:
    chunk: Chunk
    state: ChunkState = ChunkState.UNPARSED
    failed_at: ChunkState | None = None
    output: str | bytes | None = None
    error: OptDriverError | None = None
    mismatch: DiagnosticExpectationMismatch | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    rendered: list[str] = field(default_factory=list)
    reproducer: ReproducerRecord | None = None
    verifying: bool = False

    @property
    def crashed(self) -> bool:
        from .errors import PassExecutionError, TransformVerificationError

        return isinstance(self.error, (PassExecutionError, TransformVerificationError))

    @property
    def succeeded(self) -> bool:
        if self.state == ChunkState.UNPARSED:
            return False
        if self.verifying:
            # Expected errors are consumed by the verifier; only mismatches fail the chunk.
            return self.mismatch is None
        return self.state == ChunkState.DONE and self.error is None


@dataclass
class OptRunResult:
    chunk_results: list[ChunkResult] = field(default_factory=list)
    fatal_error: OptDriverError | None = None
    short_circuited: bool = False

    @property
    def succeeded(self) -> bool:
        if self.fatal_error is not None:
            return False
        return all(result.succeeded for result in self.chunk_results)

    @property
    def failed_chunks(self) -> list[ChunkResult]:
        return [result for result in self.chunk_results if not result.succeeded]
