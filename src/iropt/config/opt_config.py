from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from ..passes.pass_manager import PassManager

DEFAULT_SPLIT_MARKER = "// -----"


class VerbosityLevel(IntEnum):
    ERRORS_ONLY = 0
    ERRORS_AND_WARNINGS = 1
    ERRORS_WARNINGS_AND_REMARKS = 2


class VerifyDiagnosticsLevel(str, Enum):
    OFF = "off"
    BASIC = "basic"
    STRICT = "strict"


@dataclass(frozen=True)
class NoPipeline:
    pass


@dataclass(frozen=True)
class CallbackPipeline:
    """Populates the pass manager once per run; returns False on failure."""

    setup: Callable[[PassManager], bool]


@dataclass(frozen=True)
class TextualPipeline:
    text: str


PipelineSource = NoPipeline | CallbackPipeline | TextualPipeline


@dataclass(frozen=True)
class OptConfig:
    """Every behavior of a driver run. Read-only once the run starts."""

    allow_unregistered_dialects: bool = False
    verbosity: VerbosityLevel = VerbosityLevel.ERRORS_WARNINGS_AND_REMARKS
    show_notes: bool = False
    emit_bytecode: bool = False
    bytecode_version: int | None = None
    elide_resource_data_from_bytecode: bool = False
    irdl_file: str = ""
    list_passes: bool = False
    show_dialects: bool = False
    run_reproducer: bool = False
    dump_pass_pipeline: bool = False
    input_split_marker: str = ""
    output_split_marker: str = ""
    use_explicit_module: bool = False
    verify_diagnostics: VerifyDiagnosticsLevel = VerifyDiagnosticsLevel.OFF
    verify_passes: bool = True
    verify_on_parsing: bool = True
    verify_roundtrip: bool = False
    reproducer_file: str = ""
    crash_reproducer_file: str = ""
    pipeline: PipelineSource = field(default_factory=NoPipeline)
    max_workers: int = 1
    fail_fast: bool = False

    @property
    def should_verify_diagnostics(self) -> bool:
        return self.verify_diagnostics != VerifyDiagnosticsLevel.OFF

    @classmethod
    def builder(cls) -> OptConfigBuilder:
        return OptConfigBuilder()

    def to_builder(self) -> OptConfigBuilder:
        return OptConfigBuilder(self)


class OptConfigBuilder:
    """Fluent construction of an :class:`OptConfig`.

    Each setter owns exactly one field, stores it and returns the builder;
    the last call wins.
    """

    def __init__(self, base: OptConfig | None = None) -> None:
        base = base or OptConfig()
        self._values: dict[str, Any] = {item.name: getattr(base, item.name) for item in fields(OptConfig)}

    def _set(self, name: str, value: Any) -> OptConfigBuilder:
        self._values[name] = value
        return self

    def allow_unregistered_dialects(self, allow: bool = True) -> OptConfigBuilder:
        """Accept operations of dialects missing from the registry."""
        return self._set("allow_unregistered_dialects", allow)

    def verbosity(self, level: VerbosityLevel) -> OptConfigBuilder:
        """Highest diagnostic severity forwarded in filter mode."""
        return self._set("verbosity", VerbosityLevel(level))

    def show_notes(self, show: bool = True) -> OptConfigBuilder:
        """Forward notes in filter mode."""
        return self._set("show_notes", show)

    def emit_bytecode(self, emit: bool = True) -> OptConfigBuilder:
        """Emit bytecode instead of textual IR."""
        return self._set("emit_bytecode", emit)

    def bytecode_version(self, version: int | None) -> OptConfigBuilder:
        """Pin the emitted bytecode version; None means the latest."""
        return self._set("bytecode_version", version)

    def elide_resource_data_from_bytecode(self, elide: bool = True) -> OptConfigBuilder:
        """Drop resource payloads from bytecode output."""
        return self._set("elide_resource_data_from_bytecode", elide)

    def irdl_file(self, path: str) -> OptConfigBuilder:
        """IRDL dialect definitions to register before processing."""
        return self._set("irdl_file", str(path))

    def list_passes(self, enable: bool = True) -> OptConfigBuilder:
        """Print the pass catalog and stop."""
        return self._set("list_passes", enable)

    def show_dialects(self, enable: bool = True) -> OptConfigBuilder:
        """Print the registered dialects and stop."""
        return self._set("show_dialects", enable)

    def run_reproducer(self, enable: bool = True) -> OptConfigBuilder:
        """Take each chunk's pipeline from its reproducer resource."""
        return self._set("run_reproducer", enable)

    def dump_pass_pipeline(self, enable: bool = True) -> OptConfigBuilder:
        """Print the populated pipeline before running it."""
        return self._set("dump_pass_pipeline", enable)

    def split_input_file(self, marker: str = DEFAULT_SPLIT_MARKER) -> OptConfigBuilder:
        """Split the input on this marker line; empty disables splitting."""
        return self._set("input_split_marker", marker)

    def output_split_marker(self, marker: str = DEFAULT_SPLIT_MARKER) -> OptConfigBuilder:
        """Marker placed between merged chunk outputs."""
        return self._set("output_split_marker", marker)

    def use_explicit_module(self, explicit: bool = True) -> OptConfigBuilder:
        """Disable the implicit top-level module."""
        return self._set("use_explicit_module", explicit)

    def verify_diagnostics(self, level: VerifyDiagnosticsLevel | str = VerifyDiagnosticsLevel.BASIC) -> OptConfigBuilder:
        """Check emitted diagnostics against expected-* annotations."""
        return self._set("verify_diagnostics", VerifyDiagnosticsLevel(level))

    def verify_passes(self, verify: bool = True) -> OptConfigBuilder:
        """Verify the IR after every pass."""
        return self._set("verify_passes", verify)

    def verify_on_parsing(self, verify: bool = True) -> OptConfigBuilder:
        """Verify the IR right after parsing."""
        return self._set("verify_on_parsing", verify)

    def verify_roundtrip(self, verify: bool = True) -> OptConfigBuilder:
        """Check that the output IR survives print/reparse and bytecode roundtrips."""
        return self._set("verify_roundtrip", verify)

    def reproducer_file(self, path: str) -> OptConfigBuilder:
        """Write a reproducer for every chunk, no failure required."""
        return self._set("reproducer_file", str(path))

    def crash_reproducer_file(self, path: str) -> OptConfigBuilder:
        """Write a reproducer for the first chunk whose pipeline fails."""
        return self._set("crash_reproducer_file", str(path))

    def pass_pipeline_setup(self, setup: Callable[[PassManager], bool]) -> OptConfigBuilder:
        """Callback invoked once per run to populate the pass manager."""
        return self._set("pipeline", CallbackPipeline(setup))

    def pass_pipeline(self, text: str) -> OptConfigBuilder:
        """Textual pipeline description, e.g. ``builtin.module(dce)``."""
        return self._set("pipeline", TextualPipeline(text))

    def max_workers(self, count: int) -> OptConfigBuilder:
        """Number of chunk worker threads; 1 runs chunks sequentially."""
        return self._set("max_workers", count)

    def fail_fast(self, enable: bool = True) -> OptConfigBuilder:
        """Stop scheduling chunks after the first failing one."""
        return self._set("fail_fast", enable)

    def build(self) -> OptConfig:
        return replace(OptConfig(), **self._values)
