from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator

from ...config.opt_config import OptConfig, VerbosityLevel, VerifyDiagnosticsLevel
from ...domain.errors import DiagnosticExpectationMismatch
from ...domain.models import Chunk, Diagnostic, DiagnosticKind, SourceLocation

DIRECTIVE_RE = re.compile(r"expected-(?:error|warning|remark|note)\b")
EXPECTATION_RE = re.compile(
    r"expected-(?P<kind>error|warning|remark|note)(?P<regex>-re)?"
    r"(?:\s*@(?P<anchor>[+-]\d+|above|below|unknown))?"
    r"(?:\s+(?P<count>\d+))?"
    r"\s*\{\{(?P<body>.*)\}\}"
)
REGEX_SEGMENT_RE = re.compile(r"\{\{(.*?)\}\}")
SEVERITY_RANK = {
    DiagnosticKind.ERROR: 0,
    DiagnosticKind.WARNING: 1,
    DiagnosticKind.REMARK: 2,
}


@dataclass
class ExpectedDiagnostic:
    kind: DiagnosticKind
    line: int | None
    text: str
    location: SourceLocation
    pattern: re.Pattern[str] | None = None
    count: int = 1
    matched: int = 0

    def matches(self, diagnostic: Diagnostic) -> bool:
        if diagnostic.kind != self.kind or self.matched >= self.count:
            return False
        line = diagnostic.location.line if diagnostic.location.is_known else None
        if line != self.line:
            return False
        if self.pattern is not None:
            return self.pattern.search(diagnostic.message) is not None
        return self.text in diagnostic.message


def _compile_regex_body(body: str) -> re.Pattern[str]:
    pieces: list[str] = []
    cursor = 0
    for match in REGEX_SEGMENT_RE.finditer(body):
        pieces.append(re.escape(body[cursor : match.start()]))
        pieces.append(f"(?:{match.group(1)})")
        cursor = match.end()
    pieces.append(re.escape(body[cursor:]))
    return re.compile("".join(pieces))


def parse_expectations(chunk: Chunk, *, filename: str) -> tuple[list[ExpectedDiagnostic], list[Diagnostic]]:
    """Collect expected-* directives from the chunk's ``//`` comments.

    Returns the expectations and one error diagnostic per malformed directive.
    """
    lines = chunk.text.split("\n")
    comments: list[str | None] = []
    directive_only: list[bool] = []
    for line in lines:
        idx = line.find("//")
        comment = line[idx:] if idx >= 0 else None
        comments.append(comment)
        directive_only.append(
            comment is not None and not line[:idx].strip() and DIRECTIVE_RE.search(comment) is not None
        )

    expectations: list[ExpectedDiagnostic] = []
    failures: list[Diagnostic] = []
    for idx, comment in enumerate(comments):
        if comment is None or DIRECTIVE_RE.search(comment) is None:
            continue
        line_number = chunk.start_line + idx
        column = lines[idx].find("//") + 1
        location = SourceLocation(filename, line_number, column)
        match = EXPECTATION_RE.search(comment)
        if match is None:
            failures.append(Diagnostic(DiagnosticKind.ERROR, "expected-* directive must contain {{...}}", location))
            continue

        anchor = match.group("anchor")
        target: int | None = line_number
        if anchor == "unknown":
            target = None
        elif anchor == "above":
            target = next(
                (chunk.start_line + i for i in range(idx - 1, -1, -1) if not directive_only[i]),
                None,
            )
        elif anchor == "below":
            target = next(
                (chunk.start_line + i for i in range(idx + 1, len(lines)) if not directive_only[i]),
                None,
            )
        elif anchor:
            target = line_number + int(anchor)
        if anchor in ("above", "below") and target is None:
            failures.append(Diagnostic(DiagnosticKind.ERROR, f"no line found for expected-* @{anchor}", location))
            continue

        body = match.group("body")
        pattern = None
        if match.group("regex"):
            try:
                pattern = _compile_regex_body(body)
            except re.error as exc:
                failures.append(Diagnostic(DiagnosticKind.ERROR, f"invalid regex in expected-* directive: {exc}", location))
                continue
        expectations.append(
            ExpectedDiagnostic(
                kind=DiagnosticKind(match.group("kind")),
                line=target,
                text=body,
                location=location,
                pattern=pattern,
                count=int(match.group("count") or 1),
            )
        )
    return expectations, failures


class DiagnosticSink(ABC):
    """Receives every diagnostic raised while one chunk is processed.

    Rendered output is buffered in ``lines`` so the driver can flush chunks
    in order without interleaving.
    """

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.diagnostics: list[Diagnostic] = []

    def emit(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        self._handle(diagnostic)

    @abstractmethod
    def _handle(self, diagnostic: Diagnostic) -> None:
        raise NotImplementedError

    def finish(self) -> DiagnosticExpectationMismatch | None:
        return None


class FilterDiagnosticSink(DiagnosticSink):
    def __init__(self, *, verbosity: VerbosityLevel, show_notes: bool) -> None:
        super().__init__()
        self.verbosity = verbosity
        self.show_notes = show_notes

    def allows(self, diagnostic: Diagnostic) -> bool:
        if diagnostic.kind == DiagnosticKind.NOTE:
            return self.show_notes
        return SEVERITY_RANK[diagnostic.kind] <= self.verbosity

    def _handle(self, diagnostic: Diagnostic) -> None:
        if not self.allows(diagnostic):
            return
        self.lines.append(diagnostic.render())
        if self.show_notes:
            self.lines.extend(note.render() for note in diagnostic.notes)


class VerifyingDiagnosticSink(DiagnosticSink):
    """Matches emitted diagnostics against the chunk's expected-* directives."""

    def __init__(self, chunk: Chunk, *, level: VerifyDiagnosticsLevel, filename: str) -> None:
        super().__init__()
        self.level = level
        self.expectations, self._directive_failures = parse_expectations(chunk, filename=filename)

    def _handle(self, diagnostic: Diagnostic) -> None:
        # Matching waits for finish() so every mismatch is reported together.
        pass

    def _flattened(self) -> Iterator[Diagnostic]:
        for diagnostic in self.diagnostics:
            yield diagnostic
            yield from diagnostic.notes

    def _consume(self, diagnostic: Diagnostic) -> bool:
        for expectation in self.expectations:
            if expectation.matches(diagnostic):
                expectation.matched += 1
                return True
        return False

    def finish(self) -> DiagnosticExpectationMismatch | None:
        failures = list(self._directive_failures)
        for diagnostic in self._flattened():
            if self._consume(diagnostic):
                continue
            if diagnostic.kind == DiagnosticKind.NOTE and self.level != VerifyDiagnosticsLevel.STRICT:
                continue
            failures.append(
                Diagnostic(
                    DiagnosticKind.ERROR,
                    f"unexpected {diagnostic.kind.value}: {diagnostic.message}",
                    diagnostic.location,
                )
            )
        for expectation in self.expectations:
            if expectation.matched < expectation.count:
                failures.append(
                    Diagnostic(
                        DiagnosticKind.ERROR,
                        f'expected {expectation.kind.value} "{expectation.text}" was not produced',
                        expectation.location,
                    )
                )
        self.lines.extend(failure.render() for failure in failures)
        if failures:
            return DiagnosticExpectationMismatch(failures)
        return None


def create_sink(chunk: Chunk, config: OptConfig, *, filename: str) -> DiagnosticSink:
    if config.should_verify_diagnostics:
        return VerifyingDiagnosticSink(chunk, level=config.verify_diagnostics, filename=filename)
    return FilterDiagnosticSink(verbosity=config.verbosity, show_notes=config.show_notes)
