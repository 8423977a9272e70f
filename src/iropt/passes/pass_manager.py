from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ..domain.errors import PassExecutionError
from ..domain.models import UNKNOWN_LOCATION, Diagnostic, DiagnosticKind, SourceLocation
from ..ir.model import IRModule, Operation
from ..ir.registry import DialectRegistry

logger = logging.getLogger(__name__)

ROOT_ANCHOR = "builtin.module"


@dataclass
class PassContext:
    """Per-invocation handle a pass uses to report diagnostics and failure."""

    emit: Callable[[Diagnostic], None]
    registry: DialectRegistry
    failed: bool = False
    errors_emitted: int = 0

    def _report(self, kind: DiagnosticKind, where: Operation | SourceLocation | None, message: str) -> None:
        if isinstance(where, Operation):
            location = where.location
        else:
            location = where or UNKNOWN_LOCATION
        if kind == DiagnosticKind.ERROR:
            self.errors_emitted += 1
        self.emit(Diagnostic(kind, message, location))

    def emit_error(self, where: Operation | SourceLocation | None, message: str) -> None:
        self._report(DiagnosticKind.ERROR, where, message)

    def emit_warning(self, where: Operation | SourceLocation | None, message: str) -> None:
        self._report(DiagnosticKind.WARNING, where, message)

    def emit_remark(self, where: Operation | SourceLocation | None, message: str) -> None:
        self._report(DiagnosticKind.REMARK, where, message)

    def emit_note(self, where: Operation | SourceLocation | None, message: str) -> None:
        self._report(DiagnosticKind.NOTE, where, message)

    def signal_failure(self) -> None:
        self.failed = True


class Pass:
    """A transformation over a whole module.

    Pass instances are shared by every chunk of a run, so ``run`` must keep
    all of its state in locals.
    """

    argument = ""
    description = ""

    def __init__(self, **options: str) -> None:
        self.options = dict(options)

    def run(self, module: IRModule, context: PassContext) -> None:
        raise NotImplementedError

    def pipeline_text(self) -> str:
        if not self.options:
            return self.argument
        rendered = " ".join(f"{key}={value}" for key, value in self.options.items())
        return f"{self.argument}{{{rendered}}}"


class PassManager:
    """Ordered list of passes applied to every chunk of a run."""

    def __init__(self) -> None:
        self._passes: list[Pass] = []

    def add(self, pass_: Pass) -> None:
        self._passes.append(pass_)

    @property
    def passes(self) -> tuple[Pass, ...]:
        return tuple(self._passes)

    def __len__(self) -> int:
        return len(self._passes)

    def pipeline_text(self) -> str:
        return f"{ROOT_ANCHOR}({','.join(p.pipeline_text() for p in self._passes)})"

    def run(
        self,
        module: IRModule,
        *,
        emit: Callable[[Diagnostic], None],
        registry: DialectRegistry,
        after_pass: Callable[[Pass, IRModule], None] | None = None,
    ) -> None:
        for pass_ in self._passes:
            name = pass_.argument or type(pass_).__name__
            logger.debug("Running pass %s", name)
            context = PassContext(emit=emit, registry=registry)
            try:
                pass_.run(module, context)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                raise PassExecutionError(
                    name,
                    f"pass '{name}' crashed: {exc}",
                    module.operation.location,
                ) from exc
            if context.failed:
                raise PassExecutionError(
                    name,
                    f"pass '{name}' failed",
                    module.operation.location,
                    reported=context.errors_emitted > 0,
                )
            if after_pass is not None:
                after_pass(pass_, module)
