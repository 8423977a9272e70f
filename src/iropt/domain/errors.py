from __future__ import annotations

from .models import UNKNOWN_LOCATION, Diagnostic, DiagnosticKind, SourceLocation


class OptDriverError(Exception):
    """Base class for every error the driver reports."""

    def __init__(self, message: str, location: SourceLocation = UNKNOWN_LOCATION) -> None:
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self) -> str:
        return self.message

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(DiagnosticKind.ERROR, self.message, self.location)


class ConfigurationError(OptDriverError):
    pass


class IRSyntaxError(OptDriverError):
    pass


class UnregisteredDialectError(OptDriverError):
    def __init__(self, dialect: str, op_name: str, location: SourceLocation = UNKNOWN_LOCATION) -> None:
        super().__init__(
            f"dialect '{dialect}' not found for operation '{op_name}' "
            "(use --allow-unregistered-dialect to accept it)",
            location,
        )
        self.dialect = dialect
        self.op_name = op_name


class IRVerificationError(OptDriverError):
    pass


class ParseVerificationError(IRVerificationError):
    pass


class TransformVerificationError(IRVerificationError):
    def __init__(self, pass_name: str, message: str, location: SourceLocation = UNKNOWN_LOCATION) -> None:
        super().__init__(f"verification failed after pass '{pass_name}': {message}", location)
        self.pass_name = pass_name


class PassExecutionError(OptDriverError):
    def __init__(
        self,
        pass_name: str,
        message: str,
        location: SourceLocation = UNKNOWN_LOCATION,
        *,
        reported: bool = False,
    ) -> None:
        super().__init__(message, location)
        self.pass_name = pass_name
        # The pass already emitted its own error diagnostics.
        self.reported = reported


class PipelinePopulationError(OptDriverError):
    pass


class IRPrintError(OptDriverError):
    pass


class RoundtripMismatchError(OptDriverError):
    pass


class DiagnosticExpectationMismatch(OptDriverError):
    def __init__(self, failures: list[Diagnostic]) -> None:
        super().__init__(f"{len(failures)} diagnostic expectation mismatch(es)")
        self.failures = failures


class BytecodeError(OptDriverError):
    pass


class BytecodeVersionUnsupportedError(BytecodeError):
    pass


class ReproducerIOError(OptDriverError):
    pass
