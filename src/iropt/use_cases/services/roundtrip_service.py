from __future__ import annotations

from ...domain.errors import BytecodeVersionUnsupportedError, OptDriverError, RoundtripMismatchError
from ...ir.bytecode import decode_module, encode_module
from ...ir.model import IRModule, first_module_difference
from ...ir.parser import parse_source
from ...ir.printer import print_module
from ...ir.registry import DialectRegistry


class RoundtripService:
    """Checks that the final IR survives print/reparse and bytecode encode/decode.

    Only throwaway copies are reparsed; the module passed in is never touched.
    """

    def __init__(
        self,
        *,
        registry: DialectRegistry,
        allow_unregistered_dialects: bool,
        use_explicit_module: bool,
        bytecode_version: int | None = None,
    ) -> None:
        self.registry = registry
        self.allow_unregistered_dialects = allow_unregistered_dialects
        self.use_explicit_module = use_explicit_module
        self.bytecode_version = bytecode_version

    def reparse_text(self, module: IRModule) -> IRModule:
        return parse_source(
            print_module(module),
            self.registry,
            allow_unregistered_dialects=self.allow_unregistered_dialects,
            use_explicit_module=self.use_explicit_module,
            filename="<roundtrip>",
        )

    def verify(self, module: IRModule) -> None:
        try:
            reparsed = self.reparse_text(module)
        except OptDriverError as exc:
            raise RoundtripMismatchError(
                f"textual roundtrip failed: printed IR does not parse: {exc}",
                module.operation.location,
            ) from exc
        self._compare(module, reparsed, "textual")

        try:
            decoded = decode_module(encode_module(module, version=self.bytecode_version))
        except BytecodeVersionUnsupportedError:
            raise
        except OptDriverError as exc:
            raise RoundtripMismatchError(f"bytecode roundtrip failed: {exc}", module.operation.location) from exc
        self._compare(module, decoded, "bytecode")

    @staticmethod
    def _compare(original: IRModule, roundtripped: IRModule, kind: str) -> None:
        found = first_module_difference(original, roundtripped)
        if found is None:
            return
        op, reason = found
        raise RoundtripMismatchError(f"{kind} roundtrip mismatch at '{op.name}': {reason}", op.location)
