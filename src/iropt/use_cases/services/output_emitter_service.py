from __future__ import annotations

from ...ir.bytecode import encode_module
from ...ir.model import IRModule
from ...ir.printer import print_module


class OutputEmitterService:
    def __init__(self, *, emit_bytecode: bool, bytecode_version: int | None, elide_resources: bool) -> None:
        self.emit_bytecode = emit_bytecode
        self.bytecode_version = bytecode_version
        self.elide_resources = elide_resources

    def emit(self, module: IRModule) -> str | bytes:
        if self.emit_bytecode:
            return encode_module(module, version=self.bytecode_version, elide_resources=self.elide_resources)
        return print_module(module)
