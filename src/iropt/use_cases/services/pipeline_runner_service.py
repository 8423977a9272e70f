from __future__ import annotations

import logging
from typing import Callable

from ...config.opt_config import OptConfig
from ...domain.errors import (
    IRVerificationError,
    ParseVerificationError,
    PipelinePopulationError,
    TransformVerificationError,
)
from ...domain.models import Chunk, ChunkResult, ChunkState, Diagnostic
from ...ir.model import IRModule
from ...ir.parser import parse_source
from ...ir.registry import DialectRegistry
from ...ir.verifier import verify_module
from ...passes.pass_manager import Pass, PassManager
from ...passes.registry import PassRegistry, populate_from_text
from .reproducer_service import ReproducerService

logger = logging.getLogger(__name__)


class PipelineRunnerService:
    """Parses one chunk, verifies it and applies the run's pass pipeline."""

    def __init__(
        self,
        *,
        config: OptConfig,
        registry: DialectRegistry,
        pass_manager: PassManager | None,
        pass_registry: PassRegistry,
        reproducer: ReproducerService,
        filename: str,
    ) -> None:
        self.config = config
        self.registry = registry
        self.pass_manager = pass_manager
        self.pass_registry = pass_registry
        self.reproducer = reproducer
        self.filename = filename

    @property
    def captures_reproducers(self) -> bool:
        return bool(self.config.reproducer_file or self.config.crash_reproducer_file)

    def parse(self, chunk: Chunk) -> IRModule:
        return parse_source(
            chunk.text,
            self.registry,
            allow_unregistered_dialects=self.config.allow_unregistered_dialects,
            use_explicit_module=self.config.use_explicit_module,
            filename=self.filename,
            line_offset=chunk.line_offset,
        )

    def run(self, chunk: Chunk, result: ChunkResult, emit: Callable[[Diagnostic], None]) -> IRModule:
        module = self.parse(chunk)
        result.state = ChunkState.PARSED

        if self.config.verify_on_parsing:
            try:
                verify_module(module, self.registry)
            except IRVerificationError as exc:
                raise ParseVerificationError(exc.message, exc.location) from exc
            result.state = ChunkState.VERIFIED_ON_PARSE

        pass_manager = self._pass_manager_for(module)
        result.state = ChunkState.PIPELINE_POPULATED
        if self.captures_reproducers:
            result.reproducer = self.reproducer.capture(module, pass_manager.pipeline_text(), chunk_index=chunk.index)

        logger.debug("Chunk %d: running %d pass(es)", chunk.index, len(pass_manager))
        pass_manager.run(
            module,
            emit=emit,
            registry=self.registry,
            after_pass=self._verify_after_pass if self.config.verify_passes else None,
        )
        result.state = ChunkState.TRANSFORMED
        return module

    def _pass_manager_for(self, module: IRModule) -> PassManager:
        if not self.config.run_reproducer:
            return self.pass_manager if self.pass_manager is not None else PassManager()
        pipeline = self.reproducer.extract_pipeline(module)
        if pipeline is None:
            raise PipelinePopulationError(
                "no reproducer pipeline found in the input's resources",
                module.operation.location,
            )
        pass_manager = PassManager()
        try:
            populate_from_text(pass_manager, pipeline, self.pass_registry)
        except PipelinePopulationError as exc:
            raise PipelinePopulationError(f"invalid reproducer pipeline: {exc}", module.operation.location) from exc
        return pass_manager

    def _verify_after_pass(self, pass_: Pass, module: IRModule) -> None:
        try:
            verify_module(module, self.registry)
        except IRVerificationError as exc:
            raise TransformVerificationError(pass_.argument or type(pass_).__name__, exc.message, exc.location) from exc
