from __future__ import annotations

import logging
import sys
from concurrent.futures import Future, ThreadPoolExecutor
from typing import BinaryIO, Callable, TextIO

from ..config.opt_config import (
    DEFAULT_SPLIT_MARKER,
    CallbackPipeline,
    OptConfig,
    PipelineSource,
    TextualPipeline,
)
from ..domain.errors import (
    ConfigurationError,
    OptDriverError,
    PassExecutionError,
    PipelinePopulationError,
)
from ..domain.models import Chunk, ChunkResult, ChunkState, OptRunResult
from ..infrastructure.io import write_text
from ..ir.irdl import load_irdl_file
from ..ir.registry import DialectRegistry
from ..passes.builtin import default_pass_registry
from ..passes.pass_manager import PassManager
from ..passes.registry import PassRegistry, populate_from_text
from .services.chunk_split_service import ChunkSplitService
from .services.diagnostic_sink_service import create_sink
from .services.output_emitter_service import OutputEmitterService
from .services.pipeline_runner_service import PipelineRunnerService
from .services.reproducer_service import ReproducerService
from .services.roundtrip_service import RoundtripService

logger = logging.getLogger(__name__)


def _validate_config(config: OptConfig) -> None:
    if config.bytecode_version is not None and config.bytecode_version < 0:
        raise ConfigurationError(f"bytecode version must be non-negative, got {config.bytecode_version}")
    if config.bytecode_version is not None and not config.emit_bytecode:
        raise ConfigurationError("a bytecode version was requested without emitting bytecode")
    if config.elide_resource_data_from_bytecode and not config.emit_bytecode:
        raise ConfigurationError("resource elision requires emitting bytecode")
    if config.max_workers < 1:
        raise ConfigurationError(f"max_workers must be at least 1, got {config.max_workers}")


def _populate_pipeline(source: PipelineSource, pass_registry: PassRegistry) -> PassManager:
    pass_manager = PassManager()
    if isinstance(source, CallbackPipeline):
        try:
            populated = source.setup(pass_manager)
        except OptDriverError as exc:
            raise PipelinePopulationError(f"pipeline setup failed: {exc}", exc.location) from exc
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise PipelinePopulationError(f"pipeline setup raised {type(exc).__name__}: {exc}") from exc
        if populated is False:
            raise PipelinePopulationError("pipeline setup callback reported failure")
    elif isinstance(source, TextualPipeline):
        populate_from_text(pass_manager, source.text, pass_registry)
    return pass_manager


def _process_chunk(
    chunk: Chunk,
    *,
    config: OptConfig,
    runner: PipelineRunnerService,
    roundtrip: RoundtripService | None,
    emitter: OutputEmitterService,
    filename: str,
) -> ChunkResult:
    sink = create_sink(chunk, config, filename=filename)
    result = ChunkResult(chunk=chunk, verifying=config.should_verify_diagnostics)
    try:
        module = runner.run(chunk, result, sink.emit)
        if roundtrip is not None:
            roundtrip.verify(module)
        output = emitter.emit(module)
        result.output = output
        result.state = ChunkState.DONE
    except OptDriverError as exc:
        result.failed_at = result.state
        result.state = ChunkState.FAILED
        result.error = exc
        logger.debug("Chunk %d failed at %s: %s", chunk.index, result.failed_at.value, exc)
        # Passes that failed through their context already emitted their errors.
        if not (isinstance(exc, PassExecutionError) and exc.reported):
            sink.emit(exc.to_diagnostic())
    result.mismatch = sink.finish()
    result.diagnostics = list(sink.diagnostics)
    result.rendered = list(sink.lines)
    return result


def _skipped(chunk: Chunk, config: OptConfig) -> ChunkResult:
    return ChunkResult(chunk=chunk, verifying=config.should_verify_diagnostics)


def _run_chunks(
    chunks: list[Chunk],
    process: Callable[[Chunk], ChunkResult],
    config: OptConfig,
    flush: Callable[[ChunkResult], None],
) -> list[ChunkResult]:
    """Process chunks in order; with fail_fast, chunks after the first failure are skipped."""
    results: list[ChunkResult] = []
    if config.max_workers == 1 or len(chunks) < 2:
        for chunk in chunks:
            result = process(chunk)
            flush(result)
            results.append(result)
            if config.fail_fast and not result.succeeded:
                results.extend(_skipped(rest, config) for rest in chunks[chunk.index + 1 :])
                break
        return results

    with ThreadPoolExecutor(max_workers=config.max_workers, thread_name_prefix="iropt-chunk") as executor:
        futures: list[Future[ChunkResult]] = [executor.submit(process, chunk) for chunk in chunks]
        for idx, future in enumerate(futures):
            result = future.result()
            flush(result)
            results.append(result)
            if config.fail_fast and not result.succeeded:
                for pending in futures[idx + 1 :]:
                    pending.cancel()
                results.extend(_skipped(rest, config) for rest in chunks[idx + 1 :])
                break
    return results


def _write_reproducers(
    results: list[ChunkResult],
    config: OptConfig,
    reproducer: ReproducerService,
) -> None:
    separator = f"{config.input_split_marker or DEFAULT_SPLIT_MARKER}\n"
    if config.reproducer_file:
        records = [result.reproducer for result in results if result.reproducer is not None]
        if records:
            reproducer.write(config.reproducer_file, records, separator=separator)
    if config.crash_reproducer_file:
        crashed = next((result for result in results if result.crashed and result.reproducer is not None), None)
        if crashed is not None:
            reproducer.write(config.crash_reproducer_file, [crashed.reproducer], separator=separator)


def _write_output(output: BinaryIO, payload: str | bytes) -> None:
    output.write(payload.encode("utf-8") if isinstance(payload, str) else payload)


def run_opt_main(
    output: BinaryIO,
    buffer: str,
    registry: DialectRegistry,
    config: OptConfig,
    *,
    pass_registry: PassRegistry | None = None,
    filename: str = "<stdin>",
    diagnostic_stream: TextIO | None = None,
) -> OptRunResult:
    """Run the whole driver over ``buffer`` and write the merged result to ``output``.

    Run-wide failures (configuration, IRDL loading, pipeline population,
    reproducer writing) land in ``OptRunResult.fatal_error``; per-chunk
    failures are recorded on the chunk results. ``output`` is flushed on
    every path.
    """
    stream = diagnostic_stream if diagnostic_stream is not None else sys.stderr
    run = OptRunResult()
    try:
        _validate_config(config)
        run_registry = registry.copy()
        if config.irdl_file:
            load_irdl_file(config.irdl_file, run_registry)
        passes = pass_registry if pass_registry is not None else default_pass_registry()

        if config.show_dialects:
            _write_output(output, "Available Dialects: " + ", ".join(run_registry.names()) + "\n")
            run.short_circuited = True
            return run
        if config.list_passes:
            _write_output(output, passes.format_catalog())
            run.short_circuited = True
            return run

        pass_manager = None if config.run_reproducer else _populate_pipeline(config.pipeline, passes)
        if config.dump_pass_pipeline and pass_manager is not None:
            stream.write(pass_manager.pipeline_text() + "\n")

        splitter = ChunkSplitService()
        chunks = splitter.split(buffer, config.input_split_marker)
        logger.info("Processing %d chunk(s) from %s", len(chunks), filename)

        reproducer = ReproducerService(write_text=write_text)
        runner = PipelineRunnerService(
            config=config,
            registry=run_registry,
            pass_manager=pass_manager,
            pass_registry=passes,
            reproducer=reproducer,
            filename=filename,
        )
        roundtrip = None
        if config.verify_roundtrip:
            roundtrip = RoundtripService(
                registry=run_registry,
                allow_unregistered_dialects=config.allow_unregistered_dialects,
                use_explicit_module=config.use_explicit_module,
                bytecode_version=config.bytecode_version if config.emit_bytecode else None,
            )
        emitter = OutputEmitterService(
            emit_bytecode=config.emit_bytecode,
            bytecode_version=config.bytecode_version,
            elide_resources=config.elide_resource_data_from_bytecode,
        )

        def process(chunk: Chunk) -> ChunkResult:
            return _process_chunk(
                chunk,
                config=config,
                runner=runner,
                roundtrip=roundtrip,
                emitter=emitter,
                filename=filename,
            )

        def flush(result: ChunkResult) -> None:
            for line in result.rendered:
                stream.write(line + "\n")

        run.chunk_results = _run_chunks(chunks, process, config, flush)
        failed = len(run.failed_chunks)
        if failed:
            logger.info("%d of %d chunk(s) failed", failed, len(chunks))

        _write_reproducers(run.chunk_results, config, reproducer)
        merged = splitter.merge(
            [result.output for result in run.chunk_results],
            config.output_split_marker,
        )
        _write_output(output, merged)
        return run
    except OptDriverError as exc:
        run.fatal_error = exc
        stream.write(exc.to_diagnostic().render() + "\n")
        logger.debug("Run aborted: %s", exc)
        return run
    finally:
        output.flush()
        stream.flush()


def as_exit_code(result: OptRunResult) -> int:
    return 0 if result.succeeded else 1
