from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Sequence

from ...domain.errors import ReproducerIOError
from ...domain.models import ReproducerRecord
from ...ir.model import IRModule
from ...ir.printer import print_module

logger = logging.getLogger(__name__)

REPRODUCER_RESOURCE_KEY = "reproducer_pipeline"


class ReproducerService:
    """Captures pre-transformation IR with its pipeline, and reads it back for replay."""

    def __init__(
        self,
        *,
        write_text: Callable[[Path, str], None],
        resource_key: str = REPRODUCER_RESOURCE_KEY,
    ) -> None:
        self._write_text = write_text
        self.resource_key = resource_key

    def capture(self, module: IRModule, pipeline: str, *, chunk_index: int = 0) -> ReproducerRecord:
        snapshot = module.clone()
        snapshot.resources[self.resource_key] = pipeline
        return ReproducerRecord(source=print_module(snapshot), pipeline=pipeline, chunk_index=chunk_index)

    def extract_pipeline(self, module: IRModule) -> str | None:
        return module.resources.pop(self.resource_key, None)

    def write(self, path: str | Path, records: Sequence[ReproducerRecord], *, separator: str) -> None:
        text = separator.join(record.source for record in records)
        try:
            self._write_text(Path(path), text)
        except OSError as exc:
            raise ReproducerIOError(f"failed to write reproducer to '{path}': {exc}") from exc
        logger.info("Wrote %d reproducer record(s) to %s", len(records), path)
