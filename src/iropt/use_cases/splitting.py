from __future__ import annotations

from typing import Sequence

from ..config.opt_config import DEFAULT_SPLIT_MARKER
from ..domain.models import Chunk
from .services.chunk_split_service import ChunkSplitService

# Module facade over ChunkSplitService for callers that only need the two operations.
_DEFAULT_SERVICE = ChunkSplitService()


def split_input_buffer(buffer: str, marker: str = DEFAULT_SPLIT_MARKER) -> list[Chunk]:
    """Split ``buffer`` on lines equal to ``marker`` once trailing whitespace is stripped.

    ``merge_outputs`` writes the bare ``marker + "\n"`` back, so splitting and
    merging reproduce the buffer byte for byte only when its marker lines carry
    no trailing whitespace (``\r`` included) and end with a newline.
    """
    return _DEFAULT_SERVICE.split(buffer, marker)


def merge_outputs(outputs: Sequence[str | bytes | None], marker: str | None = None) -> str | bytes:
    return _DEFAULT_SERVICE.merge(outputs, DEFAULT_SPLIT_MARKER if marker is None else marker)
