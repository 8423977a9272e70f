from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator

STDIO_PATH = "-"


def read_input_buffer(path: str | Path) -> str:
    if str(path) == STDIO_PATH:
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8", errors="replace")


@contextmanager
def open_output_stream(path: str | Path) -> Iterator[BinaryIO]:
    """Yield a binary stream for ``path``; ``-`` means stdout, which is flushed but left open."""
    if str(path) == STDIO_PATH:
        stream = sys.stdout.buffer
        try:
            yield stream
        finally:
            stream.flush()
        return

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("wb") as handle:
        yield handle


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        handle.write(text)
