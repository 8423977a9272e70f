from __future__ import annotations

from typing import Sequence

from ...domain.models import Chunk


class ChunkSplitService:
    """Divides an input buffer on marker lines and joins chunk outputs back together."""

    @staticmethod
    def is_marker_line(line: str, marker: str) -> bool:
        return line.rstrip() == marker

    @staticmethod
    def _lines(buffer: str) -> list[str]:
        # Only "\n" ends a line, matching how the IR parser counts lines.
        parts = buffer.split("\n")
        lines = [part + "\n" for part in parts[:-1]]
        if parts[-1]:
            lines.append(parts[-1])
        return lines

    def split(self, buffer: str, marker: str) -> list[Chunk]:
        if not marker:
            return [Chunk(index=0, text=buffer, start_line=1)]

        chunks: list[Chunk] = []
        current: list[str] = []
        start_line = 1
        for line_number, line in enumerate(self._lines(buffer), start=1):
            if self.is_marker_line(line, marker):
                chunks.append(Chunk(index=len(chunks), text="".join(current), start_line=start_line))
                current = []
                start_line = line_number + 1
                continue
            current.append(line)
        chunks.append(Chunk(index=len(chunks), text="".join(current), start_line=start_line))
        return chunks

    def merge(self, outputs: Sequence[str | bytes | None], marker: str) -> str | bytes:
        present = [output for output in outputs if output is not None]
        if any(isinstance(output, bytes) for output in present):
            return self._merge_bytes(present, marker)

        separator = f"{marker}\n" if marker else ""
        pieces: list[str] = []
        for idx, output in enumerate(present):
            if idx and separator:
                if pieces[-1] and not pieces[-1].endswith("\n"):
                    pieces.append("\n")
                pieces.append(separator)
            pieces.append(output)
        return "".join(pieces)

    @staticmethod
    def _merge_bytes(outputs: list[str | bytes], marker: str) -> bytes:
        separator = f"{marker}\n".encode("utf-8") if marker else b""
        encoded = [output if isinstance(output, bytes) else output.encode("utf-8") for output in outputs]
        return separator.join(encoded)
