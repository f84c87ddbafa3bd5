"""
Source files and position resolution.

Locations in words, atoms and warnings are character offsets into one
file's text. SourceFile turns them into zero-based (line, column) pairs
for display, and into UTF-8 byte offsets for tools that splice bytes.
"""

from bisect import bisect_right
from pathlib import Path
from typing import Any, Dict, Iterator, List, Tuple


class SourceFile:
    """A named source text with a line index."""

    def __init__(self, file_id: int, name: str, text: str):
        self.file_id = file_id
        self.name = name
        self.text = text
        self._line_starts = [0]
        for index, char in enumerate(text):
            if char == "\n":
                self._line_starts.append(index + 1)

    def __repr__(self):
        return f"SourceFile({self.file_id}, {self.name!r})"

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    @property
    def is_zip_rms(self) -> bool:
        """ZR@ maps are packed with their own files and target UserPatch 1.5."""
        return Path(self.name).name.startswith("ZR@")

    def location(self, offset: int) -> Tuple[int, int]:
        """Zero-based (line, column) for a character offset."""
        offset = max(0, min(offset, len(self.text)))
        line = bisect_right(self._line_starts, offset) - 1
        return line, offset - self._line_starts[line]

    def line_start(self, line: int) -> int:
        """Offset of the first character of a zero-based line."""
        return self._line_starts[line]

    def line_text(self, line: int) -> str:
        start = self._line_starts[line]
        end = self._line_starts[line + 1] - 1 if line + 1 < len(self._line_starts) else len(self.text)
        return self.text[start:end].rstrip("\r")

    def byte_offset(self, offset: int) -> int:
        """UTF-8 byte offset for a character offset."""
        # undecodable bytes read with surrogateescape count as one byte each
        return len(self.text[:offset].encode("utf-8", errors="surrogateescape"))

    def span_to_dict(self, start: int, end: int) -> Dict[str, Any]:
        """Resolve a character span to lines, columns and byte offsets."""
        line, column = self.location(start)
        end_line, end_column = self.location(end)
        return {
            'name': self.name,
            'line': line,
            'column': column,
            'end_line': end_line,
            'end_column': end_column,
            'byte_start': self.byte_offset(start),
            'byte_end': self.byte_offset(end),
        }


class SourceFiles:
    """All files taking part in one check run, indexed by file id."""

    def __init__(self):
        self._files: List[SourceFile] = []

    def add(self, name: str, text: str) -> int:
        file_id = len(self._files)
        self._files.append(SourceFile(file_id, name, text))
        return file_id

    def get(self, file_id: int) -> SourceFile:
        return self._files[file_id]

    def __getitem__(self, file_id: int) -> SourceFile:
        return self._files[file_id]

    def __iter__(self) -> Iterator[SourceFile]:
        return iter(self._files)

    def __len__(self):
        return len(self._files)


def read_script(path: Path) -> str:
    """
    Read a script for rewriting.

    Bytes that are not UTF-8 (many maps are saved as cp1252) are kept as
    surrogate escapes, so encoding with `errors="surrogateescape"` gives
    back exactly the original bytes.
    """
    return path.read_bytes().decode("utf-8", errors="surrogateescape")


def encode_script(text: str) -> bytes:
    return text.encode("utf-8", errors="surrogateescape")
