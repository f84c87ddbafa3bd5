"""
Random Map Script Word Scanner

Splits raw script text into whitespace-delimited words.
Every word remembers the file it came from and its exact position.
"""

from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class SourceLocation:
    """A range of source text in one file."""
    file_id: int
    start: int
    end: int

    def __repr__(self):
        return f"SourceLocation({self.file_id}, {self.start}..{self.end})"

    def __len__(self):
        return self.end - self.start

    def shifted(self, offset: int) -> "SourceLocation":
        """Move this range by `offset` characters."""
        return SourceLocation(self.file_id, self.start + offset, self.end + offset)

    def to(self, other: "SourceLocation") -> "SourceLocation":
        """Range from the start of this location to the end of `other`."""
        return SourceLocation(self.file_id, self.start, other.end)

    def to_dict(self):
        return {'file': self.file_id, 'start': self.start, 'end': self.end}


@dataclass(frozen=True)
class Word:
    """A single word from the scanner."""
    value: str
    location: SourceLocation

    @property
    def start(self) -> int:
        return self.location.start

    @property
    def end(self) -> int:
        return self.location.end

    def __repr__(self):
        return f"Word({self.value!r}, {self.start}..{self.end})"

    def to_dict(self):
        return {'value': self.value, 'start': self.start, 'end': self.end}


class Wordize:
    """
    Iterator over the words in a source string.

    Usage:
        words = list(Wordize(0, source_text))

    Each instance keeps its own cursor, so scanning the same source twice
    needs two instances.
    """

    def __init__(self, file_id: int, source: str):
        self.file_id = file_id
        self.source = source
        self.pos = 0
        self.length = len(source)

    def __iter__(self) -> Iterator[Word]:
        return self

    def _skip_whitespace(self) -> None:
        """Skip any run of whitespace, including newlines."""
        while self.pos < self.length and self.source[self.pos].isspace():
            self.pos += 1

    def _read_word(self) -> Optional[Word]:
        self._skip_whitespace()
        if self.pos >= self.length:
            return None

        start = self.pos
        while self.pos < self.length and not self.source[self.pos].isspace():
            self.pos += 1

        return Word(
            value=self.source[start:self.pos],
            location=SourceLocation(self.file_id, start, self.pos),
        )

    def __next__(self) -> Word:
        word = self._read_word()
        if word is None:
            raise StopIteration
        return word


def split_words(source: str, file_id: int = 0) -> list:
    """Convenience function to get all words as a list."""
    return list(Wordize(file_id, source))
