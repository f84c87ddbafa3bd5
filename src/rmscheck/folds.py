"""Folding ranges for editors, computed from the atom stream."""

from typing import Iterator, List, Tuple

from rmscheck.parser.parser import Atom, AtomKind, Parser
from rmscheck.sources import SourceFile


def folding_ranges(source: str, file_id: int = 0) -> Iterator[Tuple[int, int]]:
    """
    Yield zero-based (start_line, end_line) pairs for foldable regions.

    Multi-line comments, `{ }` blocks, `if`/`elseif`/`else` branches and
    `start_random`/`percent_chance` groups fold. Single-line regions are
    skipped.
    """
    lines = SourceFile(file_id, "", source)
    waiting: List[Atom] = []

    def line(offset: int) -> int:
        return lines.location(offset)[0]

    def fold(start: int, end_line: int):
        start_line = line(start)
        if end_line > start_line:
            yield start_line, end_line

    for atom, _errors in Parser(file_id, source):
        kind = atom.kind
        if kind == AtomKind.COMMENT:
            if atom.close is not None:
                yield from fold(atom.start, line(atom.close.start))
        elif kind in (AtomKind.OPEN_BLOCK, AtomKind.IF, AtomKind.START_RANDOM):
            waiting.append(atom)
        elif kind == AtomKind.CLOSE_BLOCK:
            if waiting and waiting[-1].kind == AtomKind.OPEN_BLOCK:
                yield from fold(waiting.pop().start, line(atom.start))
        elif kind in (AtomKind.ELSEIF, AtomKind.ELSE):
            if waiting and waiting[-1].kind in (AtomKind.IF, AtomKind.ELSEIF):
                # the branch ends on the line before the next one starts
                yield from fold(waiting.pop().start, line(atom.start) - 1)
                waiting.append(atom)
        elif kind == AtomKind.ENDIF:
            if waiting and waiting[-1].kind in (AtomKind.IF, AtomKind.ELSEIF, AtomKind.ELSE):
                yield from fold(waiting.pop().start, line(atom.start))
        elif kind == AtomKind.PERCENT_CHANCE:
            if waiting and waiting[-1].kind == AtomKind.PERCENT_CHANCE:
                yield from fold(waiting.pop().start, line(atom.start) - 1)
            waiting.append(atom)
        elif kind == AtomKind.END_RANDOM:
            if waiting and waiting[-1].kind == AtomKind.PERCENT_CHANCE:
                yield from fold(waiting.pop().start, line(atom.start) - 1)
            if waiting and waiting[-1].kind == AtomKind.START_RANDOM:
                yield from fold(waiting.pop().start, line(atom.start))
