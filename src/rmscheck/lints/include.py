"""#include and #include_drs only work in the maps that ship with the game."""

from typing import List

from rmscheck.checker import Lint
from rmscheck.diagnostic import Suggestion, Warning
from rmscheck.parser.parser import Atom, AtomKind
from rmscheck.state import ParseState


class IncludeLint(Lint):
    name = "include"

    def lint_atom(self, state: ParseState, atom: Atom) -> List[Warning]:
        if atom.kind != AtomKind.COMMAND or state.is_builtin_map:
            return []

        if atom.name.value == "#include_drs":
            return [Warning.error(atom.location, "#include_drs can only be used by builtin maps")]
        if atom.name.value == "#include":
            return [
                Warning.error(atom.location, "#include can only be used by builtin maps")
                .suggest(Suggestion(
                    atom.location,
                    "If you're trying to make a map pack, use a map pack generator instead.",
                ))
            ]
        return []
