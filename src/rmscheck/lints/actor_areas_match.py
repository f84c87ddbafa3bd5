"""Check that actor areas are declared before they are used."""

from typing import List, Tuple

from rmscheck.checker import Lint
from rmscheck.diagnostic import Warning
from rmscheck.lints.arg_types import parse_int
from rmscheck.parser.parser import Atom, AtomKind
from rmscheck.parser.wordize import SourceLocation
from rmscheck.state import ParseState


class ActorAreasMatchLint(Lint):
    name = "actor-areas-match"

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.actor_areas: List[Tuple[int, SourceLocation]] = []

    def lint_atom(self, state: ParseState, atom: Atom) -> List[Warning]:
        if atom.kind != AtomKind.COMMAND or not atom.arguments:
            return []

        name = atom.name.value
        arg = atom.arguments[0]
        area = parse_int(arg.value)
        if area is None:
            return []

        if name == "actor_area":
            self.actor_areas.append((area, arg.location))
        elif name in ("actor_area_to_place_in", "avoid_actor_area"):
            if all(known != area for known, _ in self.actor_areas):
                return [Warning.warning(arg.location, f"Actor area {area} is never defined")]
        return []
