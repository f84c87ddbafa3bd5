"""Warn about commands that only work in some versions of the game."""

from typing import List

from rmscheck.checker import Lint
from rmscheck.diagnostic import Suggestion, Warning
from rmscheck.parser.parser import Atom, AtomKind
from rmscheck.state import Compatibility, ParseState

UP15_FIX = ("Wrap this command in an `if UP_EXTENSION` statement or add a "
            "/* Compatibility: UserPatch 1.5 */ comment at the top of the file")
UP14_FIX = ("Wrap this command in an `if UP_AVAILABLE` statement or add a "
            "/* Compatibility: UserPatch 1.4 */ comment at the top of the file")
DE_FIX = "Add a /* Compatibility: Definitive Edition */ comment at the top of the file"

ACTOR_AREA_COMMANDS = frozenset({
    "actor_area",
    "actor_area_to_place_in",
    "avoid_actor_area",
    "avoid_all_actor_areas",
    "actor_area_radius",
})

ZONE_COMMANDS = frozenset({"avoid_forest_zone", "place_on_forest_zone", "avoid_cliff_zone"})


class CompatibilityLint(Lint):
    name = "compatibility"

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        # Conditions of the `if` branches we are currently inside.
        self.conditions: List[str] = []

    def has_up_extension(self, state: ParseState) -> bool:
        return state.compatibility >= Compatibility.USERPATCH15 or "UP_EXTENSION" in self.conditions

    def has_up_available(self, state: ParseState) -> bool:
        return state.compatibility >= Compatibility.USERPATCH14 or "UP_AVAILABLE" in self.conditions

    def check_command(self, state: ParseState, atom: Atom) -> List[Warning]:
        name = atom.name.value
        is_de = state.compatibility == Compatibility.DEFINITIVE_EDITION

        def warn(message, fix):
            return [Warning.warning(atom.location, message).suggest(Suggestion(atom.location, fix))]

        if name in ("effect_amount", "effect_percent") and not self.has_up_extension(state):
            return warn("RMS Effects require UserPatch 1.5", UP15_FIX)
        if name == "direct_placement" and not self.has_up_extension(state):
            return warn("Direct placement requires UserPatch 1.5 or Definitive Edition", UP15_FIX)
        if name == "nomad_resources" and not self.has_up_available(state) \
                and state.compatibility != Compatibility.HD_EDITION:
            return warn("Nomad resources requires UserPatch 1.4 or HD Edition", UP14_FIX)
        if name in ACTOR_AREA_COMMANDS and not is_de:
            return warn("Actor areas are only supported in the Definitive Edition", DE_FIX)
        if name in ZONE_COMMANDS and not is_de:
            return warn("Forest and cliff zones are only supported in the Definitive Edition", DE_FIX)
        if name == "second_object" and not is_de:
            return warn("second_object is only supported in the Definitive Edition", DE_FIX)
        return []

    def lint_atom(self, state: ParseState, atom: Atom) -> List[Warning]:
        warnings = []
        if atom.kind == AtomKind.COMMAND:
            warnings = self.check_command(state, atom)
        elif atom.kind == AtomKind.IF:
            self.conditions.append(atom.condition.value)
        elif atom.kind == AtomKind.ELSEIF:
            if self.conditions:
                self.conditions.pop()
            self.conditions.append(atom.condition.value)
        elif atom.kind == AtomKind.ELSE:
            if self.conditions:
                self.conditions.pop()
            # placeholder so the matching endif pops the right entry
            self.conditions.append(" ")
        elif atom.kind == AtomKind.ENDIF:
            if self.conditions:
                self.conditions.pop()
        return warnings
