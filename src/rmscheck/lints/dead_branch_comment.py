"""Warn about comments inside `start_random` groups."""

from typing import List

from rmscheck.checker import Lint
from rmscheck.diagnostic import Suggestion, Warning
from rmscheck.parser.parser import Atom, AtomKind
from rmscheck.state import NestingKind, ParseState


class DeadBranchCommentLint(Lint):
    name = "dead-comment"

    def lint_atom(self, state: ParseState, atom: Atom) -> List[Warning]:
        if atom.kind != AtomKind.COMMENT:
            return []

        warnings = []
        for nest in state.nesting:
            if nest.kind != NestingKind.START_RANDOM:
                continue
            suggestion = Suggestion(
                atom.location,
                "Only #define constants in the `start_random` group, "
                "and then use `if` branches for the actual code.",
            )
            warnings.append(
                Warning.warning(atom.location, "Using comments inside `start_random` groups is potentially dangerous.")
                .add_note(nest.atom.location, "`start_random` opened here")
                .suggest(suggestion)
            )
        return warnings
