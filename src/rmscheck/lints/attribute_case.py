"""Catch commands and attributes written with the wrong casing."""

from typing import List, Optional

from rmscheck.checker import Lint
from rmscheck.diagnostic import Suggestion, Warning
from rmscheck.parser.parser import Atom, AtomKind
from rmscheck.parser.tokens import TOKENS
from rmscheck.state import ParseState


def fix_case(value: str) -> Optional[str]:
    """The lowercase spelling of `value` if that is a known token and `value` is not."""
    lower = value.lower()
    if lower == value or value in TOKENS:
        return None
    if lower in TOKENS:
        return lower
    return None


class AttributeCaseLint(Lint):
    name = "attribute-case"

    def lint_atom(self, state: ParseState, atom: Atom) -> List[Warning]:
        # The game only matches lowercase names, so these parse as unknown words.
        if atom.kind != AtomKind.OTHER:
            return []
        word = atom.value
        fixed = fix_case(word.value)
        if fixed is None:
            return []
        return [
            Warning.error(word.location, f"Unknown attribute `{word.value}`")
            .suggest(Suggestion(word.location, "Convert to lowercase").replace(fixed))
        ]
