"""Treat unrecognised words as misspelled attributes."""

from typing import List

from rmscheck.checker import Lint
from rmscheck.diagnostic import Suggestion, Warning
from rmscheck.lints.arg_types import meant
from rmscheck.parser.parser import Atom, AtomKind
from rmscheck.parser.tokens import TOKENS
from rmscheck.state import ParseState


class UnknownAttributeLint(Lint):
    name = "unknown-attribute"

    def lint_atom(self, state: ParseState, atom: Atom) -> List[Warning]:
        if atom.kind != AtomKind.OTHER:
            return []

        word = atom.value
        if word.value.isdigit():
            return []

        warning = Warning.error(word.location, f"Unknown attribute `{word.value}`")
        similar = meant(word.value, TOKENS.keys())
        if similar is not None:
            warning.suggest(Suggestion(word.location, f"Did you mean `{similar}`?").replace_unsafe(similar))
        return [warning]
