"""Check that commands appear in the section they belong to."""

from typing import List, Optional

from rmscheck.checker import Lint
from rmscheck.diagnostic import Warning
from rmscheck.parser.parser import Atom, AtomKind
from rmscheck.parser.tokens import TOKENS, ContextKind, TokenType
from rmscheck.state import ParseState

SECTION_BOUND = (ContextKind.COMMAND, ContextKind.TOP_LEVEL_ATTRIBUTE)


def required_section(token_type: TokenType) -> Optional[str]:
    """The one section a token may appear in, or None if it is not bound to one."""
    sections = set()
    for context in token_type.context.flatten():
        if context.kind not in SECTION_BOUND or context.target is None:
            return None
        sections.add(context.target)
    if len(sections) != 1:
        return None
    return sections.pop()


class IncorrectSectionLint(Lint):
    name = "incorrect-section"

    def lint_atom(self, state: ParseState, atom: Atom) -> List[Warning]:
        if atom.kind != AtomKind.COMMAND:
            return []

        expected = required_section(TOKENS[atom.name.value])
        if expected is None:
            return []

        current = state.current_section
        if current is None:
            return [Warning.error(
                atom.location,
                f"Command can only appear in section {expected}, but no section has been started.",
            )]
        if current.name.value != expected:
            return [
                Warning.error(
                    atom.location,
                    f"Command is invalid in section {current.name.value}, it can only appear in {expected}",
                ).add_note(current.location, "Section started here")
            ]
        return []
