"""
Look inside comments for things the game may not treat as comment text.

Older game versions keep parsing inside comments in some situations:
a command in a comment can swallow the closing `*/` as its argument, and
inside `if` or `start_random` blocks constant names may be picked up as
tokens.
"""

from typing import List

from rmscheck.checker import Lint
from rmscheck.diagnostic import Suggestion, Warning
from rmscheck.parser.parser import Atom, AtomKind, ParseErrorKind, Parser
from rmscheck.state import Compatibility, NestingKind, ParseState

# Parse errors that mean the last command wants more words.
EXPECTS_MORE = frozenset({
    ParseErrorKind.MISSING_CONST_NAME,
    ParseErrorKind.MISSING_CONST_VALUE,
    ParseErrorKind.MISSING_DEFINE_NAME,
    ParseErrorKind.MISSING_COMMAND_ARGS,
    ParseErrorKind.MISSING_IF_CONDITION,
    ParseErrorKind.MISSING_PERCENT_CHANCE,
})

IF_NESTING = (NestingKind.IF, NestingKind.ELSEIF, NestingKind.ELSE)
RANDOM_NESTING = (NestingKind.START_RANDOM, NestingKind.PERCENT_CHANCE)


class CommentContentsLint(Lint):
    name = "comment-contents"
    run_inside_comments = True

    def may_trigger_parsing_bug(self, state: ParseState) -> bool:
        has_if = any(nest.kind in IF_NESTING for nest in state.nesting)
        has_start_random = any(nest.kind in RANDOM_NESTING for nest in state.nesting)
        return ((has_if and state.compatibility <= Compatibility.USERPATCH14)
                or (has_start_random and state.compatibility <= Compatibility.USERPATCH15))

    def lint_atom(self, state: ParseState, atom: Atom) -> List[Warning]:
        if atom.kind != AtomKind.COMMENT:
            return []

        # Positions inside the content are relative to the end of the `/*`.
        offset = atom.open.end
        may_trigger_bug = self.may_trigger_parsing_bug(state)
        warnings = []

        expecting_more_arguments = None
        for inner, errors in Parser(atom.file_id, atom.content):
            if any(error.kind in EXPECTS_MORE for error in errors):
                expecting_more_arguments = inner
                continue

            if inner.kind == AtomKind.OTHER and may_trigger_bug:
                value = inner.value.value
                if state.has_define(value) or state.has_const(value):
                    location = inner.value.location.shifted(offset)
                    warnings.append(
                        Warning.warning(
                            location,
                            "Using constant names in comments inside `start_random` or `if` statements "
                            "can be dangerous, because the game may interpret them as other tokens instead.",
                        ).suggest(
                            Suggestion(location, "Add `backticks` around the name to make the parser ignore it")
                            .replace(f"`{value}`")
                        )
                    )

            expecting_more_arguments = None

        if expecting_more_arguments is not None and atom.close is not None:
            warnings.append(
                Warning.warning(
                    atom.close.location,
                    "This close comment may be ignored because a previous command is expecting more arguments",
                ).add_note(expecting_more_arguments.location.shifted(offset), "Command started here")
            )

        return warnings
