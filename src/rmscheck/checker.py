"""
Checker / Lint Engine

Feeds words and atoms to the lints and runs the structural checks that
do not belong to any single lint: comment well-formedness, unknown
sections, block balance and parse errors.

Usage:
    checker = Checker(lints=[ArgTypesLint()], compatibility=Compatibility.USERPATCH15)
    for word in Wordize(0, source):
        warning = checker.write_token(word)
    for atom, errors in Parser(0, source):
        warnings = checker.write_atom(atom) + checker.write_parse_errors(atom, errors)
"""

import logging
from typing import Iterable, List, Optional

from rmscheck.diagnostic import Suggestion, Warning
from rmscheck.parser.parser import Atom, ParseError, ParseErrorKind
from rmscheck.parser.tokens import TOKENS, is_section_name
from rmscheck.parser.wordize import Word
from rmscheck.state import Compatibility, ParseState

logger = logging.getLogger(__name__)

# Code used for problems found by the checker itself.
SYNTAX_CODE = "syntax"
PARSE_CODE = "parse"

# Lints that report some parse errors better than the parser does.
ARG_TYPES = "arg-types"
ATTRIBUTE_CASE = "attribute-case"


class Lint:
    """
    Base class for lints.

    Subclasses set `name` and override `lint_token` and/or `lint_atom`.
    Lints that collect data while running override `reset`; it is called
    before every run so nothing carries over from a previous one.
    Lints may register defines and consts on the state, but must leave
    nesting and section tracking alone.
    """

    name: str = "unnamed"
    # Whether this lint wants to see words inside comments.
    run_inside_comments: bool = False

    def reset(self) -> None:
        pass

    def lint_token(self, state: ParseState, word: Word) -> Optional[Warning]:
        return None

    def lint_atom(self, state: ParseState, atom: Atom) -> List[Warning]:
        return []


class Checker:
    """Runs lints over a stream of words and atoms."""

    def __init__(self, lints: Optional[Iterable[Lint]] = None,
                 compatibility: Compatibility = Compatibility.CONQUERORS,
                 is_builtin_map: bool = False):
        self.lints: List[Lint] = list(lints) if lints is not None else []
        for lint in self.lints:
            lint.reset()
        self.state = ParseState(compatibility, is_builtin_map=is_builtin_map)

    def with_lint(self, lint: Lint) -> 'Checker':
        lint.reset()
        self.lints.append(lint)
        return self

    def has_lint(self, name: str) -> bool:
        return any(lint.name == name for lint in self.lints)

    def _lint_token(self, word: Word) -> Optional[Warning]:
        for lint in self.lints:
            if self.state.is_comment and not lint.run_inside_comments:
                continue
            warning = lint.lint_token(self.state, word)
            if warning is not None:
                return warning.with_code(lint.name)
        return None

    def write_token(self, word: Word) -> Optional[Warning]:
        """
        Check a single word.

        Returns at most one warning. A structural problem takes priority
        over a lint warning; they are usually related anyway.
        """
        state = self.state
        value = word.value

        # Clear the current token once we're past the end of its arguments.
        if state.current_token is not None and state.arg_index >= state.current_token.arg_len():
            state.current_token = None
            state.arg_index = 0

        parse_error = None

        if value.startswith("/*"):
            # Not strictly a comment, but treating it as one avoids a pile of useless errors.
            state.is_comment = True
            if len(value) > 2:
                if value.endswith("*/") and len(value) >= 4:
                    message = "Add spaces at the start and end of the comment"
                    replacement = f"/* {value[2:-2]} */"
                else:
                    message = "Add a space after the /*"
                    replacement = f"/* {value[2:]}"
                parse_error = Warning.error(
                    word.location, "Incorrect comment: there must be a space after the opening /*",
                ).suggest(Suggestion(word.location, message).replace(replacement))

        lint_warning = self._lint_token(word)

        if not state.is_comment and is_section_name(value) and value not in TOKENS:
            parse_error = Warning.error(word.location, f"Invalid section {value}")

        if value.endswith("*/"):
            if not state.is_comment:
                parse_error = Warning.error(word.location, "Unexpected closing `*/`")
            else:
                state.is_comment = False
                # only <whitespace>*/ actually closes a comment
                if len(value) > 2 and parse_error is None:
                    parse_error = Warning.warning(
                        word.location, "Possibly unclosed comment, */ must be preceded by whitespace",
                    ).suggest(Suggestion(word.location, "Add a space before the */").replace(f"{value[:-2]} */"))
                return parse_error.with_code(SYNTAX_CODE) if parse_error else lint_warning

        if state.is_comment:
            return parse_error.with_code(SYNTAX_CODE) if parse_error else lint_warning

        if state.current_token is not None:
            state.arg_index += 1

        token_type = TOKENS.get(value)
        if token_type is not None:
            state.current_token = token_type
            state.arg_index = 0

        if parse_error is not None:
            return parse_error.with_code(SYNTAX_CODE)
        return lint_warning

    def write_atom(self, atom: Atom) -> List[Warning]:
        """Run all lints on an atom, then update the parse state."""
        warnings = []
        for lint in self.lints:
            for warning in lint.lint_atom(self.state, atom):
                warnings.append(warning.with_code(lint.name))

        self.state.update(atom)
        nest_warning = self.state.update_nesting(atom)
        if nest_warning is not None:
            warnings.append(nest_warning.with_code(SYNTAX_CODE))
        return warnings

    def write_parse_errors(self, atom: Atom, errors: Iterable[ParseError]) -> List[Warning]:
        """Turn parse errors into warnings, skipping the ones lints report better."""
        warnings = []
        for error in errors:
            if error.kind == ParseErrorKind.MISSING_COMMAND_ARGS and self.has_lint(ARG_TYPES):
                continue
            if error.kind == ParseErrorKind.UNKNOWN_WORD:
                value = atom.words()[0].value
                if is_section_name(value):
                    # reported as an invalid section
                    continue
                if value.lower() in TOKENS and self.has_lint(ATTRIBUTE_CASE):
                    continue
            warnings.append(Warning.error(error.location, error.message).with_code(PARSE_CODE))
        return warnings
