"""Check that command arguments have the right types and ranges."""

import difflib
import re
from typing import Iterable, List, Optional, Tuple

from rmscheck.checker import Lint
from rmscheck.diagnostic import Suggestion, Warning
from rmscheck.parser.parser import Atom, AtomKind, CommandAtom
from rmscheck.parser.tokens import TOKENS, ArgType
from rmscheck.parser.wordize import Word
from rmscheck.state import ParseState


def meant(actual: str, possible: Iterable[str]) -> Optional[str]:
    """Find the name the user most likely meant to type."""
    matches = difflib.get_close_matches(actual, list(possible), n=1, cutoff=0.8)
    return matches[0] if matches else None


INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


def is_numeric(value: str) -> bool:
    # stricter than int(): no underscores or surrounding whitespace
    return INTEGER_PATTERN.fullmatch(value) is not None


def parse_int(value: str) -> Optional[int]:
    if not is_numeric(value):
        return None
    return int(value)


def is_valid_rnd(value: str) -> Tuple[bool, Optional[str]]:
    """
    Check if a string is a valid rnd(1,10) call.

    Returns (is_valid, replacement), where replacement is a fixed-up
    version of an almost-valid call, e.g. one containing spaces.
    """
    if value.startswith("rnd(") and value.endswith(")") and all(
            is_numeric(part) for part in value[4:-1].split(",")):
        return True, None
    if any(char.isspace() for char in value):
        no_ws = "".join(char for char in value if not char.isspace())
        if is_valid_rnd(no_ws)[0]:
            return False, no_ws
    return False, None


def is_unfinished_rnd(value: str) -> bool:
    """`rnd(1,` or a bare `rnd`, probably followed by the rest after a space."""
    return (value.startswith("rnd(") and value.endswith(",")) or value == "rnd"


class ArgTypesLint(Lint):
    name = "arg-types"

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.unfinished_rnd: Optional[Word] = None

    def lint_token(self, state: ParseState, word: Word) -> Optional[Warning]:
        if self.unfinished_rnd is not None:
            start = self.unfinished_rnd
            self.unfinished_rnd = None
            location = start.location.to(word.location)
            suggestion = Suggestion(location, "rnd() must not contain spaces")
            _, replacement = is_valid_rnd(f"{start.value} {word.value}")
            if replacement is not None:
                suggestion = suggestion.replace(replacement)
            return Warning.error(location, "Incorrect rnd() call").suggest(suggestion)

        token = state.current_token
        if token is not None and token.arg_type(state.arg_index) == ArgType.NUMBER:
            if is_unfinished_rnd(word.value):
                self.unfinished_rnd = word
        return None

    def check_ever_defined(self, state: ParseState, token: Word) -> Optional[Warning]:
        if state.may_have_define(token.value):
            return None
        warning = Warning.warning(
            token.location,
            f"Token `{token.value}` is never defined, this condition will always fail",
        )
        similar = meant(token.value, state.defines())
        if similar is not None:
            warning.suggest(Suggestion(token.location, f"Did you mean `{similar}`?").replace_unsafe(similar))
        return warning

    def check_defined_with_value(self, state: ParseState, token: Word) -> Optional[Warning]:
        """Check if a constant was ever defined with a value (using #const)."""
        if state.has_const(token.value):
            return None
        if state.has_define(token.value):
            return Warning.warning(
                token.location,
                f"Expected a valued token (defined using #const), got a valueless token "
                f"`{token.value}` (defined using #define)",
            )
        warning = Warning.warning(token.location, f"Token `{token.value}` is never defined")
        similar = meant(token.value, state.consts())
        if similar is not None:
            warning.suggest(Suggestion(token.location, f"Did you mean `{similar}`?").replace_unsafe(similar))
        return warning

    def check_number(self, state: ParseState, name: Word, arg: Word) -> Optional[Warning]:
        # a number (12, -35), or rnd(1,5)
        if is_numeric(arg.value) or is_valid_rnd(arg.value)[0]:
            return None
        # reported at the token level
        if is_unfinished_rnd(arg.value):
            return None
        # a valued #const is fine too
        if state.has_const(arg.value):
            return None

        warning = Warning.error(
            arg.location,
            f"Expected a number argument to {name.value}, but got {arg.value}",
        )
        if arg.value.startswith("("):
            _, replacement = is_valid_rnd(f"rnd{arg.value}")
            warning.suggest(
                Suggestion(arg.location, "Did you forget the `rnd`?").replace(replacement or f"rnd{arg.value}")
            )
        return warning

    def check_arg(self, state: ParseState, name: Word, arg_type: ArgType,
                  arg: Word) -> Optional[Warning]:
        def unexpected_number() -> Optional[Warning]:
            if is_numeric(arg.value):
                return Warning.error(arg.location, f"Expected a const name, but got a number {arg.value}")
            return None

        if arg_type == ArgType.NUMBER:
            return self.check_number(state, name, arg)
        if arg_type == ArgType.WORD:
            warning = unexpected_number()
            if warning is None and any(char.islower() for char in arg.value):
                warning = Warning.warning(
                    arg.location,
                    "Using lowercase for constant names may cause confusion with attribute or command names",
                ).suggest(Suggestion(arg.location, "Use uppercase for constants").replace(arg.value.upper()))
            return warning
        if arg_type == ArgType.OPTIONAL_TOKEN:
            return unexpected_number() or self.check_ever_defined(state, arg)
        if arg_type == ArgType.TOKEN:
            return unexpected_number() or self.check_defined_with_value(state, arg)
        return None

    def check_assign_to(self, args: List[Word], warnings: List[Warning]) -> None:
        """Check the arguments to an `assign_to` attribute."""
        target = None
        if args:
            if args[0].value in ("AT_COLOR", "AT_PLAYER", "AT_TEAM"):
                target = args[0].value
            else:
                warnings.append(Warning.warning(
                    args[0].location, "`assign_to` Target must be AT_COLOR, AT_PLAYER, AT_TEAM"))

        number = parse_int(args[1].value) if len(args) > 1 else None
        if number is not None:
            if target in ("AT_COLOR", "AT_PLAYER") and not 0 <= number <= 8:
                warnings.append(Warning.warning(
                    args[1].location, "`assign_to` Number must be 1-8 when targeting AT_COLOR or AT_PLAYER"))
            elif target == "AT_TEAM" and not -4 <= number <= 4 and number != -10:
                warnings.append(Warning.warning(
                    args[1].location, "`assign_to` Number must be 1-4 when targeting AT_TEAM"))

        mode = parse_int(args[2].value) if len(args) > 2 else None
        if mode is not None:
            if target == "AT_TEAM":
                if mode not in (-1, 0):
                    warnings.append(Warning.warning(
                        args[2].location,
                        "`assign_to` Mode must be 0 (random selection) or -1 (ordered selection) "
                        "when targeting AT_TEAM"))
            elif target is not None and mode != 0:
                warnings.append(Warning.warning(
                    args[2].location, "`assign_to` Mode should be 0 when targeting AT_COLOR or AT_PLAYER"))

        flags = parse_int(args[3].value) if len(args) > 3 else None
        if flags is not None and flags & (1 | 2) != flags:
            warnings.append(Warning.warning(
                args[3].location, "`assign_to` Flags must only combine flags 1 and 2"))

    def check_ranges(self, atom: CommandAtom, warnings: List[Warning]) -> None:
        name = atom.name.value
        args = atom.arguments

        if name == "base_elevation" and args:
            elevation = parse_int(args[0].value)
            if elevation is not None and not 0 <= elevation <= 7:
                warnings.append(Warning.warning(args[0].location, "Elevation value out of range (0 or 1-7)"))
        elif name == "land_position":
            first = parse_int(args[0].value) if args else None
            if first is not None and not 0 <= first <= 100:
                warnings.append(Warning.warning(args[0].location, "Land position out of range (0-100)"))
            second = parse_int(args[1].value) if len(args) > 1 else None
            if second is not None and not 0 <= second <= 99:
                warnings.append(Warning.warning(args[1].location, "Land position out of range (0-99)"))
        elif name == "zone" and args:
            if args[0].value == "99":
                warnings.append(Warning.warning(args[0].location, "`zone 99` crashes the game"))
        elif name == "assign_to":
            self.check_assign_to(args, warnings)

    def lint_atom(self, state: ParseState, atom: Atom) -> List[Warning]:
        if atom.kind in (AtomKind.IF, AtomKind.ELSEIF):
            warning = self.check_ever_defined(state, atom.condition)
            return [warning] if warning is not None else []
        if atom.kind in (AtomKind.DEFINE, AtomKind.UNDEFINE):
            warning = self.check_arg(state, atom.head, ArgType.WORD, atom.name)
            return [warning] if warning is not None else []
        if atom.kind == AtomKind.CONST:
            warnings = [self.check_arg(state, atom.head, ArgType.WORD, atom.name)]
            if atom.value is not None:
                warnings.append(self.check_arg(state, atom.head, ArgType.NUMBER, atom.value))
            return [warning for warning in warnings if warning is not None]
        if atom.kind != AtomKind.COMMAND:
            return []

        token_type = TOKENS[atom.name.value]
        warnings = []
        for index in range(token_type.arg_len()):
            if index >= len(atom.arguments):
                warnings.append(Warning.error(atom.location, f"Missing arguments to {atom.name.value}"))
                break
            warning = self.check_arg(state, atom.name, token_type.arg_type(index), atom.arguments[index])
            if warning is not None:
                warnings.append(warning)

        self.check_ranges(atom, warnings)
        return warnings
