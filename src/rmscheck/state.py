"""
Parse State Tracker

Keeps track of everything the checker knows while walking through a
script: the compatibility target, nesting of if/random/brace blocks,
the current section, the command whose arguments are being read, and
the #define/#const names seen so far.
"""

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, List, Optional, Set, Tuple

from rmscheck.diagnostic import Warning
from rmscheck.parser.parser import (
    Atom, AtomKind, CommentAtom, Parser, SectionAtom,
)
from rmscheck.parser.tokens import TokenType
from rmscheck.parser.wordize import Word

logger = logging.getLogger(__name__)

DEFINITIONS_DIR = Path(__file__).parent / "definitions"

# File id used when parsing the builtin definition files.
BUILTIN_FILE_ID = -1


class Compatibility(IntEnum):
    """The game version a map script targets, ranked for >= comparisons."""
    ALL = 0                 # be maximally compatible, basically Conquerors
    CONQUERORS = 1
    HD_EDITION = 2          # assumes all DLCs
    USERPATCH14 = 3
    USERPATCH15 = 4
    WOLOLO_KINGDOMS = 5     # UP 1.5 plus HD Edition DLC units and terrains
    DEFINITIVE_EDITION = 6

    @classmethod
    def default(cls) -> 'Compatibility':
        return cls.CONQUERORS

    @classmethod
    def from_name(cls, name: str) -> Optional['Compatibility']:
        """Parse a compatibility name as written in headers or on the command line."""
        return _COMPATIBILITY_NAMES.get(name.strip().lower())


_COMPATIBILITY_NAMES = {
    "hd edition": Compatibility.HD_EDITION,
    "hd": Compatibility.HD_EDITION,
    "conquerors": Compatibility.CONQUERORS,
    "aoc": Compatibility.CONQUERORS,
    "userpatch 1.5": Compatibility.USERPATCH15,
    "up 1.5": Compatibility.USERPATCH15,
    "userpatch 1.4": Compatibility.USERPATCH14,
    "up 1.4": Compatibility.USERPATCH14,
    "userpatch": Compatibility.USERPATCH14,
    "up": Compatibility.USERPATCH14,
    "wololokingdoms": Compatibility.WOLOLO_KINGDOMS,
    "wk": Compatibility.WOLOLO_KINGDOMS,
    "definitive edition": Compatibility.DEFINITIVE_EDITION,
    "de": Compatibility.DEFINITIVE_EDITION,
    "all": Compatibility.ALL,
}

# Builtin definition files to load, in order, for each compatibility level.
DEFINITION_FILES = {
    Compatibility.ALL: ("def_aoc.rms",),
    Compatibility.CONQUERORS: ("def_aoc.rms",),
    Compatibility.USERPATCH14: ("def_aoc.rms",),
    Compatibility.HD_EDITION: ("def_aoc.rms", "def_hd.rms"),
    Compatibility.USERPATCH15: ("def_aoc.rms", "def_up15.rms"),
    Compatibility.WOLOLO_KINGDOMS: ("def_aoc.rms", "def_hd.rms", "def_up15.rms"),
    Compatibility.DEFINITIVE_EDITION: ("def_aoc.rms", "def_hd.rms", "def_de.rms"),
}

# Names the game may or may not define depending on lobby settings.
AOC_OPTION_DEFINES = (
    "TINY_MAP",
    "SMALL_MAP",
    "MEDIUM_MAP",
    "LARGE_MAP",
    "HUGE_MAP",
    "GIGANTIC_MAP",
    "UP_AVAILABLE",
    "UP_EXTENSION",
)


def _up_option_defines() -> Tuple[str, ...]:
    names = [
        "FIXED_POSITIONS",
        "AI_PLAYERS",
        "CAPTURE_RELIC",
        "DEATH_MATCH",
        "DEFEND_WONDER",
        "KING_OT_HILL",
        "RANDOM_MAP",
        "REGICIDE",
        "TURBO_RANDOM_MAP",
        "WONDER_RACE",
    ]
    names.extend(f"{players}_PLAYER_GAME" for players in range(1, 9))
    names.extend(f"{teams}_TEAM_GAME" for teams in range(0, 5))
    for team in range(0, 5):
        names.extend(f"PLAYER{player}_TEAM{team}" for player in range(1, 9))
    for team in range(0, 5):
        names.extend(f"TEAM{team}_SIZE{size}" for size in range(0, 9))
    return tuple(names)


UP_OPTION_DEFINES = _up_option_defines()

_builtin_cache: Dict[Compatibility, Tuple[FrozenSet[str], FrozenSet[str]]] = {}


def read_definitions(name: str) -> str:
    """Read one of the bundled builtin definition files."""
    return (DEFINITIONS_DIR / name).read_text(encoding="utf-8")


def load_builtins(compatibility: Compatibility) -> Tuple[FrozenSet[str], FrozenSet[str]]:
    """
    Get the builtin (defines, consts) for a compatibility level.

    The definition files are parsed with the regular parser; only #define
    and #const atoms are kept. Results are cached per level.
    """
    cached = _builtin_cache.get(compatibility)
    if cached is not None:
        return cached

    defines: Set[str] = set()
    consts: Set[str] = set()
    for name in DEFINITION_FILES[compatibility]:
        for atom, _errors in Parser(BUILTIN_FILE_ID, read_definitions(name)):
            if atom.kind == AtomKind.CONST:
                consts.add(atom.name.value)
            elif atom.kind == AtomKind.DEFINE:
                defines.add(atom.name.value)

    logger.debug(f"Loaded {len(defines)} defines and {len(consts)} consts for {compatibility.name}")
    result = (frozenset(defines), frozenset(consts))
    _builtin_cache[compatibility] = result
    return result


class NestingKind(Enum):
    """Atoms that open a nested context."""
    IF = auto()
    ELSEIF = auto()
    ELSE = auto()
    START_RANDOM = auto()
    PERCENT_CHANCE = auto()
    BRACE = auto()


NESTING_LABELS = {
    NestingKind.BRACE: "Matches this open brace `{`",
    NestingKind.IF: "Matches this `if`",
    NestingKind.ELSEIF: "Matches this `elseif`",
    NestingKind.ELSE: "Matches this `else`",
    NestingKind.START_RANDOM: "Matches this `start_random`",
    NestingKind.PERCENT_CHANCE: "Matches this `percent_chance`",
}

_OPENERS = {
    AtomKind.OPEN_BLOCK: NestingKind.BRACE,
    AtomKind.IF: NestingKind.IF,
    AtomKind.ELSEIF: NestingKind.ELSEIF,
    AtomKind.ELSE: NestingKind.ELSE,
    AtomKind.START_RANDOM: NestingKind.START_RANDOM,
    AtomKind.PERCENT_CHANCE: NestingKind.PERCENT_CHANCE,
}


@dataclass(frozen=True)
class Nesting:
    """A nesting stack entry and the atom that opened it."""
    kind: NestingKind
    atom: Atom

    def __repr__(self):
        return f"Nesting({self.kind.name}, {self.atom.start}..{self.atom.end})"


@dataclass(frozen=True)
class ConstDefinition:
    """A user #define or #const, with the atom that defined it."""
    atom: Atom
    value: Optional[Word] = None

    @property
    def name(self) -> str:
        return self.atom.name.value

    @property
    def location(self):
        return self.atom.location


def unbalanced_error(name: str, end: Atom, nest: Optional[Nesting]) -> Warning:
    message = f"Unbalanced `{name}`"
    if nest is None:
        return Warning.error(end.location, f"{message}, nothing is open")
    return Warning.error(end.location, message).add_note(nest.atom.location, NESTING_LABELS[nest.kind])


class ParseState:
    """
    Mutable state for a single check run.

    Lints get read access to all of this, and may register defines and
    consts, but nesting and section tracking belong to the tracker.
    """

    def __init__(self, compatibility: Compatibility = Compatibility.CONQUERORS,
                 is_builtin_map: bool = False):
        self.compatibility = compatibility
        # #include and #include_drs are only available to builtin maps.
        self.is_builtin_map = is_builtin_map
        self.nesting: List[Nesting] = []
        # The token type we are currently reading arguments for.
        self.current_token: Optional[TokenType] = None
        self.arg_index = 0
        self.current_section: Optional[SectionAtom] = None
        # Inside a comment, as far as the token stream is concerned.
        self.is_comment = False
        self.builtin_defines: FrozenSet[str] = frozenset()
        self.builtin_consts: FrozenSet[str] = frozenset()
        self.seen_defines: Dict[str, ConstDefinition] = {}
        self.seen_consts: Dict[str, ConstDefinition] = {}
        self.option_defines: Set[str] = set()
        self.end_of_headers = False
        self.set_compatibility(compatibility)

    # ------------------------------------------------------------------
    # Symbols
    # ------------------------------------------------------------------

    def optional_define(self, name: str) -> None:
        """Track that a #define name may or may not exist from this point."""
        self.option_defines.add(name)

    def define(self, definition: ConstDefinition) -> None:
        self.seen_defines[definition.name] = definition

    def define_const(self, definition: ConstDefinition) -> None:
        self.seen_consts[definition.name] = definition

    def has_define(self, name: str) -> bool:
        return name in self.seen_defines or name in self.builtin_defines

    def may_have_define(self, name: str) -> bool:
        """Whether a #define may exist; valid in `if`, not in commands."""
        return self.has_define(name) or name in self.option_defines

    def has_const(self, name: str) -> bool:
        return name in self.seen_consts or name in self.builtin_consts

    def consts(self) -> Iterator[str]:
        """All #const names that are currently available."""
        yield from self.seen_consts
        yield from self.builtin_consts

    def defines(self) -> Iterator[str]:
        """All #define names that are currently available."""
        yield from self.seen_defines
        yield from self.builtin_defines

    def get_define(self, name: str) -> Optional[ConstDefinition]:
        return self.seen_defines.get(name)

    def get_const(self, name: str) -> Optional[ConstDefinition]:
        return self.seen_consts.get(name)

    # ------------------------------------------------------------------
    # Compatibility
    # ------------------------------------------------------------------

    def set_compatibility(self, compatibility: Compatibility) -> None:
        """Switch the target; reloads the builtin #define and #const names."""
        self.compatibility = compatibility
        self.builtin_defines, self.builtin_consts = load_builtins(compatibility)

        self.option_defines = set(AOC_OPTION_DEFINES)
        if compatibility >= Compatibility.USERPATCH15:
            self.option_defines.update(UP_OPTION_DEFINES)

    # ------------------------------------------------------------------
    # Atom updates
    # ------------------------------------------------------------------

    def update(self, atom: Atom) -> None:
        """Update the state upon reading a new atom."""
        self._update_headers(atom)

        if atom.kind == AtomKind.SECTION:
            self.current_section = atom
        elif atom.kind == AtomKind.DEFINE:
            self.define(ConstDefinition(atom))
        elif atom.kind == AtomKind.CONST:
            self.define_const(ConstDefinition(atom, atom.value))

    def _set_header(self, name: str, value: str) -> None:
        if name.strip().lower() != "compatibility":
            return
        compatibility = Compatibility.from_name(value)
        if compatibility is None:
            logger.debug(f"Ignoring unknown compatibility header value {value!r}")
            return
        self.set_compatibility(compatibility)

    def parse_header_comment(self, content: str) -> None:
        for line in content.splitlines():
            line = line.strip()
            if line.startswith("* "):
                line = line[2:]
            parts = line.split(": ", 1)
            if len(parts) == 2:
                self._set_header(parts[0], parts[1])

    def _update_headers(self, atom: Atom) -> None:
        if self.end_of_headers:
            return
        if isinstance(atom, CommentAtom):
            self.parse_header_comment(atom.content)
        else:
            self.end_of_headers = True

    def update_nesting(self, atom: Atom) -> Optional[Warning]:
        """Update the nesting stack; returns an error if the atom is unbalanced."""
        top = self.nesting[-1] if self.nesting else None
        top_kind = top.kind if top else None
        kind = atom.kind

        if kind in (AtomKind.OPEN_BLOCK, AtomKind.IF, AtomKind.START_RANDOM):
            self.nesting.append(Nesting(_OPENERS[kind], atom))

        elif kind == AtomKind.CLOSE_BLOCK:
            if top_kind != NestingKind.BRACE:
                return unbalanced_error("}", atom, top)
            self.nesting.pop()

        elif kind in (AtomKind.ELSEIF, AtomKind.ELSE):
            warning = None
            if top_kind in (NestingKind.IF, NestingKind.ELSEIF):
                self.nesting.pop()
            else:
                warning = unbalanced_error(atom.head.value.lower(), atom, top)
            self.nesting.append(Nesting(_OPENERS[kind], atom))
            return warning

        elif kind == AtomKind.ENDIF:
            if top_kind not in (NestingKind.IF, NestingKind.ELSEIF, NestingKind.ELSE):
                return unbalanced_error("endif", atom, top)
            self.nesting.pop()

        elif kind == AtomKind.PERCENT_CHANCE:
            # percent_chance branches are siblings: close the previous one
            if top_kind == NestingKind.PERCENT_CHANCE:
                self.nesting.pop()
            top = self.nesting[-1] if self.nesting else None
            warning = None
            if top is None or top.kind != NestingKind.START_RANDOM:
                warning = unbalanced_error("percent_chance", atom, top)
            self.nesting.append(Nesting(NestingKind.PERCENT_CHANCE, atom))
            return warning

        elif kind == AtomKind.END_RANDOM:
            if top_kind == NestingKind.PERCENT_CHANCE:
                self.nesting.pop()
            top = self.nesting[-1] if self.nesting else None
            if top is None or top.kind != NestingKind.START_RANDOM:
                return unbalanced_error("end_random", atom, top)
            self.nesting.pop()

        return None

    # ------------------------------------------------------------------
    # Queries used by lints
    # ------------------------------------------------------------------

    def enclosing(self, *kinds: NestingKind) -> Iterator[Nesting]:
        """Nesting entries of the given kinds, innermost first."""
        for nest in reversed(self.nesting):
            if not kinds or nest.kind in kinds:
                yield nest

