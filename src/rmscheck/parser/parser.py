"""
Random Map Script Parser

Turns the word stream from the scanner into a stream of atoms: commands,
conditionals, comments, sections and random blocks.

The parser is forgiving. Malformed input produces a best-effort atom plus
one or more ParseErrors, and parsing always continues to the end of input.
Every word ends up in exactly one atom.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Deque, Dict, Iterator, List, Optional, Tuple

from rmscheck.parser.tokens import TOKENS, is_section_name
from rmscheck.parser.wordize import SourceLocation, Word, Wordize


class AtomKind(Enum):
    """Types of atoms."""
    CONST = auto()           # #const NAME VALUE
    DEFINE = auto()          # #define NAME
    UNDEFINE = auto()        # #undefine NAME
    SECTION = auto()         # <LAND_GENERATION>
    IF = auto()              # if CONDITION
    ELSEIF = auto()          # elseif CONDITION
    ELSE = auto()
    ENDIF = auto()
    START_RANDOM = auto()
    PERCENT_CHANCE = auto()  # percent_chance 30
    END_RANDOM = auto()
    OPEN_BLOCK = auto()      # {
    CLOSE_BLOCK = auto()     # }
    COMMAND = auto()         # create_terrain SNOW
    COMMENT = auto()         # /* ... */
    OTHER = auto()           # anything unrecognised


class ParseErrorKind(Enum):
    """The kind of problem the parser ran into."""
    MISSING_CONST_NAME = auto()
    MISSING_CONST_VALUE = auto()
    MISSING_DEFINE_NAME = auto()
    MISSING_COMMAND_ARGS = auto()
    MISSING_IF_CONDITION = auto()
    MISSING_PERCENT_CHANCE = auto()
    UNCLOSED_COMMENT = auto()
    UNKNOWN_WORD = auto()


PARSE_ERROR_MESSAGES = {
    ParseErrorKind.MISSING_CONST_NAME: "Missing #const name",
    ParseErrorKind.MISSING_CONST_VALUE: "Missing #const value",
    ParseErrorKind.MISSING_DEFINE_NAME: "Missing #define name",
    ParseErrorKind.MISSING_COMMAND_ARGS: "Missing command arguments",
    ParseErrorKind.MISSING_IF_CONDITION: "Missing condition after `if`",
    ParseErrorKind.MISSING_PERCENT_CHANCE: "Missing chance value after `percent_chance`",
    ParseErrorKind.UNCLOSED_COMMENT: "Unclosed comment",
    ParseErrorKind.UNKNOWN_WORD: "Unknown word",
}


@dataclass(frozen=True)
class ParseError:
    """A recoverable problem found while parsing."""
    kind: ParseErrorKind
    location: SourceLocation

    @property
    def message(self) -> str:
        return PARSE_ERROR_MESSAGES[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind.name, 'location': self.location.to_dict()}


def _words_dict(**words: Optional[Word]) -> Dict[str, Any]:
    return {key: (word.to_dict() if word is not None else None) for key, word in words.items()}


@dataclass
class Atom:
    """Base class for atoms."""
    kind: AtomKind = None  # Set by subclasses in __post_init__
    location: SourceLocation = None

    @property
    def file_id(self) -> int:
        return self.location.file_id

    @property
    def start(self) -> int:
        return self.location.start

    @property
    def end(self) -> int:
        return self.location.end

    def words(self) -> List[Word]:
        """All words this atom was parsed from, in source order."""
        return []

    def _fields_dict(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        result = {'_type': self.kind.name.lower(), 'location': self.location.to_dict()}
        result.update(self._fields_dict())
        return result


@dataclass
class ConstAtom(Atom):
    """A #const definition. `value` is None for incomplete statements."""
    head: Word = None
    name: Word = None
    value: Optional[Word] = None

    def __post_init__(self):
        self.kind = AtomKind.CONST

    def __str__(self):
        return f"Const<{self.name.value}, {self.value.value if self.value else '()'}>"

    def words(self):
        return [w for w in (self.head, self.name, self.value) if w is not None]

    def _fields_dict(self):
        return _words_dict(head=self.head, name=self.name, value=self.value)


@dataclass
class DefineAtom(Atom):
    """A #define statement."""
    head: Word = None
    name: Word = None

    def __post_init__(self):
        self.kind = AtomKind.DEFINE

    def __str__(self):
        return f"Define<{self.name.value}>"

    def words(self):
        return [self.head, self.name]

    def _fields_dict(self):
        return _words_dict(head=self.head, name=self.name)


@dataclass
class UndefineAtom(Atom):
    """An #undefine statement."""
    head: Word = None
    name: Word = None

    def __post_init__(self):
        self.kind = AtomKind.UNDEFINE

    def __str__(self):
        return f"Undefine<{self.name.value}>"

    def words(self):
        return [self.head, self.name]

    def _fields_dict(self):
        return _words_dict(head=self.head, name=self.name)


@dataclass
class SectionAtom(Atom):
    """A <SECTION> marker."""
    name: Word = None

    def __post_init__(self):
        self.kind = AtomKind.SECTION

    def __str__(self):
        return f"Section{self.name.value}"

    def words(self):
        return [self.name]

    def _fields_dict(self):
        return _words_dict(name=self.name)


@dataclass
class IfAtom(Atom):
    head: Word = None
    condition: Word = None

    def __post_init__(self):
        self.kind = AtomKind.IF

    def __str__(self):
        return f"If<{self.condition.value}>"

    def words(self):
        return [self.head, self.condition]

    def _fields_dict(self):
        return _words_dict(head=self.head, condition=self.condition)


@dataclass
class ElseIfAtom(Atom):
    head: Word = None
    condition: Word = None

    def __post_init__(self):
        self.kind = AtomKind.ELSEIF

    def __str__(self):
        return f"ElseIf<{self.condition.value}>"

    def words(self):
        return [self.head, self.condition]

    def _fields_dict(self):
        return _words_dict(head=self.head, condition=self.condition)


@dataclass
class ElseAtom(Atom):
    head: Word = None

    def __post_init__(self):
        self.kind = AtomKind.ELSE

    def __str__(self):
        return "Else"

    def words(self):
        return [self.head]

    def _fields_dict(self):
        return _words_dict(head=self.head)


@dataclass
class EndIfAtom(Atom):
    head: Word = None

    def __post_init__(self):
        self.kind = AtomKind.ENDIF

    def __str__(self):
        return "EndIf"

    def words(self):
        return [self.head]

    def _fields_dict(self):
        return _words_dict(head=self.head)


@dataclass
class StartRandomAtom(Atom):
    head: Word = None

    def __post_init__(self):
        self.kind = AtomKind.START_RANDOM

    def __str__(self):
        return "StartRandom"

    def words(self):
        return [self.head]

    def _fields_dict(self):
        return _words_dict(head=self.head)


@dataclass
class PercentChanceAtom(Atom):
    head: Word = None
    chance: Word = None

    def __post_init__(self):
        self.kind = AtomKind.PERCENT_CHANCE

    def __str__(self):
        return f"PercentChance<{self.chance.value}>"

    def words(self):
        return [self.head, self.chance]

    def _fields_dict(self):
        return _words_dict(head=self.head, chance=self.chance)


@dataclass
class EndRandomAtom(Atom):
    head: Word = None

    def __post_init__(self):
        self.kind = AtomKind.END_RANDOM

    def __str__(self):
        return "EndRandom"

    def words(self):
        return [self.head]

    def _fields_dict(self):
        return _words_dict(head=self.head)


@dataclass
class OpenBlockAtom(Atom):
    head: Word = None

    def __post_init__(self):
        self.kind = AtomKind.OPEN_BLOCK

    def __str__(self):
        return "OpenBlock"

    def words(self):
        return [self.head]

    def _fields_dict(self):
        return _words_dict(head=self.head)


@dataclass
class CloseBlockAtom(Atom):
    head: Word = None

    def __post_init__(self):
        self.kind = AtomKind.CLOSE_BLOCK

    def __str__(self):
        return "CloseBlock"

    def words(self):
        return [self.head]

    def _fields_dict(self):
        return _words_dict(head=self.head)


@dataclass
class CommandAtom(Atom):
    """A command or attribute with its arguments."""
    name: Word = None
    arguments: List[Word] = field(default_factory=list)

    def __post_init__(self):
        self.kind = AtomKind.COMMAND

    def __str__(self):
        args = "".join(f", {arg.value}" for arg in self.arguments)
        return f"Command<{self.name.value}{args}>"

    def words(self):
        return [self.name] + list(self.arguments)

    def _fields_dict(self):
        result = _words_dict(name=self.name)
        result['arguments'] = [arg.to_dict() for arg in self.arguments]
        return result


@dataclass
class CommentAtom(Atom):
    """A comment. `close` is None if the comment runs to the end of input."""
    open: Word = None
    content: str = ""
    close: Optional[Word] = None

    def __post_init__(self):
        self.kind = AtomKind.COMMENT

    def __str__(self):
        return f"Comment<{self.content!r}>"

    def words(self):
        return [w for w in (self.open, self.close) if w is not None]

    def _fields_dict(self):
        result = _words_dict(open=self.open, close=self.close)
        result['content'] = self.content
        return result


@dataclass
class OtherAtom(Atom):
    """An unrecognised word."""
    value: Word = None

    def __post_init__(self):
        self.kind = AtomKind.OTHER

    def __str__(self):
        return f"Other<{self.value.value}>"

    def words(self):
        return [self.value]

    def _fields_dict(self):
        return _words_dict(value=self.value)


# Words that are never swallowed as command arguments.
NON_ARGUMENTS = frozenset({
    "/*", "*/", "{", "}",
    "if", "elseif", "else", "endif",
    "start_random", "percent_chance", "end_random",
})


def is_argument_like(value: str) -> bool:
    """Check if a word could be a command argument."""
    if value in NON_ARGUMENTS or value in TOKENS:
        return False
    # incorrect comment syntax, but still not an argument
    if value.startswith("/*") or value.endswith("*/"):
        return False
    return True


def is_inline_comment(value: str) -> bool:
    """A `/*...*/` word with no whitespace around the comment markers."""
    return len(value) >= 4 and value.startswith("/*") and value.endswith("*/")


ParseItem = Tuple[Atom, List[ParseError]]


class Parser:
    """
    Forgiving parser for random map scripts.

    Usage:
        for atom, errors in Parser(file_id, source):
            ...

    Yields one (Atom, [ParseError]) pair per step. Never raises on bad input.
    """

    def __init__(self, file_id: int, source: str):
        self.file_id = file_id
        self.source = source
        self.words = Wordize(file_id, source)
        self.buffer: Deque[Word] = deque()

    def __iter__(self) -> Iterator[ParseItem]:
        return self

    def _peek(self) -> Optional[Word]:
        """Look at the next word without consuming it."""
        if not self.buffer:
            word = next(self.words, None)
            if word is None:
                return None
            self.buffer.append(word)
        return self.buffer[0]

    def _advance(self) -> Optional[Word]:
        """Consume and return the next word."""
        if self.buffer:
            return self.buffer.popleft()
        return next(self.words, None)

    def _peek_arg(self) -> Optional[Word]:
        """Return the next word if it could be a command argument."""
        word = self._peek()
        if word is None or not is_argument_like(word.value):
            return None
        return word

    def _read_arg(self) -> Optional[Word]:
        if self._peek_arg() is None:
            return None
        return self._advance()

    def _read_comment(self, open_word: Word) -> ParseItem:
        """Read words up to a closing `*/`."""
        last = open_word
        while True:
            word = self._advance()
            if word is None:
                location = open_word.location.to(last.location)
                atom = CommentAtom(
                    location=location,
                    open=open_word,
                    content=self.source[open_word.end:],
                    close=None,
                )
                return atom, [ParseError(ParseErrorKind.UNCLOSED_COMMENT, location)]
            if word.value == "*/":
                atom = CommentAtom(
                    location=open_word.location.to(word.location),
                    open=open_word,
                    content=self.source[open_word.end:word.start],
                    close=word,
                )
                return atom, []
            last = word

    def _read_command(self, name: Word) -> ParseItem:
        """Read a command and as many of its arguments as are present."""
        token_type = TOKENS[name.value]
        arguments: List[Word] = []
        for _ in range(token_type.arg_len()):
            arg = self._read_arg()
            if arg is None:
                break
            arguments.append(arg)

        location = name.location
        if arguments:
            location = name.location.to(arguments[-1].location)

        errors = []
        if len(arguments) != token_type.arg_len():
            errors.append(ParseError(ParseErrorKind.MISSING_COMMAND_ARGS, location))
        return CommandAtom(location=location, name=name, arguments=arguments), errors

    def _split_inline_comment(self, word: Word) -> ParseItem:
        """Treat `/*text*/` as a comment even though the markers lack spaces."""
        loc = word.location
        open_word = Word(word.value[:2], SourceLocation(loc.file_id, loc.start, loc.start + 2))
        close_word = Word(word.value[-2:], SourceLocation(loc.file_id, loc.end - 2, loc.end))
        atom = CommentAtom(
            location=loc,
            open=open_word,
            content=word.value[2:-2],
            close=close_word,
        )
        return atom, []

    def _with_argument(self, word: Word, build, missing: ParseErrorKind) -> ParseItem:
        """Read a keyword that needs one argument, or fall back to Other."""
        arg = self._read_arg()
        if arg is None:
            return OtherAtom(location=word.location, value=word), [ParseError(missing, word.location)]
        return build(word.location.to(arg.location), word, arg), []

    def _read_const(self, word: Word) -> ParseItem:
        name = self._read_arg()
        if name is None:
            return (OtherAtom(location=word.location, value=word),
                    [ParseError(ParseErrorKind.MISSING_CONST_NAME, word.location)])
        value = self._read_arg()
        if value is None:
            location = word.location.to(name.location)
            return (ConstAtom(location=location, head=word, name=name, value=None),
                    [ParseError(ParseErrorKind.MISSING_CONST_VALUE, location)])
        return ConstAtom(location=word.location.to(value.location), head=word, name=name, value=value), []

    def __next__(self) -> ParseItem:
        word = self._advance()
        if word is None:
            raise StopIteration

        value = word.value
        if is_section_name(value) and value in TOKENS:
            return SectionAtom(location=word.location, name=word), []

        lower = value.lower()
        if lower == "{":
            return OpenBlockAtom(location=word.location, head=word), []
        if lower == "}":
            return CloseBlockAtom(location=word.location, head=word), []
        if lower == "/*":
            return self._read_comment(word)
        if lower == "if":
            return self._with_argument(
                word, lambda loc, head, arg: IfAtom(location=loc, head=head, condition=arg),
                ParseErrorKind.MISSING_IF_CONDITION)
        if lower == "elseif":
            return self._with_argument(
                word, lambda loc, head, arg: ElseIfAtom(location=loc, head=head, condition=arg),
                ParseErrorKind.MISSING_IF_CONDITION)
        if lower == "else":
            return ElseAtom(location=word.location, head=word), []
        if lower == "endif":
            return EndIfAtom(location=word.location, head=word), []
        if lower == "start_random":
            return StartRandomAtom(location=word.location, head=word), []
        if lower == "percent_chance":
            return self._with_argument(
                word, lambda loc, head, arg: PercentChanceAtom(location=loc, head=head, chance=arg),
                ParseErrorKind.MISSING_PERCENT_CHANCE)
        if lower == "end_random":
            return EndRandomAtom(location=word.location, head=word), []
        if lower == "#define":
            return self._with_argument(
                word, lambda loc, head, arg: DefineAtom(location=loc, head=head, name=arg),
                ParseErrorKind.MISSING_DEFINE_NAME)
        if lower == "#undefine":
            return self._with_argument(
                word, lambda loc, head, arg: UndefineAtom(location=loc, head=head, name=arg),
                ParseErrorKind.MISSING_DEFINE_NAME)
        if lower == "#const":
            return self._read_const(word)

        # Commands must match exactly; wrong casing is left for a lint to flag.
        if value in TOKENS:
            return self._read_command(word)

        # /****/ on one line is not strictly a comment, but the game ignores it anyway.
        if is_inline_comment(value):
            return self._split_inline_comment(word)

        return OtherAtom(location=word.location, value=word), [ParseError(ParseErrorKind.UNKNOWN_WORD, word.location)]

    def parse_all(self) -> List[ParseItem]:
        """Convenience method to get all atoms as a list."""
        return list(self)


def parse_source(source: str, file_id: int = 0) -> Parser:
    """Parse source text into a lazy stream of (Atom, [ParseError]) pairs."""
    return Parser(file_id, source)


def parse_atoms(source: str, file_id: int = 0) -> List[Atom]:
    """Parse source text and drop the parse errors."""
    return [atom for atom, _errors in Parser(file_id, source)]
