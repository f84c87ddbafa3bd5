"""
rmscheck.parser - Random Map Script Parser

Word scanner, token catalog and forgiving parser for AoE2 random map
scripts. Converts script text into a stream of atoms.
"""

from rmscheck.parser.wordize import SourceLocation, Word, Wordize, split_words
from rmscheck.parser.tokens import (
    ArgType,
    ContextKind,
    TokenContext,
    TokenType,
    TOKENS,
    lookup,
)
from rmscheck.parser.parser import (
    Parser,
    ParseError,
    ParseErrorKind,
    parse_source,
    parse_atoms,
    # Atom types
    Atom,
    AtomKind,
    ConstAtom,
    DefineAtom,
    UndefineAtom,
    SectionAtom,
    IfAtom,
    ElseIfAtom,
    ElseAtom,
    EndIfAtom,
    StartRandomAtom,
    PercentChanceAtom,
    EndRandomAtom,
    OpenBlockAtom,
    CloseBlockAtom,
    CommandAtom,
    CommentAtom,
    OtherAtom,
)

__all__ = [
    # Scanner
    "SourceLocation",
    "Word",
    "Wordize",
    "split_words",
    # Tokens
    "ArgType",
    "ContextKind",
    "TokenContext",
    "TokenType",
    "TOKENS",
    "lookup",
    # Parser
    "Parser",
    "ParseError",
    "ParseErrorKind",
    "parse_source",
    "parse_atoms",
    # Atoms
    "Atom",
    "AtomKind",
    "ConstAtom",
    "DefineAtom",
    "UndefineAtom",
    "SectionAtom",
    "IfAtom",
    "ElseIfAtom",
    "ElseAtom",
    "EndIfAtom",
    "StartRandomAtom",
    "PercentChanceAtom",
    "EndRandomAtom",
    "OpenBlockAtom",
    "CloseBlockAtom",
    "CommandAtom",
    "CommentAtom",
    "OtherAtom",
]
