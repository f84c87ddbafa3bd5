"""
Random Map Script Formatter

Rewrites a script with consistent layout, working from the parser's atom
stream so that malformed scripts can be formatted too:
- One command per line, blocks and `if`/`start_random` bodies indented
- The first argument of the commands in a block lined up (optional)
- Blank lines between statements kept, but never more than one
- Comments kept where they were, multi-line comments with a ` * ` gutter

Usage:
    formatted = format_string(source)
    formatted = RMSFormatter(FormatOptions(use_spaces=False)).format_string(source)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from rmscheck.parser.parser import Atom, AtomKind, CommandAtom, parse_atoms
from rmscheck.sources import read_script

# Atoms that keep a `percent_chance` on a single line when they are its only statement.
SIMPLE_BRANCH_KINDS = (AtomKind.DEFINE, AtomKind.CONST, AtomKind.UNDEFINE, AtomKind.COMMAND)


@dataclass
class FormatOptions:
    """Configuration for the formatter."""
    tab_size: int = 2               # Spaces per indent level when use_spaces is set
    use_spaces: bool = True         # Spaces or tabs for indentation
    align_arguments: bool = True    # Line up first arguments of commands in a block
    line_ending: str = "\r\n"       # The game ships its scripts with Windows line endings


@dataclass
class Width:
    """Alignment widths for the commands in one block."""
    command_width: int = 0  # Widest command name
    arg_width: int = 0      # Widest first argument


def _lines(text: str) -> List[str]:
    """Split on newlines, dropping a trailing `\\r` and the empty piece after a final newline."""
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


class RMSFormatter:
    """
    Formats random map scripts to a consistent style.

    Control flow constructs are written by their own methods, which take
    the atom list and the index of the opening atom and return the index
    just past the end of the construct.
    """

    def __init__(self, options: Optional[FormatOptions] = None):
        self.options = options or FormatOptions()
        self._reset("")

    def _reset(self, source: str) -> None:
        self.source = source
        self.result: List[str] = []
        self.indent = 0
        # Whether nothing has been written to the current line yet.
        self.needs_indent = False
        self.widths: List[Width] = []
        self.inside_block = 0
        self.prev: Optional[Atom] = None

    def format_string(self, source: str) -> str:
        """Format a script and return the new text."""
        self._reset(source)
        self._write_atoms(parse_atoms(source))
        return "".join(self.result)

    def format_file(self, file_path: Path) -> str:
        """Format a file and return the formatted content."""
        return self.format_string(read_script(Path(file_path)))

    # Output helpers

    def _ends_with(self, text: str) -> bool:
        tail = ""
        for chunk in reversed(self.result):
            tail = chunk + tail
            if len(tail) >= len(text):
                break
        return tail.endswith(text)

    def _newline(self) -> None:
        self.result.append(self.options.line_ending)
        self.needs_indent = True

    def _remove_newline(self) -> None:
        # line endings are always written as their own chunk
        if self.result and self.result[-1] == self.options.line_ending:
            self.result.pop()
            self.needs_indent = False

    def _text(self, text: str) -> None:
        if self.needs_indent:
            if self.options.use_spaces:
                self.result.append(" " * (self.indent * self.options.tab_size))
            else:
                self.result.append("\t" * self.indent)
            self.needs_indent = False
        self.result.append(text)

    def _raw(self, text: str) -> None:
        """Write text without indenting."""
        self.result.append(text)

    # Whitespace from the input

    def _between(self, prev: Atom, next_atom: Atom) -> str:
        return self.source[prev.end:next_atom.start]

    def _has_padding_line(self, prev: Atom, next_atom: Atom) -> bool:
        """Is there an empty line between two atoms in the input?"""
        between = self._between(prev, next_atom)
        empty_lines = sum(1 for line in _lines(between) if not line.strip())
        # a final newline yields no trailing empty piece, so one fewer line is needed
        return empty_lines >= (2 if between.endswith("\n") else 3)

    def _is_trailing_comment(self, prev: Atom, next_atom: Atom) -> bool:
        return next_atom.kind == AtomKind.COMMENT and "\n" not in self._between(prev, next_atom)

    # Atoms

    def _write_atoms(self, atoms: List[Atom]) -> None:
        index = 0
        while index < len(atoms):
            index = self._write_atom(atoms, index)

    def _write_atom(self, atoms: List[Atom], index: int) -> int:
        atom = atoms[index]
        prev_kind = self.prev.kind if self.prev is not None else None

        if prev_kind == AtomKind.CLOSE_BLOCK:
            self._newline()
        elif prev_kind == AtomKind.OTHER and atom.kind != AtomKind.OTHER:
            # end a run of unrecognised words
            self._newline()

        if self.prev is not None:
            if self._has_padding_line(self.prev, atom):
                if not self._ends_with(self.options.line_ending * 2):
                    self._newline()
            elif self._is_trailing_comment(self.prev, atom):
                self._remove_newline()
                self._text(" ")

        kind = atom.kind
        if kind == AtomKind.SECTION:
            self._section(atom.name.value)
        elif kind == AtomKind.DEFINE:
            self._statement("#define", atom.name.value)
        elif kind == AtomKind.UNDEFINE:
            self._statement("#undefine", atom.name.value)
        elif kind == AtomKind.CONST:
            if atom.value is not None:
                self._statement("#const", atom.name.value, atom.value.value)
            else:
                self._statement("#const", atom.name.value)
        elif kind == AtomKind.COMMAND:
            is_block = index + 1 < len(atoms) and atoms[index + 1].kind == AtomKind.OPEN_BLOCK
            self._command(atom, is_block)
        elif kind == AtomKind.COMMENT:
            self._comment(atom.content)
        elif kind == AtomKind.OTHER:
            if prev_kind == AtomKind.OTHER and not self.needs_indent:
                self._raw(" ")
            self._text(atom.value.value)
        # Stray pieces of control flow: the openers below consume their whole construct.
        elif kind == AtomKind.ELSEIF:
            self._statement("elseif", atom.condition.value)
        elif kind == AtomKind.ELSE:
            self._statement("else")
        elif kind == AtomKind.ENDIF:
            self._statement("endif")
        elif kind == AtomKind.CLOSE_BLOCK:
            self._statement("}")
        elif kind == AtomKind.PERCENT_CHANCE:
            self._statement("percent_chance", atom.chance.value)
        elif kind == AtomKind.END_RANDOM:
            self._statement("end_random")
        elif kind == AtomKind.OPEN_BLOCK:
            self.prev = atom
            return self._block(atoms, index)
        elif kind == AtomKind.IF:
            self.prev = atom
            return self._condition(atoms, index)
        elif kind == AtomKind.START_RANDOM:
            self.prev = atom
            return self._random(atoms, index)

        self.prev = atom
        return index + 1

    def _statement(self, *words: str) -> None:
        self._text(" ".join(words))
        self._newline()

    def _section(self, name: str) -> None:
        if self.prev is not None and not self._ends_with(self.options.line_ending * 2):
            self._newline()
        self._statement(name)

    def _command(self, atom: CommandAtom, is_block: bool) -> None:
        name = atom.name.value
        self._text(name)
        width = self.widths[-1] if self.widths else Width()

        rest = atom.arguments
        if self.options.align_arguments and atom.arguments:
            # Only the first two columns are lined up; later arguments vary too much.
            first = atom.arguments[0].value
            self._raw(" " * max(0, width.command_width - len(name)) + " " + first)
            rest = atom.arguments[1:]
            if rest:
                self._raw(" " * max(0, width.arg_width - len(first)))

        for arg in rest:
            self._raw(" " + arg.value)

        if is_block:
            self._raw(" ")
        else:
            self._newline()

    def _block(self, atoms: List[Atom], index: int) -> int:
        """Write `{ ... }` with the attributes inside, aligned."""
        end = index + 1
        while end < len(atoms) and atoms[end].kind != AtomKind.CLOSE_BLOCK:
            end += 1
        contents = atoms[index + 1:end]

        width = Width()
        depth = 0
        for atom in contents:
            if atom.kind == AtomKind.COMMAND:
                first_len = len(atom.arguments[0].value) if atom.arguments else 0
                width = Width(
                    command_width=max(width.command_width,
                                      len(atom.name.value) + depth * self.options.tab_size),
                    arg_width=max(width.arg_width, first_len),
                )
            elif atom.kind == AtomKind.IF:
                depth += 1
            elif atom.kind == AtomKind.ENDIF:
                depth -= 1

        self.inside_block += 1
        self._text("{")
        self._newline()
        self.indent += 1

        self.widths.append(width)
        self._write_atoms(contents)
        self.widths.pop()

        if self.prev is not None and self.prev.kind == AtomKind.OTHER:
            self._newline()

        self.inside_block -= 1
        self.indent -= 1
        self._statement("}")
        return end + 1

    def _condition(self, atoms: List[Atom], index: int) -> int:
        """Write an `if` up to its matching `endif`, with `elseif`/`else` outdented."""
        self._statement("if", atoms[index].condition.value)
        self.indent += 1

        # nested ifs are indented, so their commands need less padding
        width = self.widths[-1] if self.widths else Width()
        self.widths.append(Width(max(0, width.command_width - self.options.tab_size), width.arg_width))

        end = index + 1
        depth = 1
        while end < len(atoms):
            kind = atoms[end].kind
            if kind == AtomKind.IF:
                depth += 1
            elif kind == AtomKind.ENDIF:
                depth -= 1
                if depth == 0:
                    break
            end += 1

        body = atoms[index + 1:end]
        position = 0
        while position < len(body):
            if body[position].kind in (AtomKind.ELSEIF, AtomKind.ELSE):
                self.indent -= 1
                position = self._write_atom(body, position)
                self.indent += 1
            else:
                position = self._write_atom(body, position)

        self.widths.pop()
        self.indent -= 1

        if end >= len(atoms):
            # unclosed if
            return end
        next_index = self._write_atom(atoms, end)

        if self.inside_block == 0 and next_index < len(atoms):
            # a top-level if is followed by a blank line, unless it guards a block
            if atoms[next_index].kind != AtomKind.OPEN_BLOCK:
                self._newline()
        return next_index

    def _random(self, atoms: List[Atom], index: int) -> int:
        """Write a `start_random` group, on one line per branch when every branch is short."""
        self._statement("start_random")
        self.indent += 1
        self.widths.append(Width())

        # statements before the first percent_chance
        leading: List[Atom] = []
        branches: List[tuple] = []
        end = index + 1
        depth = 1
        while end < len(atoms):
            atom = atoms[end]
            end += 1
            if atom.kind == AtomKind.PERCENT_CHANCE and depth == 1:
                branches.append((atom.chance.value, []))
                continue
            if atom.kind == AtomKind.START_RANDOM:
                depth += 1
            elif atom.kind == AtomKind.END_RANDOM:
                depth -= 1
                if depth == 0:
                    break
            if branches:
                branches[-1][1].append(atom)
            else:
                leading.append(atom)

        self._write_atoms(leading)

        simple = all(
            len(body) == 0 or (len(body) == 1 and body[0].kind in SIMPLE_BRANCH_KINDS)
            for _, body in branches
        )
        if simple:
            longest = max((len(f"percent_chance {chance}") for chance, _ in branches), default=0)
            for chance, body in branches:
                self._text(f"percent_chance {chance}".ljust(longest))
                if body:
                    self._raw(" ")
                    # the statement stays on this line whatever the input spacing was
                    self.prev = None
                    self._write_atoms(body)
                else:
                    self._newline()
        else:
            for chance, body in branches:
                self._statement("percent_chance", chance)
                self.indent += 1
                self._write_atoms(body)
                self.indent -= 1

        self.widths.pop()
        self.indent -= 1
        self._statement("end_random")
        return end

    def _comment(self, content: str) -> None:
        """Write a comment; multi-line comments get a ` * ` at the start of each line."""
        lines = _lines(content)
        first = lines[0].strip() if lines else ""
        rest = lines[1:]
        while rest and not rest[-1].strip():
            rest.pop()

        self._text(f"/* {first}" if first else "/*")
        for line in rest:
            self._newline()
            stripped = line.strip()
            if stripped.startswith("*"):
                self._text(f" {stripped}")
            else:
                self._text(f" * {line.rstrip()}")
        if rest:
            self._newline()
        self._text(" */")
        self._newline()


def format_string(source: str, options: Optional[FormatOptions] = None) -> str:
    """Convenience function to format a script."""
    return RMSFormatter(options).format_string(source)


def format_file(file_path: Path, options: Optional[FormatOptions] = None) -> str:
    """Convenience function to format a file."""
    return RMSFormatter(options).format_file(file_path)


def check_formatted(file_path: Path, options: Optional[FormatOptions] = None) -> bool:
    """Check if a file is already formatted. Returns True if formatted."""
    return format_file(file_path, options) == read_script(Path(file_path))
