"""
Check entry points.

Usage:
    result = RMSCheck(compatibility=Compatibility.USERPATCH15).add_source("map.rms", text).check()
    for warning in result:
        print(result.format(warning))

    warnings = check(text)
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from rmscheck.checker import Checker, Lint
from rmscheck.diagnostic import Warning
from rmscheck.lints import create_lints
from rmscheck.parser.parser import Parser
from rmscheck.parser.wordize import SourceLocation, Wordize
from rmscheck.sources import SourceFile, SourceFiles
from rmscheck.state import Compatibility

logger = logging.getLogger(__name__)


class CheckResult:
    """Warnings from a check run, plus the files needed to resolve their positions."""

    def __init__(self, warnings: List[Warning], files: SourceFiles):
        self.warnings = warnings
        self.files = files

    def __iter__(self) -> Iterator[Warning]:
        return iter(self.warnings)

    def __len__(self):
        return len(self.warnings)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def has_errors(self) -> bool:
        return any(warning.is_error for warning in self.warnings)

    def file(self, location: SourceLocation) -> SourceFile:
        return self.files[location.file_id]

    def resolve_position(self, location: SourceLocation) -> Tuple[int, int]:
        """Zero-based (line, column) of the start of a location."""
        return self.file(location).location(location.start)

    def to_dict(self, warning: Warning) -> Dict[str, Any]:
        """
        JSON-ready form of a warning.

        `location` holds character offsets; each `range` adds the resolved
        line/column (zero-based) and UTF-8 byte offsets for the same span.
        """
        data = warning.to_dict()
        data['range'] = self.file(warning.location).span_to_dict(warning.start, warning.end)
        for suggestion, suggestion_data in zip(warning.suggestions, data['suggestions']):
            source = self.file(suggestion.location)
            suggestion_data['range'] = source.span_to_dict(suggestion.start, suggestion.end)
        return data

    def format(self, warning: Warning) -> str:
        """One-line rendering, e.g. `map.rms:3:5: error [arg-types]: ...`."""
        source = self.file(warning.location)
        line, column = source.location(warning.start)
        text = f"{source.name}:{line + 1}:{column + 1}: {warning}"
        for note in warning.notes:
            note_line, note_column = self.resolve_position(note.location)
            text += f"\n    note: {note.message} ({note_line + 1}:{note_column + 1})"
        for suggestion in warning.suggestions:
            text += f"\n    -> {suggestion.message}"
            if suggestion.replacement.text is not None:
                text += f" `{suggestion.replacement.text}`"
        return text


class RMSCheck:
    """Collects sources and runs a configured checker over them."""

    def __init__(self, compatibility: Compatibility = Compatibility.CONQUERORS,
                 lints: Optional[List[Lint]] = None, is_builtin_map: bool = False):
        self.compatibility = compatibility
        self.lints = lints if lints is not None else create_lints()
        self.is_builtin_map = is_builtin_map
        self.files = SourceFiles()

    def with_lint(self, lint: Lint) -> 'RMSCheck':
        self.lints.append(lint)
        return self

    def add_source(self, name: str, source: str) -> 'RMSCheck':
        self.files.add(name, source)
        return self

    def add_file(self, path: Union[str, Path]) -> 'RMSCheck':
        """Add a file from disk. Invalid UTF-8 is replaced rather than rejected."""
        path = Path(path)
        self.files.add(str(path), path.read_bytes().decode("utf-8", errors="replace"))
        return self

    def effective_compatibility(self) -> Compatibility:
        # ZR@ maps default to UserPatch 1.5
        if any(source.is_zip_rms for source in self.files) and self.compatibility < Compatibility.USERPATCH15:
            return Compatibility.USERPATCH15
        return self.compatibility

    def check(self) -> CheckResult:
        compatibility = self.effective_compatibility()
        logger.debug(f"Checking {len(self.files)} file(s) as {compatibility.name}")
        checker = Checker(self.lints, compatibility=compatibility, is_builtin_map=self.is_builtin_map)

        warnings: List[Warning] = []
        for source in self.files:
            for word in Wordize(source.file_id, source.text):
                warning = checker.write_token(word)
                if warning is not None:
                    warnings.append(warning)

        for source in self.files:
            for atom, errors in Parser(source.file_id, source.text):
                warnings.extend(checker.write_atom(atom))
                warnings.extend(checker.write_parse_errors(atom, errors))

        warnings.sort(key=lambda warning: (warning.file_id, warning.start))
        return CheckResult(warnings, self.files)


def check(source: str, compatibility: Compatibility = Compatibility.CONQUERORS,
          lints: Optional[List[Lint]] = None, name: str = "<source>") -> List[Warning]:
    """Check a single source text and return its warnings in source order."""
    return RMSCheck(compatibility, lints).add_source(name, source).check().warnings
