"""
Diagnostics produced by the checker and its lints.

A Warning has a severity, a location, a message, and optionally notes
pointing at related code and suggestions that may fix the problem.
Suggestions can carry a replacement text that is either safe to apply
automatically or needs a human to confirm it.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from rmscheck.parser.wordize import SourceLocation


class Severity(Enum):
    """Diagnostic severity levels."""
    ERROR = "error"       # The game will misbehave
    WARNING = "warning"   # Probably a mistake


class ReplacementKind(Enum):
    NONE = "none"
    SAFE = "safe"        # Can be applied without review
    UNSAFE = "unsafe"    # Needs manual confirmation


@dataclass(frozen=True)
class Replacement:
    """Replacement text for a suggestion, or the absence of one."""
    kind: ReplacementKind = ReplacementKind.NONE
    text: Optional[str] = None

    @classmethod
    def safe(cls, text: str) -> 'Replacement':
        return cls(ReplacementKind.SAFE, text)

    @classmethod
    def unsafe(cls, text: str) -> 'Replacement':
        return cls(ReplacementKind.UNSAFE, text)

    @property
    def is_fixable(self) -> bool:
        return self.kind == ReplacementKind.SAFE

    @property
    def is_fixable_unsafe(self) -> bool:
        return self.kind in (ReplacementKind.SAFE, ReplacementKind.UNSAFE)

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind.value, 'text': self.text}


NO_REPLACEMENT = Replacement()


@dataclass(frozen=True)
class Suggestion:
    """A possible fix for a problem."""
    location: SourceLocation
    message: str
    replacement: Replacement = NO_REPLACEMENT

    @classmethod
    def from_word(cls, word, message: str) -> 'Suggestion':
        return cls(word.location, message)

    @property
    def start(self) -> int:
        return self.location.start

    @property
    def end(self) -> int:
        return self.location.end

    def replace(self, text: str) -> 'Suggestion':
        """Attach a replacement that is safe to apply automatically."""
        return replace(self, replacement=Replacement.safe(text))

    def replace_unsafe(self, text: str) -> 'Suggestion':
        """Attach a replacement that may change the meaning of the script."""
        return replace(self, replacement=Replacement.unsafe(text))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'location': self.location.to_dict(),
            'message': self.message,
            'replacement': self.replacement.to_dict(),
        }


@dataclass(frozen=True)
class Note:
    """Points at code related to a warning."""
    location: SourceLocation
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {'location': self.location.to_dict(), 'message': self.message}


@dataclass
class Warning:
    """A single problem found in a script."""
    severity: Severity
    location: SourceLocation
    message: str
    code: Optional[str] = None
    notes: List[Note] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)

    @classmethod
    def error(cls, location: SourceLocation, message: str) -> 'Warning':
        return cls(Severity.ERROR, location, message)

    @classmethod
    def warning(cls, location: SourceLocation, message: str) -> 'Warning':
        return cls(Severity.WARNING, location, message)

    @property
    def file_id(self) -> int:
        return self.location.file_id

    @property
    def start(self) -> int:
        return self.location.start

    @property
    def end(self) -> int:
        return self.location.end

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def with_code(self, code: str) -> 'Warning':
        self.code = code
        return self

    def add_note(self, location: SourceLocation, message: str) -> 'Warning':
        self.notes.append(Note(location, message))
        return self

    def suggest(self, suggestion: Suggestion) -> 'Warning':
        self.suggestions.append(suggestion)
        return self

    def __str__(self):
        code = f" [{self.code}]" if self.code else ""
        return f"{self.severity.value}{code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'severity': self.severity.value,
            'code': self.code,
            'message': self.message,
            'location': self.location.to_dict(),
            'notes': [note.to_dict() for note in self.notes],
            'suggestions': [suggestion.to_dict() for suggestion in self.suggestions],
        }
