"""Apply suggested replacements to source text."""

import logging
from typing import Iterable, List, Optional, Tuple

from rmscheck.diagnostic import ReplacementKind, Suggestion, Warning

logger = logging.getLogger(__name__)


def fixable_suggestions(warnings: Iterable[Warning], unsafe: bool = False,
                        file_id: Optional[int] = None) -> List[Suggestion]:
    """Suggestions that carry a replacement we are allowed to apply."""
    allowed = {ReplacementKind.SAFE}
    if unsafe:
        allowed.add(ReplacementKind.UNSAFE)

    suggestions = []
    for warning in warnings:
        for suggestion in warning.suggestions:
            if suggestion.replacement.kind not in allowed:
                continue
            if file_id is not None and suggestion.location.file_id != file_id:
                continue
            suggestions.append(suggestion)
    return suggestions


def apply_fixes(source: str, warnings: Iterable[Warning], unsafe: bool = False,
                file_id: Optional[int] = None) -> Tuple[str, List[Suggestion]]:
    """
    Splice replacements into `source`.

    Only safe replacements are applied unless `unsafe` is set. A
    replacement that overlaps one applied earlier (by position) is
    skipped. Returns the new text and the suggestions that were applied.
    """
    suggestions = sorted(
        fixable_suggestions(warnings, unsafe=unsafe, file_id=file_id),
        key=lambda suggestion: (suggestion.start, suggestion.end),
    )

    applied: List[Suggestion] = []
    last_end = -1
    for suggestion in suggestions:
        if suggestion.start < last_end:
            logger.debug(f"Skipping overlapping fix at {suggestion.start}..{suggestion.end}")
            continue
        applied.append(suggestion)
        last_end = suggestion.end

    parts = []
    position = 0
    for suggestion in applied:
        parts.append(source[position:suggestion.start])
        parts.append(suggestion.replacement.text)
        position = suggestion.end
    parts.append(source[position:])
    return "".join(parts), applied
