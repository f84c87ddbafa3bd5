"""
rmscheck.lints - Lint rules

Each lint is a small class deriving from rmscheck.checker.Lint.
"""

from typing import List, Optional

from rmscheck.checker import Lint
from rmscheck.lints.actor_areas_match import ActorAreasMatchLint
from rmscheck.lints.arg_types import ArgTypesLint
from rmscheck.lints.attribute_case import AttributeCaseLint
from rmscheck.lints.comment_contents import CommentContentsLint
from rmscheck.lints.compatibility import CompatibilityLint
from rmscheck.lints.dead_branch_comment import DeadBranchCommentLint
from rmscheck.lints.include import IncludeLint
from rmscheck.lints.incorrect_section import IncorrectSectionLint
from rmscheck.lints.unknown_attribute import UnknownAttributeLint

ALL_LINTS = {
    lint.name: lint
    for lint in (
        ArgTypesLint,
        AttributeCaseLint,
        CommentContentsLint,
        CompatibilityLint,
        DeadBranchCommentLint,
        IncludeLint,
        IncorrectSectionLint,
        ActorAreasMatchLint,
        UnknownAttributeLint,
    )
}

# Lints that run when nothing else is configured, in this order.
DEFAULT_LINTS = [
    "arg-types",
    "attribute-case",
    "comment-contents",
    "compatibility",
    "dead-comment",
    "include",
    "incorrect-section",
    "actor-areas-match",
]


def get_lint(name: str) -> Lint:
    """Create a fresh instance of the lint called `name`."""
    try:
        lint_class = ALL_LINTS[name]
    except KeyError:
        raise ValueError(f"Unknown lint: {name}") from None
    return lint_class()


def create_lints(names: Optional[List[str]] = None) -> List[Lint]:
    """Create lint instances; lints keep per-run state, so every run needs new ones."""
    if names is None:
        names = DEFAULT_LINTS
    return [get_lint(name) for name in names]


__all__ = [
    "ALL_LINTS",
    "DEFAULT_LINTS",
    "get_lint",
    "create_lints",
    "ActorAreasMatchLint",
    "ArgTypesLint",
    "AttributeCaseLint",
    "CommentContentsLint",
    "CompatibilityLint",
    "DeadBranchCommentLint",
    "IncludeLint",
    "IncorrectSectionLint",
    "UnknownAttributeLint",
]
