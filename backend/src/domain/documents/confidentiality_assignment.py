"""Confidentiality assignment on upload and edit.

An upload may choose any level; an edit may keep or raise the current level
but never lower it. Every non-public level needs at least one assignee, and
public documents never keep assignees.
"""

from typing import Iterable, List, Optional

from domain.access.confidentiality import ConfidentialityLevel, LevelLike, LEVEL_ORDER, parse_level, levels_from

from .errors import ErrorCode, LifecycleError
from .models import AssignmentMode, ConfidentialityAssignment
from .results import OperationResult


def allowed_levels(mode: AssignmentMode, current: LevelLike = None) -> List[ConfidentialityLevel]:
    """Levels selectable in ``mode`` for a document currently at ``current``

    Example:
        >>> [l.value for l in allowed_levels(AssignmentMode.EDIT, "secret")]
        ['secret', 'top_secret']
    """
    if AssignmentMode(mode) == AssignmentMode.EDIT:
        return levels_from(current)
    return list(LEVEL_ORDER)


def _clean_assignees(assignees: Optional[Iterable]) -> List[str]:
    cleaned = []
    for assignee in assignees or ():
        value = str(assignee).strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


def assign_confidentiality(
    requested: LevelLike,
    assignees: Optional[Iterable],
    mode: AssignmentMode,
    current: LevelLike = None,
) -> OperationResult[ConfidentialityAssignment]:
    """Validate a requested confidentiality level and assignee list.

    Nothing is applied here; callers persist the returned assignment as a
    whole or not at all.

    Args:
        requested: Level the caller wants
        assignees: Principal refs granted access (ignored for public)
        mode: UPLOAD or EDIT
        current: Document's current level (required for EDIT)

    Returns:
        OperationResult with a ConfidentialityAssignment, or an
        INVALID_LEVEL / MISSING_ASSIGNEES error
    """
    level = parse_level(requested)
    allowed = allowed_levels(mode, current)

    if level is None or level not in allowed:
        if level is not None and AssignmentMode(mode) == AssignmentMode.EDIT:
            message = (
                "You can only maintain or increase the confidentiality level. "
                f"Current level: {parse_level(current).value}"
            )
        else:
            message = f"Invalid confidentiality level: {requested}"
        return OperationResult.fail(LifecycleError(ErrorCode.INVALID_LEVEL, message))

    if level == ConfidentialityLevel.PUBLIC:
        return OperationResult.ok(ConfidentialityAssignment(level=level, assignees=[]))

    cleaned = _clean_assignees(assignees)
    if not cleaned:
        return OperationResult.fail(LifecycleError(
            ErrorCode.MISSING_ASSIGNEES,
            "At least one assignee is required for non-public files"
        ))

    return OperationResult.ok(ConfidentialityAssignment(level=level, assignees=cleaned))
