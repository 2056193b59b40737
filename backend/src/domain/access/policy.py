"""Confidentiality access filter.

Two independent rules live here and must not be merged:

- Files: public, owner, assignee, or capability override. The clearance
  hierarchy is NOT consulted for files.
- Tasks: strict hierarchy comparison of the task level against the
  principal's clearance.
"""

from typing import Iterable, List, TypeVar

from .capabilities import has_override
from .confidentiality import ConfidentialityLevel, DEFAULT_LEVEL, clearance_rank, resolve_clearance, parse_level
from .models import Principal

T = TypeVar("T")


def same_id(left, right) -> bool:
    """Compare ids that may arrive as UUIDs or strings"""
    return left is not None and right is not None and str(left) == str(right)


def can_access(principal: Principal, document) -> bool:
    """Decide whether ``principal`` may view/read ``document``.

    Args:
        principal: Requesting principal
        document: Object exposing ``confidentiality``, ``owner_id`` and
            ``assignees``

    Returns:
        True if the document is visible to the principal

    Example:
        >>> can_access(owner, secret_doc)
        True
    """
    if parse_level(document.confidentiality) == ConfidentialityLevel.PUBLIC:
        return True

    if same_id(document.owner_id, principal.id):
        return True

    if any(same_id(assignee, principal.id) for assignee in (document.assignees or ())):
        return True

    return has_override(principal.capabilities)


def filter_visible(principal: Principal, documents: Iterable[T]) -> List[T]:
    """Keep the documents ``principal`` can access, preserving input order."""
    return [document for document in documents if can_access(principal, document)]


def task_visible(principal: Principal, task, default_clearance: ConfidentialityLevel = DEFAULT_LEVEL) -> bool:
    """Decide whether a task/correspondence is visible to ``principal``.

    A task is visible when its level ranks at or below the principal's
    clearance. Unset task levels rank as ``internal``; unset clearances
    rank as ``default_clearance``.
    """
    principal_rank = clearance_rank(resolve_clearance(principal, default_clearance))
    task_rank = clearance_rank(getattr(task, "confidentiality_level", None))
    return task_rank <= principal_rank


def filter_visible_tasks(
    principal: Principal,
    tasks: Iterable[T],
    default_clearance: ConfidentialityLevel = DEFAULT_LEVEL,
) -> List[T]:
    """Keep the tasks ``principal`` is cleared for, preserving input order."""
    return [task for task in tasks if task_visible(principal, task, default_clearance)]
