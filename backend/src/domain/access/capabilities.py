"""Principal capabilities.

The identity record exposes three unrelated flags (``role == "admin"``,
``site_department_manager``, ``can_manage_dept_tasks``). They are folded
into one capability set per principal so that every access decision reads
the same thing.
"""

from enum import Enum
from typing import FrozenSet


class Capability(str, Enum):
    """Capabilities that override ownership/assignment checks."""
    ADMIN = "admin"
    MANAGE_DOCUMENTS = "manage_documents"
    MANAGE_TASKS = "manage_tasks"


# Capabilities that make a principal a department manager for lifecycle checks
MANAGER_CAPABILITIES: FrozenSet[Capability] = frozenset({
    Capability.MANAGE_DOCUMENTS,
    Capability.MANAGE_TASKS,
})


def resolve_capabilities(
    role: str | None,
    site_department_manager: bool = False,
    can_manage_dept_tasks: bool = False,
) -> FrozenSet[Capability]:
    """Build the capability set from identity flags.

    Example:
        >>> sorted(c.value for c in resolve_capabilities("admin"))
        ['admin']
        >>> sorted(c.value for c in resolve_capabilities("user", True, True))
        ['manage_documents', 'manage_tasks']
    """
    capabilities = set()
    if (role or "").lower() == "admin":
        capabilities.add(Capability.ADMIN)
    if site_department_manager:
        capabilities.add(Capability.MANAGE_DOCUMENTS)
    if can_manage_dept_tasks:
        capabilities.add(Capability.MANAGE_TASKS)
    return frozenset(capabilities)


def is_manager(capabilities: FrozenSet[Capability]) -> bool:
    """True when the principal manages documents or tasks in a department.

    Admin alone does not make a principal a manager; it only grants the
    read override in the access filter.
    """
    return bool(capabilities & MANAGER_CAPABILITIES)


def has_override(capabilities: FrozenSet[Capability]) -> bool:
    """True when any capability bypasses ownership/assignment for reads."""
    return bool(capabilities)
