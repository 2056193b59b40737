"""Access-control domain models"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Optional
from uuid import UUID

from .capabilities import Capability, resolve_capabilities, is_manager


@dataclass(frozen=True)
class Principal:
    """A user as seen by the access filter and the lifecycle manager.

    Built from the identity record once per request; ``capabilities`` is
    resolved at construction time and never recomputed.
    """
    id: UUID
    full_name: str = ""
    role: str = "user"
    security_clearance: Optional[str] = None
    is_department_manager: bool = False
    can_manage_department_tasks: bool = False
    capabilities: FrozenSet[Capability] = field(init=False)

    def __post_init__(self):
        object.__setattr__(
            self,
            "capabilities",
            resolve_capabilities(
                self.role,
                self.is_department_manager,
                self.can_manage_department_tasks,
            ),
        )

    @property
    def is_manager(self) -> bool:
        return is_manager(self.capabilities)

    @classmethod
    def from_user(cls, user) -> "Principal":
        """Create from a ``models.User`` row (or any object with its fields)."""
        return cls(
            id=user.id,
            full_name=user.full_name or "",
            role=user.role or "user",
            security_clearance=user.security_clearance,
            is_department_manager=bool(user.site_department_manager),
            can_manage_department_tasks=bool(user.can_manage_dept_tasks),
        )


@dataclass
class TaskRef:
    """Task/correspondence fields needed for visibility decisions."""
    id: UUID
    title: str
    confidentiality_level: Optional[str] = None
    department_id: Optional[UUID] = None
    assigned_to: Optional[UUID] = None
    status: str = "pending"
    priority: str = "medium"
    created_at: Optional[datetime] = None
