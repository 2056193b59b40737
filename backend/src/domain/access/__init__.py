"""Access domain module - confidentiality hierarchy, capabilities, access filter"""

from .confidentiality import (
    ConfidentialityLevel,
    LEVEL_ORDER,
    DEFAULT_LEVEL,
    parse_level,
    resolve_level,
    clearance_rank,
    resolve_clearance,
    levels_from,
)
from .capabilities import Capability, MANAGER_CAPABILITIES, resolve_capabilities, is_manager, has_override
from .models import Principal, TaskRef
from .policy import can_access, filter_visible, same_id, task_visible, filter_visible_tasks

__all__ = [
    "ConfidentialityLevel",
    "LEVEL_ORDER",
    "DEFAULT_LEVEL",
    "parse_level",
    "resolve_level",
    "clearance_rank",
    "resolve_clearance",
    "levels_from",
    "Capability",
    "MANAGER_CAPABILITIES",
    "resolve_capabilities",
    "is_manager",
    "has_override",
    "Principal",
    "TaskRef",
    "can_access",
    "filter_visible",
    "same_id",
    "task_visible",
    "filter_visible_tasks",
]
