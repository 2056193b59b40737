"""Checkout lock state machine.

States per document:
    UNLOCKED --check_out--> LOCKED(holder)
    LOCKED(holder) --check_out by holder--> LOCKED(holder)   (notes refreshed)
    LOCKED(holder) --check_in by holder--> UNLOCKED           (version bumped)
    LOCKED(holder) --cancel by holder or manager--> UNLOCKED  (no version change)
"""

from enum import Enum
from typing import Dict, List, Optional
from uuid import UUID

from .errors import ErrorCode, LifecycleError
from .models import Lock


class LockState(str, Enum):
    """Lock state of a document"""
    UNLOCKED = "UNLOCKED"
    LOCKED = "LOCKED"


class LockAction(str, Enum):
    """Lock transitions"""
    CHECK_OUT = "CHECK_OUT"
    CHECK_IN = "CHECK_IN"
    CANCEL = "CANCEL"


# Actions accepted in each state (before holder/manager checks)
ALLOWED_ACTIONS: Dict[LockState, List[LockAction]] = {
    LockState.UNLOCKED: [LockAction.CHECK_OUT],
    LockState.LOCKED: [LockAction.CHECK_OUT, LockAction.CHECK_IN, LockAction.CANCEL],
}

# Resulting state after an accepted action
TRANSITION_TARGETS: Dict[LockAction, LockState] = {
    LockAction.CHECK_OUT: LockState.LOCKED,
    LockAction.CHECK_IN: LockState.UNLOCKED,
    LockAction.CANCEL: LockState.UNLOCKED,
}


def state_of(lock: Optional[Lock]) -> LockState:
    return LockState.LOCKED if lock is not None else LockState.UNLOCKED


def can_transition(from_state: LockState, action: LockAction) -> bool:
    """Check whether ``action`` is accepted in ``from_state``

    Example:
        >>> can_transition(LockState.UNLOCKED, LockAction.CHECK_IN)
        False
    """
    return action in ALLOWED_ACTIONS.get(from_state, [])


def evaluate(
    lock: Optional[Lock],
    action: LockAction,
    user_id: UUID,
    is_manager: bool = False,
) -> Optional[LifecycleError]:
    """Decide whether ``user_id`` may apply ``action`` to a document.

    Args:
        lock: Current lock (None when unlocked)
        action: Requested transition
        user_id: Acting principal
        is_manager: Whether the actor may force-cancel another holder's lock

    Returns:
        None if the transition is allowed, otherwise the rejection
    """
    holder_is_user = lock is not None and str(lock.holder_id) == str(user_id)

    if not can_transition(state_of(lock), action):
        return LifecycleError(ErrorCode.NOT_LOCKED, "File is not checked out")

    if action == LockAction.CHECK_OUT:
        if lock is not None and not holder_is_user:
            return LifecycleError(
                ErrorCode.ALREADY_LOCKED_BY_OTHER,
                "File is already checked out by another user"
            )
        return None

    if action == LockAction.CHECK_IN:
        if not holder_is_user:
            return LifecycleError(
                ErrorCode.NOT_HOLDER,
                "You do not have permission to check in this file"
            )
        return None

    if not holder_is_user and not is_manager:
        return LifecycleError(
            ErrorCode.FORBIDDEN,
            "You do not have permission to cancel this checkout"
        )
    return None
