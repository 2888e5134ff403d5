# Meetup status state machine: allowed transitions only.
# PENDING_APPROVAL -> UPCOMING (venue approves), REJECTED (venue rejects), PENDING_APPROVAL (re-request)
# REJECTED -> PENDING_APPROVAL (creator changes price/venue), UPCOMING (creator drops the venue)
# UPCOMING -> ONGOING, COMPLETED, CANCELLED, PENDING_APPROVAL (price/venue change)
# ONGOING -> COMPLETED, CANCELLED, PENDING_APPROVAL (price/venue change)
# COMPLETED -> (none)
# CANCELLED -> (none)

from typing import Optional

# Allowed target statuses from each current status.
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "PENDING_APPROVAL": {"UPCOMING", "REJECTED", "PENDING_APPROVAL"},
    "REJECTED": {"PENDING_APPROVAL", "UPCOMING"},
    "UPCOMING": {"ONGOING", "COMPLETED", "CANCELLED", "PENDING_APPROVAL"},
    "ONGOING": {"COMPLETED", "CANCELLED", "PENDING_APPROVAL"},
    "COMPLETED": set(),
    "CANCELLED": set(),
}

# Join refusals: same error kind, different user-facing text.
JOIN_BLOCKED_MESSAGES: dict[str, str] = {
    "PENDING_APPROVAL": "This activity is pending venue approval",
    "REJECTED": "This activity was rejected by the venue",
    "COMPLETED": "This activity is no longer joinable",
    "CANCELLED": "This activity is no longer joinable",
}


def check_status_transition(current: str, target: str) -> Optional[str]:
    """
    Validate status transition. Returns None if allowed, else a clear error message for HTTP 409.
    """
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if target not in allowed:
        allowed_str = ", ".join(sorted(allowed)) if allowed else "none"
        return (
            f"Transition from {current} to {target} is not allowed. "
            f"From {current} only allowed: {allowed_str}."
        )
    return None


def join_block_reason(status: str) -> Optional[str]:
    """None if members may join a meetup in this status."""
    return JOIN_BLOCKED_MESSAGES.get(status)
