"""
Tests for the status state machine and join refusals.
"""

import pytest

from vibehub.services.meetup_status import check_status_transition, join_block_reason


@pytest.mark.parametrize(
    "current,target",
    [
        ("PENDING_APPROVAL", "UPCOMING"),
        ("PENDING_APPROVAL", "REJECTED"),
        ("REJECTED", "PENDING_APPROVAL"),
        ("UPCOMING", "PENDING_APPROVAL"),
        ("UPCOMING", "ONGOING"),
        ("ONGOING", "COMPLETED"),
    ],
)
def test_allowed_transitions(current, target):
    assert check_status_transition(current, target) is None


@pytest.mark.parametrize(
    "current,target",
    [
        ("REJECTED", "REJECTED"),
        ("COMPLETED", "UPCOMING"),
        ("CANCELLED", "PENDING_APPROVAL"),
        ("UPCOMING", "REJECTED"),
    ],
)
def test_disallowed_transitions_explain_allowed_targets(current, target):
    message = check_status_transition(current, target)
    assert message is not None
    assert current in message and target in message


def test_join_block_reasons():
    assert join_block_reason("UPCOMING") is None
    assert join_block_reason("ONGOING") is None
    assert join_block_reason("PENDING_APPROVAL") == "This activity is pending venue approval"
    assert join_block_reason("REJECTED") == "This activity was rejected by the venue"
    assert join_block_reason("CANCELLED") == "This activity is no longer joinable"
