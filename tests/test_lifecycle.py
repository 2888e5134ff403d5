"""
Tests for meetup creation, venue approval and re-approval on update.
"""

import pytest

from conftest import future
from vibehub.core.errors import InvalidState, NotFound, Unauthorized, ValidationError
from vibehub.models import MeetupMember, Ticket
from vibehub.schemas.meetup import MeetupCreate, MeetupUpdate
from vibehub.services import lifecycle


def _create(db, creator_id, **fields):
    data = MeetupCreate(title=fields.pop("title", "Wine tasting"), start_time=future(days=2), **fields)
    result = lifecycle.create_meetup(db, data, creator_id)
    db.commit()
    return result


def test_create_without_venue_is_upcoming(db_session, creator):
    result = _create(db_session, creator.id, location="Han river park")
    meetup = result.meetup
    assert meetup.status == "UPCOMING"
    assert meetup.venue_approval_status is None
    assert meetup.member_count == 0
    assert result.events == []


def test_create_with_venue_waits_for_approval(db_session, creator, venue):
    result = _create(db_session, creator.id, venue_id=venue.id, price_per_person=30.0)
    meetup = result.meetup
    assert meetup.status == "PENDING_APPROVAL"
    assert meetup.venue_approval_status == "pending"
    assert [e.event_type for e in result.events] == ["venue_approval_requested"]
    assert result.events[0].recipient_id == venue.id


def test_create_with_unknown_venue(db_session, creator):
    with pytest.raises(ValidationError):
        _create(db_session, creator.id, venue_id="no-such-venue")


def test_create_with_end_before_start(db_session, creator):
    data = MeetupCreate(title="Backwards", start_time=future(days=2), end_time=future(days=1))
    with pytest.raises(ValidationError):
        lifecycle.create_meetup(db_session, data, creator.id)


def test_approve_with_price_override(db_session, creator, venue):
    """Approval sets the final price and makes the meetup joinable."""
    meetup = _create(db_session, creator.id, venue_id=venue.id, price_per_person=30.0).meetup

    result = lifecycle.approve_or_reject(db_session, meetup.id, venue.id, "approve", approved_price=25.0)
    db_session.commit()

    approved = result.meetup
    assert approved.status == "UPCOMING"
    assert approved.venue_approval_status == "approved"
    assert approved.venue_approved_price == 25.0
    assert approved.price_per_person == 25.0
    assert result.events[0].event_type == "meetup_approved"
    assert result.events[0].recipient_id == creator.id


def test_approve_without_price_keeps_requested_price(db_session, creator, venue):
    meetup = _create(db_session, creator.id, venue_id=venue.id, price_per_person=30.0).meetup
    approved = lifecycle.approve_or_reject(db_session, meetup.id, venue.id, "approve").meetup
    assert approved.venue_approved_price == 30.0
    assert approved.price_per_person == 30.0


def test_reject_records_reason(db_session, creator, venue):
    meetup = _create(db_session, creator.id, venue_id=venue.id).meetup
    result = lifecycle.approve_or_reject(
        db_session, meetup.id, venue.id, "reject", rejection_reason="Fully booked that night"
    )
    assert result.meetup.status == "REJECTED"
    assert result.meetup.venue_approval_status == "rejected"
    assert result.meetup.venue_rejection_reason == "Fully booked that night"
    assert result.events[0].event_type == "meetup_rejected"


def test_only_requested_venue_can_decide(db_session, creator, venue, other_venue):
    meetup = _create(db_session, creator.id, venue_id=venue.id).meetup
    for actor in (other_venue.id, creator.id):
        with pytest.raises(Unauthorized):
            lifecycle.approve_or_reject(db_session, meetup.id, actor, "approve")
    db_session.rollback()
    assert lifecycle.get_meetup_or_404(db_session, meetup.id).status == "PENDING_APPROVAL"


def test_approve_meetup_without_venue_is_unauthorized(db_session, creator, venue):
    meetup = _create(db_session, creator.id).meetup
    with pytest.raises(Unauthorized):
        lifecycle.approve_or_reject(db_session, meetup.id, venue.id, "approve")


def test_invalid_action_checked_before_existence(db_session, venue):
    with pytest.raises(ValidationError):
        lifecycle.approve_or_reject(db_session, "missing", venue.id, "maybe")
    with pytest.raises(NotFound):
        lifecycle.approve_or_reject(db_session, "missing", venue.id, "approve")


def test_second_decision_is_invalid_state(db_session, creator, venue):
    meetup = _create(db_session, creator.id, venue_id=venue.id).meetup
    lifecycle.approve_or_reject(db_session, meetup.id, venue.id, "approve")
    db_session.commit()
    with pytest.raises(InvalidState):
        lifecycle.approve_or_reject(db_session, meetup.id, venue.id, "reject")


def test_price_change_requests_approval_again(db_session, creator, venue):
    meetup = _create(db_session, creator.id, venue_id=venue.id, price_per_person=30.0).meetup
    lifecycle.approve_or_reject(db_session, meetup.id, venue.id, "approve")
    db_session.commit()

    result = lifecycle.update_meetup(db_session, meetup.id, creator.id, MeetupUpdate(price_per_person=40.0))
    updated = result.meetup
    assert updated.status == "PENDING_APPROVAL"
    assert updated.venue_approval_status == "pending"
    assert updated.venue_approved_price is None
    assert updated.price_per_person == 40.0
    assert [e.event_type for e in result.events] == ["venue_approval_requested"]


def test_same_price_does_not_request_approval(db_session, creator, venue):
    meetup = _create(db_session, creator.id, venue_id=venue.id, price_per_person=30.0).meetup
    lifecycle.approve_or_reject(db_session, meetup.id, venue.id, "approve")
    db_session.commit()

    result = lifecycle.update_meetup(
        db_session, meetup.id, creator.id, MeetupUpdate(price_per_person=30.0, title="Renamed")
    )
    assert result.meetup.status == "UPCOMING"
    assert result.meetup.title == "Renamed"
    assert result.events == []


def test_rejected_meetup_can_request_a_different_venue(db_session, creator, venue, other_venue):
    meetup = _create(db_session, creator.id, venue_id=venue.id, price_per_person=30.0).meetup
    lifecycle.approve_or_reject(db_session, meetup.id, venue.id, "reject", rejection_reason="No")
    db_session.commit()

    result = lifecycle.update_meetup(
        db_session,
        meetup.id,
        creator.id,
        MeetupUpdate(venue_id=other_venue.id, price_per_person=20.0),
    )
    updated = result.meetup
    assert updated.status == "PENDING_APPROVAL"
    assert updated.venue_id == other_venue.id
    assert updated.venue_rejection_reason is None
    assert result.events[0].recipient_id == other_venue.id


def test_dropping_the_venue_returns_to_upcoming(db_session, creator, venue):
    meetup = _create(db_session, creator.id, venue_id=venue.id).meetup
    updated = lifecycle.update_meetup(db_session, meetup.id, creator.id, MeetupUpdate(venue_id=None)).meetup
    assert updated.venue_id is None
    assert updated.status == "UPCOMING"
    assert updated.venue_approval_status is None


def test_price_change_without_venue_stays_upcoming(db_session, creator):
    meetup = _create(db_session, creator.id, price_per_person=10.0).meetup
    result = lifecycle.update_meetup(db_session, meetup.id, creator.id, MeetupUpdate(price_per_person=15.0))
    assert result.meetup.status == "UPCOMING"
    assert result.events == []


def test_update_only_by_creator(db_session, creator, other_user):
    meetup = _create(db_session, creator.id).meetup
    with pytest.raises(Unauthorized):
        lifecycle.update_meetup(db_session, meetup.id, other_user.id, MeetupUpdate(title="Mine now"))


def test_update_rejects_null_title(db_session, creator):
    meetup = _create(db_session, creator.id).meetup
    with pytest.raises(ValidationError):
        lifecycle.update_meetup(db_session, meetup.id, creator.id, MeetupUpdate(title=None))


def test_update_cannot_shrink_below_member_count(db_session, make_meetup, creator):
    meetup = make_meetup(max_attendees=5, member_count=3)
    with pytest.raises(ValidationError):
        lifecycle.update_meetup(db_session, meetup.id, creator.id, MeetupUpdate(max_attendees=2))


def test_delete_removes_members_and_tickets(db_session, make_meetup, creator, joiner):
    from vibehub.crud.member_crud import join_meetup

    meetup = make_meetup(location="Gangnam station exit 11")
    join_meetup(db_session, meetup.id, joiner.id)
    db_session.commit()
    assert db_session.query(Ticket).count() == 1

    lifecycle.delete_meetup(db_session, meetup.id, creator.id)
    db_session.commit()

    with pytest.raises(NotFound):
        lifecycle.get_meetup_or_404(db_session, meetup.id)
    assert db_session.query(MeetupMember).count() == 0
    assert db_session.query(Ticket).count() == 0


def test_delete_only_by_creator(db_session, make_meetup, other_user):
    meetup = make_meetup()
    with pytest.raises(Unauthorized):
        lifecycle.delete_meetup(db_session, meetup.id, other_user.id)


def test_pending_list_for_venue(db_session, creator, venue, other_venue):
    first = _create(db_session, creator.id, title="First", venue_id=venue.id).meetup
    _create(db_session, creator.id, title="Elsewhere", venue_id=other_venue.id)
    decided = _create(db_session, creator.id, title="Decided", venue_id=venue.id).meetup
    lifecycle.approve_or_reject(db_session, decided.id, venue.id, "approve")
    db_session.commit()

    pending = lifecycle.list_pending_for_venue(db_session, venue.id)
    assert [m.id for m in pending] == [first.id]
