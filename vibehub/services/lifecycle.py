"""
Meetup lifecycle and venue-approval engine.

All functions here only flush. The router owns the transaction: it commits,
then publishes the returned notification events. A domain error raised here
means nothing has been written.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from vibehub.core.clock import as_utc
from vibehub.core.errors import InvalidState, NotFound, Unauthorized, ValidationError
from vibehub.core.logging import get_logger
from vibehub.crud import meetup_crud
from vibehub.models.meetup import Meetup, MeetupStatus, VenueApprovalStatus
from vibehub.models.venue import Venue
from vibehub.realtime.notifications import NotificationEvent
from vibehub.schemas.meetup import MeetupCreate, MeetupUpdate
from vibehub.services.meetup_status import check_status_transition

logger = get_logger(__name__)

APPROVAL_ACTIONS = ("approve", "reject")

# 명시적 null 을 허용하지 않는 필드
NON_NULLABLE_FIELDS = ("title", "start_time", "tags", "is_public", "is_free", "is_blind_meet", "type")


@dataclass
class LifecycleResult:
    meetup: Meetup
    events: List[NotificationEvent] = field(default_factory=list)


def _approval_requested(meetup: Meetup) -> NotificationEvent:
    return NotificationEvent(
        recipient_id=meetup.venue_id,
        event_type="venue_approval_requested",
        payload={
            "meetupId": meetup.id,
            "title": meetup.title,
            "creatorId": meetup.creator_id,
            "pricePerPerson": meetup.price_per_person,
        },
    )


def _ensure_venue_exists(db: Session, venue_id: str) -> None:
    if db.execute(select(Venue.id).where(Venue.id == venue_id)).first() is None:
        raise ValidationError(f"Unknown venue: {venue_id}")


def _check_time_window(start_time, end_time) -> None:
    if end_time is not None and as_utc(end_time) < as_utc(start_time):
        raise ValidationError("endTime must not be before startTime")


def _transition(meetup: Meetup, target: MeetupStatus) -> None:
    error = check_status_transition(meetup.status, target.value)
    if error is not None:
        raise InvalidState(error)
    meetup.status = target.value


def get_meetup_or_404(db: Session, meetup_id: str) -> Meetup:
    meetup = meetup_crud.get_meetup(db, meetup_id)
    if meetup is None:
        raise NotFound("Meetup not found")
    return meetup


def create_meetup(db: Session, data: MeetupCreate, creator_id: str) -> LifecycleResult:
    """장소가 있으면 PENDING_APPROVAL/pending 으로, 없으면 UPCOMING 으로 생성."""
    if not meetup_crud.user_exists(db, creator_id):
        raise NotFound("User not found")
    _check_time_window(data.start_time, data.end_time)
    if data.venue_id:
        _ensure_venue_exists(db, data.venue_id)

    with_venue = bool(data.venue_id)
    meetup = Meetup(
        title=data.title,
        description=data.description,
        image=data.image,
        start_time=data.start_time,
        end_time=data.end_time,
        max_attendees=data.max_attendees,
        category=data.category,
        tags=list(data.tags),
        location=data.location,
        latitude=data.latitude,
        longitude=data.longitude,
        creator_id=creator_id,
        venue_id=data.venue_id or None,
        is_public=data.is_public,
        is_free=data.is_free,
        price_per_person=data.price_per_person,
        is_blind_meet=data.is_blind_meet,
        type=data.type,
        status=(MeetupStatus.PENDING_APPROVAL if with_venue else MeetupStatus.UPCOMING).value,
        venue_approval_status=VenueApprovalStatus.PENDING.value if with_venue else None,
        member_count=0,
    )
    db.add(meetup)
    db.flush()

    logger.info(
        "meetup_created",
        meetup_id=meetup.id,
        creator_id=creator_id,
        venue_id=meetup.venue_id,
        status=meetup.status,
    )
    events = [_approval_requested(meetup)] if with_venue else []
    return LifecycleResult(meetup=get_meetup_or_404(db, meetup.id), events=events)


def approve_or_reject(
    db: Session,
    meetup_id: str,
    actor_id: str,
    action: str,
    approved_price: Optional[float] = None,
    rejection_reason: Optional[str] = None,
) -> LifecycleResult:
    """
    장소 승인/거절.

    검사 순서: action 유효성 → 존재 → 요청 대상 장소 본인 → 현재 PENDING_APPROVAL.
    행 잠금 후 상태를 확인하므로 동시 이중 승인은 두 번째 요청이 InvalidState.
    """
    if action not in APPROVAL_ACTIONS:
        raise ValidationError('Invalid action. Must be "approve" or "reject"')

    meetup = meetup_crud.get_meetup_for_update(db, meetup_id)
    if meetup is None:
        raise NotFound("Meetup not found")
    if meetup.venue_id is None or meetup.venue_id != actor_id:
        raise Unauthorized("Only the requested venue can approve or reject this activity")
    if meetup.status != MeetupStatus.PENDING_APPROVAL.value:
        raise InvalidState("Meetup is not pending approval")

    if action == "approve":
        final_price = approved_price if approved_price is not None else meetup.price_per_person
        _transition(meetup, MeetupStatus.UPCOMING)
        meetup.venue_approval_status = VenueApprovalStatus.APPROVED.value
        meetup.venue_approved_price = final_price
        meetup.price_per_person = final_price
        meetup.venue_rejection_reason = None
        event = NotificationEvent(
            recipient_id=meetup.creator_id,
            event_type="meetup_approved",
            payload={"meetupId": meetup.id, "title": meetup.title, "approvedPrice": final_price},
        )
    else:
        _transition(meetup, MeetupStatus.REJECTED)
        meetup.venue_approval_status = VenueApprovalStatus.REJECTED.value
        meetup.venue_rejection_reason = rejection_reason or None
        event = NotificationEvent(
            recipient_id=meetup.creator_id,
            event_type="meetup_rejected",
            payload={"meetupId": meetup.id, "title": meetup.title, "reason": meetup.venue_rejection_reason},
        )

    db.flush()
    logger.info("venue_approval_decided", meetup_id=meetup_id, venue_id=actor_id, action=action)
    return LifecycleResult(meetup=get_meetup_or_404(db, meetup_id), events=[event])


def _apply_venue_reapproval(meetup: Meetup, price_changed: bool, venue_changed: bool) -> bool:
    """
    가격/장소 변경에 따른 승인 재요청 단계. 패치 적용 후 호출.
    반환: 장소에 새 승인 요청을 보내야 하면 True.
    """
    if meetup.venue_id is None:
        # 장소 경로 이탈: 승인 하위 상태 정리 (PENDING/REJECTED 로 남지 않게)
        if meetup.status in (MeetupStatus.PENDING_APPROVAL.value, MeetupStatus.REJECTED.value):
            _transition(meetup, MeetupStatus.UPCOMING)
        meetup.venue_approval_status = None
        meetup.venue_approved_price = None
        meetup.venue_rejection_reason = None
        return False

    if not (price_changed or venue_changed):
        return False

    _transition(meetup, MeetupStatus.PENDING_APPROVAL)
    meetup.venue_approval_status = VenueApprovalStatus.PENDING.value
    meetup.venue_approved_price = None
    meetup.venue_rejection_reason = None
    return True


def update_meetup(db: Session, meetup_id: str, actor_id: str, patch: MeetupUpdate) -> LifecycleResult:
    """생성자만 수정 가능. 보낸 필드만 반영하고, 가격/장소가 바뀌면 승인 재요청."""
    meetup = meetup_crud.get_meetup_for_update(db, meetup_id)
    if meetup is None:
        raise NotFound("Meetup not found")
    if meetup.creator_id != actor_id:
        raise Unauthorized("Only the creator can update this meetup")

    changes: Dict[str, Any] = patch.model_dump(exclude_unset=True)
    for name in NON_NULLABLE_FIELDS:
        if name in changes and changes[name] is None:
            raise ValidationError(f"{name} cannot be null")

    price_changed = "price_per_person" in changes and changes["price_per_person"] != meetup.price_per_person
    venue_changed = "venue_id" in changes and (changes["venue_id"] or None) != meetup.venue_id
    if venue_changed and changes["venue_id"]:
        _ensure_venue_exists(db, changes["venue_id"])

    _check_time_window(
        changes.get("start_time", meetup.start_time),
        changes.get("end_time", meetup.end_time),
    )
    if changes.get("max_attendees") is not None and changes["max_attendees"] < meetup.member_count:
        raise ValidationError(
            f"maxAttendees cannot be lower than the current member count ({meetup.member_count})"
        )

    for name, value in changes.items():
        if name == "venue_id":
            value = value or None
        setattr(meetup, name, value)

    reapproval = _apply_venue_reapproval(meetup, price_changed, venue_changed)
    db.flush()

    logger.info(
        "meetup_updated",
        meetup_id=meetup_id,
        fields=sorted(changes),
        price_changed=price_changed,
        venue_changed=venue_changed,
        status=meetup.status,
    )
    events = [_approval_requested(meetup)] if reapproval else []
    return LifecycleResult(meetup=get_meetup_or_404(db, meetup_id), events=events)


def delete_meetup(db: Session, meetup_id: str, actor_id: str) -> None:
    """생성자만 삭제. 멤버/티켓은 함께 삭제 (hard delete)."""
    meetup = meetup_crud.get_meetup_for_update(db, meetup_id)
    if meetup is None:
        raise NotFound("Meetup not found")
    if meetup.creator_id != actor_id:
        raise Unauthorized("Only the creator can delete this meetup")

    db.delete(meetup)
    db.flush()
    logger.info("meetup_deleted", meetup_id=meetup_id, creator_id=actor_id)


def list_pending_for_venue(db: Session, venue_id: str) -> List[Meetup]:
    return meetup_crud.list_pending_for_venue(db, venue_id)
