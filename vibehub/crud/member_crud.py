# 참여/취소 CRUD (행 잠금 + 조건부 UPDATE 로 정원 초과 방지, 최초 참여 시 티켓 발급)
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vibehub.core.clock import utcnow
from vibehub.core.errors import Full, InvalidState, NotFound
from vibehub.core.logging import get_logger
from vibehub.crud.meetup_crud import get_meetup_for_update, get_member, release_seat, reserve_seat, user_exists
from vibehub.models.member import MeetupMember
from vibehub.models.ticket import Ticket
from vibehub.services.meetup_status import join_block_reason
from vibehub.services.qr import QrEncoder
from vibehub.services.tickets import issue_ticket

logger = get_logger(__name__)

DEFAULT_MEMBER_STATUS = "going"


@dataclass
class JoinResult:
    member: MeetupMember
    ticket: Optional[Ticket]
    created: bool  # False = 기존 멤버 status 갱신 (멱등 재참여)


def join_meetup(
    db: Session,
    meetup_id: str,
    user_id: str,
    status: str = DEFAULT_MEMBER_STATUS,
    now: Optional[datetime] = None,
    encoder: Optional[QrEncoder] = None,
) -> JoinResult:
    """
    모임 참여.

    - FOR UPDATE 로 meetup 행 잠금 → 동시 join 직렬화.
    - 이미 멤버면 status 만 갱신 (정원 재검사/티켓 재발급 없음).
    - 정원 검사 + member_count 증가는 조건부 UPDATE 한 번 (영향 행 0 → Full).
    - 최초 참여이고 현장 모임이면 티켓 발급.

    ⚠️ 이 함수는 commit/rollback 하지 않음. 호출자(라우터)가 트랜잭션을 제어.
    """
    meetup = get_meetup_for_update(db, meetup_id)
    if meetup is None:
        raise NotFound("Meetup not found")

    blocked = join_block_reason(meetup.status)
    if blocked is not None:
        raise InvalidState(blocked)

    if not user_exists(db, user_id):
        raise NotFound("User not found")

    existing = get_member(db, meetup_id, user_id)
    if existing is not None:
        existing.status = status
        db.flush()
        logger.info("member_status_updated", meetup_id=meetup_id, user_id=user_id, status=status)
        return JoinResult(member=existing, ticket=None, created=False)

    if not reserve_seat(db, meetup_id):
        logger.warning(
            "join_rejected_full",
            meetup_id=meetup_id,
            user_id=user_id,
            max_attendees=meetup.max_attendees,
        )
        raise Full("Meetup is full")

    member = MeetupMember(meetup_id=meetup_id, user_id=user_id, status=status, joined_at=now or utcnow())
    try:
        db.add(member)
        db.flush()
    except IntegrityError:
        # 같은 사용자의 동시 join → UniqueConstraint 위반. rollback 은 호출자(라우터)에서
        raise InvalidState("Already joined this meetup")

    db.expire(meetup, ["member_count"])
    ticket = issue_ticket(db, meetup, member, now=now, encoder=encoder)

    logger.info(
        "member_joined",
        meetup_id=meetup_id,
        user_id=user_id,
        member_id=member.id,
        ticket_id=ticket.id if ticket else None,
    )
    return JoinResult(member=member, ticket=ticket, created=True)


def leave_meetup(db: Session, meetup_id: str, user_id: str) -> int:
    """
    모임 참여 취소.

    - FOR UPDATE 로 meetup 행 잠금
    - 멤버 행 삭제 후 member_count 감소
    - 이미 발급된 티켓은 그대로 둠

    반환: 갱신된 member_count

    ⚠️ 이 함수는 commit/rollback 하지 않음. 호출자(라우터)가 트랜잭션을 제어.
    """
    meetup = get_meetup_for_update(db, meetup_id)
    if meetup is None:
        raise NotFound("Meetup not found")

    member = get_member(db, meetup_id, user_id)
    if member is None:
        raise NotFound("You are not a member of this meetup")

    db.delete(member)
    db.flush()
    release_seat(db, meetup_id)
    db.expire(meetup, ["member_count"])

    logger.info("member_left", meetup_id=meetup_id, user_id=user_id)
    return meetup.member_count
