# 티켓 발급/만료/체크인. 발급은 멤버십 엔진의 최초 참여 경로에서만 호출

from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from vibehub.core.clock import as_utc, utcnow
from vibehub.core.config import TICKET_DEFAULT_VALIDITY_DAYS, TICKET_GRACE_HOURS
from vibehub.core.errors import InvalidState, NotFound, Unauthorized
from vibehub.core.logging import get_logger
from vibehub.models.meetup import Meetup
from vibehub.models.member import MeetupMember
from vibehub.models.ticket import Ticket, TicketStatus
from vibehub.services.qr import QrEncoder, generate_ticket_number, get_qr_encoder

logger = get_logger(__name__)

TICKET_NUMBER_ATTEMPTS = 5


def compute_expiry(meetup: Meetup, now: datetime) -> datetime:
    """종료 시각이 있으면 end_time + 24h, 없으면 발급 시각 + 30일."""
    if meetup.end_time is not None:
        return as_utc(meetup.end_time) + timedelta(hours=TICKET_GRACE_HOURS)
    return as_utc(now) + timedelta(days=TICKET_DEFAULT_VALIDITY_DAYS)


def ticket_price(meetup: Meetup) -> float:
    if meetup.venue_approved_price is not None:
        return meetup.venue_approved_price
    if meetup.price_per_person is not None:
        return meetup.price_per_person
    return 0.0


def _unique_ticket_number(db: Session, now: datetime) -> str:
    for _ in range(TICKET_NUMBER_ATTEMPTS):
        number = generate_ticket_number(now)
        taken = db.execute(select(Ticket.id).where(Ticket.ticket_number == number)).first()
        if taken is None:
            return number
    raise RuntimeError("Could not allocate a unique ticket number")


def issue_ticket(
    db: Session,
    meetup: Meetup,
    member: MeetupMember,
    now: Optional[datetime] = None,
    encoder: Optional[QrEncoder] = None,
) -> Optional[Ticket]:
    """
    현장 모임이면 티켓 생성, 순수 온라인 모임이면 None.

    ⚠️ commit 하지 않음. 호출자(라우터)가 트랜잭션 제어.
    """
    if not meetup.has_physical_location:
        return None

    now = now or utcnow()
    encoder = encoder or get_qr_encoder()
    ticket = Ticket(
        ticket_number=_unique_ticket_number(db, now),
        qr_code=encoder.encode(member.id, meetup.id, member.user_id),
        meetup_id=meetup.id,
        user_id=member.user_id,
        member_id=member.id,
        price=ticket_price(meetup),
        expires_at=compute_expiry(meetup, now),
        status=TicketStatus.ACTIVE.value,
    )
    db.add(ticket)
    db.flush()
    logger.info(
        "ticket_issued",
        ticket_id=ticket.id,
        ticket_number=ticket.ticket_number,
        meetup_id=meetup.id,
        user_id=member.user_id,
        price=ticket.price,
    )
    return ticket


def expire_if_due(ticket: Ticket, now: Optional[datetime] = None) -> bool:
    """ACTIVE 인데 만료 시각이 지났으면 EXPIRED 로 전이. 전이했으면 True."""
    now = as_utc(now) if now is not None else utcnow()
    if ticket.status == TicketStatus.ACTIVE.value and now > as_utc(ticket.expires_at):
        ticket.status = TicketStatus.EXPIRED.value
        return True
    return False


def list_user_tickets(db: Session, user_id: str, now: Optional[datetime] = None) -> List[Ticket]:
    tickets = list(
        db.execute(
            select(Ticket).where(Ticket.user_id == user_id).order_by(Ticket.created_at.desc())
        ).scalars()
    )
    for ticket in tickets:
        expire_if_due(ticket, now)
    return tickets


def _resolve_ticket(db: Session, payload: str, encoder: Optional[QrEncoder]) -> Ticket:
    encoder = encoder or get_qr_encoder()
    ref = encoder.decode(payload)
    ticket = db.execute(select(Ticket).where(Ticket.qr_code == payload)).scalar_one_or_none()
    if ticket is None or ticket.meetup_id != ref.meetup_id or ticket.user_id != ref.user_id:
        raise NotFound("Ticket not found")
    return ticket


def _check_scanner(ticket: Ticket, scanner_id: str) -> None:
    meetup = ticket.meetup
    if scanner_id not in (meetup.creator_id, meetup.venue_id):
        raise Unauthorized("Unauthorized to check in this ticket")


def validate_ticket(
    db: Session,
    payload: str,
    scanner_id: str,
    now: Optional[datetime] = None,
    encoder: Optional[QrEncoder] = None,
) -> Ticket:
    """체크인 없이 티켓 조회 (미리보기). 만료는 조회 시점에 반영."""
    ticket = _resolve_ticket(db, payload, encoder)
    _check_scanner(ticket, scanner_id)
    expire_if_due(ticket, now)
    return ticket


def check_in_ticket(
    db: Session,
    payload: str,
    scanner_id: str,
    now: Optional[datetime] = None,
    encoder: Optional[QrEncoder] = None,
) -> Ticket:
    """QR 스캔 체크인: ACTIVE → USED. 거절되면 만료 전이도 rollback 되지만 다음 조회에서 다시 계산됨."""
    now = as_utc(now) if now is not None else utcnow()
    ticket = _resolve_ticket(db, payload, encoder)

    if ticket.status == TicketStatus.USED.value:
        raise InvalidState("Ticket already used")
    if ticket.status == TicketStatus.EXPIRED.value or expire_if_due(ticket, now):
        raise InvalidState("Ticket expired")
    if ticket.status == TicketStatus.CANCELLED.value:
        raise InvalidState("Ticket cancelled")

    _check_scanner(ticket, scanner_id)

    ticket.status = TicketStatus.USED.value
    ticket.used_at = now
    db.flush()
    logger.info("ticket_checked_in", ticket_id=ticket.id, meetup_id=ticket.meetup_id, scanner_id=scanner_id)
    return ticket
