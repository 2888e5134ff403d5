# 티켓 조회/QR 검증/체크인 API
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vibehub.database import get_db
from vibehub.deps import get_actor_id, rollback_and_raise
from vibehub.schemas.meetup import CreatorSummary
from vibehub.schemas.membership import QrScanBody, TicketDetailOut, TicketScanResponse
from vibehub.services import tickets as ticket_service

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.get("", response_model=List[TicketDetailOut])
def get_my_tickets(
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> List[TicketDetailOut]:
    """내 티켓 목록 (최근 발급 먼저). 만료 시각이 지난 ACTIVE 티켓은 이 시점에 EXPIRED 로 저장."""
    try:
        tickets = ticket_service.list_user_tickets(db, actor_id)
        db.commit()
    except Exception as e:
        rollback_and_raise(db, e, "list tickets")
    return [TicketDetailOut.model_validate(t) for t in tickets]


@router.post("/validate", response_model=TicketScanResponse)
def post_validate(
    body: QrScanBody,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> TicketScanResponse:
    """체크인 없이 QR 확인 (주최자/장소 전용)."""
    try:
        ticket = ticket_service.validate_ticket(db, body.qr_code_data, actor_id)
        db.commit()
    except Exception as e:
        rollback_and_raise(db, e, "validate ticket")
    return TicketScanResponse(
        ticket=TicketDetailOut.model_validate(ticket),
        user=CreatorSummary.model_validate(ticket.user),
        message=f"Ticket is {ticket.status.lower()}",
    )


@router.post("/scan", response_model=TicketScanResponse)
def post_scan(
    body: QrScanBody,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> TicketScanResponse:
    """QR 스캔 체크인: ACTIVE → USED."""
    try:
        ticket = ticket_service.check_in_ticket(db, body.qr_code_data, actor_id)
        db.commit()
    except Exception as e:
        rollback_and_raise(db, e, "check in ticket")
    return TicketScanResponse(
        ticket=TicketDetailOut.model_validate(ticket),
        user=CreatorSummary.model_validate(ticket.user),
        message="Ticket checked in successfully",
    )
