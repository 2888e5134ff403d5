# 참여/취소 및 티켓 스키마

from datetime import datetime
from typing import Optional

from pydantic import Field

from vibehub.schemas.base import CamelModel
from vibehub.schemas.meetup import CreatorSummary, MemberOut


class JoinBody(CamelModel):
    """참여 상태. 기본 going, 재참여 시 이 값으로 갱신."""

    status: str = Field("going", min_length=1, max_length=20)


class TicketOut(CamelModel):
    """클라이언트에 노출하는 티켓 부분집합."""

    id: str
    ticket_number: str
    qr_code: str
    status: str


class JoinResponse(CamelModel):
    member: MemberOut
    ticket: Optional[TicketOut] = None
    created: bool = True


class LeaveResponse(CamelModel):
    message: str
    meetup_id: str
    member_count: int


class TicketDetailOut(TicketOut):
    meetup_id: str
    user_id: str
    price: float
    expires_at: datetime
    used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class QrScanBody(CamelModel):
    qr_code_data: str = Field(..., min_length=1)


class TicketScanResponse(CamelModel):
    ticket: TicketDetailOut
    user: Optional[CreatorSummary] = None
    message: str
