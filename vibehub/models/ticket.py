# Ticket 모델: 현장 모임 입장용 QR 티켓

from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from vibehub.models.base import Base, new_id


class TicketStatus(str, PyEnum):
    ACTIVE = "ACTIVE"
    USED = "USED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"


class Ticket(Base):
    """
    member_id 는 FK 가 아님: 모임을 떠나도(멤버 행 삭제) 티켓은 남는다.
    EXPIRED 전이는 조회 시점에 lazy 하게 적용 (백그라운드 작업 없음).
    """

    __tablename__ = "tickets"

    id = Column(String(36), primary_key=True, default=new_id)
    ticket_number = Column(String(32), nullable=False, unique=True)
    qr_code = Column(Text, nullable=False, unique=True)
    meetup_id = Column(String(36), ForeignKey("meetups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(String(36), nullable=True)
    price = Column(Float, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=TicketStatus.ACTIVE.value)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    meetup = relationship("Meetup", back_populates="tickets")
    user = relationship("User", lazy="joined")
