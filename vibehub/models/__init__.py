# 테이블 메타데이터 등록 (alembic env / 테스트 create_all 용)
from vibehub.models.base import Base
from vibehub.models.meetup import Meetup, MeetupStatus, MeetupType, VenueApprovalStatus
from vibehub.models.member import MeetupMember
from vibehub.models.ticket import Ticket, TicketStatus
from vibehub.models.user import User
from vibehub.models.venue import Venue

__all__ = [
    "Base",
    "Meetup",
    "MeetupMember",
    "MeetupStatus",
    "MeetupType",
    "Ticket",
    "TicketStatus",
    "User",
    "Venue",
    "VenueApprovalStatus",
]
