# Meetup 모델: 바이브/액티비티 엔티티

from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from vibehub.models.base import Base, new_id


class MeetupStatus(str, PyEnum):
    """모임 상태. PENDING_APPROVAL/REJECTED 는 장소 승인 경로에서만 진입."""

    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class VenueApprovalStatus(str, PyEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class MeetupType(str, PyEnum):
    ACTIVITY = "activity"
    EVENT = "event"


# 일반 탐색에 노출되는 상태
DISCOVERABLE_STATUSES = (MeetupStatus.UPCOMING.value, MeetupStatus.ONGOING.value)


class Meetup(Base):
    """모임 테이블. 좌표는 선택(Float 2개), 장소(venue) 연결 시 승인 하위 상태를 가짐."""

    __tablename__ = "meetups"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)  # 미디어 스토어가 돌려준 URL 그대로
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)
    max_attendees = Column(Integer, nullable=True)  # NULL = 무제한
    category = Column(String(50), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    location = Column(String(300), nullable=True)  # 자유 입력 위치 문자열
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    creator_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    venue_id = Column(String(36), ForeignKey("venues.id", ondelete="SET NULL"), nullable=True, index=True)
    is_public = Column(Boolean, nullable=False, default=True)
    is_free = Column(Boolean, nullable=False, default=True)
    price_per_person = Column(Float, nullable=True)
    is_blind_meet = Column(Boolean, nullable=False, default=False)
    type = Column(String(20), nullable=False, default=MeetupType.ACTIVITY.value)

    status = Column(String(20), nullable=False, default=MeetupStatus.UPCOMING.value)
    venue_approval_status = Column(String(20), nullable=True)
    venue_approved_price = Column(Float, nullable=True)
    venue_rejection_reason = Column(Text, nullable=True)

    # 현재 참여 인원 (비정규화). 멤버십 엔진만 갱신, 정원 검사는 조건부 UPDATE 로 원자적
    member_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    creator = relationship("User", lazy="joined")
    venue = relationship("Venue", lazy="joined")
    members = relationship(
        "MeetupMember",
        back_populates="meetup",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="MeetupMember.joined_at",
    )
    tickets = relationship(
        "Ticket",
        back_populates="meetup",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("member_count >= 0", name="check_meetup_member_count_non_negative"),
        CheckConstraint(
            "max_attendees IS NULL OR member_count <= max_attendees",
            name="check_meetup_member_count_lte_max",
        ),
        Index("ix_meetups_status_start_time", "status", "start_time"),
        Index("ix_meetups_lat_lng", "latitude", "longitude"),
    )

    @property
    def has_physical_location(self) -> bool:
        """장소, 좌표 쌍, 위치 문자열 중 하나라도 있으면 현장 모임 (티켓 발급 대상)."""
        return bool(
            self.venue_id
            or (self.latitude is not None and self.longitude is not None)
            or (self.location and self.location.strip())
        )

    def __repr__(self) -> str:
        return f"<Meetup(id={self.id}, status={self.status}, members={self.member_count}/{self.max_attendees})>"
