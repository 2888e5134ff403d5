# MeetupMember 모델: 사용자-모임 참여 관계

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from vibehub.models.base import Base, new_id


class MeetupMember(Base):
    """(meetup_id, user_id) 당 최대 1행. 재참여는 status 만 갱신."""

    __tablename__ = "meetup_members"

    id = Column(String(36), primary_key=True, default=new_id)
    meetup_id = Column(String(36), ForeignKey("meetups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="going")
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    meetup = relationship("Meetup", back_populates="members")
    user = relationship("User", lazy="joined")

    __table_args__ = (UniqueConstraint("meetup_id", "user_id", name="uq_meetup_member_user"),)
