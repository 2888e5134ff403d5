# User 모델 (신원/인증 계층 소유, 코어는 요약 프로젝션만 읽음)

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from vibehub.models.base import Base, new_id


class User(Base):
    """사용자 테이블."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    display_name = Column(String(100), nullable=True)
    avatar = Column(String(500), nullable=True)  # 미디어 스토어 URL
    created_at = Column(DateTime(timezone=True), server_default=func.now())
