# Venue 모델: 등록된 장소. id 는 장소 계정 id 와 동일 (승인 권한 판정 기준)

from sqlalchemy import Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from vibehub.models.base import Base, new_id


class Venue(Base):
    __tablename__ = "venues"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    address = Column(String(300), nullable=True)
    city = Column(String(100), nullable=True)
    image = Column(String(500), nullable=True)
    rating = Column(Float, nullable=True)
    review_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
