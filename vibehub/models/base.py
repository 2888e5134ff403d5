import uuid

from sqlalchemy.orm import DeclarativeBase


def new_id() -> str:
    """불투명(opaque) 문자열 id. 생성 후 변경되지 않음."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """
    모든 SQLAlchemy 모델이 상속할 기본 Base 클래스

    예시:

    class Venue(Base):
        __tablename__ = "venues"
        id = Column(String(36), primary_key=True, default=new_id)
        ...
    """

    pass
