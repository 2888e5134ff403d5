import sqlite3
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from vibehub.core.config import DATABASE_URL

# SQLAlchemy 엔진 생성
# - pool_pre_ping: 끊어진 커넥션 자동 교체
engine: Engine = create_engine(DATABASE_URL, echo=False, future=True, pool_pre_ping=True)

# 세션 팩토리. commit 은 항상 라우터(트랜잭션 소유자)가 수행
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI 의존성 주입용 DB 세션.

    @router.get("/meetups")
    def list_meetups(db: Session = Depends(get_db)):
        ...
    """
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@event.listens_for(Engine, "connect")
def enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite 는 연결마다 FK 강제를 켜야 ON DELETE CASCADE 가 동작 (테스트/로컬용)."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
