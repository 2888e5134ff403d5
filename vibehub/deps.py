# 인증 계층이 검증한 사용자 id 를 X-User-Id 헤더로 전달받음 (코어는 이를 신뢰)
from typing import NoReturn, Optional

from fastapi import Header, HTTPException
from sqlalchemy.orm import Session

from vibehub.core.errors import VibeError
from vibehub.core.logging import get_logger

logger = get_logger(__name__)


def get_actor_id(x_user_id: str = Header(..., min_length=1)) -> str:
    return x_user_id


def get_optional_viewer_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """조회용: 없으면 익명 조회. 블라인드 모임 마스킹 판정에만 사용."""
    return x_user_id or None


def rollback_and_raise(db: Session, exc: Exception, action: str) -> NoReturn:
    """rollback 후 HTTP 오류로 변환. 도메인 오류는 status_code 그대로, 그 외는 500."""
    db.rollback()
    if isinstance(exc, VibeError):
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    logger.exception("unexpected_error", action=action)
    raise HTTPException(status_code=500, detail=f"Failed to {action}")
