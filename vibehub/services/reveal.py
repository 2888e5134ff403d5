# 블라인드 모임 공개 시점 판정. 모든 엔드포인트가 이 함수 하나만 사용해야 함

from datetime import datetime, timedelta
from typing import Optional

from vibehub.core.clock import as_utc, utcnow
from vibehub.core.config import BLIND_REVEAL_HOURS

REVEAL_WINDOW = timedelta(hours=BLIND_REVEAL_HOURS)
SECRET_LOCATION = "Secret Location"
MYSTERY_HOST = "Mystery Host"


def reveal_at(start_time: datetime) -> datetime:
    return as_utc(start_time) - REVEAL_WINDOW


def should_reveal(meetup, now: Optional[datetime] = None) -> bool:
    """블라인드가 아니면 항상 True. 블라인드면 now >= start_time - 2h 부터 True."""
    if not meetup.is_blind_meet:
        return True
    now = as_utc(now) if now is not None else utcnow()
    return now >= reveal_at(meetup.start_time)
