# Redis Pub/Sub 알림 발행: 라이프사이클 전이 commit 후 라우터에서 호출
# 발행 실패는 로그만 남기고 삼킴 (이미 성공한 전이는 되돌리지 않음)

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable

import redis.asyncio as redis

from vibehub.core.config import REDIS_URL
from vibehub.core.logging import get_logger

logger = get_logger(__name__)

CHANNEL_PREFIX = "user:"
CHANNEL_SUFFIX = ":notifications"

# 모듈 단일 클라이언트 재사용 (연결은 첫 명령 시점에 맺어짐)
redis_client = redis.from_url(REDIS_URL, decode_responses=True)


@dataclass(frozen=True)
class NotificationEvent:
    recipient_id: str
    event_type: str
    payload: Dict[str, Any] = field(default_factory=dict)


def _channel(user_id: str) -> str:
    return f"{CHANNEL_PREFIX}{user_id}{CHANNEL_SUFFIX}"


async def publish_notification(event: NotificationEvent) -> bool:
    """발행 성공 여부 반환. 예외는 밖으로 나가지 않음."""
    message = {
        "type": event.event_type,
        "recipientId": event.recipient_id,
        "payload": event.payload,
        "ts": datetime.now(timezone.utc).isoformat(),
    }
    try:
        await redis_client.publish(_channel(event.recipient_id), json.dumps(message, ensure_ascii=False, default=str))
    except Exception as e:
        logger.warning(
            "notification_publish_failed",
            event_type=event.event_type,
            recipient_id=event.recipient_id,
            error=str(e),
        )
        return False
    logger.debug("notification_published", event_type=event.event_type, recipient_id=event.recipient_id)
    return True


async def publish_all(events: Iterable[NotificationEvent]) -> None:
    for event in events:
        await publish_notification(event)
