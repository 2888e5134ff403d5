"""
QR payload encoding for tickets.

The payload is opaque to clients but self-describing for scanners: it carries
member/meetup/user references plus an HMAC so check-in needs no secondary
lookup to know who the ticket belongs to.
"""

import hashlib
import hmac
import json
import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from vibehub.core.clock import utcnow
from vibehub.core.config import QR_CODE_SECRET
from vibehub.core.errors import ValidationError


@dataclass(frozen=True)
class QrReference:
    member_id: Optional[str]
    meetup_id: str
    user_id: str


class QrEncoder(ABC):
    """교체 가능한 QR 인코딩 방식. 라이프사이클/멤버십 로직은 이 인터페이스만 앎."""

    @abstractmethod
    def encode(self, member_id: Optional[str], meetup_id: str, user_id: str) -> str:
        pass

    @abstractmethod
    def decode(self, payload: str) -> QrReference:
        """서명 검증 후 참조 반환. 위조/손상이면 ValidationError."""
        pass


class HmacQrEncoder(QrEncoder):
    """JSON + HMAC-SHA256. nonce/timestamp 로 같은 참조라도 매번 다른 payload."""

    def __init__(self, secret: Optional[str] = None):
        self._secret = (secret or QR_CODE_SECRET).encode("utf-8")

    def _sign(self, fields: dict) -> str:
        canonical = json.dumps(fields, sort_keys=True, separators=(",", ":"))
        return hmac.new(self._secret, canonical.encode("utf-8"), hashlib.sha256).hexdigest()

    def encode(self, member_id: Optional[str], meetup_id: str, user_id: str) -> str:
        fields = {
            "meetupMemberId": member_id,
            "meetupId": meetup_id,
            "userId": user_id,
            "nonce": secrets.token_hex(8),
            "timestamp": int(time.time() * 1000),
        }
        return json.dumps({**fields, "hash": self._sign(fields)}, sort_keys=True, separators=(",", ":"))

    def decode(self, payload: str) -> QrReference:
        try:
            data = json.loads(payload)
        except (TypeError, ValueError):
            raise ValidationError("Invalid QR code format")
        if not isinstance(data, dict):
            raise ValidationError("Invalid QR code format")

        received = data.pop("hash", None)
        if not isinstance(received, str) or not hmac.compare_digest(received, self._sign(data)):
            raise ValidationError("Invalid QR code")
        if not data.get("meetupId") or not data.get("userId"):
            raise ValidationError("Invalid QR code")
        return QrReference(
            member_id=data.get("meetupMemberId"),
            meetup_id=data["meetupId"],
            user_id=data["userId"],
        )


def generate_ticket_number(now: Optional[datetime] = None) -> str:
    """사람이 읽을 수 있는 티켓 번호. 예: TKT-2026-4F9A1C2B"""
    year = (now or utcnow()).year
    return f"TKT-{year}-{secrets.token_hex(4).upper()}"


_default_encoder: QrEncoder = HmacQrEncoder()


def get_qr_encoder() -> QrEncoder:
    return _default_encoder
