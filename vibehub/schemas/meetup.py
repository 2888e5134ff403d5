# 모임 API 요청/응답 스키마

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from vibehub.schemas.base import CamelModel

MeetupTypeLiteral = Literal["activity", "event"]


class MeetupCreate(CamelModel):
    """모임 생성 요청. creator 는 X-User-Id 헤더로 받음."""

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=500)
    start_time: datetime
    end_time: Optional[datetime] = None
    max_attendees: Optional[int] = Field(None, ge=1)
    category: Optional[str] = Field(None, max_length=50)
    tags: List[str] = Field(default_factory=list)
    location: Optional[str] = Field(None, max_length=300)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    venue_id: Optional[str] = None
    is_public: bool = True
    is_free: bool = True
    price_per_person: Optional[float] = Field(None, ge=0)
    is_blind_meet: bool = False
    type: MeetupTypeLiteral = "activity"


class MeetupUpdate(CamelModel):
    """부분 수정. 보내지 않은 필드는 기존 값 유지 (model_fields_set 기준)."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = Field(None, max_length=500)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    max_attendees: Optional[int] = Field(None, ge=1)
    category: Optional[str] = Field(None, max_length=50)
    tags: Optional[List[str]] = None
    location: Optional[str] = Field(None, max_length=300)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    venue_id: Optional[str] = None
    is_public: Optional[bool] = None
    is_free: Optional[bool] = None
    price_per_person: Optional[float] = Field(None, ge=0)
    is_blind_meet: Optional[bool] = None
    type: Optional[MeetupTypeLiteral] = None


class VenueApprovalBody(CamelModel):
    """action 은 서비스에서 검증 (approve | reject 외에는 ValidationError)."""

    action: str
    approved_price: Optional[float] = Field(None, ge=0)
    rejection_reason: Optional[str] = Field(None, max_length=1000)


class MeetupFilters(CamelModel):
    """목록 조회 필터. search 는 제목+설명 대소문자 무시 부분 문자열."""

    category: Optional[str] = None
    status: Optional[str] = None
    search: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius: Optional[float] = Field(None, gt=0)

    @property
    def has_point(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class CreatorSummary(CamelModel):
    id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    avatar: Optional[str] = None


class VenueSummary(CamelModel):
    id: str
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    image: Optional[str] = None
    rating: Optional[float] = None
    review_count: int = 0


class MemberOut(CamelModel):
    id: str
    meetup_id: str
    user_id: Optional[str] = None
    status: str
    joined_at: Optional[datetime] = None
    user: Optional[CreatorSummary] = None


class MeetupOut(CamelModel):
    """모든 엔드포인트 공통 모임 응답. 관계(creator/venue/members)는 항상 같은 모양."""

    id: str
    title: str
    description: Optional[str] = None
    image: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    max_attendees: Optional[int] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    creator_id: Optional[str] = None
    venue_id: Optional[str] = None
    is_public: bool = True
    is_free: bool = True
    price_per_person: Optional[float] = None
    is_blind_meet: bool = False
    type: str = "activity"
    status: str
    venue_approval_status: Optional[str] = None
    venue_approved_price: Optional[float] = None
    venue_rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    creator: Optional[CreatorSummary] = None
    venue: Optional[VenueSummary] = None
    members: List[MemberOut] = Field(default_factory=list)
    member_count: int = 0
    # 목록/주변 조회에서만 의미 있음 (기준점 대비 km)
    distance: Optional[float] = None
    is_revealed: bool = True
