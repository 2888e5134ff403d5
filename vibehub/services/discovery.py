"""
Meetup discovery: list and nearby.

Candidates come from the store already narrowed by status, category and the
bounding box. Search matching, exact distance and ordering happen here as
plain functions so they can be tested without a database.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from vibehub.core.config import DEFAULT_NEARBY_RADIUS_KM
from vibehub.core.errors import ValidationError
from vibehub.crud import meetup_crud
from vibehub.models.meetup import DISCOVERABLE_STATUSES, Meetup, MeetupStatus
from vibehub.schemas.meetup import MeetupFilters
from vibehub.services.geo import bounding_box, distance_to


@dataclass
class RankedMeetup:
    meetup: Meetup
    distance: Optional[float] = None  # km, 좌표 없으면 None


def matches_search(title: Optional[str], description: Optional[str], search: Optional[str]) -> bool:
    """제목 또는 설명에 대소문자 무시 부분 문자열 포함 여부. 빈 검색어는 전부 통과."""
    if not search or not search.strip():
        return True
    needle = search.strip().casefold()
    return any(needle in (text or "").casefold() for text in (title, description))


def sort_by_distance(items: Sequence[RankedMeetup]) -> List[RankedMeetup]:
    """거리 오름차순. 거리 없는 항목은 값과 무관하게 맨 뒤 (안정 정렬로 기존 순서 유지)."""
    return sorted(items, key=lambda r: (r.distance is None, r.distance if r.distance is not None else 0.0))


def rank_by_distance(
    meetups: Sequence[Meetup],
    latitude: float,
    longitude: float,
    radius: Optional[float] = None,
) -> List[RankedMeetup]:
    """
    정확한 거리 부착 후 정렬. radius 가 있으면 BBox 모서리 쪽 초과 후보를 제거.
    좌표 없는 모임은 제거하지 않고 뒤로 보냄.
    """
    ranked = []
    for meetup in meetups:
        d = distance_to(latitude, longitude, meetup.latitude, meetup.longitude)
        if d is not None and radius is not None and d > radius:
            continue
        ranked.append(RankedMeetup(meetup=meetup, distance=d))
    return sort_by_distance(ranked)


def _resolve_statuses(status: Optional[str]) -> Sequence[str]:
    if not status:
        return DISCOVERABLE_STATUSES
    try:
        return (MeetupStatus(status).value,)
    except ValueError:
        allowed = ", ".join(s.value for s in MeetupStatus)
        raise ValidationError(f"Unknown status '{status}'. Allowed: {allowed}")


def list_meetups(db: Session, filters: MeetupFilters) -> List[RankedMeetup]:
    """
    목록 조회. 상태 미지정 시 UPCOMING/ONGOING 만 (승인 대기/거절은 일반 탐색에 노출 안 함).
    좌표가 있으면 거리순, 없으면 start_time 순.
    """
    statuses = _resolve_statuses(filters.status)
    box = None
    if filters.has_point and filters.radius is not None:
        box = bounding_box(filters.latitude, filters.longitude, filters.radius)

    candidates = [
        m
        for m in meetup_crud.find_meetups(db, statuses, category=filters.category, box=box)
        if matches_search(m.title, m.description, filters.search)
    ]

    if not filters.has_point:
        return [RankedMeetup(meetup=m) for m in candidates]
    return rank_by_distance(candidates, filters.latitude, filters.longitude, filters.radius)


def nearby_meetups(
    db: Session,
    latitude: Optional[float],
    longitude: Optional[float],
    radius: Optional[float] = None,
) -> List[RankedMeetup]:
    """주변 조회. 좌표 필수, 항상 UPCOMING/ONGOING + 지오 필터 (좌표 없는 모임 제외)."""
    if latitude is None or longitude is None:
        raise ValidationError("Latitude and longitude are required")
    if not (-90 <= latitude <= 90) or not (-180 <= longitude <= 180):
        raise ValidationError("Latitude must be within [-90, 90] and longitude within [-180, 180]")
    radius = DEFAULT_NEARBY_RADIUS_KM if radius is None else radius
    if radius <= 0:
        raise ValidationError("Radius must be positive")

    box = bounding_box(latitude, longitude, radius)
    candidates = meetup_crud.find_meetups(db, DISCOVERABLE_STATUSES, box=box, include_unlocated=False)
    return rank_by_distance(candidates, latitude, longitude, radius)
