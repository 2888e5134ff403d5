# 모임 생성/조회/수정/승인/참여 API
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from vibehub.core.clock import utcnow
from vibehub.crud.member_crud import join_meetup, leave_meetup
from vibehub.database import get_db
from vibehub.deps import get_actor_id, get_optional_viewer_id, rollback_and_raise
from vibehub.models.meetup import Meetup
from vibehub.realtime.notifications import NotificationEvent, publish_all
from vibehub.schemas.meetup import (
    CreatorSummary,
    MeetupCreate,
    MeetupFilters,
    MeetupOut,
    MeetupUpdate,
    MemberOut,
    VenueApprovalBody,
)
from vibehub.schemas.membership import JoinBody, JoinResponse, LeaveResponse, TicketOut
from vibehub.services import discovery, lifecycle
from vibehub.services.reveal import MYSTERY_HOST, SECRET_LOCATION, should_reveal

router = APIRouter(prefix="/meetups", tags=["Meetups"])


def _meetup_to_response(
    meetup: Meetup,
    viewer_id: Optional[str] = None,
    now: Optional[datetime] = None,
    distance: Optional[float] = None,
) -> MeetupOut:
    """
    ORM → MeetupOut. 블라인드 모임은 공개 전이면 주최자와 요청 대상 장소 외에는
    주최자/참여자 신원과 정확한 위치를 가림.
    """
    out = MeetupOut.model_validate(meetup)
    out.distance = round(distance, 3) if distance is not None else None

    privileged = viewer_id is not None and viewer_id in (meetup.creator_id, meetup.venue_id)
    if privileged or should_reveal(meetup, now):
        return out
    return out.model_copy(
        update={
            "creator_id": None,
            "creator": CreatorSummary(display_name=MYSTERY_HOST),
            "members": [m.model_copy(update={"user_id": None, "user": None}) for m in out.members],
            "location": SECRET_LOCATION,
            "latitude": None,
            "longitude": None,
            "distance": None,
            "venue_id": None,
            "venue": None,
            "is_revealed": False,
        }
    )


async def _commit_and_notify(db: Session, events: List[NotificationEvent]) -> None:
    """commit 성공 후에만 알림 발행 (발행 실패는 전이에 영향 없음)."""
    db.commit()
    await publish_all(events)


@router.post("", response_model=MeetupOut, status_code=status.HTTP_201_CREATED)
async def create_meetup(
    body: MeetupCreate,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> MeetupOut:
    """모임 생성. venueId 가 있으면 장소 승인 대기(PENDING_APPROVAL)로 시작."""
    try:
        result = lifecycle.create_meetup(db, body, actor_id)
    except Exception as e:
        rollback_and_raise(db, e, "create meetup")
    await _commit_and_notify(db, result.events)
    return _meetup_to_response(result.meetup, viewer_id=actor_id)


@router.get("", response_model=List[MeetupOut])
def list_meetups(
    category: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    radius: Optional[float] = Query(None, gt=0),
    viewer_id: Optional[str] = Depends(get_optional_viewer_id),
    db: Session = Depends(get_db),
) -> List[MeetupOut]:
    """목록 조회. 상태 미지정 시 UPCOMING/ONGOING. 좌표가 있으면 거리순 (좌표 없는 모임은 맨 뒤)."""
    filters = MeetupFilters(
        category=category,
        status=status_filter,
        search=search,
        latitude=latitude,
        longitude=longitude,
        radius=radius,
    )
    try:
        ranked = discovery.list_meetups(db, filters)
    except Exception as e:
        rollback_and_raise(db, e, "list meetups")
    now = utcnow()
    return [_meetup_to_response(r.meetup, viewer_id, now, r.distance) for r in ranked]


@router.get("/nearby", response_model=List[MeetupOut])
def get_meetups_nearby(
    latitude: Optional[float] = Query(None),
    longitude: Optional[float] = Query(None),
    radius: Optional[float] = Query(None),
    viewer_id: Optional[str] = Depends(get_optional_viewer_id),
    db: Session = Depends(get_db),
) -> List[MeetupOut]:
    """사용자 좌표 기준 반경(km, 기본 10) 내 모임. 가까운 순."""
    try:
        ranked = discovery.nearby_meetups(db, latitude, longitude, radius)
    except Exception as e:
        rollback_and_raise(db, e, "list nearby meetups")
    now = utcnow()
    return [_meetup_to_response(r.meetup, viewer_id, now, r.distance) for r in ranked]


@router.get("/venue/pending", response_model=List[MeetupOut])
def get_pending_for_venue(
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> List[MeetupOut]:
    """장소 계정이 결정해야 할 승인 대기 목록 (최신 요청 먼저)."""
    meetups = lifecycle.list_pending_for_venue(db, actor_id)
    now = utcnow()
    return [_meetup_to_response(m, actor_id, now) for m in meetups]


@router.get("/{meetup_id}", response_model=MeetupOut)
def get_meetup(
    meetup_id: str,
    viewer_id: Optional[str] = Depends(get_optional_viewer_id),
    db: Session = Depends(get_db),
) -> MeetupOut:
    """id로 모임 조회 (creator, venue, members, memberCount 포함). 없으면 404."""
    try:
        meetup = lifecycle.get_meetup_or_404(db, meetup_id)
    except Exception as e:
        rollback_and_raise(db, e, "get meetup")
    return _meetup_to_response(meetup, viewer_id)


@router.put("/{meetup_id}", response_model=MeetupOut)
async def update_meetup(
    meetup_id: str,
    body: MeetupUpdate,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> MeetupOut:
    """생성자 전용 부분 수정. 장소가 있는 모임의 가격 변경은 승인 재요청."""
    try:
        result = lifecycle.update_meetup(db, meetup_id, actor_id, body)
    except Exception as e:
        rollback_and_raise(db, e, "update meetup")
    await _commit_and_notify(db, result.events)
    return _meetup_to_response(result.meetup, viewer_id=actor_id)


@router.delete("/{meetup_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_meetup(
    meetup_id: str,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> Response:
    """생성자 전용 삭제. 멤버/티켓 함께 삭제."""
    try:
        lifecycle.delete_meetup(db, meetup_id, actor_id)
        db.commit()
    except Exception as e:
        rollback_and_raise(db, e, "delete meetup")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{meetup_id}/venue-approval", response_model=MeetupOut)
async def decide_venue_approval(
    meetup_id: str,
    body: VenueApprovalBody,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> MeetupOut:
    """장소 승인/거절. 요청 대상 장소만 가능, PENDING_APPROVAL 상태에서만 가능."""
    try:
        result = lifecycle.approve_or_reject(
            db,
            meetup_id,
            actor_id,
            body.action,
            approved_price=body.approved_price,
            rejection_reason=body.rejection_reason,
        )
    except Exception as e:
        rollback_and_raise(db, e, "decide venue approval")
    await _commit_and_notify(db, result.events)
    return _meetup_to_response(result.meetup, viewer_id=actor_id)


@router.post("/{meetup_id}/join", response_model=JoinResponse)
async def post_join(
    meetup_id: str,
    response: Response,
    body: Optional[JoinBody] = None,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> JoinResponse:
    """모임 참여. 최초 참여 201 (현장 모임이면 티켓 포함), 재참여는 status 갱신 200."""
    body = body or JoinBody()
    try:
        result = join_meetup(db, meetup_id, actor_id, body.status)
        creator_id = result.member.meetup.creator_id
    except Exception as e:
        rollback_and_raise(db, e, "join meetup")

    events = []
    if result.created and creator_id != actor_id:
        events.append(
            NotificationEvent(
                recipient_id=creator_id,
                event_type="meetup_joined",
                payload={"meetupId": meetup_id, "userId": actor_id},
            )
        )
    await _commit_and_notify(db, events)

    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return JoinResponse(
        member=MemberOut.model_validate(result.member),
        ticket=TicketOut.model_validate(result.ticket) if result.ticket else None,
        created=result.created,
    )


@router.delete("/{meetup_id}/leave", response_model=LeaveResponse)
def delete_leave(
    meetup_id: str,
    actor_id: str = Depends(get_actor_id),
    db: Session = Depends(get_db),
) -> LeaveResponse:
    """모임 참여 취소. 발급된 티켓은 유지."""
    try:
        member_count = leave_meetup(db, meetup_id, actor_id)
        db.commit()
    except Exception as e:
        rollback_and_raise(db, e, "leave meetup")
    return LeaveResponse(message="Left meetup successfully", meetup_id=meetup_id, member_count=member_count)
