# 모임 저장소 조회/잠금 (BBox 사전 필터, FOR UPDATE, 조건부 정원 UPDATE)

from typing import Iterable, List, Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.orm import Session, lazyload, selectinload

from vibehub.models.meetup import Meetup, MeetupStatus, VenueApprovalStatus
from vibehub.models.member import MeetupMember
from vibehub.models.user import User
from vibehub.services.geo import BoundingBox


def get_meetup(db: Session, meetup_id: str) -> Optional[Meetup]:
    """관계 프로젝션(creator, venue, members+user) 포함 단건 조회."""
    return db.execute(
        select(Meetup)
        .where(Meetup.id == meetup_id)
        .options(selectinload(Meetup.members).joinedload(MeetupMember.user))
        .execution_options(populate_existing=True)
    ).unique().scalar_one_or_none()


def get_meetup_for_update(db: Session, meetup_id: str) -> Optional[Meetup]:
    """
    meetup 행 잠금 (SELECT ... FOR UPDATE). 같은 모임에 대한 read-modify-write 직렬화.
    외부 조인 쪽은 잠글 수 없으므로 creator/venue eager load 를 끔.
    """
    return db.execute(
        select(Meetup)
        .where(Meetup.id == meetup_id)
        .options(lazyload(Meetup.creator), lazyload(Meetup.venue))
        .with_for_update()
    ).scalar_one_or_none()


def _box_condition(box: BoundingBox, include_unlocated: bool = True):
    """include_unlocated 면 좌표 없는 모임도 통과 (거리 없음 → 정렬 시 맨 뒤)."""
    lng_conditions = [Meetup.longitude.between(lo, hi) for lo, hi in box.lng_ranges()]
    in_box = and_(Meetup.latitude.between(box.min_lat, box.max_lat), or_(*lng_conditions))
    if not include_unlocated:
        return in_box
    return or_(Meetup.latitude.is_(None), Meetup.longitude.is_(None), in_box)


def find_meetups(
    db: Session,
    statuses: Iterable[str],
    category: Optional[str] = None,
    box: Optional[BoundingBox] = None,
    include_unlocated: bool = True,
) -> List[Meetup]:
    """상태/카테고리/BBox 로 후보 조회. start_time 오름차순."""
    q = (
        select(Meetup)
        .where(Meetup.status.in_(list(statuses)))
        .options(selectinload(Meetup.members).joinedload(MeetupMember.user))
    )
    if category:
        q = q.where(Meetup.category == category)
    if box is not None:
        q = q.where(_box_condition(box, include_unlocated))
    q = q.order_by(Meetup.start_time.asc(), Meetup.id.asc())
    return list(db.execute(q).unique().scalars())


def list_pending_for_venue(db: Session, venue_id: str) -> List[Meetup]:
    """장소가 결정해야 할 요청 목록. 최신 요청 먼저."""
    q = (
        select(Meetup)
        .where(
            Meetup.venue_id == venue_id,
            Meetup.status == MeetupStatus.PENDING_APPROVAL.value,
            Meetup.venue_approval_status == VenueApprovalStatus.PENDING.value,
        )
        .order_by(Meetup.created_at.desc(), Meetup.id.asc())
    )
    return list(db.execute(q).unique().scalars())


def get_member(db: Session, meetup_id: str, user_id: str) -> Optional[MeetupMember]:
    return db.execute(
        select(MeetupMember).where(
            MeetupMember.meetup_id == meetup_id,
            MeetupMember.user_id == user_id,
        )
    ).unique().scalar_one_or_none()


def reserve_seat(db: Session, meetup_id: str) -> bool:
    """
    정원 내에서만 member_count + 1. 영향 행 0 이면 만석.
    UPDATE 자체가 원자적이라 행 잠금이 없는 저장소에서도 초과 예약 불가.
    """
    result = db.execute(
        update(Meetup)
        .where(
            Meetup.id == meetup_id,
            or_(Meetup.max_attendees.is_(None), Meetup.member_count < Meetup.max_attendees),
        )
        .values(member_count=Meetup.member_count + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def release_seat(db: Session, meetup_id: str) -> None:
    db.execute(
        update(Meetup)
        .where(Meetup.id == meetup_id, Meetup.member_count > 0)
        .values(member_count=Meetup.member_count - 1)
        .execution_options(synchronize_session=False)
    )


def user_exists(db: Session, user_id: str) -> bool:
    return db.execute(select(User.id).where(User.id == user_id)).first() is not None
