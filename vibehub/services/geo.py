"""
Geo helpers for discovery.

Two phases, kept as separate functions:
  1. bounding_box(): coarse lat/lng rectangle usable as a plain column range filter
  2. distance_km(): exact haversine distance that corrects the box

The box is a superset of the radius circle. Corners of the box lie farther
than the radius, so callers must re-check with distance_km().
"""

import math
from typing import List, NamedTuple, Optional, Tuple

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE_LAT = math.pi * EARTH_RADIUS_KM / 180.0  # ~111.19


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def lng_ranges(self) -> List[Tuple[float, float]]:
        """
        경도 범위를 [-180, 180] 안의 구간 목록으로 반환.
        날짜변경선을 넘으면 두 구간으로 분할.
        """
        if self.max_lng - self.min_lng >= 360.0:
            return [(-180.0, 180.0)]
        if self.min_lng < -180.0:
            return [(self.min_lng + 360.0, 180.0), (-180.0, self.max_lng)]
        if self.max_lng > 180.0:
            return [(self.min_lng, 180.0), (-180.0, self.max_lng - 360.0)]
        return [(self.min_lng, self.max_lng)]

    def contains(self, lat: float, lng: float) -> bool:
        if not (self.min_lat <= lat <= self.max_lat):
            return False
        return any(lo <= lng <= hi for lo, hi in self.lng_ranges())


def bounding_box(lat: float, lng: float, radius_km: float) -> BoundingBox:
    """
    (lat, lng) 중심 반경 radius_km 원을 포함하는 사각형.

    경도 1도의 길이는 cos(위도)에 비례해 줄어들므로 경도 델타를 cos(lat)로 나눈다.
    극점을 포함하거나 cos 가 0 에 가까우면 경도는 전 구간.
    """
    if radius_km < 0:
        raise ValueError("radius_km must be non-negative")

    lat_delta = radius_km / KM_PER_DEGREE_LAT
    min_lat = max(lat - lat_delta, -90.0)
    max_lat = min(lat + lat_delta, 90.0)

    cos_lat = math.cos(math.radians(lat))
    if min_lat <= -90.0 or max_lat >= 90.0 or cos_lat < 1e-9:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)

    lng_delta = lat_delta / cos_lat
    if lng_delta >= 180.0:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)
    return BoundingBox(min_lat, max_lat, lng - lng_delta, lng + lng_delta)


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """두 위경도 사이 대권 거리(km). 대칭이며 distance(p, p) == 0."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlam = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    # 부동소수 오차로 a 가 1 을 살짝 넘는 경우 보정
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def distance_to(
    lat: float,
    lng: float,
    target_lat: Optional[float],
    target_lng: Optional[float],
) -> Optional[float]:
    """대상 좌표가 없으면 None (거리 계산 불가)."""
    if target_lat is None or target_lng is None:
        return None
    return distance_km(lat, lng, target_lat, target_lng)
