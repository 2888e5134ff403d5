"""
Tests for the bounding-box prefilter and haversine distance.
"""

import math

import pytest

from vibehub.services.geo import BoundingBox, bounding_box, distance_km, distance_to


def test_distance_to_self_is_zero():
    assert distance_km(37.5665, 126.978, 37.5665, 126.978) == 0.0


def test_distance_is_symmetric():
    a = distance_km(37.5665, 126.978, 35.1796, 129.0756)
    b = distance_km(35.1796, 129.0756, 37.5665, 126.978)
    assert a == pytest.approx(b)


def test_seoul_to_busan_is_about_325_km():
    assert distance_km(37.5665, 126.978, 35.1796, 129.0756) == pytest.approx(325, abs=5)


def test_one_degree_latitude_is_about_111_km():
    assert distance_km(0, 0, 1, 0) == pytest.approx(111.19, abs=0.05)


def test_antipodal_points_do_not_raise():
    assert distance_km(0, 0, 0, 180) == pytest.approx(math.pi * 6371.0, rel=1e-9)


def test_distance_to_without_target_coordinates():
    assert distance_to(37.5, 127.0, None, 127.0) is None
    assert distance_to(37.5, 127.0, 37.5, None) is None


def test_bounding_box_contains_every_point_within_radius():
    lat, lng, radius = 37.5665, 126.978, 10.0
    box = bounding_box(lat, lng, radius)
    for bearing in range(0, 360, 15):
        # 반경 바로 안쪽 지점 (구면 전진 공식)
        d = (radius * 0.999) / 6371.0
        b = math.radians(bearing)
        phi1, lam1 = math.radians(lat), math.radians(lng)
        phi2 = math.asin(math.sin(phi1) * math.cos(d) + math.cos(phi1) * math.sin(d) * math.cos(b))
        lam2 = lam1 + math.atan2(
            math.sin(b) * math.sin(d) * math.cos(phi1),
            math.cos(d) - math.sin(phi1) * math.sin(phi2),
        )
        p_lat, p_lng = math.degrees(phi2), math.degrees(lam2)
        assert distance_km(lat, lng, p_lat, p_lng) <= radius
        assert box.contains(p_lat, p_lng), bearing


def test_bounding_box_longitude_widens_with_latitude():
    equator = bounding_box(0.0, 10.0, 50.0)
    north = bounding_box(60.0, 10.0, 50.0)
    assert (north.max_lng - north.min_lng) == pytest.approx(2 * (equator.max_lng - equator.min_lng), rel=1e-3)


def test_bounding_box_splits_at_antimeridian():
    box = bounding_box(0.0, 179.95, 20.0)
    ranges = box.lng_ranges()
    assert len(ranges) == 2
    assert box.contains(0.0, -179.95)
    assert box.contains(0.0, 179.99)
    assert not box.contains(0.0, 0.0)


def test_bounding_box_near_pole_covers_all_longitudes():
    box = bounding_box(89.99, 0.0, 5.0)
    assert box.max_lat == 90.0
    assert box.lng_ranges() == [(-180.0, 180.0)]
    assert box.contains(89.98, 179.0)


def test_bounding_box_zero_radius_is_the_point():
    box = bounding_box(10.0, 20.0, 0.0)
    assert box == BoundingBox(10.0, 10.0, 20.0, 20.0)


def test_bounding_box_rejects_negative_radius():
    with pytest.raises(ValueError):
        bounding_box(10.0, 20.0, -1.0)
