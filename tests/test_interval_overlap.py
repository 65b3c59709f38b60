# tests/test_interval_overlap.py
"""Unit tests for half-open window arithmetic and the maintenance blackout policy."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import date, datetime, timedelta, timezone
from app.services.interval_overlap import as_utc, overlaps, blocked_by_maintenance, maintenance_instant


def at(hour, minute=0, day=10):
    return datetime(2030, 5, day, hour, minute)


WINDOWS = [
    (at(9), at(10)),
    (at(9, 30), at(11)),
    (at(10), at(12)),
    (at(8), at(13)),
    (at(12), at(12)),
    (at(14), at(15)),
]


class TestOverlaps:
    @pytest.mark.parametrize("a", WINDOWS)
    @pytest.mark.parametrize("b", WINDOWS)
    def test_symmetric(self, a, b):
        assert overlaps(*a, *b) == overlaps(*b, *a)

    @pytest.mark.parametrize("a", [w for w in WINDOWS if w[0] < w[1]])
    def test_window_overlaps_itself(self, a):
        assert overlaps(*a, *a)

    def test_zero_length_window_overlaps_nothing_at_its_point(self):
        assert not overlaps(at(12), at(12), at(12), at(12))

    def test_touching_is_not_overlapping(self):
        assert not overlaps(at(9), at(10), at(10), at(11))
        assert not overlaps(at(10), at(11), at(9), at(10))

    def test_partial_overlap(self):
        assert overlaps(at(9), at(11), at(10, 30), at(12))

    def test_containment(self):
        assert overlaps(at(8), at(13), at(10), at(11))

    def test_disjoint(self):
        assert not overlaps(at(9), at(10), at(14), at(15))


class TestMaintenanceBlackout:
    maint = date(2030, 5, 10)   # midnight of the 10th

    def test_no_maintenance_date_never_blocks(self):
        assert not blocked_by_maintenance(at(9), at(10), None)

    def test_window_spanning_midnight_is_blocked(self):
        assert blocked_by_maintenance(at(22, day=9), at(2), self.maint)

    def test_window_starting_on_maintenance_instant_is_eligible(self):
        assert not blocked_by_maintenance(at(0), at(5), self.maint)

    def test_window_ending_on_maintenance_instant_is_eligible(self):
        assert not blocked_by_maintenance(at(20, day=9), at(0), self.maint)

    def test_later_same_day_window_is_eligible(self):
        assert not blocked_by_maintenance(at(9), at(10), self.maint)

    def test_blackout_range_uses_overlap_rule(self):
        assert blocked_by_maintenance(at(9), at(10), self.maint, blackout_hours=24)
        assert not blocked_by_maintenance(at(0, day=11), at(3, day=11), self.maint, blackout_hours=24)
        assert not blocked_by_maintenance(at(20, day=9), at(0), self.maint, blackout_hours=24)

    def test_maintenance_instant_is_midnight(self):
        assert maintenance_instant(self.maint) == datetime(2030, 5, 10, 0, 0)


class TestUtcNormalisation:
    def test_naive_passes_through(self):
        assert as_utc(at(9)) == at(9)
        assert as_utc(None) is None

    def test_offset_converted_to_naive_utc(self):
        moment = datetime(2030, 5, 10, 12, 0, tzinfo=timezone(timedelta(hours=3)))
        converted = as_utc(moment)
        assert converted == at(9)
        assert converted.tzinfo is None

    def test_overlap_across_offsets(self):
        plus3 = timezone(timedelta(hours=3))
        # 12:00+03:00 to 13:00+03:00 is 09:00 to 10:00 UTC
        assert overlaps(at(9), at(11), datetime(2030, 5, 10, 12, tzinfo=plus3),
                        datetime(2030, 5, 10, 13, tzinfo=plus3))
        assert not overlaps(at(9), at(11), at(11).replace(tzinfo=timezone.utc),
                            at(12).replace(tzinfo=timezone.utc))

    def test_maintenance_with_aware_window(self):
        plus3 = timezone(timedelta(hours=3))
        # 02:00+03:00 on the 11th is 23:00 UTC on the 10th, before midnight
        departure = datetime(2030, 5, 11, 2, tzinfo=plus3)
        assert blocked_by_maintenance(departure, at(2, day=11), date(2030, 5, 11))
