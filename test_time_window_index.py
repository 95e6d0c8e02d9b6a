from datetime import timedelta

import pytest

from autoschedule.schemas import BusyInterval, ScheduleSettings
from autoschedule.scheduling import TimeWindowIndex, InvariantViolationError
from conftest import at


def busy(start, end):
    return BusyInterval(start=start, end=end)


def spans(slots):
    return [(s.start, s.end) for s in slots]


class TestMerging:
    def test_unsorted_overlapping_intervals_are_merged(self, settings):
        index = TimeWindowIndex(settings, [
            busy(at(0, 10), at(0, 11)),
            busy(at(0, 13), at(0, 14)),
            busy(at(0, 9), at(0, 10, 30)),
        ])
        assert spans(index.busy) == [(at(0, 9), at(0, 11)), (at(0, 13), at(0, 14))]

    def test_intervals_within_buffer_are_merged(self, settings):
        index = TimeWindowIndex(settings, [
            busy(at(0, 13), at(0, 14)),
            busy(at(0, 14, 10), at(0, 15)),
        ])
        assert spans(index.busy) == [(at(0, 13), at(0, 15))]

    def test_intervals_further_apart_than_buffer_stay_separate(self, settings):
        index = TimeWindowIndex(settings, [
            busy(at(0, 13), at(0, 14)),
            busy(at(0, 14, 30), at(0, 15)),
        ])
        assert len(index.busy) == 2


class TestIsFree:
    def test_open_work_time_is_free(self, settings):
        index = TimeWindowIndex(settings)
        assert index.is_free(at(0, 9), at(0, 10))
        assert index.is_free(at(0, 16), at(0, 17))

    def test_outside_work_hours_is_not_free(self, settings):
        index = TimeWindowIndex(settings)
        assert not index.is_free(at(0, 8), at(0, 9))
        assert not index.is_free(at(0, 16, 30), at(0, 17, 30))
        assert not index.is_free(at(0, 17), at(0, 18))

    def test_weekend_is_not_free(self, settings):
        index = TimeWindowIndex(settings)
        assert not index.is_free(at(5, 10), at(5, 11))  # Saturday
        assert not index.is_free(at(6, 10), at(6, 11))  # Sunday

    def test_buffer_is_enforced_on_both_sides(self, settings):
        index = TimeWindowIndex(settings, [busy(at(0, 12), at(0, 13))])
        assert not index.is_free(at(0, 11), at(0, 11, 50))
        assert not index.is_free(at(0, 13, 10), at(0, 14))
        assert index.is_free(at(0, 10, 45), at(0, 11, 45))
        assert index.is_free(at(0, 13, 15), at(0, 14, 15))

    def test_empty_range_is_not_free(self, settings):
        index = TimeWindowIndex(settings)
        assert not index.is_free(at(0, 10), at(0, 10))


class TestReserve:
    def test_reserved_time_blocks_later_queries(self, settings):
        index = TimeWindowIndex(settings)
        index.reserve(at(0, 9), at(0, 10), "a")
        assert not index.is_free(at(0, 9, 30), at(0, 10, 30))
        assert not index.is_free(at(0, 10, 5), at(0, 11))
        assert index.is_free(at(0, 10, 15), at(0, 11, 15))

    def test_reserve_is_idempotent(self, settings):
        index = TimeWindowIndex(settings)
        index.reserve(at(0, 9), at(0, 10), "a")
        index.reserve(at(0, 9), at(0, 10), "a")
        assert spans(index.committed) == [(at(0, 9), at(0, 10))]
        assert spans(index.busy) == [(at(0, 9), at(0, 10))]

    def test_reserve_merges_with_neighbouring_busy_time(self, settings):
        index = TimeWindowIndex(settings, [busy(at(0, 9), at(0, 10))])
        index.reserve(at(0, 10, 15), at(0, 11), "a")
        assert spans(index.busy) == [(at(0, 9), at(0, 11))]

    def test_double_booking_is_an_invariant_violation(self, settings):
        index = TimeWindowIndex(settings)
        index.reserve(at(0, 9), at(0, 10), "a")
        with pytest.raises(InvariantViolationError):
            index.reserve(at(0, 9, 30), at(0, 10, 30), "b")


class TestNextWorkBoundary:
    def test_inside_work_hours_returns_the_instant(self, settings):
        index = TimeWindowIndex(settings)
        assert index.next_work_boundary(at(0, 10, 30)) == at(0, 10, 30)

    def test_before_work_hours_jumps_to_opening(self, settings):
        index = TimeWindowIndex(settings)
        assert index.next_work_boundary(at(0, 6)) == at(0, 9)

    def test_at_closing_time_jumps_to_next_day(self, settings):
        index = TimeWindowIndex(settings)
        assert index.next_work_boundary(at(0, 17)) == at(1, 9)

    def test_friday_evening_jumps_to_monday(self, settings):
        index = TimeWindowIndex(settings)
        assert index.next_work_boundary(at(4, 18)) == at(7, 9)
        assert index.next_work_boundary(at(5, 12)) == at(7, 9)

    def test_work_hours_follow_the_user_time_zone(self):
        # New York is UTC-4 in October
        index = TimeWindowIndex(ScheduleSettings(time_zone="America/New_York"))
        assert index.next_work_boundary(at(0, 12)) == at(0, 13)
        assert index.window_containing(at(0, 20, 30)).end == at(0, 21)

    def test_sunday_numbering(self):
        # 0 = Sunday, so a Sunday-only user skips the whole week
        index = TimeWindowIndex(ScheduleSettings(work_days=[0]))
        assert index.next_work_boundary(at(0, 8)) == at(6, 9)


class TestWindows:
    def test_work_day_ending_at_midnight(self):
        index = TimeWindowIndex(ScheduleSettings(work_hour_start=18, work_hour_end=24))
        window = index.window_containing(at(0, 23, 30))
        assert (window.start, window.end) == (at(0, 18), at(1, 0))
        assert index.is_free(at(0, 23), at(1, 0))

    def test_free_gaps_cut_out_busy_time_and_buffer(self, settings):
        index = TimeWindowIndex(settings, [busy(at(0, 11), at(0, 12))])
        gaps = index.free_gaps(at(0, 9), at(0, 17))
        assert spans(gaps) == [(at(0, 9), at(0, 10, 45)), (at(0, 12, 15), at(0, 17))]

    def test_free_gaps_with_busy_time_covering_the_window(self, settings):
        index = TimeWindowIndex(settings, [busy(at(0, 8), at(0, 18))])
        assert index.free_gaps(at(0, 9), at(0, 17)) == []

    def test_buffer_can_be_overridden(self, settings):
        index = TimeWindowIndex(settings, [busy(at(0, 11), at(0, 12))], buffer_minutes=0)
        assert index.buffer == timedelta(0)
        assert index.is_free(at(0, 12), at(0, 13))
