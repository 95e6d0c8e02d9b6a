from datetime import timedelta

import pytest

from autoschedule.schemas import ScheduleSettings, ScoringWeights
from autoschedule.scheduling import EnergyProfile, EnergyTier, PlacementScorer, TimeSlot, InvalidInputError
from autoschedule.scheduling.scoring.energy_profile import is_adjacent
from autoschedule.scheduling.scoring.time_scoring import time_of_day_bucket
from autoschedule.models import TimePreference
from conftest import at


ENERGY_SETTINGS = ScheduleSettings(
    high_energy_start=9, high_energy_end=12,
    medium_energy_start=13, medium_energy_end=15,
    low_energy_start=15, low_energy_end=20,
)


def slot(start, minutes=60):
    return TimeSlot(start, start + timedelta(minutes=minutes))


class TestEnergyProfile:
    def test_configured_windows(self):
        profile = EnergyProfile(ENERGY_SETTINGS)
        assert profile.tier_at(9) == EnergyTier.HIGH
        assert profile.tier_at(11) == EnergyTier.HIGH
        assert profile.tier_at(13) == EnergyTier.MEDIUM
        assert profile.tier_at(15) == EnergyTier.LOW
        assert profile.tier_at(19) == EnergyTier.LOW

    def test_gaps_have_no_tier(self):
        profile = EnergyProfile(ENERGY_SETTINGS)
        assert profile.tier_at(12) == EnergyTier.NONE
        assert profile.tier_at(20) == EnergyTier.NONE
        assert profile.tier_at(3) == EnergyTier.NONE

    def test_overlapping_windows_prefer_higher_tier(self):
        profile = EnergyProfile(ScheduleSettings(
            high_energy_start=10, high_energy_end=12,
            medium_energy_start=9, medium_energy_end=14,
            low_energy_start=8, low_energy_end=16,
        ))
        assert profile.tier_at(8) == EnergyTier.LOW
        assert profile.tier_at(9) == EnergyTier.MEDIUM
        assert profile.tier_at(11) == EnergyTier.HIGH
        assert profile.tier_at(13) == EnergyTier.MEDIUM
        assert profile.tier_at(15) == EnergyTier.LOW

    def test_window_with_missing_bound_is_unused(self):
        profile = EnergyProfile(ScheduleSettings(high_energy_start=9))
        assert not profile.is_configured
        assert profile.tier_at(10) == EnergyTier.NONE

    def test_adjacency(self):
        assert is_adjacent(EnergyTier.HIGH, EnergyTier.MEDIUM)
        assert is_adjacent(EnergyTier.LOW, EnergyTier.MEDIUM)
        assert not is_adjacent(EnergyTier.HIGH, EnergyTier.LOW)
        assert not is_adjacent(EnergyTier.NONE, EnergyTier.MEDIUM)


class TestComponents:
    def test_task_without_preferences_scores_high(self, settings, make_task):
        scorer = PlacementScorer(settings)
        # 0.4 energy + 0.3 time of day + 0.1 neutral due date + 0.1 first candidate
        assert scorer.score(make_task(), slot(at(0, 9)), 0, 10) == pytest.approx(0.9)

    def test_energy_match_adjacent_and_mismatch(self, make_task):
        scorer = PlacementScorer(ENERGY_SETTINGS)
        task = make_task(energy_level="high")
        assert scorer.breakdown(task, slot(at(0, 10)), 0, 1)["energy"] == pytest.approx(0.4)
        assert scorer.breakdown(task, slot(at(0, 13)), 0, 1)["energy"] == pytest.approx(0.2)
        assert scorer.breakdown(task, slot(at(0, 16)), 0, 1)["energy"] == 0.0
        assert scorer.breakdown(task, slot(at(0, 12)), 0, 1)["energy"] == 0.0

    def test_time_of_day_buckets(self):
        assert time_of_day_bucket(8) == TimePreference.MORNING
        assert time_of_day_bucket(11) == TimePreference.MORNING
        assert time_of_day_bucket(12) == TimePreference.AFTERNOON
        assert time_of_day_bucket(16) == TimePreference.AFTERNOON
        assert time_of_day_bucket(17) == TimePreference.EVENING

    def test_time_preference(self, settings, make_task):
        scorer = PlacementScorer(settings)
        morning = make_task(preferred_time="MORNING")
        assert scorer.breakdown(morning, slot(at(0, 10)), 0, 1)["time_of_day"] == pytest.approx(0.3)
        assert scorer.breakdown(morning, slot(at(0, 13)), 0, 1)["time_of_day"] == 0.0
        anytime = make_task(preferred_time="anytime")
        assert scorer.breakdown(anytime, slot(at(0, 13)), 0, 1)["time_of_day"] == pytest.approx(0.3)

    def test_time_preference_uses_local_hour(self, make_task):
        scorer = PlacementScorer(ScheduleSettings(time_zone="America/New_York"))
        morning = make_task(preferred_time="morning")
        # 14:00 UTC is 10:00 in New York
        assert scorer.breakdown(morning, slot(at(0, 14)), 0, 1)["time_of_day"] == pytest.approx(0.3)

    def test_due_date_component(self, settings, make_task):
        scorer = PlacementScorer(settings, due_lead=timedelta(hours=24))
        assert scorer.breakdown(make_task(), slot(at(0, 9)), 0, 1)["due_date"] == pytest.approx(0.1)

        task = make_task(due_date=at(2, 10))
        # Finishes more than a day ahead of the due date
        assert scorer.breakdown(task, slot(at(0, 9)), 0, 1)["due_date"] == pytest.approx(0.2)
        # Finishes half-way through the lead window
        assert scorer.breakdown(task, slot(at(1, 21)), 0, 1)["due_date"] == pytest.approx(0.1)
        # Finishes after the due date
        assert scorer.breakdown(task, slot(at(2, 9, 30)), 0, 1)["due_date"] == 0.0

    def test_earliness_decays_over_the_candidate_list(self, settings, make_task):
        scorer = PlacementScorer(settings)
        task = make_task()
        bonuses = [scorer.breakdown(task, slot(at(0, 9)), rank, 4)["earliness"] for rank in range(4)]
        assert bonuses == pytest.approx([0.1, 0.075, 0.05, 0.025])

    def test_scores_stay_within_bounds(self, make_task):
        scorer = PlacementScorer(ENERGY_SETTINGS)
        task = make_task(energy_level="low", preferred_time="evening", due_date=at(0, 8))
        value = scorer.score(task, slot(at(0, 9)), 9, 10)
        assert 0.0 <= value <= 1.0


class TestRanking:
    def test_best_picks_highest_score(self, make_task):
        scorer = PlacementScorer(ENERGY_SETTINGS)
        task = make_task(energy_level="high")
        best = scorer.best(task, [slot(at(0, 13)), slot(at(1, 9))])
        assert best.slot.start == at(1, 9)
        assert best.rank == 1

    def test_ties_go_to_earliest_start(self, settings, make_task):
        scorer = PlacementScorer(settings, weights=ScoringWeights(earliness=0))
        candidates = [slot(at(0, 9)), slot(at(0, 10, 15)), slot(at(0, 11, 30))]
        ranked = scorer.rank(make_task(), candidates)
        assert ranked[0].score == ranked[1].score == ranked[2].score
        assert [c.slot.start for c in ranked] == [at(0, 9), at(0, 10, 15), at(0, 11, 30)]

    def test_on_time_candidates_beat_better_late_ones(self, make_task):
        scorer = PlacementScorer(ScheduleSettings(high_energy_start=13, high_energy_end=17))
        task = make_task(energy_level="high", due_date=at(0, 12))
        candidates = [slot(at(0, 9)), slot(at(0, 14))]
        assert scorer.rank(task, candidates)[0].slot.start == at(0, 14)
        assert scorer.best(task, candidates).slot.start == at(0, 9)

    def test_late_candidates_used_when_none_is_on_time(self, make_task):
        scorer = PlacementScorer(ScheduleSettings(high_energy_start=13, high_energy_end=17))
        task = make_task(energy_level="high", due_date=at(0, 9, 30))
        assert scorer.best(task, [slot(at(0, 9)), slot(at(0, 14))]).slot.start == at(0, 14)

    def test_is_preferred(self, make_task):
        scorer = PlacementScorer(ScheduleSettings(high_energy_start=13, high_energy_end=17))
        assert scorer.is_preferred(make_task(energy_level="high"), slot(at(0, 13)))
        assert not scorer.is_preferred(make_task(energy_level="high"), slot(at(0, 9)))
        assert not scorer.is_preferred(make_task(preferred_time="morning"), slot(at(0, 13)))
        assert scorer.is_preferred(make_task(), slot(at(0, 9)))

    def test_energy_ignored_for_preference_without_windows(self, settings, make_task):
        scorer = PlacementScorer(settings)
        assert scorer.is_preferred(make_task(energy_level="high"), slot(at(0, 9)))

    def test_no_candidates(self, settings, make_task):
        assert PlacementScorer(settings).best(make_task(), []) is None

    def test_weights_above_one_are_rejected(self, settings):
        with pytest.raises(InvalidInputError) as exc:
            PlacementScorer(settings, weights=ScoringWeights(energy=0.6))
        assert exc.value.field == "weights"
