"""Unit tests for percentage policy and the StatsProjector."""

from datetime import date, datetime

import pytest

from smartbin.domain.services.stats_projector import (
    StatsProjector,
    build_stats,
    order_week,
    split_percentages,
)
from smartbin.models.record import WasteLabel
from smartbin.models.stats import AggregateStats, DayActivity, WEEKDAY_LABELS


class TestSplitPercentages:
    """Round-half-up with larger-bucket absorption."""

    def test_exact_split(self):
        assert split_percentages(6, 4) == (60, 40)

    def test_thirds_round_to_100(self):
        assert split_percentages(1, 2) == (33, 67)
        assert split_percentages(2, 1) == (67, 33)

    def test_half_rounds_up(self):
        # 12.5 -> 13; 87.5 -> 88 overshoots, the larger bucket gives a point back
        assert split_percentages(1, 7) == (13, 87)
        assert split_percentages(1, 39) == (3, 97)

    def test_larger_bucket_absorbs_when_organic_dominates(self):
        assert split_percentages(7, 1) == (87, 13)

    def test_single_bucket(self):
        assert split_percentages(5, 0) == (100, 0)
        assert split_percentages(0, 5) == (0, 100)

    def test_zero_total_gives_zero_shares(self):
        assert split_percentages(0, 0) == (0, 0)

    @pytest.mark.parametrize("organic,inorganic", [(float("inf"), 4), (6, float("nan"))])
    def test_non_finite_weights_rejected(self, organic, inorganic):
        with pytest.raises(ValueError):
            split_percentages(organic, inorganic)

    @pytest.mark.parametrize("organic,inorganic", [(1, 2), (1, 7), (3.3, 6.7), (0.1, 0.2), (123, 456)])
    def test_shares_always_sum_to_100(self, organic, inorganic):
        assert sum(split_percentages(organic, inorganic)) == 100


class TestWeeklyOrder:
    """Weekly activity uses the fixed Mon..Sun order."""

    def test_reorders_and_fills_missing_days(self):
        week = order_week([DayActivity("Sun", 2), DayActivity("Mon", 5)])

        assert tuple(d.day for d in week) == WEEKDAY_LABELS
        assert week[0].amount == 5
        assert week[6].amount == 2
        assert all(d.amount == 0 for d in week[1:6])

    def test_negative_amount_clamped(self):
        week = order_week([DayActivity("Tue", -3)])
        assert week[1].amount == 0

    def test_unknown_day_rejected(self):
        with pytest.raises(ValueError):
            order_week([DayActivity("Funday", 1)])


class TestBuildStats:
    """Aggregate assembly."""

    def test_total_defaults_to_sum_of_weights(self):
        stats = build_stats(organic=2.5, inorganic=1.5)
        assert stats.total == 4.0

    def test_derived_daily_average(self):
        stats = build_stats(6, 4, weekly=[DayActivity("Mon", 3), DayActivity("Tue", 7)])
        assert stats.weekly_total == 10
        assert stats.daily_average == 1


class TestStatsProjector:
    """Server precedence and local fallback."""

    def test_scenario_a_server_stats(self):
        projector = StatsProjector()
        applied = projector.apply_server_stats(build_stats(organic=6, inorganic=4, total=10))

        assert applied.total == 10
        assert (applied.organic_percent, applied.inorganic_percent) == (60, 40)
        assert projector.has_server_stats

    def test_server_percentages_are_rederived(self):
        drifting = AggregateStats(
            total=10, organic_weight=6, inorganic_weight=4, organic_percent=99, inorganic_percent=1
        )
        applied = StatsProjector().apply_server_stats(drifting)

        assert (applied.organic_percent, applied.inorganic_percent) == (60, 40)

    def test_recompute_counts_records_and_buckets_current_week(self, make_record):
        records = [
            make_record(1, label=WasteLabel.ORGANIC, captured_at=datetime(2025, 10, 13, 8, 0)),
            make_record(2, label=WasteLabel.ORGANIC, captured_at=datetime(2025, 10, 13, 9, 0)),
            make_record(3, label=WasteLabel.INORGANIC, captured_at=datetime(2025, 10, 15, 9, 0)),
            make_record(4, label=WasteLabel.ORGANIC, captured_at=datetime(2025, 10, 6, 9, 0)),
        ]

        stats = StatsProjector().recompute_from_records(records, as_of=date(2025, 10, 15))

        assert stats.total == 4
        assert (stats.organic_percent, stats.inorganic_percent) == (75, 25)
        assert [d.amount for d in stats.weekly_activity] == [2, 0, 1, 0, 0, 0, 0]

    def test_recompute_empty(self):
        stats = StatsProjector().recompute_from_records([], as_of=date(2025, 10, 15))
        assert stats.total == 0
        assert (stats.organic_percent, stats.inorganic_percent) == (0, 0)

    def test_current_falls_back_until_server_stats_arrive(self, make_record):
        projector = StatsProjector()
        records = [make_record(1, label=WasteLabel.INORGANIC)]

        assert projector.current(records).inorganic_percent == 100

        projector.apply_server_stats(build_stats(organic=6, inorganic=4))
        assert projector.current(records).organic_percent == 60

    def test_latest_server_stats_win(self):
        projector = StatsProjector()
        projector.apply_server_stats(build_stats(6, 4))
        projector.apply_server_stats(build_stats(1, 3))

        assert projector.current().organic_percent == 25
