"""Unit tests for per-source reception bookkeeping."""

import pytest

from rellab.core import physics
from rellab.patterns.reception import PingTracker, ReceivedTicks, infer_beta_from_period_ratio


class TestInferBeta:
    """Tests for inverting the period Doppler ratio."""

    def test_unit_ratio_is_rest(self):
        assert infer_beta_from_period_ratio(1.0) == pytest.approx((0.0, 1.0))

    def test_receding(self):
        # D = 2 ↔ β = 0.6
        beta, g = infer_beta_from_period_ratio(2.0)
        assert beta == pytest.approx(0.6)
        assert g == pytest.approx(1.25)

    def test_approaching(self):
        beta, _ = infer_beta_from_period_ratio(0.5)
        assert beta == pytest.approx(-0.6)

    @pytest.mark.parametrize("ratio", [0.0, -1.0, float("inf"), float("nan")])
    def test_degenerate_ratio_falls_back_to_rest(self, ratio):
        assert infer_beta_from_period_ratio(ratio) == (0.0, 1.0)


class TestReceivedTicks:
    """Tests for ReceivedTicks."""

    def test_advances(self):
        ledger = ReceivedTicks()
        assert ledger.record("H", 1, 0.5)
        assert ledger.record("H", 2, 1.0)
        assert ledger.H == 2
        assert ledger.V == 0

    def test_stale_tick(self):
        ledger = ReceivedTicks()
        ledger.record("V", 4, 1.0)
        assert not ledger.record("V", 2, 2.0)
        assert ledger.V == 4
        assert ledger.last_received_at == 2.0

    def test_unknown_clock(self):
        with pytest.raises(ValueError):
            ReceivedTicks().record("X", 1, 0.0)

    def test_unknown_clock_leaves_ledger_untouched(self):
        ledger = ReceivedTicks()
        with pytest.raises(ValueError):
            ledger.record("X", 1, 3.0)
        assert ledger.last_received_at is None
        assert (ledger.H, ledger.V) == (0, 0)


class TestPingTracker:
    """Tests for cadence-based inference."""

    def test_no_estimate_from_single_reception(self):
        tracker = PingTracker()
        tracker.record(10.0, 0.0, 10.0)
        assert not tracker.has_estimate
        assert tracker.inferred_period_ratio == 1.0
        assert tracker.estimated_distance == 10.0
        assert tracker.round_trip_time == 20.0

    def test_static_source(self):
        tracker = PingTracker()
        for k in range(5):
            tracker.record(10.0 + 2.0 * k, 2.0 * k, 10.0)
        assert tracker.inferred_period_ratio == pytest.approx(1.0)
        assert tracker.inferred_beta == pytest.approx(0.0)

    def test_receding_source(self):
        # Emissions every 1 s arrive every 2 s: D = 2, β = 0.6
        tracker = PingTracker()
        for k in range(6):
            tracker.record(5.0 + 2.0 * k, float(k), 5.0 + k)
        assert tracker.inferred_period_ratio == pytest.approx(2.0)
        assert tracker.inferred_beta == pytest.approx(0.6)
        assert tracker.inferred_doppler_factor == pytest.approx(physics.doppler_factor(0.6))

    def test_duplicate_emission_time_ignored(self):
        tracker = PingTracker()
        tracker.record(10.0, 0.0, 10.0)
        tracker.record(10.0, 0.0, 10.0)  # V tick of the same instant
        tracker.record(12.0, 1.0, 11.0)
        assert list(tracker.emission_intervals) == [1.0]
        assert list(tracker.reception_intervals) == [2.0]

    def test_window_is_bounded(self):
        tracker = PingTracker(window=3)
        for k in range(20):
            tracker.record(float(k), float(k), 0.0)
        assert len(tracker.emission_intervals) == 3

    def test_zero_reception_gap_keeps_previous_estimate(self):
        tracker = PingTracker(window=1)
        tracker.record(0.0, 0.0, 0.0)
        tracker.record(2.0, 1.0, 0.0)
        tracker.record(2.0, 2.0, 0.0)  # Arrived in the same frame
        assert tracker.inferred_period_ratio == pytest.approx(2.0)

    def test_as_dict(self):
        data = PingTracker().as_dict()
        assert data["inferred_doppler_factor"] == 1.0
        assert data["reception_intervals"] == []
