"""Unit tests for broadcast signals."""

import numpy as np
import pytest

from rellab.core.signals import BroadcastSignal, signal_id


def make_signal(**kwargs):
    defaults = dict(
        source_id="src",
        clock_type="H",
        tick_number=1,
        origin=np.zeros(3),
        emission_lab_time=2.0,
        emission_proper_time=1.5,
        emission_velocity=np.array([0.5, 0.0, 0.0]),
    )
    defaults.update(kwargs)
    return BroadcastSignal(**defaults)


class TestBroadcastSignal:
    """Tests for BroadcastSignal."""

    def test_id(self):
        assert make_signal().id == "src-H-1"
        assert signal_id("a", "V", 12) == "a-V-12"

    def test_radius_grows_with_age(self):
        signal = make_signal()
        signal.update(5.0)
        assert signal.get_age(5.0) == 3.0
        assert signal.radius == pytest.approx(3.0)
        assert signal.active

    def test_retires_past_horizon(self):
        signal = make_signal(max_radius=10.0)
        signal.update(12.5)
        assert not signal.active

    def test_retires_before_emission(self):
        signal = make_signal()
        signal.update(1.0)
        assert not signal.active

    def test_has_reached(self):
        signal = make_signal()
        signal.update(5.0)
        assert signal.has_reached(np.array([3.0, 0.0, 0.0]))
        assert not signal.has_reached(np.array([3.0, 0.1, 0.0]))

    def test_never_received_by_emitter(self):
        signal = make_signal()
        signal.update(100.0)
        assert not signal.check_reception("src", np.zeros(3))

    def test_received_once(self):
        signal = make_signal()
        signal.set_target_count(2)
        signal.update(10.0)
        assert signal.check_reception("a", np.array([1.0, 0.0, 0.0]))
        assert not signal.check_reception("a", np.array([1.0, 0.0, 0.0]))
        assert signal.received_by == {"a"}
        assert signal.active

    def test_retires_when_all_targets_reached(self):
        signal = make_signal()
        signal.set_target_count(1)
        signal.update(10.0)
        signal.check_reception("a", np.zeros(3))
        assert not signal.active

    def test_zero_targets_retire_immediately(self):
        signal = make_signal()
        signal.set_target_count(0)
        assert not signal.active

    def test_drop_target(self):
        signal = make_signal()
        signal.set_target_count(2)
        signal.update(10.0)
        signal.check_reception("a", np.zeros(3))
        signal.drop_target("b")
        assert not signal.active

    def test_drop_target_already_received_is_ignored(self):
        signal = make_signal()
        signal.set_target_count(3)
        signal.update(10.0)
        signal.check_reception("a", np.zeros(3))
        signal.drop_target("a")
        assert signal.target_count == 3

    def test_added_target_must_also_receive(self):
        signal = make_signal()
        signal.set_target_count(1)
        signal.add_target("late")
        signal.update(10.0)
        signal.check_reception("late", np.zeros(3))
        assert signal.active
        signal.check_reception("a", np.zeros(3))
        assert not signal.active

    def test_add_target_ignores_emitter_and_receivers(self):
        signal = make_signal()
        signal.set_target_count(2)
        signal.update(10.0)
        signal.check_reception("a", np.zeros(3))
        signal.add_target("a")
        signal.add_target("src")
        assert signal.target_count == 2

    def test_emission_snapshot_is_immutable(self):
        velocity = np.array([0.5, 0.0, 0.0])
        signal = make_signal(emission_velocity=velocity)
        velocity[0] = 0.9
        assert signal.emission_velocity[0] == 0.5
        with pytest.raises(ValueError):
            signal.origin[0] = 1.0

    def test_payload(self):
        payload = make_signal().get_payload()
        assert payload.source_id == "src"
        assert payload.emission_proper_time == 1.5
        assert np.allclose(payload.emission_velocity, [0.5, 0.0, 0.0])
