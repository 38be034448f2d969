"""Unit tests for the Simulation orchestrator."""

import numpy as np
import pytest

from rellab import LAB_ID, Simulation, SimulationConfig, SimulationState
from rellab.experiments import create_default_scenario, create_two_observer_scenario, run_for


def run_until_reception(sim, dt=0.01, max_time=100.0):
    """Step until the first reception and return it."""
    receptions = []
    unsubscribe = sim.on_photon_reception(receptions.append)
    sim.play()
    while not receptions and sim.lab_time < max_time:
        sim.update(dt)
    unsubscribe()
    assert receptions, "no reception before max_time"
    return receptions[0]


class TestObserverManagement:
    """Tests for adding, removing and selecting observers."""

    def test_first_observer_is_reference(self, sim):
        lab = sim.add_observer("Lab", id=LAB_ID)
        sim.add_observer("Other", (1.0, 0.0, 0.0))
        assert sim.reference_observer is lab

    def test_generated_ids_unique(self, sim):
        a = sim.add_observer("A")
        b = sim.add_observer("B")
        assert a.id != b.id

    def test_duplicate_id_rejected(self, sim):
        sim.add_observer("A", id="a")
        with pytest.raises(ValueError):
            sim.add_observer("Again", id="a")

    def test_defaults_from_config(self):
        sim = Simulation(SimulationConfig(default_arm_length=2.0, default_mass=50.0))
        obs = sim.add_observer("A")
        assert obs.mass == 50.0
        assert obs.clock_h.period == 4.0

    def test_invalid_velocity_rejected(self, sim):
        with pytest.raises(ValueError):
            sim.add_observer("Fast", velocity=(1.0, 0.0, 0.0))

    def test_lab_cannot_be_removed(self, two_observer_sim):
        assert not two_observer_sim.remove_observer(LAB_ID)
        assert two_observer_sim.get_observer(LAB_ID) is not None

    def test_remove_unknown(self, two_observer_sim):
        assert not two_observer_sim.remove_observer("nobody")

    def test_remove_observer(self, two_observer_sim):
        assert two_observer_sim.remove_observer("receiver")
        assert two_observer_sim.get_observer("receiver") is None
        assert len(two_observer_sim.observers) == 1

    def test_removal_lowers_signal_targets(self, quiet_config):
        sim = Simulation(quiet_config)
        lab = sim.add_observer("Lab", id=LAB_ID)
        sim.add_observer("Near", (1.0, 0.0, 0.0), id="near")
        sim.add_observer("Far", (50.0, 0.0, 0.0), id="far")
        signal = sim.emit_signal(lab, "H", 1)
        assert signal.target_count == 2

        sim.remove_observer("far")
        assert signal.target_count == 1

        run_for(sim, 1.5, dt=0.01)
        assert sim.signals == []

    def test_late_observer_does_not_starve_targets(self, quiet_config):
        sim = Simulation(quiet_config)
        lab = sim.add_observer("Lab", id=LAB_ID)
        far = sim.add_observer("Far", (10.0, 0.0, 0.0), id="far")
        signal = sim.emit_signal(lab, "H", 1)
        assert signal.target_count == 1

        near = sim.add_observer("Near", (1.0, 0.0, 0.0), id="near")
        assert signal.target_count == 2

        run_for(sim, 15.0, dt=0.01)
        assert near.received_ticks[LAB_ID].H == 1
        assert far.received_ticks[LAB_ID].H == 1
        assert sim.signals == []

    def test_reference_falls_back_when_removed(self, quiet_config):
        sim = Simulation(quiet_config)
        sim.add_observer("A", id="a")
        sim.add_observer("B", id="b")
        sim.set_reference_frame("b")
        sim.remove_observer("b")
        assert sim.reference_observer.id == "a"

    def test_unknown_reference_kept(self, two_observer_sim):
        two_observer_sim.set_reference_frame("nobody")
        assert two_observer_sim.reference_observer.id == LAB_ID

    def test_thrust_unknown_observer(self, sim):
        result = sim.apply_thrust("ghost", (1.0, 0.0, 0.0), 1.0)
        assert not result.success

    def test_thrust_by_id(self, two_observer_sim):
        result = two_observer_sim.apply_thrust("receiver", (1.0, 0.0, 0.0), 500.0)
        assert result.success
        assert two_observer_sim.get_observer("receiver").beta == pytest.approx(0.6)


class TestStateMachine:
    """Tests for play/pause/reset."""

    def test_starts_paused(self, sim):
        assert sim.state is SimulationState.PAUSED

    def test_paused_update_is_noop(self, two_observer_sim):
        two_observer_sim.update(1.0)
        assert two_observer_sim.lab_time == 0.0
        assert two_observer_sim.get_observer("receiver").proper_time == 0.0

    def test_toggle(self, sim):
        sim.toggle()
        assert sim.is_running
        sim.toggle()
        assert not sim.is_running

    @pytest.mark.parametrize("bad_dt", [-0.5, float("nan"), float("inf")])
    def test_rejected_step_leaves_state_unchanged(self, two_observer_sim, bad_dt):
        sim = two_observer_sim
        sim.play()
        sim.update(1.0)
        receiver = sim.get_observer("receiver")
        position = receiver.position.copy()

        with pytest.raises(ValueError):
            sim.update(bad_dt)
        assert sim.lab_time == pytest.approx(1.0)
        assert receiver.proper_time == pytest.approx(1.0)
        assert np.array_equal(receiver.position, position)
        assert sim.get_observer(LAB_ID).proper_time == pytest.approx(1.0)

    def test_time_scale(self, quiet_config):
        quiet_config.time_scale = 2.0
        sim = create_two_observer_scenario(config=quiet_config)
        sim.play()
        sim.update(0.5)
        assert sim.lab_time == pytest.approx(1.0)

    def test_reset(self):
        sim = create_default_scenario()
        run_for(sim, 30.0, dt=0.1)
        sim.apply_thrust("bob", (0.0, 1.0, 0.0), 100.0)
        sim.reset()
        assert sim.lab_time == 0.0
        assert sim.state is SimulationState.PAUSED
        assert sim.signals == []
        for observer in sim.observers:
            assert observer.proper_time == 0.0
            assert observer.reception_history == []
        assert np.allclose(sim.get_observer("bob").velocity, [0.5, 0.0, 0.0])

    def test_dispose(self):
        sim = create_default_scenario()
        sim.dispose()
        assert sim.observers == []
        assert sim.reference_observer is None


class TestPropagation:
    """Tests for signal emission, propagation and reception."""

    def test_light_travel_time(self, two_observer_sim):
        lab = two_observer_sim.get_observer(LAB_ID)
        two_observer_sim.emit_signal(lab, "H", 1)
        reception = run_until_reception(two_observer_sim)
        assert reception.lab_time == pytest.approx(10.0, abs=0.02)
        assert reception.light_travel_time == pytest.approx(10.0, abs=0.02)
        assert reception.doppler_factor == pytest.approx(1.0)
        assert reception.receiver.id == "receiver"
        assert reception.payload.source_id == LAB_ID

    def test_receding_receiver_redshift(self, quiet_config):
        sim = create_two_observer_scenario(distance=10.0, beta=0.6, config=quiet_config)
        sim.emit_signal(sim.get_observer(LAB_ID), "H", 1)
        reception = run_until_reception(sim)
        # 10 + 0.6t = t  →  t = 25
        assert reception.lab_time == pytest.approx(25.0, abs=0.02)
        assert reception.doppler_factor == pytest.approx(0.5)

    def test_approaching_receiver_blueshift(self, quiet_config):
        sim = create_two_observer_scenario(distance=10.0, beta=-0.6, config=quiet_config)
        sim.emit_signal(sim.get_observer(LAB_ID), "H", 1)
        reception = run_until_reception(sim)
        assert reception.lab_time == pytest.approx(6.25, abs=0.02)
        assert reception.doppler_factor == pytest.approx(2.0)

    def test_stored_doppler_matches_reception(self, quiet_config):
        sim = create_two_observer_scenario(distance=5.0, beta=0.6, config=quiet_config)
        sim.emit_signal(sim.get_observer(LAB_ID), "H", 1)
        run_until_reception(sim)
        record = sim.get_observer("receiver").reception_history[0]
        assert record.doppler_factor == pytest.approx(0.5)
        assert record.source_id == LAB_ID

    def test_emitter_never_receives_own_signal(self, quiet_config):
        sim = Simulation(quiet_config)
        lab = sim.add_observer("Lab", id=LAB_ID)
        sim.add_observer("Other", (3.0, 0.0, 0.0))
        sim.emit_signal(lab, "H", 1)
        run_for(sim, 5.0, dt=0.05)
        assert lab.reception_history == []

    def test_single_observer_signal_retires(self, sim):
        lab = sim.add_observer("Lab", id=LAB_ID)
        signal = sim.emit_signal(lab, "H", 1)
        assert not signal.active
        assert sim.signals == []

    def test_ticks_emitted_from_crossing_instant(self):
        sim = Simulation()
        sim.add_observer("Lab", id=LAB_ID, arm_length=0.5)  # T₀ = 1
        sim.add_observer("Far", (100.0, 0.0, 0.0))
        sim.play()
        sim.update(2.5)
        times = sorted(s.emission_lab_time for s in sim.signals)
        assert times == pytest.approx([1.0, 1.0, 2.0, 2.0])

    def test_auto_emission_reaches_receiver(self):
        sim = create_two_observer_scenario(distance=10.0)
        run_for(sim, 25.0, dt=0.01)
        ledger = sim.get_observer("receiver").received_ticks[LAB_ID]
        # Lab tick 1 at t = 10 arrives at t = 20
        assert ledger.H == 1
        assert ledger.V == 1
        assert ledger.last_received_at == pytest.approx(20.0, abs=0.02)

    def test_auto_emission_disabled(self, two_observer_sim):
        run_for(two_observer_sim, 25.0, dt=0.05)
        assert two_observer_sim.signals == []
        assert two_observer_sim.get_observer("receiver").received_ticks == {}

    def test_signal_horizon(self):
        sim = create_two_observer_scenario(
            distance=10.0, config=SimulationConfig(auto_emit_signals=False, max_signal_radius=5.0)
        )
        sim.emit_signal(sim.get_observer(LAB_ID), "H", 1)
        run_for(sim, 6.0, dt=0.1)
        assert sim.signals == []


class TestCausality:
    """Every reception lies on or inside the emitter's future light cone."""

    def test_receptions_respect_light_speed(self):
        sim = create_default_scenario()
        dt = 0.02
        receptions = []
        sim.on_photon_reception(receptions.append)
        run_for(sim, 60.0, dt=dt)

        assert receptions
        for reception in receptions:
            separation = np.linalg.norm(
                reception.receiver.position - reception.payload.emission_position
            )
            assert reception.light_travel_time >= separation - 1e-9
            # First crossing: at most one step late
            assert reception.light_travel_time - separation <= 2 * dt + 1e-9

    def test_each_signal_received_once_per_observer(self):
        sim = create_default_scenario()
        seen = set()
        duplicates = []

        def on_reception(reception):
            key = (reception.payload.source_id, reception.payload.clock_type,
                   reception.payload.tick_number, reception.receiver.id)
            if key in seen:
                duplicates.append(key)
            seen.add(key)

        sim.on_photon_reception(on_reception)
        run_for(sim, 40.0, dt=0.05)
        assert seen
        assert duplicates == []


class TestInference:
    """Tests for the receiver-side cadence estimate."""

    def test_ping_tracker_recovers_recession_speed(self):
        sim = Simulation()
        sim.add_observer("Lab", id=LAB_ID, arm_length=0.5)
        receiver = sim.add_observer("Receiver", (1.0, 0.0, 0.0), (0.6, 0.0, 0.0), id="receiver")
        run_for(sim, 40.0, dt=0.01)

        tracker = receiver.ping_tracker[LAB_ID]
        assert tracker.has_estimate
        assert tracker.inferred_period_ratio == pytest.approx(2.0, rel=0.02)
        assert tracker.inferred_beta == pytest.approx(0.6, abs=0.02)


class TestCallbacksAndDisplay:
    """Tests for callbacks and presentation data."""

    def test_update_callback_and_unsubscribe(self, two_observer_sim):
        calls = []
        unsubscribe = two_observer_sim.on_update(lambda s: calls.append(s.lab_time))
        run_for(two_observer_sim, 0.03, dt=0.01)
        unsubscribe()
        two_observer_sim.update(0.01)
        assert len(calls) == 3

    def test_display_data(self):
        sim = create_default_scenario()
        data = sim.get_display_data()
        assert data["state"] == "paused"
        assert data["reference_id"] == LAB_ID
        assert [o["id"] for o in data["observers"]] == [LAB_ID, "alice", "bob", "charlie"]
        bob = data["observers"][2]
        assert np.allclose(bob["velocity_in_reference"], [0.5, 0.0, 0.0])

    def test_velocity_in_moving_reference(self):
        sim = create_default_scenario()
        sim.set_reference_frame("bob")
        observers = {o["id"]: o for o in sim.get_display_data()["observers"]}
        assert np.allclose(observers["bob"]["velocity_in_reference"], 0.0)
        assert observers[LAB_ID]["velocity_in_reference"][0] == pytest.approx(-0.5)

    def test_available_frames(self):
        frames = create_default_scenario().get_available_frames()
        assert frames[0] == {"id": LAB_ID, "name": "Lab"}
        assert len(frames) == 4
