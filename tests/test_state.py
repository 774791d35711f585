"""Tests for mind_state: construction, buffers, phases, telemetry, factories."""

import numpy as np
import pytest

from mind_state import (
    NetworkState,
    NeuronPhase,
    Telemetry,
    get_telemetry,
    neuron_phases,
    random_state,
)
from mind_step import step
from mind_validator import ShapeMismatch, find_violation


def _pair(delays=(2.0, 2.0)):
    return NetworkState(
        activation_thresholds=[0.5, 0.5],
        outputs_weights=[[0.0, 0.9], [0.9, 0.0]],
        input_weights=[[0.0, 0.9], [0.9, 0.0]],
        reactivation_delays=list(delays),
        signal_map=[0.9, 0.9],
        neural_activity=[0.6, 0.0],
    )


class TestConstruction:
    """Arrays are coerced, copied and shape-checked together."""

    def test_defaults(self):
        state = _pair()
        assert state.size == 2
        assert state.tick == 0
        assert state.dtype == np.float32
        np.testing.assert_array_equal(state.next_activations, [0.0, 0.0])
        assert state.fired.tolist() == [False, False]

    def test_all_arrays_share_dtype(self):
        state = random_state(6, np.random.default_rng(0), dtype="float64")
        for name in (
            "activation_thresholds", "outputs_weights", "input_weights",
            "reactivation_delays", "signal_map", "next_activations",
            "neural_activity",
        ):
            assert getattr(state, name).dtype == np.float64

    def test_inputs_are_copied(self):
        thresholds = np.array([0.2, 0.3])
        state = NetworkState(
            activation_thresholds=thresholds,
            outputs_weights=np.zeros((2, 2)),
            input_weights=np.zeros((2, 2)),
            reactivation_delays=np.zeros(2),
            signal_map=np.zeros(2),
        )
        thresholds[0] = 0.9
        assert state.activation_thresholds[0] == pytest.approx(0.2)

    def test_rejects_integer_dtype(self):
        with pytest.raises(TypeError):
            NetworkState.zeros(3, dtype="int32")

    def test_rejects_negative_tick(self):
        with pytest.raises(ValueError):
            NetworkState(
                activation_thresholds=[0.1],
                outputs_weights=[[0.0]],
                input_weights=[[0.0]],
                reactivation_delays=[0.0],
                signal_map=[0.0],
                tick=-1,
            )

    def test_rejects_activity_length_mismatch(self):
        with pytest.raises(ShapeMismatch):
            NetworkState(
                activation_thresholds=[0.1, 0.2],
                outputs_weights=np.zeros((2, 2)),
                input_weights=np.zeros((2, 2)),
                reactivation_delays=[0.0, 0.0],
                signal_map=[0.0, 0.0],
                neural_activity=[0.0, 0.0, 0.0],
            )

    def test_zeros_requires_a_neuron(self):
        with pytest.raises(ShapeMismatch):
            NetworkState.zeros(0)

    def test_repr(self):
        assert repr(NetworkState.zeros(4)) == "NetworkState(neurons=4, tick=0, dtype=float32)"


class TestBuffers:
    """Assignment writes into the current buffer."""

    def test_setter_copies_into_front_buffer(self):
        state = _pair()
        front = state.neural_activity
        state.neural_activity = [0.1, 0.2]
        assert state.neural_activity is front
        np.testing.assert_allclose(front, [0.1, 0.2])

    def test_setter_rejects_wrong_shape(self):
        state = _pair()
        with pytest.raises(ShapeMismatch):
            state.next_activations = [0.0, 0.0, 0.0]

    def test_constant_fields_coerced_on_assignment(self):
        state = NetworkState.zeros(2, dtype="float64")
        state.outputs_weights = [[0, 1], [1, 0]]
        state.reactivation_delays = (1, 2)
        assert isinstance(state.outputs_weights, np.ndarray)
        assert state.outputs_weights.dtype == np.float64
        assert state.reactivation_delays.dtype == np.float64

    def test_constant_field_assignment_copies(self):
        state = NetworkState.zeros(2)
        thresholds = np.array([0.1, 0.2], dtype=np.float32)
        state.activation_thresholds = thresholds
        thresholds[0] = 0.9
        assert state.activation_thresholds[0] == pytest.approx(0.1)

    def test_reassigned_wrong_shape_caught_by_validator(self):
        state = NetworkState.zeros(3)
        state.signal_map = [0.1, 0.2]
        err = find_violation(state)
        assert isinstance(err, ShapeMismatch)

    def test_swap_exposes_back_buffer(self):
        state = _pair()
        back = state.back_activity
        state.swap_buffers()
        assert state.neural_activity is back

    def test_copy_is_independent(self):
        state = _pair()
        step(state)
        clone = state.copy()
        assert clone.tick == state.tick
        np.testing.assert_array_equal(clone.neural_activity, state.neural_activity)
        np.testing.assert_array_equal(clone.fired, state.fired)
        step(clone)
        assert state.tick == 1
        assert clone.tick == 2


class TestPhases:
    """IDLE → FIRING → REFRACTORY → IDLE."""

    def test_initially_idle(self):
        assert neuron_phases(_pair()) == [NeuronPhase.IDLE, NeuronPhase.IDLE]

    def test_lifecycle(self):
        state = _pair(delays=(2.0, 2.0))
        step(state)
        assert neuron_phases(state) == [NeuronPhase.FIRING, NeuronPhase.IDLE]
        step(state)
        # Neuron 1 was driven over threshold by neuron 0's spike.
        assert neuron_phases(state) == [NeuronPhase.REFRACTORY, NeuronPhase.FIRING]

    def test_zero_delay_returns_to_idle(self):
        state = _pair(delays=(0.0, 0.0))
        state.input_weights[...] = 0.0
        state.outputs_weights[...] = 0.0
        step(state)
        assert neuron_phases(state)[0] == NeuronPhase.FIRING
        step(state)
        assert neuron_phases(state)[0] == NeuronPhase.IDLE


class TestTelemetry:
    """Read-only summary for reporting."""

    def test_counts(self):
        state = _pair()
        step(state)
        tel = get_telemetry(state)
        assert isinstance(tel, Telemetry)
        assert tel.tick == 1
        assert tel.neurons == 2
        assert tel.links == 4
        assert tel.fired_count == 1
        assert tel.refractory_count == 0
        assert tel.max_activity == pytest.approx(0.6 * 0.9 + 0.9 * 0.9)

    def test_does_not_mutate(self):
        state = _pair()
        before = state.neural_activity.copy()
        get_telemetry(state)
        np.testing.assert_array_equal(state.neural_activity, before)
        assert state.tick == 0


class TestRandomState:
    """Random initialisation satisfies every invariant."""

    @pytest.mark.parametrize("dtype", ["float32", "float64"])
    @pytest.mark.parametrize("seed", range(5))
    def test_valid(self, dtype, seed):
        state = random_state(64, np.random.default_rng(seed), dtype=dtype)
        assert find_violation(state) is None
        assert not np.diagonal(state.outputs_weights).any()
        assert not np.diagonal(state.input_weights).any()
        assert not state.neural_activity.any()
        assert not state.next_activations.any()

    def test_seeded_reproducible(self):
        a = random_state(10, np.random.default_rng(42))
        b = random_state(10, np.random.default_rng(42))
        np.testing.assert_array_equal(a.input_weights, b.input_weights)
        np.testing.assert_array_equal(a.reactivation_delays, b.reactivation_delays)

    def test_delays_span_documented_range(self):
        state = random_state(500, np.random.default_rng(1))
        assert state.reactivation_delays.max() > 1.0
        assert state.reactivation_delays.max() < 10.0

    def test_rejects_empty(self):
        with pytest.raises(ShapeMismatch):
            random_state(0, np.random.default_rng(0))
