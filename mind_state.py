"""
Mind State — Data model for a fixed-size network of spiking neurons.

A ``NetworkState`` owns every array of the network and constructs them
together, so the neuron count N cannot drift between fields:

    - five per-neuron vectors (length N)
    - two N x N connection matrices, entry [i][j] = influence of j on i
    - a monotonically increasing ``tick`` counter

``neural_activity`` and ``next_activations`` are double-buffered: the step
engine reads the front buffers, writes the back buffers, and swaps once at
the end of the tick so a step never reads values it has already written.

Usage::

    import numpy as np
    from mind_state import random_state, get_telemetry

    state = random_state(100, np.random.default_rng(7))
    print(get_telemetry(state))

# ---- Changelog ----
# [2026-10-19] Initial implementation.
#   What: NetworkState with shape-checked construction, double-buffered
#         dynamic vectors, NeuronPhase classification, Telemetry snapshot,
#         zeros()/random_state() factories.
#   Why:  One owned aggregate in place of independently sized arrays.
# -------------------
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, List, Optional, Union

import numpy as np

from mind_validator import ShapeMismatch, check_shapes

logger = logging.getLogger("mind.state")

DTypeLike = Union[str, type, np.dtype]

DEFAULT_DTYPE = "float32"

# Upper bounds of the random initialisation (matching the value ranges).
MAX_REACTIVATION_DELAY = 10.0


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class NeuronPhase(Enum):
    """Per-neuron lifecycle phase.

    IDLE → FIRING → REFRACTORY → IDLE.  A neuron with a zero reactivation
    delay goes straight from FIRING back to IDLE.
    """
    IDLE = auto()
    FIRING = auto()
    REFRACTORY = auto()


# ---------------------------------------------------------------------------
# Network State
# ---------------------------------------------------------------------------

def _coerced_field(name: str, doc: str) -> property:
    """Array attribute whose setter copies through ``NetworkState._coerce``.

    Assigning a list (or an array of another dtype) after construction
    still leaves an owned ndarray of the state's dtype behind.  Shapes are
    left to the validator.
    """
    attr = "_" + name

    def getter(self: "NetworkState") -> np.ndarray:
        return getattr(self, attr)

    def setter(self: "NetworkState", value: Any) -> None:
        setattr(self, attr, self._coerce(value))

    return property(getter, setter, doc=doc)


class NetworkState:
    """All data of one network, mutated in place once per tick.

    Args:
        activation_thresholds: Firing threshold per neuron, in [0, 1).
        outputs_weights: (N, N) weights used when column neuron fires.
        input_weights: (N, N) weights for ambient carry-over of activity.
        reactivation_delays: Refractory length in ticks, in [0, 10).
        signal_map: Output scaling per neuron, in [0, 1).
        next_activations: Remaining refractory ticks (default zeros).
        neural_activity: Current activity level (default zeros).
        tick: Starting tick counter (default 0).
        dtype: Floating dtype every array is stored as.

    Raises:
        ShapeMismatch: if the arrays disagree on N.
    """

    activation_thresholds = _coerced_field(
        "activation_thresholds", "Firing threshold per neuron."
    )
    outputs_weights = _coerced_field(
        "outputs_weights", "(N, N) weights applied when a column neuron fires."
    )
    input_weights = _coerced_field(
        "input_weights", "(N, N) weights for ambient carry-over of activity."
    )
    reactivation_delays = _coerced_field(
        "reactivation_delays", "Refractory length in ticks per neuron."
    )
    signal_map = _coerced_field("signal_map", "Output scaling per neuron.")

    def __init__(
        self,
        activation_thresholds: Any,
        outputs_weights: Any,
        input_weights: Any,
        reactivation_delays: Any,
        signal_map: Any,
        next_activations: Any = None,
        neural_activity: Any = None,
        tick: int = 0,
        dtype: DTypeLike = DEFAULT_DTYPE,
    ) -> None:
        self.dtype = np.dtype(dtype)
        if self.dtype.kind != "f":
            raise TypeError(f"dtype must be floating point, got {self.dtype}")
        if tick < 0:
            raise ValueError(f"tick must be non-negative, got {tick}")

        self.activation_thresholds = activation_thresholds
        self.outputs_weights = outputs_weights
        self.input_weights = input_weights
        self.reactivation_delays = reactivation_delays
        self.signal_map = signal_map

        n = self.activation_thresholds.shape[0] if self.activation_thresholds.ndim else 0
        activity = (
            np.zeros(n, dtype=self.dtype)
            if neural_activity is None
            else self._coerce(neural_activity)
        )
        countdown = (
            np.zeros(n, dtype=self.dtype)
            if next_activations is None
            else self._coerce(next_activations)
        )

        err = check_shapes(
            [
                ("activation_thresholds", self.activation_thresholds),
                ("reactivation_delays", self.reactivation_delays),
                ("signal_map", self.signal_map),
                ("next_activations", countdown),
                ("neural_activity", activity),
            ],
            [
                ("outputs_weights", self.outputs_weights),
                ("input_weights", self.input_weights),
            ],
        )
        if err is not None:
            raise err

        # Double buffers: index ``_front`` is current, ``1 - _front`` scratch.
        self._activity = [activity, np.zeros_like(activity)]
        self._countdown = [countdown, np.zeros_like(countdown)]
        self._front = 0

        self.fired = np.zeros(n, dtype=bool)
        self.tick: int = int(tick)

    # -----------------------------------------------------------------------
    # Factories
    # -----------------------------------------------------------------------

    @classmethod
    def zeros(cls, n: int, dtype: DTypeLike = DEFAULT_DTYPE) -> "NetworkState":
        """All-zero network of ``n`` neurons (valid, and permanently idle)."""
        if n < 1:
            raise ShapeMismatch("network must have at least one neuron")
        return cls(
            activation_thresholds=np.zeros(n),
            outputs_weights=np.zeros((n, n)),
            input_weights=np.zeros((n, n)),
            reactivation_delays=np.zeros(n),
            signal_map=np.zeros(n),
            dtype=dtype,
        )

    # -----------------------------------------------------------------------
    # Buffers
    # -----------------------------------------------------------------------

    def _coerce(self, value: Any) -> np.ndarray:
        # Always copy: the state owns its arrays.
        return np.array(value, dtype=self.dtype, copy=True)

    @property
    def size(self) -> int:
        """Number of neurons N."""
        return int(self._activity[self._front].shape[0])

    @property
    def neural_activity(self) -> np.ndarray:
        return self._activity[self._front]

    @neural_activity.setter
    def neural_activity(self, value: Any) -> None:
        self._assign(self._activity, "neural_activity", value)

    @property
    def next_activations(self) -> np.ndarray:
        return self._countdown[self._front]

    @next_activations.setter
    def next_activations(self, value: Any) -> None:
        self._assign(self._countdown, "next_activations", value)

    @property
    def back_activity(self) -> np.ndarray:
        """Scratch buffer the next tick's activity is written into."""
        return self._activity[1 - self._front]

    @property
    def back_next_activations(self) -> np.ndarray:
        """Scratch buffer the next tick's countdown is written into."""
        return self._countdown[1 - self._front]

    def _assign(self, buffers: List[np.ndarray], name: str, value: Any) -> None:
        arr = self._coerce(value)
        front = buffers[self._front]
        if arr.shape != front.shape:
            raise ShapeMismatch(
                f"{name} has shape {arr.shape}, expected {front.shape}",
                field=name,
            )
        front[...] = arr

    def swap_buffers(self) -> None:
        """Publish the back buffers as current (end of a tick)."""
        self._front = 1 - self._front

    # -----------------------------------------------------------------------
    # Introspection
    # -----------------------------------------------------------------------

    def copy(self) -> "NetworkState":
        """Deep copy of the current (front) state."""
        clone = NetworkState(
            activation_thresholds=self.activation_thresholds,
            outputs_weights=self.outputs_weights,
            input_weights=self.input_weights,
            reactivation_delays=self.reactivation_delays,
            signal_map=self.signal_map,
            next_activations=self.next_activations,
            neural_activity=self.neural_activity,
            tick=self.tick,
            dtype=self.dtype,
        )
        clone.fired = self.fired.copy()
        return clone

    def __repr__(self) -> str:
        return (
            f"NetworkState(neurons={self.size}, tick={self.tick}, "
            f"dtype={self.dtype.name})"
        )


# ---------------------------------------------------------------------------
# Phases and telemetry
# ---------------------------------------------------------------------------

def neuron_phases(state: NetworkState) -> List[NeuronPhase]:
    """Phase of every neuron after the most recent tick."""
    refractory = state.next_activations > 0
    phases = []
    for fired, resting in zip(state.fired, refractory):
        if fired:
            phases.append(NeuronPhase.FIRING)
        elif resting:
            phases.append(NeuronPhase.REFRACTORY)
        else:
            phases.append(NeuronPhase.IDLE)
    return phases


@dataclass
class Telemetry:
    """Network statistics snapshot.

    Attributes:
        tick: Ticks completed so far.
        neurons: Number of neurons N.
        links: Number of entries in the output weight matrix (N * N).
        fired_count: Neurons that fired on the last tick.
        refractory_count: Neurons currently counting down, excluding firers.
        mean_activity: Mean of ``neural_activity``.
        max_activity: Max of ``neural_activity``.
    """

    tick: int = 0
    neurons: int = 0
    links: int = 0
    fired_count: int = 0
    refractory_count: int = 0
    mean_activity: float = 0.0
    max_activity: float = 0.0


def get_telemetry(state: NetworkState) -> Telemetry:
    """Read-only summary of ``state`` for reporting collaborators."""
    activity = state.neural_activity
    refractory = (state.next_activations > 0) & ~state.fired
    return Telemetry(
        tick=state.tick,
        neurons=state.size,
        links=int(state.outputs_weights.size),
        fired_count=int(state.fired.sum()),
        refractory_count=int(refractory.sum()),
        mean_activity=float(np.mean(activity)),
        max_activity=float(np.max(activity)),
    )


# ---------------------------------------------------------------------------
# Random initialisation
# ---------------------------------------------------------------------------

def _random_weights(n: int, rng: np.random.Generator) -> np.ndarray:
    weights = rng.random((n, n))
    np.fill_diagonal(weights, 0.0)
    return weights


def random_state(
    n: int,
    rng: Optional[np.random.Generator] = None,
    dtype: DTypeLike = DEFAULT_DTYPE,
) -> NetworkState:
    """Build a randomised state satisfying every invariant.

    Thresholds, signal map and both weight matrices are drawn from
    U[0, 1), delays from U[0, 10); both diagonals are zeroed and the
    dynamic vectors start at zero.

    Args:
        n: Number of neurons.
        rng: Source of randomness (fresh unseeded generator if None).
        dtype: Floating dtype for the arrays.
    """
    if n < 1:
        raise ShapeMismatch("network must have at least one neuron")
    rng = rng if rng is not None else np.random.default_rng()

    state = NetworkState(
        activation_thresholds=rng.random(n),
        outputs_weights=_random_weights(n, rng),
        input_weights=_random_weights(n, rng),
        reactivation_delays=rng.random(n) * MAX_REACTIVATION_DELAY,
        signal_map=rng.random(n),
        dtype=dtype,
    )
    # Narrowing to float32 can round a draw just below 1.0 (or 10.0) up
    # onto the open bound; pull such values back inside.
    for name in ("activation_thresholds", "signal_map", "outputs_weights", "input_weights"):
        _clamp_below(getattr(state, name), 1.0)
    _clamp_below(state.reactivation_delays, MAX_REACTIVATION_DELAY)

    logger.debug("Created random state with %d neurons (%s)", n, state.dtype.name)
    return state


def _clamp_below(arr: np.ndarray, bound: float) -> None:
    limit = np.nextafter(arr.dtype.type(bound), arr.dtype.type(0))
    np.minimum(arr, limit, out=arr)

