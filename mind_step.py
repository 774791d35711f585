"""
Mind Step Engine — One discrete tick of the network.

Pipeline (all reads use the state left by the previous tick):
    1. Aggregate ambient input:   a = input_weights @ activity
    2. Detect firing neurons:     countdown <= 0, activity >= threshold,
                                  activity > 0
    3. Propagate fired signals:   p = outputs_weights[:, F] @ signal_map[F]
    4. New activity:              clip(a + p, 0, finfo.max) into back buffer
    5. Refractory countdown:      fired ← delay, others ← max(c - 1, 0)
       then swap front/back buffers
    6. Advance the tick counter

The engine performs no validation.  Callers must pass a state that
satisfies ``mind_validator.validate`` and re-validate after any external
mutation; anything else is out of contract.

# ---- Changelog ----
# [2026-10-19] Initial implementation.
#   What: step(), step_n() and StepResult.
#   Why:  Vectorised tick over the double-buffered NetworkState.
# -------------------
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import numpy as np

from mind_state import NetworkState


@dataclass
class StepResult:
    """Result returned from ``step()``.

    Attributes:
        tick: Tick counter after the step completed.
        fired_indices: Neurons that fired during this step, ascending.
    """

    tick: int = 0
    fired_indices: List[int] = field(default_factory=list)

    @property
    def fired_count(self) -> int:
        return len(self.fired_indices)


def step(state: NetworkState) -> StepResult:
    """Advance ``state`` by one tick in place.

    Args:
        state: A validated ``NetworkState``.

    Returns:
        StepResult with the new tick and the neurons that fired.
    """
    activity = state.neural_activity
    countdown = state.next_activations
    new_activity = state.back_activity
    new_countdown = state.back_next_activations

    # Firing decision (phase 2) reads the same snapshot as aggregation.
    # A neuron with no accumulated activity never fires, even at threshold 0.
    fired = (
        (countdown <= 0)
        & (activity >= state.activation_thresholds)
        & (activity > 0)
    )
    fired_idx = np.flatnonzero(fired)

    # Saturation is handled by the clip below.
    with np.errstate(over="ignore", invalid="ignore"):
        # 1. Input aggregation, straight into the back buffer.
        np.matmul(state.input_weights, activity, out=new_activity)

        # 3. Output propagation from the fired columns only.
        if fired_idx.size:
            new_activity += state.outputs_weights[:, fired_idx] @ state.signal_map[fired_idx]

    # 4. Keep activity non-negative and finite.
    np.nan_to_num(new_activity, copy=False, nan=0.0)
    np.clip(new_activity, 0.0, np.finfo(state.dtype).max, out=new_activity)

    # 5. Refractory: firers restart their full delay (no decrement this
    #    tick), everyone else counts down towards zero.
    np.subtract(countdown, 1.0, out=new_countdown)
    np.maximum(new_countdown, 0.0, out=new_countdown)
    new_countdown[fired] = state.reactivation_delays[fired]

    state.swap_buffers()
    state.fired = fired

    # 6. Tick advance.
    state.tick += 1

    return StepResult(tick=state.tick, fired_indices=fired_idx.tolist())


def step_n(state: NetworkState, n: int) -> List[StepResult]:
    """Run ``n`` steps; returns all StepResults."""
    results = []
    for _ in range(n):
        results.append(step(state))
    return results
