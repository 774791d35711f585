"""Simple usage example for the mind network.

Builds a two-neuron chain by hand, watches a spike travel across it and
the source neuron sit out its refractory period, then runs a random
network for a few hundred ticks and prints telemetry.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np

from mind_state import NetworkState, get_telemetry, neuron_phases, random_state
from mind_step import step, step_n
from mind_validator import validate


def main():
    # Neuron 0 drives neuron 1; neither connects to itself.
    state = NetworkState(
        activation_thresholds=[0.5, 0.5],
        outputs_weights=[[0.0, 0.0], [0.8, 0.0]],
        input_weights=[[0.0, 0.0], [0.5, 0.0]],
        reactivation_delays=[3.0, 1.0],
        signal_map=[0.9, 0.9],
        neural_activity=[0.7, 0.0],
    )
    validate(state)

    print("=== Two-neuron chain ===")
    for _ in range(6):
        result = step(state)
        phases = [p.name for p in neuron_phases(state)]
        print(
            f"tick {result.tick}: fired={result.fired_indices} "
            f"activity={np.round(state.neural_activity, 3).tolist()} "
            f"phases={phases}"
        )

    print("\n=== Random network ===")
    rng = np.random.default_rng(7)
    net = random_state(100, rng)
    # A fresh network is silent; seed some activity to get it going.
    net.neural_activity = rng.random(100)
    validate(net)
    results = step_n(net, 300)
    total = sum(r.fired_count for r in results)
    tel = get_telemetry(net)
    print(f"Neurons: {tel.neurons}  Links: {tel.links}")
    print(f"Ticks: {tel.tick}  Spikes: {total}")
    print(f"Firing now: {tel.fired_count}  Refractory: {tel.refractory_count}")
    print(f"Mean activity: {tel.mean_activity:.4f}  Max: {tel.max_activity:.4f}")


if __name__ == "__main__":
    main()
