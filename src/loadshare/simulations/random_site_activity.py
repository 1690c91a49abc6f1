r"""
Random site activity

Drives an ``AllocationEngine`` through a seeded sequence of the events a
site operator can trigger (plug in, unplug, re-draw requests, toggle peak
shaving, change a priority) and records the snapshot after each one.
Invariants are checked at every step.
"""

import logging
from typing import Dict, Optional

import numpy as np

from loadshare.method import (
    AllocationEngine,
    AllocationPolicy,
    CapacityMode,
    SimulationHistory,
    SimulationStep,
    SiteConfig,
    check_invariants,
    create_random_demand,
    setup_rng,
)


logger = logging.getLogger(__name__)

DEFAULT_EVENT_WEIGHTS: Dict[str, float] = {
    "add": 0.35,
    "remove": 0.15,
    "randomize": 0.15,
    "toggle_mode": 0.1,
    "set_priority": 0.25,
}


def _apply_event(engine: AllocationEngine, event: str, rng: np.random.Generator) -> str:
    if event == "add":
        consumer_id = engine.add_consumer()
        return f"add({consumer_id})" if consumer_id is not None else "add(full)"
    if event == "remove":
        consumer_id = engine.remove_consumer()
        return f"remove({consumer_id})" if consumer_id is not None else "remove(empty)"
    if event == "randomize":
        engine.randomize_requests()
        return "randomize"
    if event == "toggle_mode":
        mode = (CapacityMode.NORMAL if engine.pool.mode is CapacityMode.CONSTRAINED
                else CapacityMode.CONSTRAINED)
        engine.set_capacity_mode(mode)
        return f"mode({mode.value})"
    if event == "set_priority":
        consumer_id = int(rng.integers(1, engine.config.consumer_count, endpoint=True))
        priority = int(rng.integers(engine.config.min_priority, engine.config.max_priority,
                                    endpoint=True))
        engine.set_priority(consumer_id, priority)
        return f"priority({consumer_id}={priority})"
    raise ValueError(f"Unknown event: {event}")


def run_site_simulation(
    steps: int,
    config: Optional[SiteConfig] = None,
    policy: Optional[AllocationPolicy] = None,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
    event_weights: Optional[Dict[str, float]] = None,
    verbose: bool = False,
) -> SimulationHistory:
    r"""
    Run a random sequence of site events.

    Parameters
    ----------
    steps : int
        Number of events to apply (the initial state is recorded as step 0)
    config : Optional[SiteConfig]
        Site parameters; defaults to ``SiteConfig()``
    policy : Optional[AllocationPolicy]
        Allocation policy; tiered round robin when None
    rng : Optional[np.random.Generator]
        Random generator for events and demand; takes precedence over ``seed``
    seed : Optional[int]
        Seed for a new generator when ``rng`` is None
    event_weights : Optional[Dict[str, float]]
        Relative event frequencies; ``DEFAULT_EVENT_WEIGHTS`` when None
    verbose : bool
        Log every step at INFO level

    Returns
    -------
    SimulationHistory
        Steps 0..steps with snapshots and registry state
    """
    if steps < 0:
        raise ValueError(f"steps must be non-negative, got {steps}")
    config = config if config is not None else SiteConfig()
    rng = setup_rng(rng, seed)
    weights = event_weights if event_weights is not None else DEFAULT_EVENT_WEIGHTS
    if not weights or any(w < 0 for w in weights.values()) or sum(weights.values()) <= 0:
        raise ValueError("event_weights must be non-negative with a positive total")

    events = list(weights.keys())
    probs = np.array([weights[e] for e in events], dtype=float)
    probs = probs / probs.sum()

    engine = AllocationEngine(config=config, policy=policy,
                              demand=create_random_demand(config, rng=rng))
    history = SimulationHistory(policy_name=engine.policy.name)
    history.steps.append(SimulationStep.record(0, "init", engine.registry, engine.get_snapshot()))

    for t in range(1, steps + 1):
        event = str(rng.choice(events, p=probs))
        label = _apply_event(engine, event, rng)
        snapshot = engine.get_snapshot()
        history.steps.append(SimulationStep.record(t, label, engine.registry, snapshot))
        for violation in check_invariants(snapshot, engine.registry):
            history.violations.append(f"step {t}: {violation}")
            logger.error("Invariant violated at step %d: %s", t, violation)
        if verbose:
            logger.info("Step %d: %s -> %d/%d blocks allocated",
                        t, label, snapshot.allocated_total_blocks, snapshot.total_blocks)

    return history
