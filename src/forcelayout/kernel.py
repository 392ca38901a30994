# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Fruchterman-Reingold force simulation with NumPy acceleration.

"""
Force simulation kernel.

Implements the Fruchterman-Reingold iteration with three extensions:
edge weights scale attraction by weight ** edge_weight_influence, a
gravity term pulls every node toward the origin, and a speed multiplier
scales both the displacement and the temperature limit.

Repulsion is computed over all ordered pairs with vectorized operations
(O(n^2) per iteration). A pair at exactly zero distance contributes
nothing for that iteration; no other pair is culled.

The kernel works on dense (n, 2) arrays only. Mapping rows back to node
ids is the caller's job (see NodeIndex).
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .config import FrameBounds, SimulationOptions
from .cooling import CoolingScheduler

logger = logging.getLogger(__name__)

# Observer receives a read-only copy of the positions and the 0-based index
ArrayObserver = Callable[[np.ndarray, int], None]

# Overflowed displacement components saturate here
_SATURATION = 1e150


@dataclass
class SimulationState:
    """Per-run working state, owned by a single kernel invocation."""
    positions: np.ndarray
    temperature: float
    iteration: int = 0

    def snapshot(self) -> np.ndarray:
        """Private read-only copy of the current positions."""
        snap = self.positions.copy()
        snap.flags.writeable = False
        return snap


def characteristic_distance(n: int, frame: FrameBounds, C: float) -> float:
    """k = C * sqrt(area / n); 0 for an empty graph."""
    if n == 0:
        return 0.0
    return C * math.sqrt(frame.area / n)


def repulsive_displacement(positions: np.ndarray, k: float) -> np.ndarray:
    """Sum of k^2/d along the unit vector of every ordered pair."""
    diff = positions[:, np.newaxis, :] - positions[np.newaxis, :, :]  # (n, n, 2)
    dist = np.hypot(diff[:, :, 0], diff[:, :, 1])  # (n, n)

    # fr(d) / d, zero on the diagonal and for coincident nodes
    scale = np.zeros_like(dist)
    with np.errstate(divide='ignore', over='ignore'):
        np.divide(k * k / np.where(dist != 0, dist, 1.0), dist,
                  out=scale, where=dist != 0)

    with np.errstate(over='ignore', invalid='ignore'):
        return np.sum(diff * scale[:, :, np.newaxis], axis=1)


def attractive_displacement(
    positions: np.ndarray,
    sources: np.ndarray,
    targets: np.ndarray,
    weights: np.ndarray,
    k: float,
    edge_weight_influence: float
) -> np.ndarray:
    """d^2/k along each edge, scaled by weight ** edge_weight_influence."""
    disp = np.zeros_like(positions)
    if len(sources) == 0:
        return disp

    d = positions[sources] - positions[targets]  # (m, 2)
    delta = np.hypot(d[:, 0], d[:, 1])
    scale_by_weight = np.power(weights, edge_weight_influence)

    # fa(d) / d * scale, zero for self-loops and coincident endpoints
    factor = np.zeros_like(delta)
    with np.errstate(over='ignore'):
        np.divide(delta * scale_by_weight, k, out=factor, where=delta != 0)
        pull = d * factor[:, np.newaxis]

    # Source moves toward target, target toward source
    np.subtract.at(disp, sources, pull)
    np.add.at(disp, targets, pull)
    return disp


def gravity_displacement(positions: np.ndarray, k: float, gravity: float) -> np.ndarray:
    """Pull toward the origin with magnitude 0.01 * k * gravity * |p|."""
    # Magnitude times the unit vector -p/|p| reduces to a linear term,
    # which is also well defined at the origin.
    return -0.01 * k * gravity * positions


def step(
    state: SimulationState,
    sources: np.ndarray,
    targets: np.ndarray,
    weights: np.ndarray,
    options: SimulationOptions,
    frame: FrameBounds,
    k: float
) -> float:
    """
    Advance state by one iteration in place.

    All displacements are computed from the positions at the start of
    the step. Returns the largest applied displacement.
    """
    positions = state.positions
    if len(positions) == 0:
        return 0.0

    disp = repulsive_displacement(positions, k)
    disp += attractive_displacement(
        positions, sources, targets, weights, k, options.edge_weight_influence
    )
    disp += gravity_displacement(positions, k, options.gravity)

    with np.errstate(over='ignore', invalid='ignore'):
        disp *= options.speed
    disp = np.nan_to_num(disp, nan=0.0, posinf=_SATURATION, neginf=-_SATURATION)
    np.clip(disp, -_SATURATION, _SATURATION, out=disp)

    delta = np.hypot(disp[:, 0], disp[:, 1])
    max_displacement = state.temperature * options.speed
    step_length = np.minimum(delta, max_displacement)

    # Nodes with zero displacement stay put
    factor = np.zeros_like(delta)
    np.divide(step_length, delta, out=factor, where=delta != 0)
    positions += disp * factor[:, np.newaxis]

    frame.clamp(positions)
    return float(step_length.max())


def run_simulation(
    positions: np.ndarray,
    sources: np.ndarray,
    targets: np.ndarray,
    weights: np.ndarray,
    options: SimulationOptions,
    frame: FrameBounds,
    observer: Optional[ArrayObserver] = None
) -> np.ndarray:
    """
    Run exactly options.iterations steps and return the final positions.

    Args:
        positions: Initial (n, 2) array; not modified.
        sources, targets: Row indices of edge endpoints, shape (m,).
        weights: Edge weights (> 0), shape (m,).
        options: Simulation options.
        frame: Frame the positions are clamped into.
        observer: Called after each iteration with a read-only copy
                  of the positions and the iteration index.

    Returns:
        Final (n, 2) array.
    """
    n = len(positions)
    k = characteristic_distance(n, frame, options.C)
    scheduler = CoolingScheduler.for_frame(frame, options.iterations)
    state = SimulationState(
        positions=np.array(positions, dtype=np.float64, copy=True).reshape(n, 2),
        temperature=scheduler.initial_temperature,
    )

    logger.debug("Simulating n=%d m=%d k=%.4g t0=%.4g iterations=%d",
                 n, len(sources), k, state.temperature, options.iterations)

    for i, t in enumerate(scheduler):
        state.iteration = i
        state.temperature = t
        moved = step(state, sources, targets, weights, options, frame, k)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Iteration %d: t=%.4g max_step=%.4g", i, t, moved)
        if observer is not None:
            observer(state.snapshot(), i)

    return state.positions
