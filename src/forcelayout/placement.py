# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Initial node placement.

"""
Starting positions for a layout run.

Caller-supplied coordinates are used when every node has a finite pair;
otherwise nodes are scattered uniformly over the central half of the
frame. All randomness of a run happens here, before the kernel starts.
"""

import logging
import math
from typing import Mapping, Optional, Sequence

import numpy as np

from .config import FrameBounds
from .snapshot import NodeIndex, NodeId

logger = logging.getLogger(__name__)


def has_complete_coordinates(
    index: NodeIndex,
    supplied: Optional[Mapping[NodeId, Sequence[float]]]
) -> bool:
    """True when supplied holds finite (x, y) for every node of index."""
    if not supplied:
        return False
    for nid in index.ids:
        pos = supplied.get(nid)
        if pos is None or len(pos) != 2:
            return False
        try:
            if not (math.isfinite(float(pos[0])) and math.isfinite(float(pos[1]))):
                return False
        except (TypeError, ValueError):
            return False
    return True


def random_placement(
    n: int,
    frame: FrameBounds,
    seed: Optional[int] = None
) -> np.ndarray:
    """Uniform positions in [-w/4, w/4] x [-l/4, l/4]."""
    rng = np.random.default_rng(seed)
    positions = np.empty((n, 2), dtype=np.float64)
    positions[:, 0] = rng.uniform(-frame.width / 4.0, frame.width / 4.0, size=n)
    positions[:, 1] = rng.uniform(-frame.length / 4.0, frame.length / 4.0, size=n)
    return positions


def initial_placement(
    index: NodeIndex,
    frame: FrameBounds,
    supplied: Optional[Mapping[NodeId, Sequence[float]]] = None,
    seed: Optional[int] = None
) -> np.ndarray:
    """
    Produce a finite, in-frame (n, 2) starting array.

    Args:
        index: Node order for the run.
        frame: Frame the positions must lie in.
        supplied: Optional caller coordinates keyed by node id.
        seed: Seed for the random fallback.

    Returns:
        Array of shape (len(index), 2).
    """
    n = len(index)
    if has_complete_coordinates(index, supplied):
        positions = index.to_array(supplied)
        if not frame.contains(positions):
            logger.debug("Clamping supplied coordinates into %sx%s frame",
                         frame.width, frame.length)
        return frame.clamp(positions)

    if supplied:
        logger.debug("Supplied coordinates incomplete (%d of %d nodes); using random placement",
                     len(supplied), n)
    return random_placement(n, frame, seed)
