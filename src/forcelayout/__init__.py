# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Fruchterman-Reingold graph layout.

"""
Force-directed graph layout.

Provides a NumPy implementation of the Fruchterman-Reingold algorithm
with edge-weight influence, gravity and speed, runnable either on the
calling thread or in an isolated worker process:

- fruchterman_reingold_layout: compute node id -> (x, y)
- assign_fruchterman_reingold_layout: compute and write x/y onto the graph
- DirectHost / OffloadedHost: the two execution strategies

Example:
    import networkx as nx
    from forcelayout import fruchterman_reingold_layout

    positions = fruchterman_reingold_layout(nx.path_graph(5), iterations=20, seed=3)
"""

import logging

from .config import FrameBounds, SimulationOptions
from .cooling import CoolingScheduler
from .errors import InvalidInputError, LayoutError, WorkerExecutionError
from .hosts import DirectHost, ExecutionHost, LayoutJob, OffloadedHost
from .kernel import SimulationState, run_simulation
from .layout import (
    assign_fruchterman_reingold_layout,
    compute,
    fruchterman_reingold_layout,
    layout_from_dict,
)
from .snapshot import Edge, GraphSnapshot, NodeIndex

logger = logging.getLogger("forcelayout")


def setup_logging(level=logging.INFO, format_str=None):
    """
    Configure logging for the forcelayout package.

    Args:
        level: Logging level (default: INFO)
        format_str: Custom format string for log messages
    """
    format_str = format_str or "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(level=level, format=format_str)
    logger.setLevel(level)


__all__ = [
    # Entry points
    'fruchterman_reingold_layout',
    'assign_fruchterman_reingold_layout',
    'layout_from_dict',
    'compute',

    # Configuration
    'SimulationOptions',
    'FrameBounds',

    # Graph input
    'GraphSnapshot',
    'Edge',
    'NodeIndex',

    # Simulation
    'CoolingScheduler',
    'SimulationState',
    'run_simulation',

    # Execution hosts
    'ExecutionHost',
    'DirectHost',
    'OffloadedHost',
    'LayoutJob',

    # Errors
    'LayoutError',
    'InvalidInputError',
    'WorkerExecutionError',

    'setup_logging',
]

__version__ = '0.1.0'
