# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Projection of kernel output back to node ids and graphs.

"""
Map dense kernel output to node ids, and write coordinates back onto the
caller's graph.
"""

from typing import Any, Mapping, MutableMapping

import networkx as nx
import numpy as np

from .errors import InvalidInputError, LayoutError
from .snapshot import NodeIndex, PositionMapping


def project(index: NodeIndex, positions: np.ndarray) -> PositionMapping:
    """Id-keyed mapping for a dense (n, 2) array; rejects non-finite values."""
    positions = np.asarray(positions, dtype=np.float64)
    if positions.shape != (len(index), 2):
        raise LayoutError(
            f"Position array shape {positions.shape} does not match {len(index)} nodes"
        )
    if not np.all(np.isfinite(positions)):
        raise LayoutError("Refusing to publish non-finite positions")
    return index.to_mapping(positions)


def check_assignable(graph: Any) -> None:
    """
    Raise InvalidInputError unless assign() can write onto graph.

    Accepts a networkx graph, or a dict graph whose nodes are all dicts
    carrying an 'id'.
    """
    if isinstance(graph, nx.Graph):
        return
    if isinstance(graph, MutableMapping):
        for node in graph.get('nodes', []):
            if not isinstance(node, MutableMapping) or 'id' not in node:
                raise InvalidInputError(
                    "assign() on a dict graph needs node dicts with an 'id' key"
                )
        return
    raise InvalidInputError(f"Cannot assign positions to {type(graph).__name__}")


def assign(graph: Any, positions: Mapping[Any, Any]) -> None:
    """
    Write x/y onto graph nodes, leaving every other attribute alone.

    Every node is checked before anything is written, so a failing call
    leaves the graph untouched.

    Args:
        graph: networkx graph, or dict graph whose nodes are dicts with 'id'.
        positions: Mapping of node id -> (x, y).
    """
    check_assignable(graph)
    if isinstance(graph, nx.Graph):
        missing = [nid for nid in positions if nid not in graph]
        if missing:
            raise InvalidInputError(f"Nodes not in graph: {missing[:5]!r}")
        updates = {
            nid: {'x': float(x), 'y': float(y)}
            for nid, (x, y) in positions.items()
        }
        nx.set_node_attributes(graph, updates)
        return

    by_id = {node['id']: node for node in graph.get('nodes', [])}
    missing = [nid for nid in positions if nid not in by_id]
    if missing:
        raise InvalidInputError(f"Nodes not in graph: {missing[:5]!r}")
    for nid, (x, y) in positions.items():
        by_id[nid].update({'x': float(x), 'y': float(y)})
