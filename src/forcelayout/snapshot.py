# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Graph snapshots: ordered nodes, weighted edges, index projection.

"""
Immutable graph snapshots for the layout kernel.

A snapshot freezes the node order of a run. The NodeIndex built from it
links the id-keyed view of a layout (dict of node id -> (x, y)) with the
dense (n, 2) array the kernel iterates on.

Snapshots can be built from a networkx graph, a dict graph in the
mindmap JSON shape, or plain lists.
"""

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple

import networkx as nx
import numpy as np

from .errors import InvalidInputError

NodeId = Hashable
Position = Tuple[float, float]
PositionMapping = Dict[NodeId, Position]


@dataclass(frozen=True)
class Edge:
    """A weighted edge. Missing or zero weights become 1."""
    source: NodeId
    target: NodeId
    weight: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, 'weight', normalize_weight(self.weight))

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


def normalize_weight(weight: Any) -> float:
    """Substitute 1 for missing/zero weights; reject negative or non-finite ones."""
    if weight is None:
        return 1.0
    try:
        value = float(weight)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Edge weight must be numeric, got {weight!r}")
    if not math.isfinite(value) or value < 0:
        raise InvalidInputError(f"Edge weight must be finite and >= 0, got {weight!r}")
    return value or 1.0


class NodeIndex:
    """Immutable projection between node ids and dense array rows."""

    __slots__ = ('_ids', '_rows')

    def __init__(self, node_ids: Iterable[NodeId]):
        ids = tuple(node_ids)
        rows = {}
        for i, nid in enumerate(ids):
            if nid in rows:
                raise InvalidInputError(f"Duplicate node id: {nid!r}")
            rows[nid] = i
        self._ids = ids
        self._rows = MappingProxyType(rows)

    @property
    def ids(self) -> Tuple[NodeId, ...]:
        return self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, node_id) -> bool:
        return node_id in self._rows

    def row(self, node_id: NodeId) -> int:
        return self._rows[node_id]

    def to_array(self, mapping: Mapping[NodeId, Sequence[float]]) -> np.ndarray:
        """Dense (n, 2) array from a total mapping."""
        arr = np.empty((len(self._ids), 2), dtype=np.float64)
        for i, nid in enumerate(self._ids):
            x, y = mapping[nid]
            arr[i, 0] = x
            arr[i, 1] = y
        return arr

    def to_mapping(self, positions: np.ndarray) -> PositionMapping:
        """Id-keyed mapping of plain floats from an (n, 2) array."""
        return {
            nid: (float(positions[i, 0]), float(positions[i, 1]))
            for i, nid in enumerate(self._ids)
        }


@dataclass(frozen=True)
class GraphSnapshot:
    """Ordered NodeSet, EdgeSet and optional caller-supplied coordinates."""
    nodes: Tuple[NodeId, ...]
    edges: Tuple[Edge, ...] = ()
    initial_positions: Optional[Mapping[NodeId, Position]] = None
    index: NodeIndex = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'nodes', tuple(self.nodes))
        object.__setattr__(self, 'edges', tuple(self.edges))
        index = NodeIndex(self.nodes)
        for edge in self.edges:
            if edge.source not in index or edge.target not in index:
                raise InvalidInputError(
                    f"Edge ({edge.source!r}, {edge.target!r}) references an unknown node"
                )
        object.__setattr__(self, 'index', index)

    def __len__(self) -> int:
        return len(self.nodes)

    def edge_arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return (sources, targets, weights) as row-indexed numpy arrays."""
        m = len(self.edges)
        sources = np.empty(m, dtype=np.intp)
        targets = np.empty(m, dtype=np.intp)
        weights = np.empty(m, dtype=np.float64)
        for e, edge in enumerate(self.edges):
            sources[e] = self.index.row(edge.source)
            targets[e] = self.index.row(edge.target)
            weights[e] = edge.weight
        return sources, targets, weights

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_networkx(cls, graph: Any, weight: str = 'weight') -> 'GraphSnapshot':
        """
        Snapshot a networkx graph.

        Node attributes 'x'/'y' are taken as initial coordinates. Every
        edge is kept, including parallel edges of multigraphs.
        """
        if not isinstance(graph, nx.Graph):
            raise InvalidInputError(
                f"Expected a networkx graph, got {type(graph).__name__}"
            )
        nodes = list(graph.nodes)
        edges = [
            Edge(u, v, data.get(weight))
            for u, v, data in graph.edges(data=True)
        ]
        initial = {}
        for nid, attrs in graph.nodes(data=True):
            if 'x' in attrs and 'y' in attrs:
                initial[nid] = (attrs['x'], attrs['y'])
        return cls(nodes=tuple(nodes), edges=tuple(edges), initial_positions=initial or None)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> 'GraphSnapshot':
        """
        Snapshot a dict graph.

        Args:
            d: Dictionary with 'nodes' and 'edges' keys.
               nodes: ids, or dicts with 'id' and optional 'x', 'y'
               edges: dicts with 'source'/'target' (or 'from'/'to')
                      and optional 'weight'
        """
        if not isinstance(d, Mapping):
            raise InvalidInputError(f"Expected a graph mapping, got {type(d).__name__}")

        nodes: List[NodeId] = []
        initial: Dict[NodeId, Position] = {}
        for n in d.get('nodes', []):
            if isinstance(n, Mapping):
                if 'id' not in n:
                    raise InvalidInputError(f"Node without 'id': {n!r}")
                nodes.append(n['id'])
                if n.get('x') is not None and n.get('y') is not None:
                    initial[n['id']] = (n['x'], n['y'])
            else:
                nodes.append(n)

        edges = []
        for e in d.get('edges', []):
            if not isinstance(e, Mapping):
                raise InvalidInputError(f"Edge must be a mapping, got {e!r}")
            source = e.get('source', e.get('from'))
            target = e.get('target', e.get('to'))
            if source is None or target is None:
                raise InvalidInputError(f"Edge without endpoints: {e!r}")
            edges.append(Edge(source, target, e.get('weight')))

        return cls(nodes=tuple(nodes), edges=tuple(edges), initial_positions=initial or None)

    @classmethod
    def from_lists(cls, nodes: Iterable[NodeId],
                   edges: Iterable[Sequence[Any]] = ()) -> 'GraphSnapshot':
        """Snapshot from node ids and (source, target[, weight]) tuples."""
        parsed = []
        for e in edges:
            if len(e) == 2:
                parsed.append(Edge(e[0], e[1]))
            elif len(e) == 3:
                parsed.append(Edge(e[0], e[1], e[2]))
            else:
                raise InvalidInputError(f"Edge tuple must have 2 or 3 items, got {e!r}")
        return cls(nodes=tuple(nodes), edges=tuple(parsed))


def coerce_snapshot(graph: Any) -> GraphSnapshot:
    """Accept a GraphSnapshot, networkx graph or dict graph."""
    if isinstance(graph, GraphSnapshot):
        return graph
    if isinstance(graph, nx.Graph):
        return GraphSnapshot.from_networkx(graph)
    if isinstance(graph, Mapping):
        return GraphSnapshot.from_dict(graph)
    raise InvalidInputError(
        f"Not a valid graph: expected a networkx graph, dict graph or "
        f"GraphSnapshot, got {type(graph).__name__}"
    )
