# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# JSON Lines I/O for layout graphs and positions
#
# Provides streaming I/O for graph data using JSON Lines format,
# so layouts can be computed in a pipe.

"""
JSON Lines I/O for layout input and output.

Input lines are typed objects:
    {"type": "node", "id": "a", "x": 0.1, "y": -0.2}
    {"type": "edge", "source": "a", "target": "b", "weight": 2}
    {"type": "graph", "nodes": [...], "edges": [...], "options": {...}}
    {"type": "options", "iterations": 50}

Output lines are positions:
    {"type": "position", "id": "a", "x": 0.31, "y": -0.05}

Usage:
    from forcelayout.io import read_graph, write_positions

    snapshot, options = read_graph(sys.stdin)
    write_positions(positions, sys.stdout)
"""

import json
import logging
import sys
from typing import Any, Dict, Iterator, List, Mapping, TextIO, Tuple

from .errors import InvalidInputError
from .snapshot import GraphSnapshot, PositionMapping

logger = logging.getLogger(__name__)


# ============================================================================
# READER FUNCTIONS
# ============================================================================

def read_jsonl(stream: TextIO = sys.stdin) -> Iterator[Dict[str, Any]]:
    """Read raw JSON objects from JSON Lines stream."""
    for lineno, line in enumerate(stream, 1):
        line = line.strip()
        if not line:
            continue
        try:
            obj = json.loads(line)
        except json.JSONDecodeError as e:
            raise InvalidInputError(f"line {lineno}: invalid JSON ({e.msg})")
        if not isinstance(obj, dict):
            raise InvalidInputError(f"line {lineno}: expected an object")
        yield obj


def read_graph(stream: TextIO = sys.stdin) -> Tuple[GraphSnapshot, Dict[str, Any]]:
    """
    Read a graph from JSON Lines.

    Node and edge lines accumulate; a 'graph' line contributes its nodes,
    edges and options; 'options' lines merge into the options dict.

    Returns:
        (snapshot, options dict)
    """
    nodes: List[Any] = []
    edges: List[Dict[str, Any]] = []
    options: Dict[str, Any] = {}

    for obj in read_jsonl(stream):
        obj_type = obj.get("type")
        if obj_type == "node":
            nodes.append({k: v for k, v in obj.items() if k != "type"})
        elif obj_type == "edge":
            edges.append({k: v for k, v in obj.items() if k != "type"})
        elif obj_type == "graph":
            nodes.extend(obj.get("nodes", []))
            edges.extend(obj.get("edges", []))
            options.update(obj.get("options") or {})
        elif obj_type == "options":
            options.update({k: v for k, v in obj.items() if k != "type"})
        else:
            logger.debug("Skipping line of type %r", obj_type)

    return GraphSnapshot.from_dict({"nodes": nodes, "edges": edges}), options


# ============================================================================
# WRITER FUNCTIONS
# ============================================================================

def write_jsonl(obj: Mapping[str, Any], stream: TextIO = sys.stdout) -> None:
    """Write a JSON object as a single line."""
    print(json.dumps(obj, ensure_ascii=False), file=stream)


def write_position(node_id: Any, x: float, y: float, stream: TextIO = sys.stdout) -> None:
    """Write a position object."""
    write_jsonl({"type": "position", "id": node_id, "x": x, "y": y}, stream)


def write_positions(positions: PositionMapping, stream: TextIO = sys.stdout) -> None:
    """Write positions dict as JSON Lines."""
    for node_id, (x, y) in positions.items():
        write_position(node_id, x, y, stream)


def read_positions(stream: TextIO) -> PositionMapping:
    """Read position lines back into {id: (x, y)}."""
    return {
        obj["id"]: (float(obj["x"]), float(obj["y"]))
        for obj in read_jsonl(stream)
        if obj.get("type") == "position"
    }
