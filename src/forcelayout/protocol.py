# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Message protocol between a layout client and an offloaded worker.

"""
Messages exchanged with an offloaded layout worker.

Client -> worker:
    {"action": "DATA", "nodeCount": n, "serializedEdges": {...},
     "options": {...}, "positions": [[x, y], ...]}

Worker -> client, in order:
    {"type": "RUNNING"}
    {"type": "DATA", "data": {"positions": [[x, y], ...], "i": 0}}   (one per iteration)
    {"type": "FINISHED", "data": [[x, y], ...]}
      or
    {"type": "ERROR", "data": "description"}

Position payloads are dense arrays in NodeIndex row order. Every
payload is a private copy; nothing crossing the boundary aliases a
buffer the sender keeps mutating.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Union

import numpy as np

from .config import SimulationOptions


class WorkerAction(Enum):
    """Client -> worker actions."""
    DATA = "DATA"


class MessageType(Enum):
    """Worker -> client message types."""
    ERROR = "ERROR"
    DATA = "DATA"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"


TERMINAL_TYPES = frozenset({MessageType.FINISHED, MessageType.ERROR})


def copy_positions(positions: np.ndarray) -> np.ndarray:
    """Snapshot-then-send: detached float64 copy of an (n, 2) array."""
    return np.array(positions, dtype=np.float64, copy=True).reshape(-1, 2)


# ============================================================================
# CLIENT MESSAGES
# ============================================================================

@dataclass
class StartMessage:
    """Start a run in the worker."""
    node_count: int
    sources: np.ndarray
    targets: np.ndarray
    weights: np.ndarray
    options: SimulationOptions
    positions: np.ndarray

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a picklable dict; arrays are copied."""
        return {
            "action": WorkerAction.DATA.value,
            "nodeCount": int(self.node_count),
            "serializedEdges": {
                "sources": np.array(self.sources, dtype=np.intp, copy=True),
                "targets": np.array(self.targets, dtype=np.intp, copy=True),
                "weights": np.array(self.weights, dtype=np.float64, copy=True),
            },
            "options": self.options.to_dict(),
            "positions": copy_positions(self.positions),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'StartMessage':
        """Create from a received dict."""
        if d.get("action") != WorkerAction.DATA.value:
            raise ValueError(f"Unknown worker action: {d.get('action')!r}")
        edges = d["serializedEdges"]
        return cls(
            node_count=d["nodeCount"],
            sources=np.asarray(edges["sources"], dtype=np.intp),
            targets=np.asarray(edges["targets"], dtype=np.intp),
            weights=np.asarray(edges["weights"], dtype=np.float64),
            options=SimulationOptions.from_dict(d["options"]),
            positions=np.asarray(d["positions"], dtype=np.float64).reshape(-1, 2),
        )


# ============================================================================
# WORKER MESSAGES
# ============================================================================

@dataclass
class RunningMessage:
    type: MessageType = field(default=MessageType.RUNNING, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value}


@dataclass
class ProgressMessage:
    """Positions after iteration i."""
    positions: np.ndarray
    i: int
    type: MessageType = field(default=MessageType.DATA, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "data": {"positions": copy_positions(self.positions), "i": int(self.i)},
        }


@dataclass
class FinishedMessage:
    """Final positions."""
    positions: np.ndarray
    type: MessageType = field(default=MessageType.FINISHED, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "data": copy_positions(self.positions)}


@dataclass
class ErrorMessage:
    """Failure description."""
    description: str
    type: MessageType = field(default=MessageType.ERROR, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "data": str(self.description)}


WorkerMessage = Union[RunningMessage, ProgressMessage, FinishedMessage, ErrorMessage]


def decode_worker_message(d: Dict[str, Any]) -> WorkerMessage:
    """Decode a worker dict into a typed message."""
    try:
        msg_type = MessageType(d.get("type"))
    except ValueError:
        raise ValueError(f"Unknown worker message type: {d.get('type')!r}")

    if msg_type is MessageType.RUNNING:
        return RunningMessage()
    if msg_type is MessageType.DATA:
        data = d["data"]
        return ProgressMessage(
            positions=np.asarray(data["positions"], dtype=np.float64).reshape(-1, 2),
            i=int(data["i"]),
        )
    if msg_type is MessageType.FINISHED:
        return FinishedMessage(
            positions=np.asarray(d["data"], dtype=np.float64).reshape(-1, 2)
        )
    return ErrorMessage(description=str(d.get("data", "")))


def is_terminal(message: WorkerMessage) -> bool:
    return message.type in TERMINAL_TYPES
