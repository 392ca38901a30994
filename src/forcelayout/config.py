# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
"""
Simulation options and frame geometry.

Usage:
    from forcelayout.config import SimulationOptions

    options = SimulationOptions(iterations=50, gravity=5.0)
    options = SimulationOptions.from_dict({'edgeWeightInfluence': 2})
    options = SimulationOptions.from_yaml('layout.yaml')
"""

import math
from dataclasses import dataclass, asdict, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import yaml

from .errors import InvalidInputError

# Wire/camelCase names accepted alongside the field names
_ALIASES = {
    'edgeWeightInfluence': 'edge_weight_influence',
    'repulsion': 'C',
    'c': 'C',
}


@dataclass(frozen=True)
class SimulationOptions:
    """Options for a Fruchterman-Reingold run."""
    iterations: int = 10
    edge_weight_influence: float = 1.0
    speed: float = 1.0
    gravity: float = 10.0
    C: float = 1.0  # Repulsion constant scaling k
    # Frame size; None scales the frame with the node count (w = l = n).
    # width=length=1 gives the unit frame.
    width: Optional[float] = None
    length: Optional[float] = None
    seed: Optional[int] = None  # Random initial placement only

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Check value ranges, raising InvalidInputError on failure."""
        if isinstance(self.iterations, bool) or not isinstance(self.iterations, (int, np.integer)):
            raise InvalidInputError(f"iterations must be an integer, got {self.iterations!r}")
        if self.iterations < 0:
            raise InvalidInputError(f"iterations must be >= 0, got {self.iterations}")

        for name in ('edge_weight_influence', 'speed', 'gravity', 'C'):
            value = getattr(self, name)
            if not _is_finite_number(value):
                raise InvalidInputError(f"{name} must be a finite number, got {value!r}")
        if self.speed <= 0:
            raise InvalidInputError(f"speed must be > 0, got {self.speed}")
        if self.C <= 0:
            raise InvalidInputError(f"C must be > 0, got {self.C}")
        if self.gravity < 0:
            raise InvalidInputError(f"gravity must be >= 0, got {self.gravity}")

        for name in ('width', 'length'):
            value = getattr(self, name)
            if value is not None and (not _is_finite_number(value) or value <= 0):
                raise InvalidInputError(f"{name} must be a positive number, got {value!r}")

    def frame_for(self, node_count: int) -> 'FrameBounds':
        """Resolve the frame for a graph of node_count nodes."""
        width = self.width if self.width is not None else float(node_count)
        length = self.length if self.length is not None else float(node_count)
        return FrameBounds(width=float(width), length=float(length))

    def with_overrides(self, **overrides) -> 'SimulationOptions':
        """Copy with the non-None overrides applied."""
        clean = _normalize_keys({k: v for k, v in overrides.items() if v is not None})
        return replace(self, **clean)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a picklable/JSON-serializable dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> 'SimulationOptions':
        """Create from a dict, accepting camelCase names and skipping None."""
        d = d or {}
        clean = _normalize_keys({k: v for k, v in d.items() if v is not None})
        return cls(**clean)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'SimulationOptions':
        """Load options from a YAML file (optionally nested under 'layout')."""
        with open(path, 'r', encoding='utf-8') as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise InvalidInputError(f"{path}: invalid YAML ({e})") from e
        if not isinstance(data, dict):
            raise InvalidInputError(f"{path}: expected a mapping, got {type(data).__name__}")
        if isinstance(data.get('layout'), dict):
            data = data['layout']
        return cls.from_dict(data)


@dataclass(frozen=True)
class FrameBounds:
    """Axis-aligned frame centred on the origin."""
    width: float
    length: float

    @property
    def half_width(self) -> float:
        return self.width / 2.0

    @property
    def half_length(self) -> float:
        return self.length / 2.0

    @property
    def area(self) -> float:
        return self.width * self.length

    def clamp(self, positions: np.ndarray) -> np.ndarray:
        """Clamp an (n, 2) array into the frame in place and return it."""
        np.clip(positions[:, 0], -self.half_width, self.half_width, out=positions[:, 0])
        np.clip(positions[:, 1], -self.half_length, self.half_length, out=positions[:, 1])
        return positions

    def contains(self, positions: np.ndarray) -> bool:
        """True when every row lies inside the frame."""
        if len(positions) == 0:
            return True
        return bool(
            np.all(np.abs(positions[:, 0]) <= self.half_width)
            and np.all(np.abs(positions[:, 1]) <= self.half_length)
        )


def _is_finite_number(value) -> bool:
    if isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def _normalize_keys(d: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    known = SimulationOptions.__dataclass_fields__
    for key, value in d.items():
        name = _ALIASES.get(key, key)
        if name not in known:
            raise InvalidInputError(f"Unknown layout option: {key!r}")
        out[name] = value
    return out
