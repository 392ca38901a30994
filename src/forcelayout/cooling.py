# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Cooling schedule for the force simulation.

"""
Temperature schedule bounding per-iteration displacement.

The temperature starts at a tenth of the frame width and is divided by
(iterations + 1) after every step, independent of the step index.
"""

from typing import Iterator, List

from .config import FrameBounds


def initial_temperature_for(frame: FrameBounds) -> float:
    """Starting temperature for a frame."""
    return frame.width / 10.0


class CoolingScheduler:
    """Fixed geometric decay t <- t / (iterations + 1)."""

    def __init__(self, initial_temperature: float, iterations: int):
        self.initial_temperature = float(initial_temperature)
        self.iterations = int(iterations)
        self.decay = self.iterations + 1.0

    @classmethod
    def for_frame(cls, frame: FrameBounds, iterations: int) -> 'CoolingScheduler':
        return cls(initial_temperature_for(frame), iterations)

    def cool(self, t: float) -> float:
        return t / self.decay

    def __iter__(self) -> Iterator[float]:
        """Yield the temperature used by each iteration, in order."""
        t = self.initial_temperature
        for _ in range(self.iterations):
            yield t
            t = self.cool(t)

    def __len__(self) -> int:
        return self.iterations

    def temperatures(self) -> List[float]:
        return list(self)
