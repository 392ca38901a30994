# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Exceptions raised by the layout engine.


class LayoutError(Exception):
    """Base class for layout failures."""
    pass


class InvalidInputError(LayoutError, ValueError):
    """Raised when a graph or option set fails validation.

    Always raised before any simulation state is allocated.
    """
    pass


class WorkerExecutionError(LayoutError):
    """Raised when an offloaded layout run fails or is terminated."""

    def __init__(self, message: str, details: str = ""):
        super().__init__(message)
        self.details = details
