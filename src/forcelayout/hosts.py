# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
"""
Execution hosts for the force simulation.

Two interchangeable strategies share one contract: given a snapshot and
options, produce the same PositionMapping.

    DirectHost     - runs the kernel on the calling thread; the observer
                     fires inline after every iteration.
    OffloadedHost  - runs the kernel in a separate process and streams
                     progress back through a message queue.

Usage:
    from forcelayout.hosts import OffloadedHost

    host = OffloadedHost()
    job = host.submit(snapshot, options, on_progress=print)
    for message in job.messages():
        ...
    positions = job.result()
"""

import logging
import multiprocessing
import queue
import threading
import time
import traceback
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

import numpy as np

from .config import FrameBounds, SimulationOptions
from .errors import WorkerExecutionError
from .kernel import run_simulation
from .placement import initial_placement
from .projector import project
from .protocol import (
    ErrorMessage,
    FinishedMessage,
    MessageType,
    ProgressMessage,
    RunningMessage,
    StartMessage,
    WorkerMessage,
    decode_worker_message,
)
from .snapshot import GraphSnapshot, NodeIndex, PositionMapping

logger = logging.getLogger(__name__)

# Observer receives a private copy of the layout and the 0-based iteration
Observer = Callable[[PositionMapping, int], None]


@dataclass
class PreparedRun:
    """Everything a kernel invocation needs, resolved on the caller side."""
    index: NodeIndex
    frame: FrameBounds
    options: SimulationOptions
    positions: np.ndarray
    sources: np.ndarray
    targets: np.ndarray
    weights: np.ndarray


def prepare_run(snapshot: GraphSnapshot, options: SimulationOptions) -> PreparedRun:
    """Resolve frame, initial placement and edge arrays for a run."""
    frame = options.frame_for(len(snapshot))
    positions = initial_placement(
        snapshot.index, frame, snapshot.initial_positions, seed=options.seed
    )
    sources, targets, weights = snapshot.edge_arrays()
    return PreparedRun(
        index=snapshot.index,
        frame=frame,
        options=options,
        positions=positions,
        sources=sources,
        targets=targets,
        weights=weights,
    )


class ExecutionHost(ABC):
    """Common contract of the execution strategies."""

    @abstractmethod
    def run(self, snapshot: GraphSnapshot, options: SimulationOptions,
            observer: Optional[Observer] = None) -> PositionMapping:
        """Run a full layout and return the final positions."""
        pass


# =============================================================================
# Direct execution
# =============================================================================

class DirectHost(ExecutionHost):
    """Synchronous, same-thread execution."""

    def run(self, snapshot: GraphSnapshot, options: SimulationOptions,
            observer: Optional[Observer] = None) -> PositionMapping:
        prepared = prepare_run(snapshot, options)
        return self.run_prepared(prepared, observer)

    def run_prepared(self, prepared: PreparedRun,
                     observer: Optional[Observer] = None) -> PositionMapping:
        index = prepared.index
        array_observer = None
        if observer is not None:
            def array_observer(snapshot: np.ndarray, i: int) -> None:
                observer(index.to_mapping(snapshot), i)

        logger.info("Direct layout: %d nodes, %d edges, %d iterations",
                    len(index), len(prepared.sources), prepared.options.iterations)
        start = time.perf_counter()
        final = run_simulation(
            prepared.positions,
            prepared.sources,
            prepared.targets,
            prepared.weights,
            prepared.options,
            prepared.frame,
            observer=array_observer,
        )
        logger.info("Direct layout finished in %.3fs", time.perf_counter() - start)
        return project(index, final)


# =============================================================================
# Offloaded execution
# =============================================================================

def _worker_main(inbox, outbox) -> None:
    """Worker process entry point: one start message, one run."""
    try:
        request = StartMessage.from_dict(inbox.get())
        outbox.put(RunningMessage().to_dict())

        def on_iteration(snapshot: np.ndarray, i: int) -> None:
            # to_dict() copies before the message is queued
            outbox.put(ProgressMessage(positions=snapshot, i=i).to_dict())

        frame = request.options.frame_for(request.node_count)
        final = run_simulation(
            request.positions,
            request.sources,
            request.targets,
            request.weights,
            request.options,
            frame,
            observer=on_iteration,
        )
        outbox.put(FinishedMessage(positions=final).to_dict())
    except Exception as e:
        outbox.put(ErrorMessage(
            description=f"{type(e).__name__}: {e}\n{traceback.format_exc()}"
        ).to_dict())


class LayoutJob:
    """
    Handle on an offloaded layout run.

    Messages are consumed in the thread that calls messages(), wait() or
    result(); progress callbacks fire there, in iteration order.
    """

    def __init__(self, process, outbox, prepared: PreparedRun,
                 on_progress: Optional[Observer] = None,
                 poll_interval: float = 0.05):
        self._process = process
        self._outbox = outbox
        self._index = prepared.index
        self._iterations = prepared.options.iterations
        self._on_progress = on_progress
        self._poll_interval = poll_interval
        self._lock = threading.RLock()
        self._last_iteration = -1
        self._done = False
        self._result: Optional[PositionMapping] = None
        self._error: Optional[WorkerExecutionError] = None

    @property
    def ready(self) -> bool:
        """True once the terminal message has been received."""
        return self._done

    @property
    def error(self) -> Optional[WorkerExecutionError]:
        """The failure of a finished run, if any."""
        return self._error

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid

    def messages(self, timeout: Optional[float] = None) -> Iterator[WorkerMessage]:
        """
        Yield worker messages in order, ending with the terminal one.

        Args:
            timeout: Maximum seconds to wait for each message.
        """
        while True:
            with self._lock:
                if self._done:
                    return
                message = self._receive(timeout)
                self._handle(message)
            yield message

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Consume messages until the run ends or timeout elapses."""
        deadline = None if timeout is None else time.monotonic() + timeout
        try:
            while not self._done:
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                with self._lock:
                    if self._done:
                        break
                    self._handle(self._receive(remaining))
        except TimeoutError:
            pass
        return self._done

    def result(self, timeout: Optional[float] = None) -> PositionMapping:
        """Final positions; raises WorkerExecutionError if the run failed."""
        if not self.wait(timeout):
            raise TimeoutError(f"Layout did not finish within {timeout}s")
        if self._error is not None:
            raise self._error
        return self._result

    def terminate(self) -> None:
        """Stop the worker. Pending results become unobservable."""
        with self._lock:
            if self._done:
                return
            logger.info("Terminating layout worker pid=%s", self._process.pid)
            self._process.terminate()
            self._process.join()
            self._finish(error=WorkerExecutionError("Layout worker was terminated"))

    def __enter__(self) -> 'LayoutJob':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.terminate()

    # ------------------------------------------------------------------

    def _receive(self, timeout: Optional[float]) -> WorkerMessage:
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            wait = self._poll_interval
            if deadline is not None:
                wait = min(wait, max(0.0, deadline - time.monotonic()))
            try:
                return decode_worker_message(self._outbox.get(timeout=wait))
            except queue.Empty:
                pass

            if not self._process.is_alive():
                # Drain anything flushed just before exit
                try:
                    return decode_worker_message(self._outbox.get(timeout=self._poll_interval))
                except queue.Empty:
                    return ErrorMessage(
                        description=f"Layout worker exited with code "
                                    f"{self._process.exitcode} before finishing"
                    )
            if deadline is not None and time.monotonic() >= deadline:
                raise TimeoutError("Timed out waiting for layout worker")

    def _handle(self, message: WorkerMessage) -> None:
        if message.type is MessageType.RUNNING:
            logger.debug("Layout worker pid=%s running", self._process.pid)
        elif message.type is MessageType.DATA:
            if message.i != self._last_iteration + 1:
                self._process.terminate()
                self._finish(error=WorkerExecutionError(
                    f"Out-of-order progress: got iteration {message.i} "
                    f"after {self._last_iteration}"
                ))
                return
            self._last_iteration = message.i
            if self._on_progress is not None:
                self._on_progress(project(self._index, message.positions), message.i)
        elif message.type is MessageType.FINISHED:
            if self._last_iteration + 1 != self._iterations:
                self._finish(error=WorkerExecutionError(
                    f"Worker finished after {self._last_iteration + 1} of "
                    f"{self._iterations} iterations"
                ))
                return
            self._finish(result=project(self._index, message.positions))
        else:
            logger.error("Layout worker failed: %s", message.description)
            summary = message.description.splitlines()[0] if message.description else ""
            self._finish(error=WorkerExecutionError(
                f"Layout worker failed: {summary}", details=message.description
            ))

    def _finish(self, result: Optional[PositionMapping] = None,
                error: Optional[WorkerExecutionError] = None) -> None:
        self._result = result
        self._error = error
        self._done = True
        self._process.join(timeout=5)
        self._outbox.close()


class OffloadedHost(ExecutionHost):
    """
    Process-isolated execution.

    Args:
        start_method: multiprocessing start method ('spawn', 'fork',
                      'forkserver'); None uses the platform default.
        poll_interval: Seconds between liveness checks while waiting.
    """

    def __init__(self, start_method: Optional[str] = None, poll_interval: float = 0.05):
        self._context = multiprocessing.get_context(start_method)
        self.poll_interval = poll_interval

    def submit(self, snapshot: GraphSnapshot, options: SimulationOptions,
               on_progress: Optional[Observer] = None) -> LayoutJob:
        """Start a run and return immediately."""
        return self.submit_prepared(prepare_run(snapshot, options), on_progress)

    def submit_prepared(self, prepared: PreparedRun,
                        on_progress: Optional[Observer] = None) -> LayoutJob:
        inbox = self._context.Queue()
        outbox = self._context.Queue()
        process = self._context.Process(
            target=_worker_main,
            args=(inbox, outbox),
            name="forcelayout-worker",
            daemon=True,
        )
        process.start()
        logger.info("Offloaded layout: %d nodes, %d edges, %d iterations (pid=%s)",
                    len(prepared.index), len(prepared.sources),
                    prepared.options.iterations, process.pid)

        inbox.put(StartMessage(
            node_count=len(prepared.index),
            sources=prepared.sources,
            targets=prepared.targets,
            weights=prepared.weights,
            options=prepared.options,
            positions=prepared.positions,
        ).to_dict())
        inbox.close()

        return LayoutJob(process, outbox, prepared,
                         on_progress=on_progress, poll_interval=self.poll_interval)

    def run(self, snapshot: GraphSnapshot, options: SimulationOptions,
            observer: Optional[Observer] = None) -> PositionMapping:
        job = self.submit(snapshot, options, on_progress=observer)
        try:
            return job.result()
        finally:
            job.terminate()
