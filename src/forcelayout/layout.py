# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
#
# Public layout entry points.

"""
Fruchterman-Reingold layout entry points.

Usage:
    import networkx as nx
    from forcelayout import fruchterman_reingold_layout

    G = nx.karate_club_graph()
    positions = fruchterman_reingold_layout(G, iterations=50, seed=7)

    # Same result, computed in a worker process
    positions = fruchterman_reingold_layout(G, iterations=50, seed=7, offloaded=True)

    # Write x/y back onto the graph
    assign_fruchterman_reingold_layout(G, iterations=50)
"""

from typing import Any, Dict, Optional, Union

from .config import SimulationOptions
from .hosts import DirectHost, ExecutionHost, Observer, OffloadedHost
from .projector import assign, check_assignable
from .snapshot import GraphSnapshot, PositionMapping, coerce_snapshot

OptionsLike = Union[SimulationOptions, Dict[str, Any], None]


def resolve_options(options: OptionsLike = None, **overrides) -> SimulationOptions:
    """Build SimulationOptions from an instance or dict plus keyword overrides."""
    if isinstance(options, SimulationOptions):
        base = options
    else:
        base = SimulationOptions.from_dict(options)
    if overrides:
        base = base.with_overrides(**overrides)
    return base


def _host_for(offloaded: bool, host: Optional[ExecutionHost]) -> ExecutionHost:
    if host is not None:
        return host
    return OffloadedHost() if offloaded else DirectHost()


def fruchterman_reingold_layout(
    graph: Any,
    options: OptionsLike = None,
    offloaded: bool = False,
    observer: Optional[Observer] = None,
    host: Optional[ExecutionHost] = None,
    **overrides
) -> PositionMapping:
    """
    Compute a Fruchterman-Reingold layout.

    Args:
        graph: networkx graph, dict graph ({'nodes': [...], 'edges': [...]})
               or GraphSnapshot.
        options: SimulationOptions or dict of options.
        offloaded: Run in a worker process instead of the calling thread.
        observer: Called as observer(positions, i) after every iteration.
        host: Explicit execution host (overrides offloaded).
        **overrides: Individual options, e.g. iterations=50, gravity=5.

    The frame defaults to n x n for n nodes. Pass width=1, length=1 for a
    unit frame, where every coordinate stays within +/-0.5.

    Returns:
        Dictionary mapping node IDs to (x, y) positions.

    Raises:
        InvalidInputError: graph or options are invalid.
        WorkerExecutionError: the offloaded run failed.
    """
    snapshot = coerce_snapshot(graph)
    resolved = resolve_options(options, **overrides)
    return _host_for(offloaded, host).run(snapshot, resolved, observer)


def assign_fruchterman_reingold_layout(
    graph: Any,
    options: OptionsLike = None,
    offloaded: bool = False,
    observer: Optional[Observer] = None,
    host: Optional[ExecutionHost] = None,
    **overrides
) -> PositionMapping:
    """
    Compute a layout and write x/y onto the graph's nodes.

    When the run goes through an OffloadedHost, the graph is also updated
    on every progress message, so a live view can redraw while the worker
    runs. The graph is checked for write-back before the simulation starts.
    """
    check_assignable(graph)
    snapshot = coerce_snapshot(graph)
    resolved = resolve_options(options, **overrides)
    run_host = _host_for(offloaded, host)
    live = isinstance(run_host, OffloadedHost)

    def on_progress(positions: PositionMapping, i: int) -> None:
        if live:
            assign(graph, positions)
        if observer is not None:
            observer(positions, i)

    positions = run_host.run(snapshot, resolved, on_progress)
    assign(graph, positions)
    return positions


def layout_from_dict(graph: Dict[str, Any], options: OptionsLike = None) -> PositionMapping:
    """Layout for a dict graph; explicit options win over embedded 'options'."""
    if isinstance(options, SimulationOptions):
        return fruchterman_reingold_layout(graph, options)
    merged = dict(graph.get('options') or {})
    merged.update(options or {})
    return fruchterman_reingold_layout(graph, merged)


def compute(nodes, edges, **options) -> PositionMapping:
    """Compute layout from node list and edge list (keyword options)."""
    return fruchterman_reingold_layout(GraphSnapshot.from_dict({'nodes': nodes, 'edges': edges}),
                                       options)
