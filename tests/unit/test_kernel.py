# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
"""Tests for the force simulation kernel."""

import math

import numpy as np
import pytest

from forcelayout.config import FrameBounds, SimulationOptions
from forcelayout.hosts import prepare_run
from forcelayout.kernel import (
    SimulationState,
    attractive_displacement,
    characteristic_distance,
    gravity_displacement,
    repulsive_displacement,
    run_simulation,
)
from forcelayout.snapshot import GraphSnapshot


def _run(snapshot, options, observer=None):
    prepared = prepare_run(snapshot, options)
    final = run_simulation(
        prepared.positions, prepared.sources, prepared.targets, prepared.weights,
        options, prepared.frame, observer=observer,
    )
    return prepared, final


def _random_graph(n, m, seed):
    rng = np.random.default_rng(seed)
    edges = [(int(a), int(b), float(w)) for a, b, w in zip(
        rng.integers(0, n, m), rng.integers(0, n, m), rng.uniform(0.5, 3.0, m)
    )]
    return GraphSnapshot.from_lists(range(n), edges)


class TestForces:
    """Tests for the individual force terms."""

    def test_characteristic_distance(self):
        assert characteristic_distance(4, FrameBounds(4.0, 4.0), 1.0) == pytest.approx(2.0)
        assert characteristic_distance(2, FrameBounds(1.0, 1.0), 2.0) == pytest.approx(2 * math.sqrt(0.5))
        assert characteristic_distance(0, FrameBounds(0.0, 0.0), 1.0) == 0.0

    def test_repulsion_pushes_apart(self):
        """Test fr(d) = k^2/d along the separating direction."""
        positions = np.array([[-1.0, 0.0], [1.0, 0.0]])
        disp = repulsive_displacement(positions, k=2.0)
        np.testing.assert_allclose(disp, [[-2.0, 0.0], [2.0, 0.0]])

    def test_repulsion_skips_coincident_nodes(self):
        positions = np.array([[0.3, 0.3], [0.3, 0.3]])
        disp = repulsive_displacement(positions, k=1.0)
        np.testing.assert_array_equal(disp, np.zeros((2, 2)))

    def test_repulsion_not_culled_for_far_pairs(self):
        """Test distant pairs still contribute."""
        positions = np.array([[0.0, 0.0], [1e6, 0.0]])
        disp = repulsive_displacement(positions, k=1.0)
        assert disp[0, 0] == pytest.approx(-1e-6)
        assert disp[1, 0] == pytest.approx(1e-6)

    def test_attraction_scaled_by_weight(self):
        """Test fa(d) = d^2/k * weight ** influence, pulling endpoints together."""
        positions = np.array([[0.0, 0.0], [2.0, 0.0]])
        disp = attractive_displacement(
            positions, np.array([0]), np.array([1]), np.array([3.0]),
            k=1.0, edge_weight_influence=2.0,
        )
        # d^2/k = 4, weight^2 = 9
        np.testing.assert_allclose(disp, [[36.0, 0.0], [-36.0, 0.0]])

    def test_attraction_skips_self_loop(self):
        positions = np.array([[0.5, 0.5]])
        disp = attractive_displacement(
            positions, np.array([0]), np.array([0]), np.array([1.0]),
            k=1.0, edge_weight_influence=1.0,
        )
        np.testing.assert_array_equal(disp, [[0.0, 0.0]])

    def test_gravity_toward_origin(self):
        """Test magnitude 0.01 * k * gravity * |p|, zero at the origin."""
        positions = np.array([[3.0, 4.0], [0.0, 0.0]])
        disp = gravity_displacement(positions, k=2.0, gravity=10.0)
        assert np.hypot(*disp[0]) == pytest.approx(0.01 * 2.0 * 10.0 * 5.0)
        assert np.dot(disp[0], positions[0]) < 0
        np.testing.assert_array_equal(disp[1], [0.0, 0.0])


class TestRunSimulation:
    """Tests for the iteration loop."""

    def test_zero_iterations_returns_initial_placement(self):
        snapshot = _random_graph(12, 20, seed=1)
        options = SimulationOptions(iterations=0, seed=3)
        prepared, final = _run(snapshot, options)
        np.testing.assert_array_equal(final, prepared.positions)

    def test_input_array_not_modified(self):
        snapshot = _random_graph(6, 8, seed=2)
        prepared = prepare_run(snapshot, SimulationOptions(seed=1))
        before = prepared.positions.copy()
        run_simulation(prepared.positions, prepared.sources, prepared.targets,
                       prepared.weights, prepared.options, prepared.frame)
        np.testing.assert_array_equal(prepared.positions, before)

    def test_two_nodes_move_closer(self):
        """Test a single edge in a unit frame pulls its endpoints together."""
        snapshot = GraphSnapshot.from_dict({
            'nodes': [{'id': 'A', 'x': -0.4, 'y': 0.0}, {'id': 'B', 'x': 0.4, 'y': 0.0}],
            'edges': [{'source': 'A', 'target': 'B', 'weight': 1}],
        })
        options = SimulationOptions(iterations=1, width=1.0, length=1.0)
        _, final = _run(snapshot, options)

        (ax, ay), (bx, by) = final
        assert math.hypot(bx - ax, by - ay) < 0.8
        assert np.all(np.abs(final) <= 0.5)
        # Limited by the temperature (width / 10)
        np.testing.assert_allclose(final, [[-0.3, 0.0], [0.3, 0.0]])

    def test_isolated_node_pulled_toward_origin(self):
        """Test gravity draws an unconnected node inward every iteration."""
        snapshot = GraphSnapshot.from_dict({
            'nodes': [
                {'id': 'a', 'x': -300.0, 'y': -50.0},
                {'id': 'b', 'x': -300.0, 'y': 50.0},
                {'id': 'c', 'x': -350.0, 'y': -50.0},
                {'id': 'd', 'x': -350.0, 'y': 50.0},
                {'id': 'lonely', 'x': 400.0, 'y': 0.0},
            ],
            'edges': [
                {'source': 'a', 'target': 'b'},
                {'source': 'b', 'target': 'd'},
                {'source': 'd', 'target': 'c'},
                {'source': 'c', 'target': 'a'},
            ],
        })
        options = SimulationOptions(iterations=6, gravity=10.0, width=1000.0, length=1000.0)
        lonely = snapshot.index.row('lonely')
        distances = [400.0]

        def observer(snapshot_positions, i):
            distances.append(float(np.hypot(*snapshot_positions[lonely])))

        _run(snapshot, options, observer)
        assert len(distances) == 7
        assert all(b < a for a, b in zip(distances, distances[1:]))

    def test_positions_in_frame_after_every_iteration(self):
        snapshot = _random_graph(40, 80, seed=7)
        options = SimulationOptions(iterations=15, speed=3.0, seed=11)
        frame = options.frame_for(len(snapshot))
        checked = []

        def observer(positions, i):
            assert frame.contains(positions)
            assert np.all(np.isfinite(positions))
            checked.append(i)

        _run(snapshot, options, observer)
        assert checked == list(range(15))

    def test_observer_gets_read_only_copy(self):
        """Test observer cannot write into kernel state."""
        snapshot = _random_graph(5, 5, seed=3)
        options = SimulationOptions(iterations=3, seed=2)
        seen = []

        def observer(positions, i):
            with pytest.raises(ValueError):
                positions[0, 0] = 1e9
            seen.append(positions)

        _, final = _run(snapshot, options, observer)
        assert seen[-1] is not final
        np.testing.assert_array_equal(seen[-1], final)

    def test_deterministic(self):
        snapshot = _random_graph(25, 40, seed=5)
        options = SimulationOptions(iterations=12, seed=8)
        _, first = _run(snapshot, options)
        _, second = _run(snapshot, options)
        np.testing.assert_array_equal(first, second)

    def test_self_loop_has_no_effect(self):
        base = GraphSnapshot.from_lists('abcd', [('a', 'b'), ('c', 'd')])
        looped = GraphSnapshot.from_lists('abcd', [('a', 'b'), ('c', 'd'), ('a', 'a', 5.0)])
        options = SimulationOptions(iterations=8, seed=4)
        _, expected = _run(base, options)
        _, actual = _run(looped, options)
        np.testing.assert_array_equal(actual, expected)

    def test_coincident_nodes_stay_finite(self):
        """Test exact zero separation never produces NaN."""
        snapshot = GraphSnapshot.from_dict({
            'nodes': [{'id': i, 'x': 0.25, 'y': 0.25} for i in range(3)],
            'edges': [{'source': 0, 'target': 1}],
        })
        _, final = _run(snapshot, SimulationOptions(iterations=5))
        assert np.all(np.isfinite(final))

    def test_node_at_origin_stays_finite(self):
        snapshot = GraphSnapshot.from_dict({'nodes': [{'id': 'o', 'x': 0.0, 'y': 0.0}]})
        _, final = _run(snapshot, SimulationOptions(iterations=3))
        np.testing.assert_array_equal(final, [[0.0, 0.0]])

    def test_missing_weight_no_division_by_zero(self):
        """Test missing/zero weights with a negative influence exponent."""
        snapshot = GraphSnapshot.from_dict({
            'nodes': ['a', 'b', 'c'],
            'edges': [{'source': 'a', 'target': 'b'}, {'source': 'b', 'target': 'c', 'weight': 0}],
        })
        options = SimulationOptions(iterations=5, edge_weight_influence=-2.0, seed=6)
        with np.errstate(divide='raise', invalid='raise'):
            _, final = _run(snapshot, options)
        assert np.all(np.isfinite(final))

    def test_empty_graph(self):
        calls = []
        _, final = _run(GraphSnapshot.from_lists([]), SimulationOptions(iterations=4),
                        lambda p, i: calls.append(i))
        assert final.shape == (0, 2)
        assert calls == [0, 1, 2, 3]


class TestSimulationState:
    def test_snapshot_is_detached(self):
        state = SimulationState(positions=np.zeros((2, 2)), temperature=1.0)
        snap = state.snapshot()
        state.positions[0, 0] = 5.0
        assert snap[0, 0] == 0.0
        assert not snap.flags.writeable
