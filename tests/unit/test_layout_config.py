# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
"""Tests for SimulationOptions and FrameBounds."""

import numpy as np
import pytest

from forcelayout.config import FrameBounds, SimulationOptions
from forcelayout.errors import InvalidInputError


class TestSimulationOptions:
    """Tests for option defaults, parsing and validation."""

    def test_defaults(self):
        """Test documented defaults."""
        options = SimulationOptions()
        assert options.iterations == 10
        assert options.edge_weight_influence == 1.0
        assert options.speed == 1.0
        assert options.gravity == 10.0
        assert options.C == 1.0
        assert options.width is None
        assert options.length is None

    def test_from_dict_accepts_camel_case(self):
        """Test that wire names map onto fields."""
        options = SimulationOptions.from_dict({
            'iterations': 25,
            'edgeWeightInfluence': 2.0,
            'gravity': None,  # None keeps the default
        })
        assert options.iterations == 25
        assert options.edge_weight_influence == 2.0
        assert options.gravity == 10.0

    def test_unknown_option_rejected(self):
        """Test that typos are not silently ignored."""
        with pytest.raises(InvalidInputError):
            SimulationOptions.from_dict({'iteratons': 5})

    @pytest.mark.parametrize('kwargs', [
        {'iterations': -1},
        {'iterations': 2.5},
        {'iterations': True},
        {'speed': 0},
        {'C': -1.0},
        {'gravity': -0.5},
        {'gravity': float('nan')},
        {'edge_weight_influence': float('inf')},
        {'width': 0},
    ])
    def test_invalid_values(self, kwargs):
        """Test that out-of-range values raise InvalidInputError."""
        with pytest.raises(InvalidInputError):
            SimulationOptions(**kwargs)

    def test_zero_iterations_allowed(self):
        """Test that a zero-iteration run is a valid request."""
        assert SimulationOptions(iterations=0).iterations == 0

    def test_with_overrides_skips_none(self):
        """Test overrides keep values that are not given."""
        base = SimulationOptions(iterations=5, gravity=2.0)
        updated = base.with_overrides(iterations=None, gravity=3.0)
        assert updated.iterations == 5
        assert updated.gravity == 3.0
        assert base.gravity == 2.0

    def test_round_trip_dict(self):
        """Test to_dict output is accepted by from_dict."""
        options = SimulationOptions(iterations=3, width=2.0, length=4.0, seed=9)
        assert SimulationOptions.from_dict(options.to_dict()) == options

    def test_from_yaml(self, tmp_path):
        """Test loading options from a YAML file nested under 'layout'."""
        path = tmp_path / 'layout.yaml'
        path.write_text("layout:\n  iterations: 40\n  edgeWeightInfluence: 0.5\n  seed: 3\n")
        options = SimulationOptions.from_yaml(path)
        assert options.iterations == 40
        assert options.edge_weight_influence == 0.5
        assert options.seed == 3

    def test_from_yaml_rejects_non_mapping(self, tmp_path):
        """Test that a YAML list is not a valid option file."""
        path = tmp_path / 'bad.yaml'
        path.write_text("- 1\n- 2\n")
        with pytest.raises(InvalidInputError):
            SimulationOptions.from_yaml(path)

    def test_from_yaml_rejects_malformed_yaml(self, tmp_path):
        """Test that a YAML syntax error surfaces as InvalidInputError."""
        path = tmp_path / 'broken.yaml'
        path.write_text("iterations: [1,\n")
        with pytest.raises(InvalidInputError, match="invalid YAML"):
            SimulationOptions.from_yaml(path)


class TestFrameBounds:
    """Tests for frame resolution and clamping."""

    def test_frame_scales_with_node_count(self):
        """Test default frame is n x n."""
        frame = SimulationOptions().frame_for(7)
        assert frame == FrameBounds(width=7.0, length=7.0)

    def test_explicit_frame(self):
        """Test explicit width/length win over node count."""
        frame = SimulationOptions(width=1.0, length=2.0).frame_for(50)
        assert frame.half_width == 0.5
        assert frame.half_length == 1.0
        assert frame.area == 2.0

    def test_clamp_in_place(self):
        """Test clamping pulls rows back inside the frame."""
        frame = FrameBounds(width=2.0, length=4.0)
        positions = np.array([[5.0, -9.0], [0.5, 0.5], [-3.0, 1.9]])
        result = frame.clamp(positions)
        assert result is positions
        np.testing.assert_array_equal(positions, [[1.0, -2.0], [0.5, 0.5], [-1.0, 1.9]])
        assert frame.contains(positions)

    def test_contains_empty(self):
        """Test an empty layout is trivially inside any frame."""
        assert FrameBounds(0.0, 0.0).contains(np.empty((0, 2)))
