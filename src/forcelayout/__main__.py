# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)
"""
Command-line layout: JSON Lines graph in, JSON Lines positions out.

Usage:
    python -m forcelayout graph.jsonl --iterations 50 --seed 1 > positions.jsonl
    cat graph.jsonl | python -m forcelayout --offloaded
"""

import argparse
import logging
import sys
from pathlib import Path

from . import setup_logging
from .config import SimulationOptions
from .errors import LayoutError
from .io import read_graph, write_positions
from .layout import fruchterman_reingold_layout

logger = logging.getLogger("forcelayout.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="forcelayout",
        description="Compute a Fruchterman-Reingold layout for a JSON Lines graph"
    )
    parser.add_argument("input", type=Path, nargs="?", default=None,
                        help="Input JSON Lines file (default: stdin)")
    parser.add_argument("--config", type=Path, default=None,
                        help="YAML file with layout options")
    parser.add_argument("--iterations", type=int, default=None,
                        help="Number of iterations (default: 10)")
    parser.add_argument("--edge-weight-influence", type=float, default=None,
                        help="Exponent applied to edge weights (default: 1)")
    parser.add_argument("--speed", type=float, default=None,
                        help="Speed multiplier (default: 1)")
    parser.add_argument("--gravity", type=float, default=None,
                        help="Gravity toward the origin (default: 10)")
    parser.add_argument("-C", dest="C", type=float, default=None,
                        help="Repulsion constant (default: 1)")
    parser.add_argument("--width", type=float, default=None,
                        help="Frame width (default: node count)")
    parser.add_argument("--length", type=float, default=None,
                        help="Frame length (default: node count)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for random initial placement")
    parser.add_argument("--offloaded", action="store_true",
                        help="Run the simulation in a worker process")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase log verbosity")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose > 1 else
                  logging.INFO if args.verbose else logging.WARNING)

    try:
        if args.input is not None:
            with open(args.input, "r", encoding="utf-8") as f:
                snapshot, embedded = read_graph(f)
        else:
            snapshot, embedded = read_graph(sys.stdin)

        options = (SimulationOptions.from_yaml(args.config) if args.config
                   else SimulationOptions())
        options = options.with_overrides(**embedded).with_overrides(
            iterations=args.iterations,
            edge_weight_influence=args.edge_weight_influence,
            speed=args.speed,
            gravity=args.gravity,
            C=args.C,
            width=args.width,
            length=args.length,
            seed=args.seed,
        )

        positions = fruchterman_reingold_layout(snapshot, options, offloaded=args.offloaded)
    except (LayoutError, OSError) as e:
        logger.error("%s", e)
        return 1

    write_positions(positions, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
