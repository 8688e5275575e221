#!/usr/bin/env python
"""CLI for clustering a GraphML graph and dumping the aggregated view."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import networkx as nx

from nodelink.config import get_layout_settings, get_view_settings
from nodelink.graph import LABEL_COLUMN, BaseGraph
from nodelink.graph.aggregation import (
    AdjacencyAggGraph,
    EdgeAggregatingGraph,
    MidpointDistance,
    run_full_clustering,
    set_visible_item_ratio,
)
from nodelink.logging_utils import setup_logging
from nodelink.visualization import build_view, random_layout

logger = logging.getLogger("aggregate_graph")

ENGINES = {
    "adjacency": AdjacencyAggGraph,
    "balanced": EdgeAggregatingGraph,
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cluster a graph and export its aggregated view")
    parser.add_argument("graphml", type=Path, help="GraphML file to load.")
    parser.add_argument(
        "--ratio",
        type=float,
        default=0.1,
        help="Fraction of vertices left visible after clustering (default: 0.1).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random layout seed (overrides NODELINK_LAYOUT_SEED).",
    )
    parser.add_argument(
        "--engine",
        choices=sorted(ENGINES),
        default="adjacency",
        help="Aggregation engine to use.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Where to write the JSON view (default: stdout).",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Disable console logging.",
    )
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> dict:
    if not 0.0 <= args.ratio <= 1.0:
        raise ValueError(f"--ratio must be between 0 and 1; received {args.ratio}")

    layout = get_layout_settings()
    view_settings = get_view_settings()
    seed = args.seed if args.seed is not None else layout.seed

    graph = nx.read_graphml(args.graphml)
    base = BaseGraph.from_networkx(graph, name=args.graphml.stem)
    logger.info(
        "Loaded graph %s: %d vertices, %d edges, directed=%s",
        args.graphml, base.vertex_count, base.edge_count, base.is_directed,
    )

    random_layout(base, layout.width, layout.height, seed=seed)
    agg = ENGINES[args.engine](base)
    dist = MidpointDistance(base)

    result = run_full_clustering(agg, dist)
    set_visible_item_ratio(agg, dist, args.ratio)
    view = build_view(agg, view_settings.node_radius)

    payload = view.to_dict()
    payload["graph"] = {
        "name": base.name,
        "vertices": base.vertex_count,
        "edges": base.edge_count,
        "directed": base.is_directed,
        "labels": [base.string_value(LABEL_COLUMN, row) for row in range(base.vertex_count)],
    }
    payload["clustering"] = {
        "engine": args.engine,
        "merges": result.merge_count,
        "duration_ms": result.duration_ms,
        "seed": seed,
    }
    return payload


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(quiet=args.quiet)

    try:
        payload = run(args)
    except (OSError, ValueError, RuntimeError, nx.NetworkXError) as exc:
        logger.error("Failed to aggregate %s: %s", args.graphml, exc)
        return 1

    text = json.dumps(payload, indent=2)
    if args.output is None:
        print(text)
    else:
        args.output.write_text(text)
        print(f"Wrote view to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
