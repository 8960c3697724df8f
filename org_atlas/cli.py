"""
org_atlas/cli.py — Command-line interface for the graph engine.

Runs the filter pipeline and a synchronous layout over a snapshot file and
writes the result, so the engine can be exercised without a hosting UI.

Usage:
    org-atlas render SNAPSHOT --out graph.html      # interactive Plotly HTML
    org-atlas render SNAPSHOT --out graph.png       # static PNG
    org-atlas layout SNAPSHOT --out positions.json  # settled coordinates
    org-atlas neighbors SNAPSHOT ID --depth 2       # bounded-depth expansion
    org-atlas demo --out demo_dir                   # write the demo snapshot

SNAPSHOT is a JSON snapshot file or a directory of entity CSV tables.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time

from org_atlas.config import DEFAULT_CONFIG


# ── Logging setup ─────────────────────────────────────────────────────────────

def _setup_logging(level: str = "INFO") -> None:
    """Configure root logger with timestamps."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    fmt = "%(asctime)s  %(levelname)-8s  %(name)s — %(message)s"
    datefmt = "%H:%M:%S"
    logging.basicConfig(level=numeric, format=fmt, datefmt=datefmt, stream=sys.stderr)
    logging.getLogger("matplotlib").setLevel(logging.WARNING)


logger = logging.getLogger("org_atlas.cli")


# ── Shared helpers ────────────────────────────────────────────────────────────

def _filters_from_args(args: argparse.Namespace):
    from org_atlas.graph.filters import ALL_TEAMS, FilterConfig

    filters = FilterConfig(
        team_scope=args.team or ALL_TEAMS,
        focus_id=args.focus,
        conflicts_only=args.conflicts_only,
        bottlenecks_only=args.bottlenecks_only,
        search=args.search or "",
    )
    if args.hide:
        filters = filters.hide_kinds(*args.hide)
    return filters


def _settled_view(args: argparse.Namespace):
    """Load the snapshot, apply filters, settle the layout. Returns the GraphView."""
    from org_atlas.graph.builder import load_snapshot
    from org_atlas.view import GraphView

    snapshot = load_snapshot(args.snapshot)
    view = GraphView(
        snapshot,
        DEFAULT_CONFIG,
        seed=args.seed,
        filters=_filters_from_args(args),
    )
    view.set_dimensions(args.width, args.height)

    t0 = time.monotonic()
    view.settle()
    logger.info(
        "Layout: %d of %d nodes visible, %d edges, settled in %.2fs.",
        len(view.visible.nodes),
        len(snapshot),
        len(view.visible.edges),
        time.monotonic() - t0,
    )
    return view


# ── Subcommands ───────────────────────────────────────────────────────────────

def cmd_render(args: argparse.Namespace) -> int:
    """Render the filtered, settled graph to HTML (Plotly) or PNG (matplotlib)."""
    _setup_logging(args.log_level)
    fmt = args.format or ("png" if args.out.lower().endswith(".png") else "html")

    try:
        view = _settled_view(args)
    except (OSError, ValueError) as exc:
        logger.error("Could not load snapshot %s: %s", args.snapshot, exc)
        return 1

    scene = view.scene()
    if fmt == "png":
        from org_atlas.viz.figures import render_static_png

        render_static_png(scene, args.out, title=args.title)
    else:
        from org_atlas.viz.plotly_graph import build_plotly_figure, save_figure_html

        fig = build_plotly_figure(scene, title=args.title or "Organisation Knowledge Graph")
        save_figure_html(fig, args.out)

    print(f"Rendered {len(scene.nodes)} nodes / {len(scene.edges)} edges → {args.out}")
    return 0


def cmd_layout(args: argparse.Namespace) -> int:
    """Write settled layout coordinates as JSON {id: [x, y]}."""
    _setup_logging(args.log_level)
    try:
        view = _settled_view(args)
    except (OSError, ValueError) as exc:
        logger.error("Could not load snapshot %s: %s", args.snapshot, exc)
        return 1

    visible = set(view.visible.ids)
    positions = {
        node_id: [round(x, 3), round(y, 3)]
        for node_id, (x, y) in view.layout.positions().items()
        if node_id in visible
    }
    with open(args.out, "w", encoding="utf-8") as fh:
        json.dump(positions, fh, indent=2)
    print(f"Wrote {len(positions)} positions → {args.out}")
    return 0


def cmd_neighbors(args: argparse.Namespace) -> int:
    """Print the bounded-depth neighborhood of a node, one id per line."""
    _setup_logging(args.log_level)
    from org_atlas.graph.builder import load_snapshot
    from org_atlas.graph.neighborhood import expand_neighborhood

    try:
        snapshot = load_snapshot(args.snapshot)
    except (OSError, ValueError) as exc:
        logger.error("Could not load snapshot %s: %s", args.snapshot, exc)
        return 1

    if args.node_id not in snapshot:
        logger.warning("Node %r is not in the snapshot.", args.node_id)

    reached = expand_neighborhood(snapshot, args.node_id, args.depth)
    order = {node_id: i for i, node_id in enumerate(snapshot.ids())}
    for node_id in sorted(reached, key=lambda n: (order.get(n, -1), n)):
        node = snapshot.node(node_id)
        label = f"\t{node.label}" if node is not None else ""
        print(f"{node_id}{label}")
    return 0


def cmd_demo(args: argparse.Namespace) -> int:
    """Write the built-in demo organisation as a JSON snapshot."""
    _setup_logging(args.log_level)
    from org_atlas.demo import build_demo_snapshot
    from org_atlas.graph.builder import save_snapshot_json

    os.makedirs(args.out, exist_ok=True)
    path = os.path.join(args.out, "demo_snapshot.json")
    save_snapshot_json(build_demo_snapshot(), path)
    print(f"Demo snapshot → {path}")
    return 0


# ── Argument parser ───────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="org-atlas",
        description="org-atlas — Layout, filter and render the organisation knowledge graph.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Write the demo organisation, then render it
  org-atlas demo --out /tmp/org
  org-atlas render /tmp/org/demo_snapshot.json --out /tmp/org/graph.html

  # Centre on a team and show its two-hop neighborhood only
  org-atlas render /tmp/org/demo_snapshot.json --focus team-1 --out focus.png

  # Conflicts only, documents hidden
  org-atlas render /tmp/org/demo_snapshot.json --conflicts-only --hide document --out c.html
        """,
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    def add_view_flags(p: argparse.ArgumentParser) -> None:
        p.add_argument("snapshot", metavar="SNAPSHOT", help="JSON snapshot file or CSV table directory")
        p.add_argument("--out", required=True, metavar="PATH", help="Output file path")
        p.add_argument("--width", type=float, default=1200, help="Canvas width (default: 1200)")
        p.add_argument("--height", type=float, default=800, help="Canvas height (default: 800)")
        p.add_argument("--focus", default=None, metavar="ID", help="Focus node id")
        p.add_argument("--team", default=None, metavar="ID", help="Team scope node id")
        p.add_argument("--search", default=None, metavar="TEXT", help="Label/kind/role substring")
        p.add_argument("--conflicts-only", action="store_true", help="Conflict nodes and their neighbors")
        p.add_argument("--bottlenecks-only", action="store_true", help="Flagged or overloaded nodes")
        p.add_argument(
            "--hide", nargs="+", default=None, metavar="KIND",
            choices=["person", "team", "decision", "topic", "document"],
            help="Entity kinds to hide",
        )
        p.add_argument("--seed", type=int, default=None, help="Layout jitter seed (reproducible output)")

    p_render = subparsers.add_parser("render", help="Render the graph to HTML or PNG")
    add_view_flags(p_render)
    p_render.add_argument("--format", choices=["html", "png"], default=None,
                          help="Output format (default: from --out extension)")
    p_render.add_argument("--title", default=None, help="Figure title")
    p_render.set_defaults(func=cmd_render)

    p_layout = subparsers.add_parser("layout", help="Write settled positions as JSON")
    add_view_flags(p_layout)
    p_layout.set_defaults(func=cmd_layout)

    p_neighbors = subparsers.add_parser("neighbors", help="Bounded-depth neighborhood of a node")
    p_neighbors.add_argument("snapshot", metavar="SNAPSHOT")
    p_neighbors.add_argument("node_id", metavar="ID")
    p_neighbors.add_argument("--depth", type=int, default=DEFAULT_CONFIG.neighborhood_depth,
                             help=f"Hop count (default: {DEFAULT_CONFIG.neighborhood_depth})")
    p_neighbors.set_defaults(func=cmd_neighbors)

    p_demo = subparsers.add_parser("demo", help="Write the demo organisation snapshot")
    p_demo.add_argument("--out", required=True, metavar="DIR", help="Output directory")
    p_demo.set_defaults(func=cmd_demo)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
