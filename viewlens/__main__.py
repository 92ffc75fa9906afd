"""CLI for view hierarchy inspection: python -m viewlens module:attr"""

from __future__ import annotations

import argparse
import json
import time
from dataclasses import replace

from viewlens._config import InspectorConfig
from viewlens._logging import configure_logging
from viewlens._target import resolve_target
from viewlens.format import build_envelope, prune_tree, serialize_compact
from viewlens.hierarchy import iter_nodes
from viewlens.inspector import Inspector


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="viewlens",
        description="viewlens: inspect a managed view tree and its backing elements")
    parser.add_argument("target",
                        help="Object to inspect, as 'module:attribute' "
                             "(append '()' to call a factory)")
    parser.add_argument("--depth", type=int, default=0,
                        help="Max tree depth (0 = configured default)")
    parser.add_argument("--max-children", type=int, default=0,
                        help="Max children per node (0 = configured default)")
    parser.add_argument("--detail", choices=["standard", "full"], default="standard",
                        help="Pruning level for compact output")
    parser.add_argument("--json-out", type=str, default=None,
                        help="Write the full JSON envelope to file")
    parser.add_argument("--compact", action="store_true",
                        help="Print compact text to stdout")
    parser.add_argument("--verbose", action="store_true",
                        help="Log debug events to stderr")
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(level="DEBUG" if args.verbose else "WARNING")

    try:
        root = resolve_target(args.target)
    except (ImportError, ValueError) as e:
        parser.error(str(e))

    config = InspectorConfig.from_env()
    if args.depth > 0:
        config = replace(config, max_depth=args.depth)
    if args.max_children > 0:
        config = replace(config, max_children=args.max_children)

    inspector = Inspector(config=config)

    print(f"=== viewlens ({args.target}) ===")
    print(inspector.describe(root))

    # -- Tree build --
    t0 = time.perf_counter()
    tree = inspector.hierarchy(root)
    t_build = (time.perf_counter() - t0) * 1000

    nodes = list(iter_nodes(tree))
    placeholders = sum(1 for n in nodes if n.is_placeholder)
    backing = {ref for n in nodes for ref in n.backing_elements}
    print(f"Built {len(nodes)} nodes in {t_build:.1f} ms "
          f"({placeholders} placeholders, {len(backing)} backing elements)")

    envelope = build_envelope(tree, target=args.target)

    # -- Type distribution --
    counts: dict[str, int] = {}
    for n in nodes:
        counts[n.readable_type] = counts.get(n.readable_type, 0) + 1
    print("\nType distribution (top 15):")
    for name, count in sorted(counts.items(), key=lambda kv: -kv[1])[:15]:
        print(f"  {name:45s} {count:6d}")

    # -- Output options --
    if args.json_out:
        out = {**envelope, "tree": prune_tree(envelope["tree"], detail=args.detail)}
        json_str = json.dumps(out, indent=2, ensure_ascii=False)
        with open(args.json_out, "w", encoding="utf-8") as f:
            f.write(json_str)
        print(f"\nJSON written to {args.json_out} ({len(json_str) / 1024:.1f} KB)")

    if args.compact:
        print(f"\n{serialize_compact(envelope, detail=args.detail)}")


if __name__ == "__main__":
    main()
