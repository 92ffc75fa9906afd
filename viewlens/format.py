"""
viewlens output formats: envelope builder, tree pruning and compact text.

Shared by the CLI and the MCP server.
"""

from __future__ import annotations

import copy
import time
from typing import Literal

from viewlens.hierarchy import Node

Detail = Literal["standard", "full"]

FORMAT_VERSION = "0.1.0"

# Synthetic containers that only group their children
_WRAPPER_TYPES = frozenset({"TupleView", "ConditionalView", "AnyView", "Group"})


# ---------------------------------------------------------------------------
# Node -> dict
# ---------------------------------------------------------------------------

def node_to_dict(node: Node) -> dict:
    """JSON-ready form of a built node (recursive)."""
    data: dict = {
        "type": node.raw_type,
        "readableType": node.readable_type,
    }
    if node.kind != "view":
        data["kind"] = node.kind
    if node.attributes:
        data["attributes"] = dict(node.attributes)
    if node.state_summary:
        data["state"] = node.state_summary
    if node.modifier:
        data["modifier"] = node.modifier
    if node.backing_elements:
        data["backingElements"] = [
            ref.to_dict() for ref in sorted(node.backing_elements, key=lambda r: r.type_name)
        ]
    if node.children:
        data["children"] = [node_to_dict(child) for child in node.children]
    return data


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------

def build_envelope(
    roots: Node | list[Node],
    *,
    target: str | None = None,
) -> dict:
    """Wrap built trees in the viewlens envelope with metadata."""
    if isinstance(roots, Node):
        roots = [roots]

    envelope: dict = {
        "version": FORMAT_VERSION,
        "timestamp": int(time.time() * 1000),
    }
    if target:
        envelope["target"] = target
    envelope["tree"] = [node_to_dict(root) for root in roots]
    return envelope


# ---------------------------------------------------------------------------
# Pruning
# ---------------------------------------------------------------------------

def _count_nodes(nodes: list[dict]) -> int:
    """Count total nodes in a tree."""
    total = 0
    for node in nodes:
        total += 1
        total += _count_nodes(node.get("children", []))
    return total


def _should_hoist(node: dict) -> bool:
    """Decide if a node's children should be hoisted (node itself skipped)."""
    if node.get("kind"):
        return False
    if node["readableType"] not in _WRAPPER_TYPES:
        return False
    # Keep wrappers that carry state or own native elements
    return not node.get("state") and not node.get("backingElements")


def _prune_node(node: dict) -> list[dict]:
    children = node.get("children", [])

    if _should_hoist(node):
        result = []
        for child in children:
            result.extend(_prune_node(child))
        return result

    pruned_children = []
    for child in children:
        pruned_children.extend(_prune_node(child))

    pruned = {k: v for k, v in node.items() if k != "children"}
    if pruned_children:
        pruned["children"] = pruned_children
    return [pruned]


def prune_tree(tree: list[dict], *, detail: Detail = "standard") -> list[dict]:
    """Apply pruning to a tree of node dicts, returning a new tree.

    Args:
        tree: List of root node dicts.
        detail: Pruning level:
            "standard" -- Hoist the children of stateless synthetic
                          wrappers (TupleView, ConditionalView, AnyView,
                          Group). (default)
            "full"     -- No pruning; return every node.
    """
    if detail == "full":
        return copy.deepcopy(tree)

    result = []
    for root in tree:
        result.extend(_prune_node(root))
    return result


# ---------------------------------------------------------------------------
# Compact text
# ---------------------------------------------------------------------------

def _format_line(node: dict) -> str:
    """Format a single node dict as a compact one-liner."""
    kind = node.get("kind")
    if kind:
        note = node.get("attributes", {}).get("note", "")
        return f"<{kind}> {node['type']}" + (f" ({note})" if note else "")

    parts = [node["readableType"]]

    state = node.get("state")
    if state:
        parts.append("{" + state + "}")

    modifier = node.get("modifier")
    if modifier:
        parts.append(f"({modifier})")

    backing = node.get("backingElements", [])
    if backing:
        parts.append(f"[{len(backing)} backing: " + ",".join(b["type"] for b in backing) + "]")

    return " ".join(parts)


def _emit_compact(node: dict, depth: int, lines: list[str],
                  counter: list[int]) -> None:
    """Recursively emit compact lines for an already-pruned node."""
    counter[0] += 1
    indent = "  " * depth
    lines.append(f"{indent}{_format_line(node)}")

    for child in node.get("children", []):
        _emit_compact(child, depth + 1, lines, counter)


def serialize_compact(envelope: dict, *, detail: Detail = "standard") -> str:
    """Serialize an envelope to indented one-line-per-node text."""
    total_before = _count_nodes(envelope["tree"])
    pruned = prune_tree(envelope["tree"], detail=detail)

    lines: list[str] = []
    counter = [0]

    for root in pruned:
        _emit_compact(root, 0, lines, counter)

    header_lines = [f"# viewlens {envelope['version']}"]
    if envelope.get("target"):
        header_lines.append(f"# target: {envelope['target']}")
    header_lines.append(f"# {counter[0]} nodes ({total_before} before pruning)")
    header_lines.append("")

    return "\n".join(header_lines + lines) + "\n"
