"""viewlens MCP Server -- view hierarchy inspection tools for AI agents.

Exposes tools for hierarchy capture, one-line view descriptions and
backing-element listing over importable view-tree targets.
"""

from __future__ import annotations

import json
from typing import Literal

from mcp.server.fastmcp import FastMCP

from viewlens._logging import configure_logging
from viewlens._target import resolve_target
from viewlens.format import build_envelope, serialize_compact
from viewlens.inspector import Inspector

mcp = FastMCP(
    name="viewlens",
    instructions=(
        "viewlens inspects declarative view trees that a host application "
        "exposes as importable Python objects. Targets are given as "
        "'module:attribute' (append '()' to call a factory).\n\n"
        "Use describe_view for a one-line summary of a single view, "
        "get_view_hierarchy for the indented tree, and list_native_elements "
        "for the native rendering elements the framework produced for it.\n\n"
        "Hierarchies are snapshots: re-run the tool after the app changes."
    ),
)

# ---------------------------------------------------------------------------
# Inspector (one per MCP server process)
# ---------------------------------------------------------------------------

_inspector: Inspector | None = None


def _get_inspector() -> Inspector:
    global _inspector
    if _inspector is None:
        _inspector = Inspector()
    return _inspector


def _error(message: str) -> str:
    return json.dumps({"success": False, "message": "", "error": message})


def _resolve(target: str):
    try:
        return resolve_target(target), None
    except (ImportError, ValueError) as e:
        return None, _error(f"Cannot resolve target '{target}': {e}")


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

@mcp.tool()
def get_view_hierarchy(
    target: str,
    max_depth: int = 0,
    detail: Literal["standard", "full"] = "standard",
    output: Literal["compact", "json"] = "compact",
) -> str:
    """Capture the managed view hierarchy below a target object.

    Compact output shows one node per line, indented by depth:

        ReadableType {state} (modifier) [n backing: Type,...]

    Placeholders appear as <cycle> or <truncated> lines.

    Detail levels:

        standard -- (default) Hoist stateless synthetic wrappers
                    (TupleView, ConditionalView, AnyView, Group).
        full     -- Every node from the raw tree.

    Args:
        target: Object to inspect, as 'module:attribute'.
        max_depth: Maximum tree depth (0 = configured default).
        detail: Pruning level (see above).
        output: "compact" text or the full "json" envelope.
    """
    root, err = _resolve(target)
    if err:
        return err

    tree = _get_inspector().hierarchy(root, max_depth=max_depth if max_depth > 0 else None)
    envelope = build_envelope(tree, target=target)
    if output == "json":
        return json.dumps(envelope, ensure_ascii=False)
    return serialize_compact(envelope, detail=detail)


@mcp.tool()
def describe_view(target: str) -> str:
    """One-line description of a view: readable type, attributes, state.

    Args:
        target: Object to describe, as 'module:attribute'.
    """
    root, err = _resolve(target)
    if err:
        return err
    return _get_inspector().describe(root)


@mcp.tool()
def list_native_elements(target: str) -> str:
    """List native elements the framework produced anywhere below a target.

    Each entry carries the element's type and its geometry snapshot
    (frame, bounds, backgroundColor, isHidden, alpha).

    Args:
        target: Object to inspect, as 'module:attribute'.
    """
    root, err = _resolve(target)
    if err:
        return err

    refs = sorted(_get_inspector().native_elements(root), key=lambda r: r.type_name)
    return json.dumps({
        "success": True,
        "count": len(refs),
        "elements": [ref.to_dict() for ref in refs],
    })


def main() -> None:
    configure_logging(level="WARNING")
    mcp.run()


if __name__ == "__main__":
    main()
