"""
viewlens -- introspection for declarative view trees.

Readable type names, annotated hierarchies and backing-element discovery
for opaque managed view objects.

Quick start::

    import viewlens

    # One-line summary of a view
    text = viewlens.describe(root_view)

    # Full annotated tree (viewlens.Node)
    tree = viewlens.hierarchy(root_view)

    # Native elements produced for anything below the root
    refs = viewlens.native_elements(root_view)

    # Called by the framework when it materialises a native element
    viewlens.get_registry().register(native_view, managed_node)
"""

from __future__ import annotations

from typing import Any

from viewlens._config import InspectorConfig
from viewlens.classify import TypeClassifier, is_managed_type, is_managed_type_name
from viewlens.demangle import demangle, extract_generic_parameters
from viewlens.format import build_envelope, prune_tree, serialize_compact
from viewlens.hierarchy import HierarchyBuilder, Node, find_nodes, iter_nodes
from viewlens.inspector import Inspector
from viewlens.registry import (
    BackingElementRef,
    BackingElementRegistry,
    get_registry,
    reset_registry,
)

__all__ = [
    "describe",
    "hierarchy",
    "native_elements",
    "is_framework_produced",
    "debug_info",
    # Building blocks
    "Inspector",
    "InspectorConfig",
    "HierarchyBuilder",
    "Node",
    "iter_nodes",
    "find_nodes",
    "TypeClassifier",
    "is_managed_type",
    "is_managed_type_name",
    "demangle",
    "extract_generic_parameters",
    "BackingElementRef",
    "BackingElementRegistry",
    "get_registry",
    "reset_registry",
    "build_envelope",
    "prune_tree",
    "serialize_compact",
]


def _inspector() -> Inspector:
    """Internal: a fresh inspector bound to the current shared registry."""
    return Inspector(registry=get_registry())


def describe(root: Any) -> str:
    """One-line summary: readable type, attributes and state."""
    return _inspector().describe(root)


def hierarchy(root: Any, *, max_depth: int | None = None) -> Node:
    """Annotated tree below *root*."""
    return _inspector().hierarchy(root, max_depth=max_depth)


def native_elements(root: Any) -> frozenset[BackingElementRef]:
    """Every backing element found anywhere below *root*."""
    return _inspector().native_elements(root)


def is_framework_produced(element: Any) -> bool:
    """True if the framework registered *element* as one of its own."""
    return get_registry().lookup(element)


def debug_info(root: Any) -> dict:
    """Type name, description, hierarchy and native elements in one dict."""
    return _inspector().debug_info(root)
