"""Single entry point for debuggers: one call per inspected object."""

from __future__ import annotations

from typing import Any

import structlog

from viewlens._config import InspectorConfig
from viewlens._reflect import type_identifier
from viewlens.classify import TypeClassifier, looks_framework_backed
from viewlens.format import node_to_dict
from viewlens.hierarchy import HierarchyBuilder, Node, iter_nodes
from viewlens.registry import BackingElementRef, BackingElementRegistry, get_registry

logger = structlog.get_logger()


def format_description(node: Node) -> str:
    """``Readable (label: value, ..., state: ..., modifiers: ...)``"""
    details = [f"{label}: {value}" for label, value in node.attributes.items()]
    if node.state_summary:
        details.append(f"state: {node.state_summary}")
    if node.modifier:
        details.append(f"modifiers: {node.modifier}")
    if not details:
        return node.readable_type
    return f"{node.readable_type} ({', '.join(details)})"


class Inspector:
    """Combines the builder, classifier and registry behind one API.

    Components are injected so tests can run against a private registry;
    by default the process-wide registry is used.
    """

    def __init__(
        self,
        *,
        registry: BackingElementRegistry | None = None,
        classifier: TypeClassifier | None = None,
        config: InspectorConfig | None = None,
    ) -> None:
        self.config = config or InspectorConfig.from_env()
        self.registry = registry if registry is not None else get_registry()
        self.classifier = classifier or TypeClassifier()
        self.builder = HierarchyBuilder(
            registry=self.registry,
            classifier=self.classifier,
            max_depth=self.config.max_depth,
            max_children=self.config.max_children,
            collection_preview=self.config.collection_preview,
        )

    def describe(self, root: Any) -> str:
        """One-line summary: readable type, attributes, state, modifier."""
        return format_description(self.builder.annotate(root))

    def hierarchy(self, root: Any, *, max_depth: int | None = None) -> Node:
        node = self.builder.build(root, max_depth=max_depth)
        logger.debug("hierarchy_built", type=node.raw_type,
                     nodes=sum(1 for _ in iter_nodes(node)))
        return node

    def native_elements(self, root: Any) -> frozenset[BackingElementRef]:
        """Every backing element found anywhere below *root*."""
        found: set[BackingElementRef] = set()
        for node in iter_nodes(self.hierarchy(root)):
            found.update(node.backing_elements)
        return frozenset(found)

    def is_framework_produced(self, element: Any, *, heuristic: bool = False) -> bool:
        """Registry answer; with *heuristic*, also accept framework class names."""
        if self.registry.lookup(element):
            return True
        return heuristic and looks_framework_backed(element)

    def debug_info(self, root: Any) -> dict:
        node = self.hierarchy(root)
        elements: set[BackingElementRef] = set()
        for n in iter_nodes(node):
            elements.update(n.backing_elements)
        return {
            "typeName": type_identifier(root),
            "enhancedDescription": format_description(node),
            "viewHierarchy": node_to_dict(node),
            "nativeElements": [
                ref.to_dict() for ref in sorted(elements, key=lambda r: r.type_name)
            ],
        }
