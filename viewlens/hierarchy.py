"""
Annotated hierarchy of a managed view tree.

The builder walks an opaque root object with the reflective walker,
keeps the members the classifier recognises as managed nodes, and
produces an immutable Node tree:

    Node(readable_type="VStack", attributes={...}, children=(
        Node(readable_type="Text", attributes={"content": '"Hello"'}),
        Node(readable_type="<cycle>", kind="cycle"),
    ))

Building never mutates the inspected objects and never raises for odd
input: cycles and overflow become placeholder nodes.
"""

from __future__ import annotations

import dataclasses
import enum
import numbers
import weakref
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Literal, Mapping

import structlog

from viewlens._config import (
    DEFAULT_COLLECTION_PREVIEW,
    DEFAULT_MAX_CHILDREN,
    DEFAULT_MAX_DEPTH,
    clamp_depth,
)
from viewlens._reflect import (
    children,
    display_style,
    elements,
    is_proxy,
    safe_len,
    type_identifier,
    unwrap_optional,
)
from viewlens.classify import TypeClassifier
from viewlens.demangle import demangle
from viewlens.registry import BackingElementRef, BackingElementRegistry, get_registry

logger = structlog.get_logger()

NodeKind = Literal["view", "cycle", "truncated"]

_MAX_STRING_DESCRIPTION = 120

# Label conventions for state / binding storage
_STATE_MARKERS = ("state", "binding")


@dataclass(frozen=True)
class Node:
    """One position in the managed tree, for a single traversal.

    Nodes are read-only, attributes included.  They compare by value but
    are not hashable.
    """

    raw_type: str
    readable_type: str
    attributes: Mapping[str, str] = field(default_factory=dict)
    state_summary: str | None = None
    modifier: str | None = None
    children: tuple[Node, ...] = ()
    backing_elements: frozenset[BackingElementRef] = frozenset()
    kind: NodeKind = "view"
    identity: int | None = None

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if not isinstance(self.attributes, MappingProxyType):
            object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def is_placeholder(self) -> bool:
        return self.kind != "view"


def iter_nodes(node: Node) -> Iterator[Node]:
    """Depth-first, pre-order walk of a built tree."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def find_nodes(node: Node, *, readable: str) -> list[Node]:
    return [n for n in iter_nodes(node) if n.readable_type == readable]


# ---------------------------------------------------------------------------
# Value descriptions
# ---------------------------------------------------------------------------

def _quote(text: str) -> str:
    truncated = text[:_MAX_STRING_DESCRIPTION] + ("..." if len(text) > _MAX_STRING_DESCRIPTION else "")
    truncated = truncated.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{truncated}"'


def describe_value(value: Any, *, _nested: bool = False) -> str:
    """Short description of a member value.

    Scalars print literally, optionals (weak references and weak proxies)
    unwrap one level, collections collapse to ``[n items]`` and anything
    else shows its readable type.
    """
    if value is None:
        return "nil"
    if is_proxy(value) or isinstance(value, weakref.ref):
        inner = unwrap_optional(value)
        if inner is None:
            return "nil"
        if _nested or is_proxy(inner):
            return demangle(type_identifier(inner))
        return describe_value(inner, _nested=True)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, enum.Enum):
        return f"{type(value).__name__}.{value.name}"
    if isinstance(value, (bytes, bytearray)):
        text = repr(bytes(value))
        if len(text) > _MAX_STRING_DESCRIPTION:
            return text[:_MAX_STRING_DESCRIPTION] + "..."
        return text
    if isinstance(value, numbers.Number):
        return str(value)
    if display_style(value) in ("collection", "dictionary"):
        count = safe_len(value)
        return f"[{'?' if count is None else count} items]"
    return demangle(type_identifier(value))


def is_state_label(label: str) -> bool:
    return label.startswith("_") or any(marker in label for marker in _STATE_MARKERS)


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

def _placeholder(kind: NodeKind, value: Any, note: str) -> Node:
    return Node(
        raw_type=type_identifier(value),
        readable_type=f"<{kind}>",
        attributes={"note": note},
        kind=kind,
        identity=id(value),
    )


class HierarchyBuilder:
    """Reconstructs the managed hierarchy below an arbitrary root object."""

    def __init__(
        self,
        *,
        registry: BackingElementRegistry | None = None,
        classifier: TypeClassifier | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
        max_children: int = DEFAULT_MAX_CHILDREN,
        collection_preview: int = DEFAULT_COLLECTION_PREVIEW,
    ) -> None:
        self.registry = registry if registry is not None else get_registry()
        self.classifier = classifier or TypeClassifier()
        self.max_depth = clamp_depth(max_depth)
        self.max_children = max(1, max_children)
        self.collection_preview = max(0, collection_preview)

    def build(self, root: Any, max_depth: int | None = None,
              visited: set[int] | None = None) -> Node:
        """Build the tree below *root*.

        ``visited`` holds the identities already on the path above *root*
        (empty for a fresh traversal); it is left as it was on return.
        """
        limit = self.max_depth if max_depth is None else clamp_depth(max_depth)
        return self._build(root, 0, limit, set() if visited is None else visited)

    def annotate(self, value: Any) -> Node:
        """The node for *value* alone: type, attributes, state, backing."""
        members = children(value)
        raw = type_identifier(value)

        attributes: dict[str, str] = {}
        state: list[str] = []
        for index, (label, member) in enumerate(members):
            name = label if label is not None else f".{index}"
            description = describe_value(member)
            attributes[name] = description
            if is_state_label(name):
                state.append(f"{name}: {description}")

        return Node(
            raw_type=raw,
            readable_type=demangle(raw),
            attributes=attributes,
            state_summary=", ".join(state) or None,
            modifier=self._modifier_of(raw, members),
            backing_elements=self._backing_elements(value, members),
            identity=id(value),
        )

    # ---- internals -------------------------------------------------------

    def _build(self, value: Any, depth: int, limit: int, visited: set[int]) -> Node:
        key = id(value)
        if key in visited:
            logger.debug("cycle_detected", type=type_identifier(value), depth=depth)
            return _placeholder("cycle", value, "already on the current path")
        if depth >= limit:
            return _placeholder("truncated", value, f"depth limit {limit} reached")

        visited.add(key)
        try:
            node = self.annotate(value)
            child_nodes = self._child_nodes(value, depth, limit, visited)
        finally:
            visited.discard(key)
        return dataclasses.replace(node, children=tuple(child_nodes))

    def _child_nodes(self, value: Any, depth: int, limit: int,
                     visited: set[int]) -> list[Node]:
        nodes: list[Node] = []
        for candidate in self._candidates(value):
            if len(nodes) >= self.max_children:
                nodes.append(_placeholder(
                    "truncated", candidate, f"more than {self.max_children} children"))
                break
            nodes.append(self._build(candidate, depth + 1, limit, visited))
        return nodes

    def _candidates(self, value: Any) -> Iterator[Any]:
        """Managed values directly below *value*, in member order."""
        if display_style(value) in ("collection", "dictionary", "tuple"):
            for item in elements(value, self.collection_preview):
                item = unwrap_optional(item)
                if self.classifier.is_managed_type(item):
                    yield item
            return

        for _label, member in children(value):
            member = unwrap_optional(member)
            if member is None:
                continue
            if self.classifier.is_managed_type(member):
                yield member
            else:
                yield from self._unwrap(member)

    def _unwrap(self, value: Any) -> list[Any]:
        """One level below a non-managed member: a container's real children."""
        style = display_style(value)
        if style in ("collection", "dictionary", "tuple"):
            items = elements(value, self.collection_preview)
        elif style == "struct":
            items = [member for _label, member in children(value)]
        else:
            return []
        found = []
        for item in items:
            item = unwrap_optional(item)
            if self.classifier.is_managed_type(item):
                found.append(item)
        return found

    def _modifier_of(self, raw: str, members: list) -> str | None:
        if "ModifiedContent" not in raw:
            return None
        for label, member in members:
            if label == "modifier":
                return demangle(type_identifier(member))
        return None

    def _backing_elements(self, value: Any, members: list) -> frozenset[BackingElementRef]:
        found = list(self.registry.elements_produced_by(value))
        for _label, member in members:
            if display_style(member) in ("optional", "scalar"):
                continue
            if self.registry.lookup(member):
                found.append(member)
        return frozenset(BackingElementRef.snapshot(element) for element in found)
