"""Heuristic membership test for the managed view framework's types.

The framework synthesises a new composite type for every view
composition, so there is no closed list to check against.  Classification
is an over-approximation over name fragments: ambiguous names are let
in, and names that match no fragment are left out.
"""

from __future__ import annotations

from typing import Any, Iterable

from viewlens._reflect import display_style, type_identifier
from viewlens.demangle import (
    FRAMEWORK_MODULE,
    demangle,
    module_name,
    strip_generic_suffix,
)

# Container / primitive markers of managed view types
MANAGED_TYPE_FRAGMENTS: tuple[str, ...] = (
    "Text",
    "Image",
    "Button",
    "VStack",
    "HStack",
    "ZStack",
    "List",
    "ScrollView",
    "NavigationView",
    "TabView",
    "Group",
    "ForEach",
    "ModifiedContent",
    "TupleView",
    "_ConditionalContent",
)

MODULE_PREFIXES: tuple[str, ...] = (FRAMEWORK_MODULE + ".",)

# Native element classes that only the framework creates
BACKING_TYPE_FRAGMENTS: tuple[str, ...] = (
    "UIHostingView",
    "_UIHostingView",
    FRAMEWORK_MODULE,
    "HostingScrollView",
    "PlatformGroupContainer",
    "ListTableViewCell",
    "DisplayList",
)

# Values that can never be a managed node themselves
_LEAF_STYLES = frozenset({"optional", "scalar", "collection", "dictionary", "tuple"})


class TypeClassifier:
    """Name-fragment classifier.  Tables are fixed at construction."""

    def __init__(
        self,
        *,
        extra_fragments: Iterable[str] = (),
        module_prefixes: Iterable[str] = MODULE_PREFIXES,
    ) -> None:
        self.fragments = MANAGED_TYPE_FRAGMENTS + tuple(extra_fragments)
        self.module_prefixes = tuple(module_prefixes)

    def is_managed_type(self, value: Any) -> bool:
        """True if *value* looks like a node of the managed view tree."""
        if display_style(value) in _LEAF_STYLES:
            return False
        return self.is_managed_type_name(type_identifier(value))

    def is_managed_type_name(self, name: str) -> bool:
        """True if the type name *name* looks like a managed view type.

        Checked against the raw name (module prefix, mangled module) and
        against both the generic-stripped raw name and its demangled form,
        so ``VStack<TupleView<...>>`` matches on ``VStack`` alone.
        """
        if not isinstance(name, str) or not name:
            return False
        if name.startswith(self.module_prefixes):
            return True
        if module_name(name) == FRAMEWORK_MODULE:
            return True

        base = strip_generic_suffix(name)
        readable = demangle(name)
        if readable.startswith(FRAMEWORK_MODULE):
            return True
        return any(f in base or f in readable for f in self.fragments)


def looks_framework_backed(element: Any) -> bool:
    """Class-name heuristic for native elements produced by the framework."""
    name = type_identifier(element)
    return any(fragment in name for fragment in BACKING_TYPE_FRAGMENTS)


_default_classifier = TypeClassifier()


def is_managed_type(value: Any) -> bool:
    return _default_classifier.is_managed_type(value)


def is_managed_type_name(name: str) -> bool:
    return _default_classifier.is_managed_type_name(name)
