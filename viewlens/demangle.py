"""
Readable names for mangled and framework-internal type identifiers.

Two paths:

    _TtCC7SwiftUI17HostingScrollView22PlatformGroupContainer
        -> HostingScrollView.PlatformGroupContainer   (length-prefixed parse)

    ModifiedContent<Text, _PaddingLayout>
        -> ModifiedView                               (pattern table)

Every function here is total: malformed input degrades to a fallback
string, never to an exception.
"""

from __future__ import annotations

import functools
from typing import NamedTuple

FRAMEWORK_MODULE = "SwiftUI"

MANGLED_PREFIX = "_Tt"

# C = class, V = struct, O = enum; one letter per nesting level
_KIND_CODES = frozenset("CVO")
_DIGITS = frozenset("0123456789")


class PatternRule(NamedTuple):
    """A (substring, readable label) pair.  First match wins."""

    pattern: str
    label: str


# ---------------------------------------------------------------------------
# Simplification table (order is significant)
# ---------------------------------------------------------------------------

SIMPLIFICATION_RULES: tuple[PatternRule, ...] = (
    PatternRule("ModifiedContent", "ModifiedView"),
    PatternRule("_ConditionalContent", "ConditionalView"),
    PatternRule("_ViewModifier_Content", "ViewModifier"),
    PatternRule("UIShapeHitTestingView", "SwiftUI Shape Container"),
    PatternRule("UIKitSwiftUIView", "SwiftUI UIKit Bridge"),
    PatternRule("HostingScrollView", "SwiftUI Hosting ScrollView"),
    PatternRule("HostingView", "SwiftUI Hosting View"),
    PatternRule("SystemBackgroundView", "SwiftUI System Background"),
    PatternRule("PlatformGroupContainer", "SwiftUI Platform Group Container"),
    PatternRule("ListTableViewCell", "SwiftUI List Cell"),
    PatternRule("DisplayList", "SwiftUI Display List"),
    PatternRule("ViewHost", "SwiftUI View Host"),
    PatternRule("ScrollViewReader", "SwiftUI ScrollView Reader"),
    PatternRule("LazyVGrid", "SwiftUI LazyVGrid"),
    PatternRule("LazyHGrid", "SwiftUI LazyHGrid"),
    PatternRule("LazyVStack", "SwiftUI LazyVStack"),
    PatternRule("LazyHStack", "SwiftUI LazyHStack"),
    PatternRule("ContainerView", "SwiftUI Container View"),
    PatternRule("LayoutView", "SwiftUI Layout View"),
    PatternRule("WrapperView", "SwiftUI Wrapper View"),
)


def match_rule(name: str, rules: tuple[PatternRule, ...] = SIMPLIFICATION_RULES) -> str | None:
    """Return the label of the first rule whose pattern occurs in *name*."""
    for rule in rules:
        if rule.pattern in name:
            return rule.label
    return None


# ---------------------------------------------------------------------------
# Length-prefixed grammar
# ---------------------------------------------------------------------------

def is_mangled(name: str) -> bool:
    """True if *name* carries the mangled marker and at least one kind code."""
    return (
        isinstance(name, str)
        and name.startswith(MANGLED_PREFIX)
        and len(name) > len(MANGLED_PREFIX)
        and name[len(MANGLED_PREFIX)] in _KIND_CODES
    )


def split_mangled(name: str) -> tuple[str, list[str]] | None:
    """Parse a mangled name into ``(module, [outer, ..., inner])``.

    Each segment is ``<decimal-length><text>``.  The length is read
    greedily, so a type name that itself starts with digits is
    indistinguishable from a longer length prefix; that ambiguity is
    kept as is.  Returns None when the name is not mangled, when a
    declared length overruns the input, or when no type segment follows
    the module.
    """
    if not is_mangled(name):
        return None

    pos = len(MANGLED_PREFIX)
    end_of_input = len(name)
    while pos < end_of_input and name[pos] in _KIND_CODES:
        pos += 1

    segments: list[str] = []
    while pos < end_of_input and name[pos] in _DIGITS:
        digits_end = pos
        while digits_end < end_of_input and name[digits_end] in _DIGITS:
            digits_end += 1
        length = int(name[pos:digits_end])
        if length == 0 or digits_end + length > end_of_input:
            return None
        segments.append(name[digits_end:digits_end + length])
        pos = digits_end + length

    if len(segments) < 2:
        return None
    return segments[0], segments[1:]


def module_name(name: str) -> str | None:
    """Module segment of a mangled name, or None."""
    parts = split_mangled(name)
    return parts[0] if parts else None


# ---------------------------------------------------------------------------
# Generic parameters
# ---------------------------------------------------------------------------

def strip_generic_suffix(name: str) -> str:
    return name.split("<", 1)[0]


def extract_generic_parameters(name: str) -> list[str]:
    """Top-level generic arguments: ``A<B, C<D>>`` -> ``["B", "C<D>"]``."""
    start = name.find("<") if isinstance(name, str) else -1
    if start < 0:
        return []

    params: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in name[start + 1:]:
        if ch in "<([":
            depth += 1
        elif ch in ">)]":
            if depth == 0:
                break
            depth -= 1
        elif ch == "," and depth == 0:
            params.append("".join(current).strip())
            current = []
            continue
        current.append(ch)

    last = "".join(current).strip()
    if last:
        params.append(last)
    return [p for p in params if p]


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def simplify_type_name(name: str) -> str:
    """Non-mangled path: table substitution, else strip module and generics."""
    base = strip_generic_suffix(name).strip()
    label = match_rule(base)
    if label:
        return label

    head, sep, tail = base.partition(".")
    readable = tail if sep and head else base
    if readable and readable.isprintable():
        return readable
    return f"UnknownType({name})"


def demangle(identifier: str) -> str:
    """Readable form of *identifier*.  Never raises, never returns ``""``."""
    if not isinstance(identifier, str):
        identifier = "" if identifier is None else str(identifier)
    return _demangle_cached(identifier)


@functools.lru_cache(maxsize=4096)
def _demangle_cached(identifier: str) -> str:
    parts = split_mangled(identifier)
    if parts is None:
        return simplify_type_name(identifier)

    module, segments = parts
    if len(segments) == 1:
        label = match_rule(segments[0])
        if label:
            return label

    names = segments if module == FRAMEWORK_MODULE else [module, *segments]
    return ".".join(names)


def cache_statistics() -> dict[str, int]:
    info = _demangle_cached.cache_info()
    return {"hits": info.hits, "misses": info.misses, "size": info.currsize}


def clear_cache() -> None:
    _demangle_cached.cache_clear()
