"""Structural member enumeration for arbitrary objects.

Nothing in this module knows about view frameworks.  It answers two
questions about any value: what is its raw type identifier, and what
(label, value) members does it hold.  Members come from dataclass
fields, instance dicts and slots only; properties are never evaluated.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import enum
import inspect
import itertools
import numbers
import weakref
from typing import Any, Iterator, Literal

import structlog

logger = structlog.get_logger()

DisplayStyle = Literal["optional", "scalar", "collection", "dictionary", "tuple", "struct"]

Member = tuple[str | None, Any]

_SCALAR_TYPES = (str, bytes, bytearray, bool, numbers.Number, enum.Enum)

_MISSING = object()


# ---------------------------------------------------------------------------
# Type identity
# ---------------------------------------------------------------------------

def class_identifier(cls: type) -> str:
    """Raw identifier for a class: declared override, else ``pkg.QualName``."""
    declared = inspect.getattr_static(cls, "__type_identifier__", None)
    if isinstance(declared, str) and declared:
        return declared

    module = getattr(cls, "__module__", None) or ""
    qualname = getattr(cls, "__qualname__", None) or getattr(cls, "__name__", "")
    if module in ("", "builtins"):
        return qualname
    return f"{module.partition('.')[0]}.{qualname}"


def type_identifier(value: Any) -> str:
    """Raw type identifier of *value*, as the host runtime would spell it.

    Bridged objects may carry a per-instance ``__type_identifier__``
    (one Python class standing in for many foreign types).  A live weak
    proxy reports its referent's class; a dead one its own.
    """
    if is_proxy(value):
        try:
            return class_identifier(value.__class__)
        except ReferenceError:
            return class_identifier(type(value))
    declared = inspect.getattr_static(value, "__type_identifier__", None)
    if isinstance(declared, str) and declared:
        return declared
    return class_identifier(type(value))


# ---------------------------------------------------------------------------
# Display style
# ---------------------------------------------------------------------------

def _is_namedtuple(value: Any) -> bool:
    return isinstance(value, tuple) and hasattr(type(value), "_fields")


def is_proxy(value: Any) -> bool:
    # type() does not go through the proxy; isinstance() does
    return type(value) in weakref.ProxyTypes


def _is_dead_proxy(value: Any) -> bool:
    if not is_proxy(value):
        return False
    try:
        value.__class__
    except ReferenceError:
        return True
    return False


def display_style(value: Any) -> DisplayStyle:
    """Kind of *value*.  A live weak proxy is classified as its referent."""
    if value is None or _is_dead_proxy(value) or isinstance(value, weakref.ref):
        return "optional"
    if isinstance(value, _SCALAR_TYPES):
        return "scalar"
    if _is_namedtuple(value):
        return "struct"
    if isinstance(value, tuple):
        return "tuple"
    if isinstance(value, collections.abc.Mapping):
        return "dictionary"
    if isinstance(value, collections.abc.Collection):
        return "collection"
    return "struct"


def unwrap_optional(value: Any) -> Any:
    """One level of optional unwrapping.  Empty (or dead) yields None."""
    if is_proxy(value):
        return None if _is_dead_proxy(value) else value
    if isinstance(value, weakref.ref):
        return value()
    return value


def safe_len(value: Any) -> int | None:
    try:
        return len(value)
    except Exception as exc:  # noqa: BLE001 - arbitrary __len__
        logger.debug("len_failed", type=type_identifier(value), error=str(exc))
        return None


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

def _is_dunder(name: str) -> bool:
    return name.startswith("__")


def _read_member(value: Any, name: str) -> Any:
    try:
        return getattr(value, name)
    except Exception as exc:  # noqa: BLE001 - arbitrary descriptors
        logger.debug("member_read_failed", member=name,
                     type=type_identifier(value), error=str(exc))
        return _MISSING


def _slot_names(cls: type) -> Iterator[str]:
    for klass in cls.__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        yield from slots


def _raw_members(value: Any) -> Iterator[Member]:
    seen: set[str] = set()

    if _is_namedtuple(value):
        for name, member in zip(type(value)._fields, value):
            seen.add(name)
            yield name, member
        return

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        for field in dataclasses.fields(value):
            seen.add(field.name)
            member = _read_member(value, field.name)
            if member is not _MISSING:
                yield field.name, member

    try:
        attrs = vars(value)
    except TypeError:
        attrs = {}
    except Exception as exc:  # noqa: BLE001 - proxies and custom __dict__
        logger.debug("members_unavailable", type=type_identifier(value), error=str(exc))
        attrs = {}
    for name, member in list(attrs.items()):
        if not isinstance(name, str) or name in seen or _is_dunder(name):
            continue
        seen.add(name)
        yield name, member

    for name in _slot_names(type(value)):
        if name in seen or _is_dunder(name):
            continue
        seen.add(name)
        member = _read_member(value, name)
        if member is not _MISSING:
            yield name, member


def children(value: Any) -> list[Member]:
    """Ordered (label, value) members of *value*.

    - optionals expose their payload as ``some`` (nothing when empty)
    - collections are summarised as a single ``count`` member
    - bare tuples expose ``.0``, ``.1``, ...
    - tuple-valued members are flattened one level (``value.0``, ...)
    """
    style = display_style(value)
    if style == "optional":
        inner = unwrap_optional(value)
        return [] if inner is None else [("some", inner)]
    if style == "scalar":
        return []
    if style in ("collection", "dictionary"):
        return [("count", safe_len(value))]
    if style == "tuple":
        return [(f".{i}", item) for i, item in enumerate(value)]

    members: list[Member] = []
    for label, member in _raw_members(value):
        if display_style(member) == "tuple":
            members.extend((f"{label}.{i}", item) for i, item in enumerate(member))
        else:
            members.append((label, member))
    return members


def elements(value: Any, limit: int) -> list[Any]:
    """Up to *limit* elements of a collection, mapping (values) or tuple."""
    style = display_style(value)
    if style not in ("collection", "dictionary", "tuple"):
        return []
    try:
        source = value.values() if style == "dictionary" else value
        return list(itertools.islice(iter(source), max(limit, 0)))
    except Exception as exc:  # noqa: BLE001 - arbitrary __iter__
        logger.debug("iteration_failed", type=type_identifier(value), error=str(exc))
        return []
