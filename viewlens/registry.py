"""Side table of native elements produced by the managed framework.

The framework reports each native element it materialises, usually from
a deferred callback shortly after a layout pass, while hierarchy builds
read the table from the inspecting thread.  All access to the table goes
through one lock.

Entries hold weak references only.  A native element's lifetime belongs
to its real owner; once it is gone every query treats it as unknown.
"""

from __future__ import annotations

import threading
import weakref
from dataclasses import dataclass, field
from typing import Any, NamedTuple

import structlog

from viewlens._reflect import type_identifier

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# Element snapshot
# ---------------------------------------------------------------------------

_MISSING = object()


def _first_attr(element: Any, names: tuple[str, ...], default: Any = None) -> Any:
    for name in names:
        try:
            value = getattr(element, name, _MISSING)
        except Exception:  # noqa: BLE001 - native proxies may raise on read
            continue
        if value is not _MISSING:
            return value
    return default


@dataclass(frozen=True, eq=False)
class BackingElementRef:
    """Weak handle on a native element plus its geometry at snapshot time.

    Equality and hashing follow the element's identity, so the same
    element reached from two nodes collapses to one entry in a set.
    """

    element_id: int
    type_name: str
    frame: Any = None
    bounds: Any = None
    background: Any = None
    hidden: bool = False
    alpha: float = 1.0
    _ref: Any = field(default=None, repr=False)

    @classmethod
    def snapshot(cls, element: Any) -> BackingElementRef:
        try:
            ref = weakref.ref(element)
        except TypeError:
            ref = None
        return cls(
            element_id=id(element),
            type_name=type_identifier(element),
            frame=_first_attr(element, ("frame",)),
            bounds=_first_attr(element, ("bounds",)),
            background=_first_attr(element, ("background_color", "backgroundColor", "background")),
            hidden=bool(_first_attr(element, ("is_hidden", "isHidden", "hidden"), False)),
            alpha=_first_attr(element, ("alpha",), 1.0),
            _ref=ref,
        )

    @property
    def element(self) -> Any:
        """The live element, or None once it has been destroyed."""
        return self._ref() if self._ref is not None else None

    @property
    def is_stale(self) -> bool:
        return self.element is None

    def to_dict(self) -> dict:
        return {
            "type": self.type_name,
            "frame": _plain(self.frame),
            "bounds": _plain(self.bounds),
            "backgroundColor": "nil" if self.background is None else str(self.background),
            "isHidden": self.hidden,
            "alpha": _plain_number(self.alpha),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BackingElementRef):
            return NotImplemented
        return self.element_id == other.element_id

    def __hash__(self) -> int:
        return hash(self.element_id)


def _plain_number(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    try:
        return float(value)
    except Exception:  # noqa: BLE001 - bridged numeric wrappers
        return _plain(value)


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (int, float, str, bool)):
        return value
    if isinstance(value, (tuple, list)):
        return [_plain(v) for v in value]
    return str(value)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class _Entry(NamedTuple):
    ref: weakref.ref
    owner_id: int


def _is_identity(owner: Any) -> bool:
    """Integers are taken as ready-made owner identities."""
    cls = type(owner)
    return issubclass(cls, int) and not issubclass(cls, bool)


def _owner_key(owner: Any) -> int:
    return owner if _is_identity(owner) else id(owner)


class BackingElementRegistry:
    """Process-wide map: native element -> producing managed node.

    Keys are element identities.  Owners are managed nodes; when an owner
    can be weakly referenced its entries are dropped once it dies, so a
    later object that reuses its ``id()`` inherits nothing.  A bare
    integer owner is an identity whose lifetime the caller manages.

    Dead references are queued by their weakref callbacks and dropped on
    the next locked operation; the callbacks themselves never take the
    lock, since the collector may run them on a thread that already
    holds it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[int, _Entry] = {}
        self._by_owner: dict[int, list[int]] = {}
        self._owner_refs: dict[int, weakref.ref] = {}
        self._pending_removals: list[int] = []
        self._pending_owners: list[int] = []

    # ---- writes ----------------------------------------------------------

    def register(self, element: Any, owner: Any) -> bool:
        """Record that *element* was produced for the managed node *owner*.

        *owner* is the node itself (preferred) or an integer identity.
        The first registration of a live element wins.  Returns False
        when the element was already registered or cannot be weakly
        referenced.
        """
        key = id(element)
        try:
            ref = weakref.ref(element, self._make_reaper(self._pending_removals, key))
        except TypeError:
            logger.warning("element_not_weakrefable", type=type_identifier(element))
            return False

        owner_id = _owner_key(owner)
        owner_ref = None
        if not _is_identity(owner):
            try:
                owner_ref = weakref.ref(owner, self._make_reaper(self._pending_owners, owner_id))
            except TypeError:
                logger.debug("owner_not_weakrefable", type=type_identifier(owner))

        with self._lock:
            self._prune_locked()
            current = self._entries.get(key)
            if current is not None:
                if current.ref() is element:
                    logger.debug("element_already_registered", element_id=key,
                                 owner_id=current.owner_id)
                    return False
                # id reused by a new object before the reaper ran
                self._forget_locked(key, current)
            if owner_ref is not None:
                known = self._owner_refs.get(owner_id)
                if known is not None and known() is not owner:
                    self._forget_owner_locked(owner_id)
                if owner_id not in self._owner_refs:
                    self._owner_refs[owner_id] = owner_ref
            self._entries[key] = _Entry(ref, owner_id)
            self._by_owner.setdefault(owner_id, []).append(key)

        logger.debug("element_registered", element_id=key, owner_id=owner_id,
                     type=type_identifier(element))
        return True

    def unregister(self, element: Any) -> bool:
        key = id(element)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.ref() is not element:
                return False
            self._forget_locked(key, entry)
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._by_owner.clear()
            self._owner_refs.clear()
            self._pending_removals.clear()
            self._pending_owners.clear()

    # ---- reads -----------------------------------------------------------

    def lookup(self, element: Any) -> bool:
        """True if *element* is registered.  Unknown or stale -> False."""
        with self._lock:
            self._prune_locked()
            entry = self._entries.get(id(element))
            return entry is not None and entry.ref() is element

    def owner_of(self, element: Any) -> int | None:
        with self._lock:
            self._prune_locked()
            entry = self._entries.get(id(element))
            if entry is None or entry.ref() is not element:
                return None
            return entry.owner_id

    def elements_produced_by(self, owner: Any) -> list[Any]:
        """Live elements registered for *owner*, in registration order.

        *owner* is the node or an integer identity, as for `register`.
        """
        owner_id = _owner_key(owner)
        with self._lock:
            self._prune_locked()
            known = self._owner_refs.get(owner_id)
            if known is not None and not _is_identity(owner) and known() is not owner:
                return []
            produced = []
            for key in self._by_owner.get(owner_id, ()):
                entry = self._entries.get(key)
                if entry is None or entry.owner_id != owner_id:
                    continue
                element = entry.ref()
                if element is not None:
                    produced.append(element)
            return produced

    def __len__(self) -> int:
        with self._lock:
            self._prune_locked()
            return sum(1 for entry in self._entries.values() if entry.ref() is not None)

    # ---- internals -------------------------------------------------------

    @staticmethod
    def _make_reaper(pending: list[int], key: int):
        def reap(_ref: weakref.ref) -> None:
            pending.append(key)

        return reap

    def _forget_locked(self, key: int, entry: _Entry) -> None:
        self._entries.pop(key, None)
        keys = self._by_owner.get(entry.owner_id)
        if keys is not None:
            try:
                keys.remove(key)
            except ValueError:
                pass
            if not keys:
                del self._by_owner[entry.owner_id]
                self._owner_refs.pop(entry.owner_id, None)

    def _forget_owner_locked(self, owner_id: int) -> None:
        for key in self._by_owner.pop(owner_id, ()):
            entry = self._entries.get(key)
            if entry is not None and entry.owner_id == owner_id:
                del self._entries[key]
        self._owner_refs.pop(owner_id, None)

    def _prune_locked(self) -> None:
        while self._pending_removals:
            key = self._pending_removals.pop()
            entry = self._entries.get(key)
            if entry is not None and entry.ref() is None:
                self._forget_locked(key, entry)
        while self._pending_owners:
            owner_id = self._pending_owners.pop()
            known = self._owner_refs.get(owner_id)
            if known is not None and known() is None:
                logger.debug("owner_collected", owner_id=owner_id)
                self._forget_owner_locked(owner_id)


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_registry_instance: BackingElementRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> BackingElementRegistry:
    """Return the shared registry, creating it on first use."""
    global _registry_instance

    with _registry_lock:
        if _registry_instance is None:
            _registry_instance = BackingElementRegistry()
        return _registry_instance


def reset_registry() -> BackingElementRegistry:
    """Replace the shared registry with a fresh one and return it."""
    global _registry_instance

    with _registry_lock:
        _registry_instance = BackingElementRegistry()
        return _registry_instance
