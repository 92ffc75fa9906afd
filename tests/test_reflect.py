"""Tests for structural member enumeration."""

from __future__ import annotations

import gc
import weakref
from collections import namedtuple
from dataclasses import dataclass

from viewlens._reflect import (
    children,
    class_identifier,
    display_style,
    elements,
    type_identifier,
    unwrap_optional,
)


@dataclass
class Point:
    x: int
    y: int


class Slotted:
    __slots__ = ("a", "b")

    def __init__(self):
        self.a = 1


class Plain:
    def __init__(self):
        self.title = "Hi"
        self.items = [1, 2, 3]
        self.__private = True


class Bridged:
    __type_identifier__ = "_TtC7SwiftUI14_UIHostingView"


class Exploding:
    __slots__ = ("boom",)

    def __getattribute__(self, name):
        if name == "boom":
            raise RuntimeError("nope")
        return object.__getattribute__(self, name)


Pair = namedtuple("Pair", ["first", "second"])


class Holder:
    def __init__(self, content):
        self.content = content


# ---------------------------------------------------------------------------
# Type identity
# ---------------------------------------------------------------------------

class TestTypeIdentifier:
    def test_builtin_is_bare(self):
        assert type_identifier(3) == "int"
        assert type_identifier("x") == "str"

    def test_user_class_is_module_qualified(self):
        assert type_identifier(Point(1, 2)).endswith(".Point")

    def test_declared_identifier_on_class(self):
        assert type_identifier(Bridged()) == "_TtC7SwiftUI14_UIHostingView"
        assert class_identifier(Bridged) == "_TtC7SwiftUI14_UIHostingView"

    def test_declared_identifier_on_instance(self):
        obj = Plain()
        obj.__type_identifier__ = "_TtC5MyApp3Row"
        assert type_identifier(obj) == "_TtC5MyApp3Row"

    def test_empty_declared_identifier_ignored(self):
        obj = Plain()
        obj.__type_identifier__ = ""
        assert type_identifier(obj).endswith(".Plain")


# ---------------------------------------------------------------------------
# Display style
# ---------------------------------------------------------------------------

class TestDisplayStyle:
    def test_optional(self):
        assert display_style(None) == "optional"
        assert display_style(weakref.ref(Plain())) == "optional"

    def test_scalars(self):
        for value in ("s", b"b", 1, 2.5, True):
            assert display_style(value) == "scalar"

    def test_containers(self):
        assert display_style([1]) == "collection"
        assert display_style({1}) == "collection"
        assert display_style({"a": 1}) == "dictionary"
        assert display_style((1, 2)) == "tuple"

    def test_namedtuple_is_struct(self):
        assert display_style(Pair(1, 2)) == "struct"

    def test_object_is_struct(self):
        assert display_style(Plain()) == "struct"


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

class TestChildren:
    def test_dataclass_fields_in_order(self):
        assert children(Point(1, 2)) == [("x", 1), ("y", 2)]

    def test_instance_dict_skips_dunders(self):
        labels = [label for label, _ in children(Plain())]
        assert labels == ["title", "items", "_Plain__private"]

    def test_unset_slot_omitted(self):
        assert children(Slotted()) == [("a", 1)]

    def test_failing_member_skipped(self):
        assert children(Exploding()) == []

    def test_namedtuple_fields(self):
        assert children(Pair("a", "b")) == [("first", "a"), ("second", "b")]

    def test_collection_summarised(self):
        assert children([1, 2, 3]) == [("count", 3)]
        assert children({"a": 1}) == [("count", 1)]

    def test_bare_tuple_members(self):
        assert children(("a", "b")) == [(".0", "a"), (".1", "b")]

    def test_tuple_member_flattened(self):
        holder = Holder(("a", "b"))
        assert children(holder) == [("content.0", "a"), ("content.1", "b")]

    def test_scalar_has_no_members(self):
        assert children(42) == []

    def test_optional_payload(self):
        target = Plain()
        ref = weakref.ref(target)
        assert children(ref) == [("some", target)]
        assert children(None) == []


class TestHelpers:
    def test_unwrap_optional(self):
        target = Plain()
        assert unwrap_optional(weakref.ref(target)) is target
        assert unwrap_optional(target) is target

    def test_elements_limit(self):
        assert elements([1, 2, 3, 4], 2) == [1, 2]

    def test_elements_mapping_values(self):
        assert elements({"a": 1, "b": 2}, 10) == [1, 2]

    def test_elements_of_struct(self):
        assert elements(Plain(), 10) == []


class TestWeakProxies:
    def _dead_proxy(self):
        target = Plain()
        proxy = weakref.proxy(target)
        del target
        gc.collect()
        return proxy

    def test_dead_proxy_is_empty_optional(self):
        proxy = self._dead_proxy()
        assert display_style(proxy) == "optional"
        assert unwrap_optional(proxy) is None
        assert children(proxy) == []
        assert elements(proxy, 10) == []
        assert isinstance(type_identifier(proxy), str)

    def test_live_proxy_reads_as_referent(self):
        target = Plain()
        proxy = weakref.proxy(target)
        assert display_style(proxy) == "struct"
        assert unwrap_optional(proxy) is proxy
        assert type_identifier(proxy) == type_identifier(target)
        assert dict(children(proxy))["title"] == "Hi"

    def test_dead_proxy_member(self):
        holder = Holder(self._dead_proxy())
        [(label, member)] = children(holder)
        assert label == "content"
        assert display_style(member) == "optional"

    def test_live_proxy_to_collection(self):
        class Items(list):
            pass

        target = Items([1, 2, 3])
        proxy = weakref.proxy(target)
        assert display_style(proxy) == "collection"
        assert elements(proxy, 2) == [1, 2]
