"""Tests for viewlens format utilities: envelope builder, compact serializer, and tree pruning."""

from __future__ import annotations

from viewlens.format import (
    FORMAT_VERSION,
    build_envelope,
    node_to_dict,
    prune_tree,
    serialize_compact,
)
from viewlens.hierarchy import Node
from viewlens.registry import BackingElementRef


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def _make_node(readable: str, **kwargs) -> dict:
    """Create a minimal node dict for testing."""
    node = {"type": f"app.{readable}", "readableType": readable}
    node.update(kwargs)
    return node


def _make_envelope(tree: list[dict], **kwargs) -> dict:
    """Create a minimal envelope around already-converted node dicts."""
    env = build_envelope([], **kwargs)
    env["tree"] = tree
    return env


class NativeView:
    frame = (0, 0, 10, 10)


# ---------------------------------------------------------------------------
# node_to_dict / build_envelope
# ---------------------------------------------------------------------------

class TestNodeToDict:
    def test_minimal_node(self):
        data = node_to_dict(Node(raw_type="app.Text", readable_type="Text"))
        assert data == {"type": "app.Text", "readableType": "Text"}

    def test_optional_fields(self):
        node = Node(
            raw_type="ModifiedContent<Text, _PaddingLayout>",
            readable_type="ModifiedView",
            attributes={"_on": "true"},
            state_summary="_on: true",
            modifier="_PaddingLayout",
            children=(Node(raw_type="app.Text", readable_type="Text"),),
        )
        data = node_to_dict(node)
        assert data["attributes"] == {"_on": "true"}
        assert data["state"] == "_on: true"
        assert data["modifier"] == "_PaddingLayout"
        assert data["children"][0]["readableType"] == "Text"
        assert "kind" not in data

    def test_placeholder_kind(self):
        node = Node(raw_type="app.Group", readable_type="<cycle>", kind="cycle")
        assert node_to_dict(node)["kind"] == "cycle"

    def test_backing_elements(self):
        element = NativeView()
        node = Node(
            raw_type="app.Text",
            readable_type="Text",
            backing_elements=frozenset({BackingElementRef.snapshot(element)}),
        )
        backing = node_to_dict(node)["backingElements"]
        assert len(backing) == 1
        assert backing[0]["frame"] == [0, 0, 10, 10]


class TestBuildEnvelope:
    def test_required_fields(self):
        env = build_envelope(Node(raw_type="app.Text", readable_type="Text"))
        assert env["version"] == FORMAT_VERSION
        assert "timestamp" in env
        assert len(env["tree"]) == 1
        assert env["tree"][0]["readableType"] == "Text"

    def test_target_included(self):
        env = build_envelope([], target="app.views:root")
        assert env["target"] == "app.views:root"

    def test_target_omitted_when_empty(self):
        env = build_envelope([])
        assert "target" not in env
        assert env["tree"] == []


# ---------------------------------------------------------------------------
# prune_tree
# ---------------------------------------------------------------------------

class TestPruneTree:
    def test_stateless_wrapper_hoisted(self):
        tree = [_make_node("TupleView", children=[
            _make_node("Text"),
            _make_node("Image"),
        ])]
        pruned = prune_tree(tree)
        assert [n["readableType"] for n in pruned] == ["Text", "Image"]

    def test_nested_wrappers_hoisted(self):
        tree = [_make_node("VStack", children=[
            _make_node("Group", children=[
                _make_node("ConditionalView", children=[_make_node("Text")]),
            ]),
        ])]
        pruned = prune_tree(tree)
        assert pruned[0]["readableType"] == "VStack"
        assert [c["readableType"] for c in pruned[0]["children"]] == ["Text"]

    def test_wrapper_with_state_kept(self):
        tree = [_make_node("Group", state="_visible: true", children=[
            _make_node("Text"),
        ])]
        pruned = prune_tree(tree)
        assert pruned[0]["readableType"] == "Group"

    def test_wrapper_with_backing_kept(self):
        tree = [_make_node("AnyView", backingElements=[{"type": "app.NativeView"}])]
        pruned = prune_tree(tree)
        assert len(pruned) == 1

    def test_empty_wrapper_removed(self):
        assert prune_tree([_make_node("TupleView")]) == []

    def test_placeholder_kept(self):
        tree = [_make_node("Group", kind="cycle")]
        assert len(prune_tree(tree)) == 1

    def test_full_detail_keeps_everything(self):
        tree = [_make_node("TupleView", children=[_make_node("Text")])]
        pruned = prune_tree(tree, detail="full")
        assert pruned == tree
        assert pruned is not tree

    def test_input_not_mutated(self):
        tree = [_make_node("VStack", children=[
            _make_node("TupleView", children=[_make_node("Text")]),
        ])]
        prune_tree(tree)
        assert tree[0]["children"][0]["readableType"] == "TupleView"


# ---------------------------------------------------------------------------
# serialize_compact
# ---------------------------------------------------------------------------

class TestSerializeCompact:
    def test_header(self):
        env = _make_envelope([_make_node("Text")], target="app:root")
        text = serialize_compact(env)
        lines = text.splitlines()
        assert lines[0] == f"# viewlens {FORMAT_VERSION}"
        assert lines[1] == "# target: app:root"
        assert lines[2] == "# 1 nodes (1 before pruning)"

    def test_no_target_line(self):
        text = serialize_compact(_make_envelope([_make_node("Text")]))
        assert "# target" not in text

    def test_indentation(self):
        env = _make_envelope([_make_node("VStack", children=[
            _make_node("HStack", children=[_make_node("Text")]),
        ])])
        lines = serialize_compact(env).splitlines()
        assert "VStack" in lines
        assert "  HStack" in lines
        assert "    Text" in lines

    def test_state_modifier_and_backing(self):
        env = _make_envelope([_make_node(
            "ModifiedView",
            state="_on: true",
            modifier="_PaddingLayout",
            backingElements=[{"type": "app.NativeView"}],
        )])
        text = serialize_compact(env)
        assert "ModifiedView {_on: true} (_PaddingLayout) [1 backing: app.NativeView]" in text

    def test_placeholder_line(self):
        env = _make_envelope([_make_node(
            "<truncated>", type="app.Group", kind="truncated",
            attributes={"note": "depth limit 3 reached"},
        )])
        text = serialize_compact(env)
        assert "<truncated> app.Group (depth limit 3 reached)" in text

    def test_pruning_counts(self):
        env = _make_envelope([_make_node("TupleView", children=[
            _make_node("Text"),
            _make_node("Text"),
        ])])
        assert "# 2 nodes (3 before pruning)" in serialize_compact(env)
        assert "# 3 nodes (3 before pruning)" in serialize_compact(env, detail="full")

    def test_trailing_newline(self):
        assert serialize_compact(_make_envelope([])).endswith("\n")
