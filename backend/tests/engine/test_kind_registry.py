"""Unit tests for the node-kind registry.

Tests cover:
- NodeKindDefinition validation
- Registration and lookup
- Default data isolation
- Built-in compatibility rules
"""

import pytest

from canvas.engine.errors import UnknownNodeKindError
from canvas.nodes.registry import NodeKindDefinition, NodeKindRegistry, create_default_registry


class TestNodeKindDefinition:
    def test_valid_definition(self):
        definition = NodeKindDefinition(
            kind="sticker",
            display_name="Sticker",
            description="Decorative sticker",
            category="media",
            default_data={"emoji": "*"},
        )

        assert definition.to_dict()["default_data"] == {"emoji": "*"}
        assert definition.can_feed("anything")

    def test_empty_kind_rejected(self):
        with pytest.raises(ValueError, match="kind cannot be empty"):
            NodeKindDefinition(kind="", display_name="X", description="", category="c")

    def test_empty_display_name_rejected(self):
        with pytest.raises(ValueError, match="display_name cannot be empty"):
            NodeKindDefinition(kind="x", display_name="", description="", category="c")


class TestNodeKindRegistry:
    def test_registries_are_independent(self):
        first = NodeKindRegistry()
        second = NodeKindRegistry()

        first.register_kind(kind="x", display_name="X", description="", category="c")

        assert first.is_registered("x")
        assert not second.is_registered("x")

    def test_require_unknown_kind(self):
        registry = create_default_registry()

        with pytest.raises(UnknownNodeKindError, match="Unknown node kind: hologram"):
            registry.require("hologram")

    def test_default_data_is_a_fresh_copy(self):
        registry = create_default_registry()

        data = registry.default_data("code")
        data["code"] = "print()"

        assert registry.default_data("code") == {"language": "javascript", "code": ""}

    def test_builtin_kinds(self):
        registry = create_default_registry()

        assert {d.kind for d in registry.list_kinds()} == {
            "text", "image", "video", "audio", "transcribe", "code", "file", "drop",
        }
        assert [d.kind for d in registry.list_kinds_by_category("placeholder")] == ["drop"]

    @pytest.mark.parametrize("source,target,expected", [
        ("image", "transcribe", True),
        ("text", "image", True),
        ("audio", "transcribe", True),
        ("audio", "text", False),
        ("video", "file", False),
        ("drop", "text", False),
        ("text", "drop", False),
        ("text", "hologram", False),
    ])
    def test_builtin_compatibility(self, source, target, expected):
        assert create_default_registry().can_connect(source, target) is expected
