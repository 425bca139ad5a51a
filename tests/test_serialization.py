"""Tests for graphserial.serialization module."""

import json

import pytest

from graphserial import (
    MalformedInputError,
    Serializable,
    TypeRegistry,
    UnknownTypeError,
    from_dict,
    from_json,
    to_dict,
    to_json,
)


class TestHelpers:
    """Test to_dict/from_dict/to_json/from_json."""

    def test_to_dict_matches_to_json(self, registry: TypeRegistry) -> None:
        """Test that to_json is the JSON form of to_dict."""

        class Note(Serializable, registry=registry):
            def __init__(self, text: str) -> None:
                self.text = text

        note = Note("hello")

        assert json.loads(to_json(note, registry=registry)) == to_dict(
            note,
            registry=registry,
        )

    def test_registry_keyword(self, registry: TypeRegistry) -> None:
        """Test that helpers resolve classes in the given registry."""

        class Memo(Serializable, registry=registry):
            def __init__(self, text: str) -> None:
                self.text = text

        text = to_json(Memo("hi"), registry=registry)

        assert from_json(text, registry=registry).text == "hi"
        with pytest.raises(UnknownTypeError):
            from_json(text)

    def test_from_dict_round_trip(self, registry: TypeRegistry) -> None:
        """Test a round trip through builtins without JSON text."""

        class Tally(Serializable, registry=registry):
            def __init__(self, *counts: int) -> None:
                self.total = sum(counts)

        restored = from_dict(to_dict(Tally(1, 2, 3)), registry=registry)

        assert restored.total == 6

    def test_to_json_indent(self, registry: TypeRegistry) -> None:
        """Test indented output."""

        class Flag(Serializable, registry=registry):
            pass

        assert to_json(Flag(), indent=4, registry=registry).startswith(
            '{\n    "className"',
        )

    def test_from_json_invalid(self) -> None:
        """Test that invalid JSON is reported as malformed input."""
        with pytest.raises(MalformedInputError):
            from_json("{not json}")
