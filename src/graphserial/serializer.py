"""Top-level object graph serializer."""

from __future__ import annotations

import json
import logging
from typing import Any

from graphserial.codecs import Decoder, Encoder
from graphserial.errors import MalformedInputError, UnsupportedTypeError
from graphserial.registry import TypeRegistry, default_registry
from graphserial.serializable import Serializable
from graphserial.tracker import ReferenceTable, ReferenceTracker

logger = logging.getLogger(__name__)


class GraphSerializer:
    """Serializes a Serializable instance and everything reachable from it.

    Each call to serialize() or deserialize() uses its own reference
    tracker, so ids never leak between calls and a value shared by two
    separately serialized roots is written in full by both.

    Usage:
        serializer = GraphSerializer()
        text = serializer.serialize(scene)
        restored = serializer.deserialize(text)

    Payload layout::

        {
          "className": "Scene",
          "id": 0,
          "serializeInitArgs": [<node>, ...],
          "properties": {"name": <node>, ...}
        }

    ``serializeInitKwargs`` is added when the instance was constructed with
    keyword arguments.
    """

    def __init__(
        self,
        registry: TypeRegistry | None = None,
        *,
        indent: int | None = None,
    ) -> None:
        self.registry = registry if registry is not None else default_registry
        self.indent = indent

    def to_builtins(self, root: Serializable) -> dict[str, Any]:
        """Encode a root instance as JSON-compatible builtins.

        Raises:
            UnsupportedTypeError: If root is not a Serializable instance, a
                reachable value is of an unsupported kind, or the graph is
                nested too deeply

        """
        if not isinstance(root, Serializable):
            kind = type(root).__name__
            msg = f"Root must be a Serializable instance, got '{kind}'"
            raise UnsupportedTypeError(kind, msg)

        tracker = ReferenceTracker()
        try:
            envelope = Encoder(tracker).encode_instance(root, tracker.assign(root))
        except RecursionError as exc:
            kind = type(root).__name__
            msg = f"Object graph under '{kind}' is nested too deeply to serialize"
            raise UnsupportedTypeError(kind, msg) from exc
        logger.debug(
            "Serialized %s with %d tracked references",
            type(root).type_name,
            len(tracker),
        )
        return envelope

    def from_builtins(self, data: Any) -> Any:
        """Rebuild a root instance from JSON-compatible builtins.

        Raises:
            MalformedInputError: If data is not a well-formed envelope or is
                nested too deeply
            UnknownTypeError: If a class name is not registered
            DanglingReferenceError: If a ref points at an undefined id

        """
        if not isinstance(data, dict):
            msg = f"Expected a JSON object envelope, got {type(data).__name__}"
            raise MalformedInputError(msg)

        root_id = data.get("id")
        if root_id is not None and (
            not isinstance(root_id, int) or isinstance(root_id, bool)
        ):
            msg = f"Root id must be an integer, got {root_id!r}"
            raise MalformedInputError(msg)

        table = ReferenceTable()
        try:
            root = Decoder(self.registry, table).decode_instance(data, root_id)
        except RecursionError as exc:
            msg = "Payload is nested too deeply to deserialize"
            raise MalformedInputError(msg) from exc
        logger.debug(
            "Deserialized %s with %d tracked references",
            data.get("className"),
            len(table),
        )
        return root

    def serialize(self, root: Serializable) -> str:
        """Serialize a root instance to a JSON string."""
        envelope = self.to_builtins(root)
        try:
            return json.dumps(envelope, indent=self.indent)
        except RecursionError as exc:
            kind = type(root).__name__
            msg = f"Object graph under '{kind}' is nested too deeply to serialize"
            raise UnsupportedTypeError(kind, msg) from exc

    def deserialize(self, text: str | bytes) -> Any:
        """Deserialize a JSON string produced by serialize().

        Raises:
            MalformedInputError: If text is not valid JSON or not an envelope
            UnknownTypeError: If a class name is not registered
            DanglingReferenceError: If a ref points at an undefined id

        """
        try:
            data = json.loads(text)
        except (
            json.JSONDecodeError,
            UnicodeDecodeError,
            TypeError,
            RecursionError,
        ) as exc:
            msg = f"Invalid JSON string provided: {exc}"
            raise MalformedInputError(msg) from exc
        return self.from_builtins(data)
