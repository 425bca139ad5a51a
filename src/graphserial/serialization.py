"""Serialization functions bound to the default registry."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from graphserial.serializer import GraphSerializer

if TYPE_CHECKING:
    from graphserial.registry import TypeRegistry
    from graphserial.serializable import Serializable


def to_dict(
    obj: Serializable,
    *,
    registry: TypeRegistry | None = None,
) -> dict[str, Any]:
    """Serialize a Serializable instance to a dictionary envelope.

    Args:
        obj: Root instance to serialize
        registry: Registry to serialize against (default registry if omitted)

    Returns:
        JSON-compatible dictionary with ``className``, ``id``,
        ``serializeInitArgs`` and ``properties``

    Raises:
        UnsupportedTypeError: If obj, or a value reachable from it, cannot be
            serialized

    """
    return GraphSerializer(registry).to_builtins(obj)


def from_dict(data: dict[str, Any], *, registry: TypeRegistry | None = None) -> Any:
    """Deserialize a Serializable instance from a dictionary envelope.

    Raises:
        MalformedInputError: If data does not have the envelope shape
        UnknownTypeError: If a class name is not registered
        DanglingReferenceError: If a ref points at an undefined id

    """
    return GraphSerializer(registry).from_builtins(data)


def to_json(
    obj: Serializable,
    *,
    indent: int | None = None,
    registry: TypeRegistry | None = None,
) -> str:
    """Serialize a Serializable instance to a JSON string.

    Args:
        obj: Root instance to serialize
        indent: JSON indentation level (None for compact output)
        registry: Registry to serialize against (default registry if omitted)

    """
    return GraphSerializer(registry, indent=indent).serialize(obj)


def from_json(s: str | bytes, *, registry: TypeRegistry | None = None) -> Any:
    """Deserialize a Serializable instance from a JSON string."""
    return GraphSerializer(registry).deserialize(s)
