"""Encoding rules for each supported value kind.

Wire format: every non-scalar value is a JSON object with a ``__type``
discriminator, e.g. ``{"__type": "Date", "data": "2024-01-01T00:00:00"}``.
Scalars (str, int, float, bool, None) pass through untagged.

Reference-bearing values (Serializable instances and plain dicts) carry an
``id`` on first visit and are written as ``{"__type": "ref", "id": n}``
afterwards. Lists, tuples, maps and sets are not tracked: the same list
reached twice is written twice, and one that contains itself is
rejected.
"""

from __future__ import annotations

import array
import builtins
import logging
import re
import traceback
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Final, TypeVar

from graphserial.errors import MalformedInputError, UnsupportedTypeError
from graphserial.kinds import UNDEFINED, SupportedKind, classify
from graphserial.serializable import init_args_of, init_kwargs_of, properties_of
from graphserial.tracker import ReferenceTable, ReferenceTracker

if TYPE_CHECKING:
    from collections.abc import Callable

    from graphserial.registry import TypeRegistry
    from graphserial.serializable import Serializable

logger = logging.getLogger(__name__)

TYPE_KEY: Final = "__type"
REF_TAG: Final = "ref"

_DATA_KEY = "data"
_ID_KEY = "id"
_CONSTRUCTOR_KEY = "constructor"

CLASS_NAME_KEY: Final = "className"
INIT_ARGS_KEY: Final = "serializeInitArgs"
INIT_KWARGS_KEY: Final = "serializeInitKwargs"
PROPERTIES_KEY: Final = "properties"

# array.array typecodes and the typed-array names used on the wire
_TYPED_ARRAY_NAMES: Final = {
    "b": "Int8Array",
    "B": "Uint8Array",
    "h": "Int16Array",
    "H": "Uint16Array",
    "i": "Int32Array",
    "I": "Uint32Array",
    "q": "BigInt64Array",
    "Q": "BigUint64Array",
    "f": "Float32Array",
    "d": "Float64Array",
}
_TYPECODES: Final = {name: code for code, name in _TYPED_ARRAY_NAMES.items()} | {
    "Uint8ClampedArray": "B",
}

# Sorted by letter, like the flags string of a JavaScript RegExp
_REGEX_FLAGS: Final = (
    ("a", re.ASCII),
    ("i", re.IGNORECASE),
    ("m", re.MULTILINE),
    ("s", re.DOTALL),
    ("x", re.VERBOSE),
)
_FOREIGN_REGEX_FLAGS: Final = frozenset("dguvy")

# Containers without ids; a cycle through one of these alone cannot be encoded
_UNTRACKED_CONTAINERS: Final = frozenset(
    {SupportedKind.SEQUENCE, SupportedKind.KEYED_MAP, SupportedKind.UNIQUE_SET},
)


class RestoredError(Exception):
    """Stand-in for a deserialized error whose class is not a Python builtin."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name

    def __repr__(self) -> str:
        return f"RestoredError(name={self.name!r}, message={self.args[0]!r})"


@dataclass(frozen=True)
class KindCodec:
    """Encode/decode pair for one SupportedKind.

    ``tag`` is the ``__type`` value written on the wire, or None for kinds
    that pass through untagged.
    """

    tag: str | None
    encode: Callable[[Encoder, Any], Any]
    decode: Callable[[Decoder, dict[str, Any]], Any] | None = None


class Encoder:
    """Turns a value tree into JSON-compatible builtins for one call."""

    def __init__(self, tracker: ReferenceTracker | None = None) -> None:
        self.tracker = tracker if tracker is not None else ReferenceTracker()
        # ids of untracked containers on the current encoding path
        self._open_containers: set[int] = set()

    def encode(self, value: Any) -> Any:
        """Encode any supported value.

        Reference-bearing values get their id before their contents are
        encoded, so contents may refer back to them.

        Raises:
            UnsupportedTypeError: If the value or one of its descendants is
                not a supported kind, or a list, map or set contains itself

        """
        if (ref_id := self.tracker.lookup(value)) is not None:
            return {TYPE_KEY: REF_TAG, _ID_KEY: ref_id}

        kind = classify(value)
        codec = CODECS[kind]
        if kind.is_reference_bearing:
            ref_id = self.tracker.assign(value)
            return {
                TYPE_KEY: codec.tag,
                _ID_KEY: ref_id,
                _DATA_KEY: codec.encode(self, value),
            }
        if kind not in _UNTRACKED_CONTAINERS:
            return codec.encode(self, value)

        container_id = id(value)
        if container_id in self._open_containers:
            kind_name = type(value).__name__
            msg = f"Cannot serialize a {kind_name} that contains itself"
            raise UnsupportedTypeError(kind_name, msg)
        self._open_containers.add(container_id)
        try:
            return codec.encode(self, value)
        finally:
            self._open_containers.discard(container_id)

    def encode_instance(
        self,
        instance: Serializable,
        ref_id: int | None = None,
    ) -> dict[str, Any]:
        """Encode the envelope of a Serializable instance.

        Init args are encoded before keyword args, and both before the
        instance attributes; decoding depends on this order.
        """
        envelope: dict[str, Any] = {CLASS_NAME_KEY: type(instance).type_name}
        if ref_id is not None:
            envelope[_ID_KEY] = ref_id
        envelope[INIT_ARGS_KEY] = [self.encode(arg) for arg in init_args_of(instance)]
        if kwargs := init_kwargs_of(instance):
            envelope[INIT_KWARGS_KEY] = {
                name: self.encode(arg) for name, arg in kwargs.items()
            }
        envelope[PROPERTIES_KEY] = {
            name: self.encode(value)
            for name, value in properties_of(instance).items()
        }
        return envelope


class Decoder:
    """Rebuilds values from JSON-compatible builtins for one call."""

    def __init__(
        self,
        registry: TypeRegistry,
        table: ReferenceTable | None = None,
    ) -> None:
        self.registry = registry
        self.table = table if table is not None else ReferenceTable()

    def decode(self, node: Any) -> Any:
        """Decode one encoded node.

        Raises:
            MalformedInputError: If the node does not have a known shape
            DanglingReferenceError: If a ref points at an undefined id
            UnknownTypeError: If a nested class name is not registered

        """
        if isinstance(node, dict):
            tag = node.get(TYPE_KEY)
            if tag == REF_TAG:
                return self.table.resolve(_ref_id(node))
            codec = _CODECS_BY_TAG.get(tag) if isinstance(tag, str) else None
            if codec is None or codec.decode is None:
                msg = f"Unknown {TYPE_KEY} tag: {tag!r}"
                raise MalformedInputError(msg)
            return codec.decode(self, node)
        if isinstance(node, list):
            msg = "Arrays must be wrapped in a tagged node"
            raise MalformedInputError(msg)
        return node

    def decode_instance(self, envelope: Any, ref_id: int | None = None) -> Any:
        """Construct an instance from its envelope.

        The instance is constructed from its decoded init args, recorded
        under ``ref_id``, and only then are its attributes decoded and
        assigned, so attributes may point back at the instance itself.
        """
        if not isinstance(envelope, dict):
            msg = f"Expected an object envelope, got {type(envelope).__name__}"
            raise MalformedInputError(msg)

        class_name = _require(envelope, CLASS_NAME_KEY, str)
        cls = self.registry.resolve(class_name)

        args = [self.decode(arg) for arg in _require(envelope, INIT_ARGS_KEY, list)]
        raw_kwargs = envelope.get(INIT_KWARGS_KEY, {})
        if not isinstance(raw_kwargs, dict):
            msg = f"'{INIT_KWARGS_KEY}' must be an object"
            raise MalformedInputError(msg)
        kwargs = {name: self.decode(arg) for name, arg in raw_kwargs.items()}
        properties = _require(envelope, PROPERTIES_KEY, dict)

        instance = cls(*args, **kwargs)
        if ref_id is not None:
            self.table.define(ref_id, instance)

        for name, value in properties.items():
            setattr(instance, name, self.decode(value))
        return instance


T = TypeVar("T")


def _require(node: dict[str, Any], key: str, typ: type[T]) -> T:
    """Fetch a field of an encoded node, checking its JSON type."""
    if key not in node:
        msg = f"Missing required '{key}' field in {node.get(TYPE_KEY, 'envelope')}"
        raise MalformedInputError(msg)
    value = node[key]
    if not isinstance(value, typ):
        msg = f"Field '{key}' must be {typ.__name__}, got {type(value).__name__}"
        raise MalformedInputError(msg)
    return value


def _ref_id(node: dict[str, Any]) -> int:
    ref_id = _require(node, _ID_KEY, int)
    if isinstance(ref_id, bool):
        msg = f"Reference id must be an integer, got {ref_id!r}"
        raise MalformedInputError(msg)
    return ref_id


# -----------------------------------------------------------------------------
# Reference-bearing kinds
# -----------------------------------------------------------------------------


def _encode_serializable(encoder: Encoder, value: Serializable) -> dict[str, Any]:
    return encoder.encode_instance(value)


def _decode_serializable(decoder: Decoder, node: dict[str, Any]) -> Any:
    return decoder.decode_instance(_require(node, _DATA_KEY, dict), _ref_id(node))


def _encode_record(encoder: Encoder, value: dict[str, Any]) -> dict[str, Any]:
    return {key: encoder.encode(item) for key, item in value.items()}


def _decode_record(decoder: Decoder, node: dict[str, Any]) -> dict[str, Any]:
    ref_id = _ref_id(node)
    data = _require(node, _DATA_KEY, dict)
    record: dict[str, Any] = {}
    decoder.table.define(ref_id, record)
    for key, item in data.items():
        record[key] = decoder.decode(item)
    return record


# -----------------------------------------------------------------------------
# Containers
# -----------------------------------------------------------------------------


def _encode_sequence(encoder: Encoder, value: list[Any] | tuple[Any, ...]) -> Any:
    node: dict[str, Any] = {
        TYPE_KEY: "Array",
        _DATA_KEY: [encoder.encode(item) for item in value],
    }
    if isinstance(value, tuple):
        node[_CONSTRUCTOR_KEY] = "tuple"
    return node


def _decode_sequence(decoder: Decoder, node: dict[str, Any]) -> Any:
    items = [decoder.decode(item) for item in _require(node, _DATA_KEY, list)]
    if node.get(_CONSTRUCTOR_KEY) == "tuple":
        return tuple(items)
    return items


def _encode_map(encoder: Encoder, value: Any) -> dict[str, Any]:
    return {
        TYPE_KEY: "Map",
        _DATA_KEY: [
            [encoder.encode(key), encoder.encode(item)] for key, item in value.items()
        ],
    }


def _decode_map(decoder: Decoder, node: dict[str, Any]) -> dict[Any, Any]:
    result: dict[Any, Any] = {}
    for pair in _require(node, _DATA_KEY, list):
        if not isinstance(pair, list) or len(pair) != 2:  # noqa: PLR2004
            msg = f"Map entries must be [key, value] pairs, got {pair!r}"
            raise MalformedInputError(msg)
        key = decoder.decode(pair[0])
        value = decoder.decode(pair[1])
        try:
            result[key] = value
        except TypeError as exc:
            msg = f"Map key {key!r} is not hashable"
            raise MalformedInputError(msg) from exc
    return result


def _encode_set(encoder: Encoder, value: Any) -> dict[str, Any]:
    node: dict[str, Any] = {
        TYPE_KEY: "Set",
        _DATA_KEY: [encoder.encode(item) for item in value],
    }
    if isinstance(value, frozenset):
        node[_CONSTRUCTOR_KEY] = "frozenset"
    return node


def _decode_set(decoder: Decoder, node: dict[str, Any]) -> set[Any] | frozenset[Any]:
    items = [decoder.decode(item) for item in _require(node, _DATA_KEY, list)]
    if node.get(_CONSTRUCTOR_KEY) == "frozenset":
        return frozenset(items)
    return set(items)


# -----------------------------------------------------------------------------
# Leaf kinds
# -----------------------------------------------------------------------------


def _encode_buffer(_: Encoder, value: bytes | bytearray | array.array) -> Any:
    if isinstance(value, array.array):
        name = _TYPED_ARRAY_NAMES.get(value.typecode)
        if name is None:
            raise UnsupportedTypeError(f"array('{value.typecode}')")
    else:
        name = type(value).__name__
    return {TYPE_KEY: "TypedArray", _CONSTRUCTOR_KEY: name, _DATA_KEY: list(value)}


def _decode_buffer(_: Decoder, node: dict[str, Any]) -> Any:
    name = _require(node, _CONSTRUCTOR_KEY, str)
    data = _require(node, _DATA_KEY, list)
    try:
        if name == "bytes":
            return bytes(data)
        if name == "bytearray":
            return bytearray(data)
        if name in _TYPECODES:
            return array.array(_TYPECODES[name], data)
    except (TypeError, ValueError, OverflowError) as exc:
        msg = f"Invalid {name} data: {exc}"
        raise MalformedInputError(msg) from exc
    msg = f"Unknown typed array constructor: {name!r}"
    raise MalformedInputError(msg)


def _decode_timestamp(_: Decoder, node: dict[str, Any]) -> datetime:
    text = _require(node, _DATA_KEY, str)
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        msg = f"Invalid ISO-8601 timestamp: {text!r}"
        raise MalformedInputError(msg) from exc


def _encode_pattern(_: Encoder, value: re.Pattern[Any]) -> dict[str, Any]:
    if not isinstance(value.pattern, str):
        raise UnsupportedTypeError("bytes pattern")
    flags = "".join(letter for letter, flag in _REGEX_FLAGS if value.flags & flag)
    return {TYPE_KEY: "RegExp", "source": value.pattern, "flags": flags}


def _decode_pattern(_: Decoder, node: dict[str, Any]) -> re.Pattern[str]:
    source = _require(node, "source", str)
    letters = _require(node, "flags", str)
    known = dict(_REGEX_FLAGS)
    flags = 0
    for letter in letters:
        if letter in known:
            flags |= known[letter]
        elif letter in _FOREIGN_REGEX_FLAGS:
            logger.debug("Ignoring regex flag %r with no Python equivalent", letter)
        else:
            msg = f"Unknown regex flag {letter!r}"
            raise MalformedInputError(msg)
    try:
        return re.compile(source, flags)
    except re.error as exc:
        msg = f"Invalid regular expression {source!r}: {exc}"
        raise MalformedInputError(msg) from exc


def _encode_fault(_: Encoder, value: BaseException) -> dict[str, Any]:
    if len(value.args) == 1 and isinstance(value.args[0], str):
        message = value.args[0]
    else:
        message = str(value)
    return {
        TYPE_KEY: "Error",
        "name": type(value).__name__,
        "message": message,
        "stack": "".join(traceback.format_exception(value)),
    }


def _decode_fault(_: Decoder, node: dict[str, Any]) -> BaseException:
    name = _require(node, "name", str)
    message = _require(node, "message", str)
    stack = node.get("stack")

    error: BaseException | None = None
    cls = getattr(builtins, name, None)
    if isinstance(cls, type) and issubclass(cls, BaseException):
        try:
            error = cls(message)
        except TypeError:
            # e.g. UnicodeDecodeError, whose constructor needs five arguments
            logger.debug("Cannot rebuild %s from a message; using RestoredError", name)
    if error is None:
        error = RestoredError(name, message)
    error.stack = stack  # type: ignore[attr-defined]
    return error


def _decode_big_integer(_: Decoder, node: dict[str, Any]) -> int:
    text = _require(node, _DATA_KEY, str)
    try:
        return int(text)
    except ValueError as exc:
        msg = f"Invalid BigInt literal: {text!r}"
        raise MalformedInputError(msg) from exc


CODECS: Final[dict[SupportedKind, KindCodec]] = {
    SupportedKind.SERIALIZABLE: KindCodec(
        "Serializable",
        _encode_serializable,
        _decode_serializable,
    ),
    SupportedKind.SEQUENCE: KindCodec("Array", _encode_sequence, _decode_sequence),
    SupportedKind.KEYED_MAP: KindCodec("Map", _encode_map, _decode_map),
    SupportedKind.UNIQUE_SET: KindCodec("Set", _encode_set, _decode_set),
    SupportedKind.BYTE_BUFFER: KindCodec("TypedArray", _encode_buffer, _decode_buffer),
    SupportedKind.TIMESTAMP: KindCodec(
        "Date",
        lambda _, value: {TYPE_KEY: "Date", _DATA_KEY: value.isoformat()},
        _decode_timestamp,
    ),
    SupportedKind.PATTERN: KindCodec("RegExp", _encode_pattern, _decode_pattern),
    SupportedKind.FAULT: KindCodec("Error", _encode_fault, _decode_fault),
    SupportedKind.BIG_INTEGER: KindCodec(
        "BigInt",
        lambda _, value: {TYPE_KEY: "BigInt", _DATA_KEY: str(value)},
        _decode_big_integer,
    ),
    SupportedKind.ABSENT: KindCodec(
        "undefined",
        lambda _, __: {TYPE_KEY: "undefined"},
        lambda _, __: UNDEFINED,
    ),
    SupportedKind.SCALAR: KindCodec(None, lambda _, value: value),
    SupportedKind.PLAIN_RECORD: KindCodec("Object", _encode_record, _decode_record),
}

_CODECS_BY_TAG: Final[dict[str, KindCodec]] = {
    codec.tag: codec for codec in CODECS.values() if codec.tag is not None
}
