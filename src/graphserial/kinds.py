"""Runtime value classification.

Every value reachable from a Serializable instance is mapped to exactly one
SupportedKind. The order of checks in classify() is the precedence order:
the first matching kind wins.
"""

from __future__ import annotations

import array
import logging
import re
import warnings
from collections.abc import Mapping
from collections.abc import Set as AbstractSet
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Final

from graphserial.errors import (
    SerializableWarning,
    UnsupportedConstructorArgumentError,
    UnsupportedTypeError,
)
from graphserial.serializable import Serializable

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

# Largest integer a JSON reader backed by IEEE-754 doubles keeps exactly
MAX_SAFE_INTEGER: Final = 2**53 - 1


class _Undefined:
    """Marker for an explicit "no value", distinct from None."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED: Final = _Undefined()


class SupportedKind(Enum):
    """Value kinds the serializer knows how to encode, in precedence order."""

    SERIALIZABLE = "serializable"
    SEQUENCE = "sequence"
    KEYED_MAP = "keyed-map"
    UNIQUE_SET = "unique-set"
    BYTE_BUFFER = "byte-buffer"
    TIMESTAMP = "timestamp"
    PATTERN = "pattern"
    FAULT = "fault"
    BIG_INTEGER = "big-integer"
    ABSENT = "absent"
    SCALAR = "scalar"
    PLAIN_RECORD = "plain-record"

    @property
    def is_reference_bearing(self) -> bool:
        """Whether values of this kind get an id and may be emitted as refs."""
        return self in (SupportedKind.SERIALIZABLE, SupportedKind.PLAIN_RECORD)


def is_plain_record(value: Any) -> bool:
    """Exact dict whose keys are all strings."""
    return type(value) is dict and all(isinstance(key, str) for key in value)


def _is_big_integer(value: Any) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and abs(value) > MAX_SAFE_INTEGER
    )


def _is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, bool | int | float | str)


_CHECKS: Final[tuple[tuple[SupportedKind, Callable[[Any], bool]], ...]] = (
    (SupportedKind.SERIALIZABLE, lambda v: isinstance(v, Serializable)),
    (SupportedKind.SEQUENCE, lambda v: isinstance(v, list | tuple)),
    (
        SupportedKind.KEYED_MAP,
        lambda v: isinstance(v, Mapping) and not is_plain_record(v),
    ),
    (SupportedKind.UNIQUE_SET, lambda v: isinstance(v, AbstractSet)),
    (
        SupportedKind.BYTE_BUFFER,
        lambda v: isinstance(v, bytes | bytearray | array.array),
    ),
    (SupportedKind.TIMESTAMP, lambda v: isinstance(v, datetime)),
    (SupportedKind.PATTERN, lambda v: isinstance(v, re.Pattern)),
    (SupportedKind.FAULT, lambda v: isinstance(v, BaseException)),
    (SupportedKind.BIG_INTEGER, _is_big_integer),
    (SupportedKind.ABSENT, lambda v: v is UNDEFINED),
    (SupportedKind.SCALAR, _is_scalar),
    (SupportedKind.PLAIN_RECORD, is_plain_record),
)


def classify(value: Any) -> SupportedKind:
    """Return the kind of a runtime value.

    Raises:
        UnsupportedTypeError: If the value matches none of the supported kinds

    """
    for kind, matches in _CHECKS:
        if matches(value):
            return kind
    kind_name = type(value).__name__
    logger.debug("Unsupported value of type '%s': %r", kind_name, value)
    raise UnsupportedTypeError(kind_name)


def check_init_args(
    type_name: str,
    args: tuple[Any, ...],
    kwargs: Mapping[str, Any],
) -> None:
    """Best-effort validation of constructor arguments.

    Only the top level of each argument is classified. Plain records holding
    callables are accepted with a SerializableWarning; serializing the
    instance while it still holds them fails later.

    Raises:
        UnsupportedConstructorArgumentError: For arguments of unsupported kinds

    """
    positions: list[tuple[int | str, Any]] = [*enumerate(args), *kwargs.items()]
    for position, arg in positions:
        try:
            kind = classify(arg)
        except UnsupportedTypeError as exc:
            logger.debug(
                "Rejected argument %r of '%s': %r",
                position,
                type_name,
                arg,
            )
            raise UnsupportedConstructorArgumentError(
                type_name,
                position,
                exc.kind,
            ) from exc

        if kind is SupportedKind.PLAIN_RECORD and any(
            callable(value) for value in arg.values()
        ):
            warnings.warn(
                f"A plain dict holding functions was passed to the constructor "
                f"of '{type_name}'. Functions inside plain dicts cannot be "
                "serialized.",
                SerializableWarning,
                stacklevel=3,
            )
