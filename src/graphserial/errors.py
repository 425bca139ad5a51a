"""Exception hierarchy for graph serialization.

Every error raised by the library derives from SerializationError and
from the builtin exception that best describes it, so callers can catch
either the library base class or the usual ValueError/TypeError/LookupError.
"""

from __future__ import annotations


class SerializationError(Exception):
    """Base class for all graphserial errors."""


class InvalidRegistrationError(SerializationError, ValueError):
    """A type was registered without a usable name."""


class UnknownTypeError(SerializationError, LookupError):
    """A class name in the payload is not present in the registry."""

    def __init__(self, type_name: str, available: list[str] | None = None) -> None:
        self.type_name = type_name
        self.available = available or []
        msg = f"Class '{type_name}' not found in registry."
        if self.available:
            msg += f" Registered classes: {self.available}"
        super().__init__(msg)


class UnsupportedTypeError(SerializationError, TypeError):
    """A runtime value is not one of the supported kinds."""

    def __init__(self, kind: str, message: str | None = None) -> None:
        self.kind = kind
        super().__init__(message or f"Cannot serialize value of type '{kind}'")


class UnsupportedConstructorArgumentError(UnsupportedTypeError):
    """A Serializable subclass was constructed with an unencodable argument."""

    def __init__(self, type_name: str, position: int | str, kind: str) -> None:
        self.type_name = type_name
        self.position = position
        msg = (
            f"Unsupported argument {position!r} of type '{kind}' passed to "
            f"the constructor of '{type_name}'. Custom classes must inherit "
            "from Serializable."
        )
        super().__init__(kind, msg)


class MalformedInputError(SerializationError, ValueError):
    """The payload is not valid JSON or does not have the expected shape."""


class DanglingReferenceError(SerializationError, LookupError):
    """A ref node points at an id that has not been defined yet."""

    def __init__(self, ref_id: int) -> None:
        self.ref_id = ref_id
        super().__init__(f"Reference to undefined id {ref_id}")


class SerializableWarning(UserWarning):
    """Issued for constructor arguments that will not survive a round trip."""
