"""Name-to-class registry used for polymorphic reconstruction."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

from graphserial.errors import InvalidRegistrationError, UnknownTypeError

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=Callable[..., Any])

_MAX_NAMES_IN_ERROR = 10  # Maximum number of class names to show in error messages


class TypeRegistry:
    """Append-only mapping from class name to constructor.

    The first registration for a name wins; registering the same name again
    is a no-op, even with a different constructor. Entries are never removed.

    Usage:
        registry = TypeRegistry()
        registry.register("Point", Point)
        registry.resolve("Point")  # -> Point

    The registry is not synchronized. Register types at import time, before
    any threads start serializing.
    """

    def __init__(self) -> None:
        self._types: dict[str, Callable[..., Any]] = {}

    def register(self, type_name: str, constructor: C) -> C:
        """Record a constructor under a name unless the name is already taken.

        Args:
            type_name: Name written to the payload's ``className`` field
            constructor: Callable producing an instance from init args

        Returns:
            The constructor, unchanged

        Raises:
            InvalidRegistrationError: If the name is empty or not a string

        """
        if not type_name or not isinstance(type_name, str):
            msg = f"Cannot register {constructor!r} without a name."
            raise InvalidRegistrationError(msg)

        if type_name not in self._types:
            self._types[type_name] = constructor
            logger.debug("Registered %r as '%s'", constructor, type_name)
        return constructor

    def resolve(self, type_name: str) -> Callable[..., Any]:
        """Look up the constructor registered under a name.

        Raises:
            UnknownTypeError: If nothing is registered under the name

        """
        try:
            return self._types[type_name]
        except (KeyError, TypeError):
            available = list(self._types)[:_MAX_NAMES_IN_ERROR]
            raise UnknownTypeError(str(type_name), available) from None

    def names(self) -> list[str]:
        """Registered names in registration order."""
        return list(self._types)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._types

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        return f"TypeRegistry({self.names()!r})"


# Process-wide registry used by Serializable subclasses unless they opt out
default_registry = TypeRegistry()
