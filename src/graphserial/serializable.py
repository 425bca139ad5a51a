"""Serializable base class with automatic registration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Self

from graphserial.registry import TypeRegistry, default_registry

if TYPE_CHECKING:
    from collections.abc import Mapping

_INIT_ARGS_ATTR = "_serialize_init_args"
_INIT_KWARGS_ATTR = "_serialize_init_kwargs"
_BOOKKEEPING_ATTRS = frozenset({_INIT_ARGS_ATTR, _INIT_KWARGS_ATTR})


class Serializable:
    """Base for objects that round-trip through a JSON object graph.

    Subclasses are registered when the class statement runs, under the
    ``type_name`` class keyword or the class name::

        class Point(Serializable):
            def __init__(self, x, y):
                self.x = x
                self.y = y

        class Line(Serializable, type_name="geometry.Line"):
            ...

    Constructor arguments are captured before ``__init__`` runs, so
    deserialization can call the constructor again with equivalent values
    and then restore the instance attributes on top.
    """

    type_name: ClassVar[str]
    registry: ClassVar[TypeRegistry] = default_registry

    def __init_subclass__(
        cls,
        type_name: str | None = None,
        registry: TypeRegistry | None = None,
        **kwargs: Any,
    ) -> None:
        """Register subclass under its explicit or derived name."""
        super().__init_subclass__(**kwargs)
        cls.type_name = type_name if type_name is not None else cls.__name__
        if registry is not None:
            cls.registry = registry
        cls.register()

    def __new__(cls, *args: Any, **kwargs: Any) -> Self:
        if cls is Serializable:
            msg = "Serializable cannot be instantiated directly; subclass it."
            raise TypeError(msg)

        from graphserial.kinds import check_init_args  # noqa: PLC0415

        check_init_args(cls.type_name, args, kwargs)
        instance = super().__new__(cls)
        object.__setattr__(instance, _INIT_ARGS_ATTR, args)
        object.__setattr__(instance, _INIT_KWARGS_ATTR, kwargs)
        cls.register()
        return instance

    @classmethod
    def register(cls) -> None:
        """Register this class so it can be deserialized before first use."""
        cls.registry.register(cls.type_name, cls)

    def serialize(self, *, indent: int | None = None) -> str:
        """Serialize this instance and everything reachable from it to JSON."""
        from graphserial.serializer import GraphSerializer  # noqa: PLC0415

        return GraphSerializer(type(self).registry, indent=indent).serialize(self)

    @classmethod
    def deserialize(cls, text: str | bytes) -> Serializable:
        """Rebuild an instance from text produced by ``serialize``."""
        from graphserial.serializer import GraphSerializer  # noqa: PLC0415

        return GraphSerializer(cls.registry).deserialize(text)


def init_args_of(instance: Serializable) -> tuple[Any, ...]:
    """Positional constructor arguments captured for an instance."""
    return getattr(instance, _INIT_ARGS_ATTR, ())


def init_kwargs_of(instance: Serializable) -> Mapping[str, Any]:
    """Keyword constructor arguments captured for an instance."""
    return getattr(instance, _INIT_KWARGS_ATTR, {})


def properties_of(instance: Serializable) -> dict[str, Any]:
    """Own attributes of an instance, excluding captured constructor args."""
    return {
        name: value
        for name, value in vars(instance).items()
        if name not in _BOOKKEEPING_ATTRS
    }
