"""graphserial - Object graph serialization with cycles and shared references."""

from graphserial.codecs import (
    CODECS,
    Decoder,
    Encoder,
    KindCodec,
    RestoredError,
)
from graphserial.errors import (
    DanglingReferenceError,
    InvalidRegistrationError,
    MalformedInputError,
    SerializableWarning,
    SerializationError,
    UnknownTypeError,
    UnsupportedConstructorArgumentError,
    UnsupportedTypeError,
)
from graphserial.kinds import (
    UNDEFINED,
    SupportedKind,
    classify,
)
from graphserial.registry import (
    TypeRegistry,
    default_registry,
)
from graphserial.serializable import Serializable
from graphserial.serialization import (
    from_dict,
    from_json,
    to_dict,
    to_json,
)
from graphserial.serializer import GraphSerializer
from graphserial.tracker import (
    ReferenceTable,
    ReferenceTracker,
)

__all__ = [
    # Codec table
    "CODECS",
    # Core types
    "UNDEFINED",
    # Errors
    "DanglingReferenceError",
    "Decoder",
    "Encoder",
    "GraphSerializer",
    "InvalidRegistrationError",
    "KindCodec",
    "MalformedInputError",
    "ReferenceTable",
    "ReferenceTracker",
    "RestoredError",
    "Serializable",
    "SerializableWarning",
    "SerializationError",
    "SupportedKind",
    "TypeRegistry",
    "UnknownTypeError",
    "UnsupportedConstructorArgumentError",
    "UnsupportedTypeError",
    "classify",
    "default_registry",
    # Serialization
    "from_dict",
    "from_json",
    "to_dict",
    "to_json",
]
