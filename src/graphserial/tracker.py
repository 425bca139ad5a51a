"""Identity bookkeeping for a single serialize or deserialize call."""

from __future__ import annotations

from typing import Any

from graphserial.errors import DanglingReferenceError, MalformedInputError


class ReferenceTracker:
    """Assigns ids to reference-bearing values on first visit.

    Ids are handed out from 0 in visit order. Values are keyed by identity,
    not equality; the tracker keeps each tracked value alive so its id()
    cannot be reused by another object during the call.
    """

    def __init__(self) -> None:
        self._ids: dict[int, tuple[int, Any]] = {}
        self._next_id = 0

    def lookup(self, value: Any) -> int | None:
        """Id previously assigned to this exact object, if any."""
        entry = self._ids.get(id(value))
        return entry[0] if entry is not None else None

    def assign(self, value: Any) -> int:
        """Assign the next id to a value seen for the first time."""
        ref_id = self._next_id
        self._next_id += 1
        self._ids[id(value)] = (ref_id, value)
        return ref_id

    def __len__(self) -> int:
        return self._next_id


class ReferenceTable:
    """Maps ids to values already materialized during decoding."""

    def __init__(self) -> None:
        self._values: dict[int, Any] = {}

    def define(self, ref_id: int, value: Any) -> None:
        """Record the value built for an id.

        Raises:
            MalformedInputError: If the id was already defined

        """
        if ref_id in self._values:
            msg = f"Reference id {ref_id} is defined more than once"
            raise MalformedInputError(msg)
        self._values[ref_id] = value

    def resolve(self, ref_id: int) -> Any:
        """Return the value defined for an id.

        Raises:
            DanglingReferenceError: If no value has been defined for the id yet

        """
        try:
            return self._values[ref_id]
        except KeyError:
            raise DanglingReferenceError(ref_id) from None

    def __contains__(self, ref_id: object) -> bool:
        return ref_id in self._values

    def __len__(self) -> int:
        return len(self._values)
