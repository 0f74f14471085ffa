"""
otelxray.core.attributes - Consume-once attribute lookup table.

An AttributeTable wraps the attributes of a span or a resource. Well-known
keys (see conventions.WELL_KNOWN_KEYS) are stored in fixed slots and tracked
in integer bitmasks; any other key goes to an overflow list.

Writers read well-known keys with get(), which marks them as "seen". A
writer that actually used the values calls commit() so the generic
annotation/metadata pass no longer sees those keys; a writer that only
probed them calls rollback() instead.

Classes:
    AttributeTable: Key/value view with mark, commit and rollback operations
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union

from otelxray.core.conventions import KEY_INDEX, WELL_KNOWN_KEYS

AttributeSource = Union[Mapping, Iterable[Tuple[str, Any]], None]

_SLOT_COUNT = len(WELL_KNOWN_KEYS)


class AttributeTable:
    """Attribute view with two-phase (seen, then consumed) tracking.

    Tables are meant to be pooled: initialize() fills the table, clear()
    returns it to the empty state. Initializing a table that still holds
    data is a contract violation and raises RuntimeError.

    Example:
        >>> table = AttributeTable()
        >>> table.initialize({"http.method": "GET", "custom": 1})
        >>> table.get("http.method")
        'GET'
        >>> table.commit()
        >>> list(table)
        [('custom', 1)]
    """

    __slots__ = ("_slots", "_present", "_seen", "_consumed", "_overflow", "_initialized")

    def __init__(self) -> None:
        self._slots: List[Any] = [None] * _SLOT_COUNT
        self._present = 0
        self._seen = 0
        self._consumed = 0
        self._overflow: List[Tuple[str, Any]] = []
        self._initialized = False

    def initialize(self, attributes: AttributeSource) -> None:
        """Populate the table from a mapping or an iterable of pairs.

        Args:
            attributes: Span or resource attributes (None is treated as empty)

        Raises:
            RuntimeError: If the table was not cleared since the last use
        """
        if self._initialized:
            raise RuntimeError("AttributeTable must be cleared before it is re-initialized")
        self._initialized = True

        if not attributes:
            return

        items = attributes.items() if isinstance(attributes, Mapping) else attributes
        for key, value in items:
            index = KEY_INDEX.get(key)
            if index is None:
                self._overflow.append((key, value))
            else:
                self._slots[index] = value
                self._present |= 1 << index

    def clear(self) -> None:
        """Reset the table so it can be initialized again."""
        present = self._present
        index = 0
        while present:
            if present & 1:
                self._slots[index] = None
            present >>= 1
            index += 1
        self._present = 0
        self._seen = 0
        self._consumed = 0
        self._overflow.clear()
        self._initialized = False

    def get(self, key: str) -> Optional[Any]:
        """Look up a well-known key and mark it as seen.

        The key is marked even if it is absent; committing an absent key
        has no effect.

        Args:
            key: One of conventions.WELL_KNOWN_KEYS

        Returns:
            The attribute value, or None if the attribute is absent or
            was already consumed

        Raises:
            KeyError: If the key is not a well-known key
        """
        bit = 1 << KEY_INDEX[key]
        self._seen |= bit
        if self._present & bit and not self._consumed & bit:
            return self._slots[KEY_INDEX[key]]
        return None

    def contains(self, key: str) -> bool:
        """Return True if a well-known key is present and not consumed.

        Unlike get(), this does not mark the key.
        """
        bit = 1 << KEY_INDEX[key]
        return bool(self._present & bit and not self._consumed & bit)

    def commit(self) -> None:
        """Consume every key marked since the last commit or rollback."""
        self._consumed |= self._seen & self._present
        self._seen = 0

    def rollback(self) -> None:
        """Forget pending marks without consuming them."""
        self._seen = 0

    @property
    def pending(self) -> int:
        """Bitmask of keys marked since the last commit or rollback."""
        return self._seen

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        remaining = self._present & ~self._consumed
        index = 0
        while remaining:
            if remaining & 1:
                yield WELL_KNOWN_KEYS[index], self._slots[index]
            remaining >>= 1
            index += 1
        yield from self._overflow

    def __len__(self) -> int:
        return bin(self._present & ~self._consumed).count("1") + len(self._overflow)

    def __repr__(self) -> str:
        return f"AttributeTable({dict(self)!r})"
