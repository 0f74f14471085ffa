"""
otelxray.core.pool - Reusable scratch state for the segment converter.

Converting a span needs two attribute tables and a JSON encoder. Rather
than allocating them per call, the converter checks a ConverterScratch out
of a ScratchPool and returns it when done. The pool is not bound to
threads: any worker or task may check out an instance, and an instance is
never shared by two conversions at the same time.
"""

from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from typing import Callable, Generic, Iterator, List, TypeVar

from otelxray.core.attributes import AttributeTable
from otelxray.utils.values import to_json_compatible

T = TypeVar("T")

DEFAULT_MAX_IDLE = 16


class ConverterScratch:
    """Per-conversion working state."""

    def __init__(self) -> None:
        self.span_attributes = AttributeTable()
        self.resource_attributes = AttributeTable()
        self.encoder = json.JSONEncoder(
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
            default=to_json_compatible,
        )

    def reset(self) -> None:
        self.span_attributes.clear()
        self.resource_attributes.clear()


class ScratchPool(Generic[T]):
    """Thread-safe free list of reusable objects.

    Objects must provide a ``reset()`` method, which is called when they
    are returned to the pool.

    Example:
        >>> pool = ScratchPool(ConverterScratch)
        >>> with pool.checkout() as scratch:
        ...     scratch.span_attributes.initialize({"http.method": "GET"})
    """

    def __init__(self, factory: Callable[[], T], max_idle: int = DEFAULT_MAX_IDLE) -> None:
        if max_idle < 0:
            raise ValueError("max_idle cannot be negative")
        self._factory = factory
        self._max_idle = max_idle
        self._idle: List[T] = []
        self._lock = threading.Lock()

    @contextmanager
    def checkout(self) -> Iterator[T]:
        """Borrow an object for the duration of a ``with`` block.

        The object is reset and returned on every exit path, including
        exceptions raised inside the block.
        """
        with self._lock:
            item = self._idle.pop() if self._idle else None
        if item is None:
            item = self._factory()
        try:
            yield item
        finally:
            item.reset()
            with self._lock:
                if len(self._idle) < self._max_idle:
                    self._idle.append(item)

    @property
    def idle_count(self) -> int:
        with self._lock:
            return len(self._idle)
