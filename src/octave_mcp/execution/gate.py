from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class ConcurrencyGate:
    """Bound the number of interpreter processes running at once.

    Waiters queue in arrival order. A waiter that is cancelled (or whose
    caller deadline fires) leaves the queue without taking a slot.

    Example:
        ```python
        gate = ConcurrencyGate(limit=4)
        async with gate.slot():
            ...
        ```
    """

    def __init__(self, limit: int) -> None:
        """Initialize a gate with ``limit`` slots.

        Example:
            ```python
            gate = ConcurrencyGate(limit=10)
            ```
        """
        if limit <= 0:
            raise ValueError("ConcurrencyGate requires a positive 'limit'")
        self._limit = limit
        self._semaphore = asyncio.Semaphore(limit)
        self._in_use = 0

    @property
    def limit(self) -> int:
        """Total number of slots.

        Example:
            ```python
            gate.limit  # 10
            ```
        """
        return self._limit

    @property
    def in_use(self) -> int:
        """Number of slots currently held.

        Example:
            ```python
            gate.in_use  # 0 when idle
            ```
        """
        return self._in_use

    @property
    def available(self) -> int:
        """Number of free slots.

        Example:
            ```python
            gate.available  # gate.limit - gate.in_use
            ```
        """
        return self._limit - self._in_use

    async def acquire(self) -> None:
        """Wait for a free slot and take it.

        Example:
            ```python
            await gate.acquire()
            try:
                ...
            finally:
                gate.release()
            ```
        """
        await self._semaphore.acquire()
        self._in_use += 1

    def release(self) -> None:
        """Return a slot taken by `acquire`.

        Example:
            ```python
            gate.release()
            ```
        """
        if self._in_use <= 0:
            raise RuntimeError("ConcurrencyGate released more slots than acquired")
        self._in_use -= 1
        self._semaphore.release()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one slot for the duration of the block.

        Example:
            ```python
            async with gate.slot():
                outcome = await engine.execute(request)
            ```
        """
        await self.acquire()
        try:
            yield
        finally:
            self.release()
