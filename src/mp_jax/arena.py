"""Append-only arena that owns every node of one parse."""

from __future__ import annotations

import os
from typing import TypeVar

from .errors import ArenaExhaustedError

DEFAULT_ARENA_CAPACITY = max(1, int(os.environ.get("MP_JAX_ARENA_CAPACITY", "8192")))

_N = TypeVar("_N")


class Arena:
    """Bump-style allocator measured in nodes.

    Storage is created on the first allocation and released as a unit by
    `free()`. Running past `capacity` raises `ArenaExhaustedError`, which
    fails the parse instead of aborting the process.
    """

    def __init__(self, capacity: int | None = None) -> None:
        capacity = DEFAULT_ARENA_CAPACITY if capacity is None else int(capacity)
        if capacity < 1:
            raise ValueError(f"Arena capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._nodes: list[object] | None = None

    def alloc(self, node: _N) -> _N:
        if self._nodes is None:
            self._nodes = []
        if len(self._nodes) >= self.capacity:
            raise ArenaExhaustedError(f"Arena capacity of {self.capacity} nodes exhausted")
        self._nodes.append(node)
        return node

    @property
    def count(self) -> int:
        return 0 if self._nodes is None else len(self._nodes)

    @property
    def allocated(self) -> bool:
        return self._nodes is not None

    def reset(self) -> None:
        if self._nodes is not None:
            self._nodes.clear()

    def free(self) -> None:
        self._nodes = None

    def __len__(self) -> int:
        return self.count

    def __repr__(self) -> str:
        return f"Arena(count={self.count}, capacity={self.capacity})"
