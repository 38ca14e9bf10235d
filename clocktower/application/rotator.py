import threading
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")


class ResourceRotator(Generic[T]):
    """Hands out a fixed set of equivalent resources in round-robin order."""

    def __init__(self, resources: Sequence[T]):
        if not resources:
            raise ValueError("at least one resource is required")
        self._resources: tuple[T, ...] = tuple(resources)
        self._counter = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._resources)

    @property
    def resources(self) -> tuple[T, ...]:
        return self._resources

    @property
    def primary(self) -> T:
        return self._resources[0]

    def next(self) -> T:
        with self._lock:
            idx = self._counter % len(self._resources)
            self._counter += 1
        return self._resources[idx]
