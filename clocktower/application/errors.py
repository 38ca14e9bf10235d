from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from clocktower.domain.models import BatchResult


class MoverError(Exception):
    pass


class TopologyError(MoverError):
    pass


class CapacityError(MoverError):
    def __init__(self, needed: int, available: int):
        self.needed = needed
        self.available = available
        super().__init__(
            f"not enough private rooms available, need {needed} moves "
            f"but only have {available} empty rooms"
        )


class PlanConsistencyError(MoverError):
    pass


class GateBusyError(MoverError):
    def __init__(self) -> None:
        super().__init__("existing player movement has not finished yet, please wait")


class PlatformError(MoverError):
    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class BatchFailedError(MoverError):
    def __init__(self, result: BatchResult):
        self.result = result
        super().__init__(
            f"movement plan for group {result.group_id} incomplete: {result.summary()}"
        )
