from enum import Enum


class Phase(str, Enum):
    DAY = "day"
    NIGHT = "night"


class MoveOutcome(str, Enum):
    MOVED = "moved"
    FAILED = "failed"
    CANCELLED = "cancelled"
