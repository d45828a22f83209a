from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


class Direction(IntEnum):
    """Travel direction; the integer value is the sign of floor movement."""

    UP = 1
    DOWN = -1
    NONE = 0

    @classmethod
    def parse(cls, value: object) -> "Direction":
        if isinstance(value, Direction):
            return value
        if isinstance(value, int):
            return cls(value)
        try:
            return cls[str(value).upper()]
        except KeyError:
            raise ValueError(f"Unknown direction '{value}'. Expected one of: up, down") from None


class RequestKind(str, Enum):
    HALL = "hall"
    CAR = "car"


@dataclass(frozen=True)
class Request:
    """An immutable floor request.

    Hall calls carry the origin floor and the rider's desired direction.
    Car calls carry the target floor selected inside ``car_id`` and have no
    direction.
    """

    request_id: int
    floor: int
    direction: Direction
    kind: RequestKind
    timestamp: int
    car_id: Optional[int] = None

    @classmethod
    def hall_call(cls, request_id: int, floor: int, direction: Direction, timestamp: int) -> "Request":
        return cls(
            request_id=request_id,
            floor=floor,
            direction=direction,
            kind=RequestKind.HALL,
            timestamp=timestamp,
        )

    @classmethod
    def car_call(
        cls, request_id: int, car_id: int, target_floor: int, timestamp: int
    ) -> "Request":
        return cls(
            request_id=request_id,
            floor=target_floor,
            direction=Direction.NONE,
            kind=RequestKind.CAR,
            timestamp=timestamp,
            car_id=car_id,
        )

    @property
    def target_floor(self) -> Optional[int]:
        return self.floor if self.kind is RequestKind.CAR else None

    @property
    def is_hall_call(self) -> bool:
        return self.kind is RequestKind.HALL
