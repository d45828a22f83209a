from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - import cycle safe typing
    from dispatch.car import CarStatus


def floor_distance(car: "CarStatus", floor: int) -> int:
    return abs(floor - car.current_floor)


def will_pass(car: "CarStatus", floor: int) -> bool:
    """True when the car's current run still reaches ``floor`` without reversing."""

    if car.direction > 0:
        return floor >= car.current_floor
    if car.direction < 0:
        return floor <= car.current_floor
    return True
