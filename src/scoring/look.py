from __future__ import annotations

from typing import TYPE_CHECKING

from .interface import REVERSAL_PENALTY
from .utils import floor_distance, will_pass

if TYPE_CHECKING:  # pragma: no cover - import cycle safe typing
    from dispatch.car import CarStatus
    from dispatch.request import Request


class LookScoring:
    """Distance cost that penalises cars which would have to double back.

    An idle car, or one that is already heading the request's way and has not
    passed its floor, costs the plain floor distance. Every other car pays
    ``reversal_penalty`` on top, so it is only picked when nothing better is
    available.
    """

    def __init__(self, reversal_penalty: float = REVERSAL_PENALTY) -> None:
        if reversal_penalty < 0:
            raise ValueError(f"reversal_penalty must be non-negative, got {reversal_penalty}")
        self.reversal_penalty = reversal_penalty

    def __call__(self, car: "CarStatus", request: "Request") -> float:
        distance = floor_distance(car, request.floor)
        if car.is_idle or not car.has_destinations:
            return distance
        same_direction = request.direction == 0 or request.direction == car.direction
        if same_direction and will_pass(car, request.floor):
            return distance
        return distance + self.reversal_penalty
