from __future__ import annotations

from typing import TYPE_CHECKING

from .utils import floor_distance

if TYPE_CHECKING:  # pragma: no cover - import cycle safe typing
    from dispatch.car import CarStatus
    from dispatch.request import Request


class NearestCarScoring:
    """Sends the physically closest eligible car, ignoring its heading."""

    def __call__(self, car: "CarStatus", request: "Request") -> float:
        return floor_distance(car, request.floor)
