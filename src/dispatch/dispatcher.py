from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from scoring import LookScoring, ScoringFunction

from .car import Car
from .request import Request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Assignment:
    request: Request
    car_id: int
    cost: float


class Dispatcher:
    """Greedy online assignment of hall calls to cars.

    Requests wait in ``pending`` (oldest first) until some eligible car can
    take them. Each pass scores every eligible car with the configured
    scoring function and hands the request to the cheapest one, lowest car id
    first on ties. A request that finds no eligible car simply stays queued
    and is retried on the next pass; it is never dropped.
    """

    def __init__(self, scoring: Optional[ScoringFunction] = None) -> None:
        self.scoring: ScoringFunction = scoring or LookScoring()
        self.pending: List[Request] = []

    def set_scoring(self, scoring: ScoringFunction) -> None:
        self.scoring = scoring

    def select_car(self, cars: Iterable[Car], request: Request) -> Optional[Car]:
        best = self._best_car(cars, request)
        return best[0] if best else None

    def enqueue(self, request: Request, cars: Iterable[Car]) -> List[Assignment]:
        self.pending.append(request)
        return self.drain_pending(cars)

    def drain_pending(self, cars: Iterable[Car]) -> List[Assignment]:
        roster = sorted(cars, key=lambda car: car.car_id)
        assignments: List[Assignment] = []
        remaining: List[Request] = []
        for request in self.pending:
            best = self._best_car(roster, request)
            if best is None:
                remaining.append(request)
                continue
            car, cost = best
            if not car.add_destination(request.floor, request):
                remaining.append(request)
                continue
            assignments.append(Assignment(request=request, car_id=car.car_id, cost=cost))
            logger.debug(
                "Assigned request %s (floor %s) to car %s at cost %s",
                request.request_id,
                request.floor,
                car.car_id,
                cost,
            )
        self.pending[:] = remaining
        return assignments

    def requeue(self, requests: Iterable[Request]) -> None:
        """Return released requests to the queue without losing their seniority."""
        merged = self.pending + list(requests)
        self.pending[:] = sorted(merged, key=lambda req: (req.timestamp, req.request_id))

    def withdraw(self, request_id: int) -> bool:
        for index, request in enumerate(self.pending):
            if request.request_id == request_id:
                del self.pending[index]
                return True
        return False

    def _best_car(self, cars: Iterable[Car], request: Request) -> Optional[Tuple[Car, float]]:
        best: Optional[Tuple[Car, float]] = None
        for car in cars:
            if not car.is_eligible(request):
                continue
            cost = self.scoring(car.status(), request)
            if best is None or (cost, car.car_id) < (best[1], best[0].car_id):
                best = (car, cost)
        return best
