from __future__ import annotations

import itertools
import logging
import threading
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from scoring import ScoringFunction

from .car import Car, CarStatus, StepResult
from .config import DispatchConfig
from .dispatcher import Assignment, Dispatcher
from .errors import InvalidFloor, UnknownCar
from .request import Direction, Request

logger = logging.getLogger(__name__)


class ServiceStatus(str, Enum):
    NORMAL = "normal"
    DEGRADED = "degraded"
    NO_SERVICE = "no_service"


class Controller:
    """Owns the car roster and the dispatcher and advances them in ticks.

    Every read or write of car state and of the pending queue happens under a
    single re-entrant lock. ``tick`` holds it for the whole step so a request
    arriving mid-tick never sees a half-advanced roster; boundary calls hold
    it only for their own mutation. ``trigger_emergency`` is the exception: it
    only raises a flag on the car, which the car honours on its next
    ``advance``.
    """

    def __init__(
        self,
        config: DispatchConfig,
        cars: Iterable[Car],
        scoring: Optional[ScoringFunction] = None,
    ) -> None:
        self.config = config
        self.cars: Dict[int, Car] = {}
        for car in sorted(cars, key=lambda c: c.car_id):
            if car.car_id in self.cars:
                raise ValueError(f"Duplicate car id {car.car_id}")
            if not config.contains(car.current_floor):
                raise ValueError(
                    f"Car {car.car_id} starts at floor {car.current_floor}, outside "
                    f"[{config.lowest_floor}, {config.highest_floor}]"
                )
            self.cars[car.car_id] = car
        if not self.cars:
            raise ValueError("A controller needs at least one car")

        self.scoring_name = config.scoring if scoring is None else getattr(
            scoring, "__name__", type(scoring).__name__
        )
        self.dispatcher = Dispatcher(scoring or config.build_scoring())
        self.current_time: int = 0
        self._request_ids = itertools.count(1)
        self.event_hooks: Dict[str, List[Callable[[dict], None]]] = {}
        self._lock = threading.RLock()

    @classmethod
    def build(cls, config: DispatchConfig, scoring: Optional[ScoringFunction] = None) -> "Controller":
        start_floors = config.start_floors or [config.lowest_floor] * config.car_count
        cars = [
            Car(
                car_id,
                capacity=config.constraints.capacity,
                door_dwell_ticks=config.constraints.door_dwell_ticks,
                current_floor=floor,
            )
            for car_id, floor in enumerate(start_floors)
        ]
        return cls(config, cars, scoring=scoring)

    def request_elevator(self, floor: int, direction: Direction | str) -> Request:
        """Register a hall call. The returned request can be used to cancel it."""
        direction = Direction.parse(direction)
        if direction is Direction.NONE:
            raise ValueError("Hall calls need an up or down direction")
        self._validate_floor(floor)
        if direction is Direction.UP and floor == self.config.highest_floor:
            raise InvalidFloor(
                floor,
                self.config.lowest_floor,
                self.config.highest_floor,
                reason=f"No floor above {floor} to travel up to",
            )
        if direction is Direction.DOWN and floor == self.config.lowest_floor:
            raise InvalidFloor(
                floor,
                self.config.lowest_floor,
                self.config.highest_floor,
                reason=f"No floor below {floor} to travel down to",
            )

        with self._lock:
            request = Request.hall_call(next(self._request_ids), floor, direction, self.current_time)
            assignments = self.dispatcher.enqueue(request, self.cars.values())
            if request in self.dispatcher.pending:
                logger.debug("No eligible car for request %s; queued", request.request_id)
            self._emit_assignments(assignments)
        return request

    def select_destination(self, car_id: int, floor: int) -> Request:
        """Add an in-car destination directly, bypassing the dispatcher."""
        self._validate_floor(floor)
        with self._lock:
            car = self._get_car(car_id)
            request = Request.car_call(next(self._request_ids), car_id, floor, self.current_time)
            if not car.add_destination(floor, request):
                logger.warning(
                    "Car %s ignored destination %s while %s", car_id, floor, car.mode.value
                )
        return request

    def cancel_request(self, request_id: int) -> bool:
        with self._lock:
            withdrawn = self.dispatcher.withdraw(request_id)
        if withdrawn:
            logger.debug("Withdrew pending request %s", request_id)
        return withdrawn

    def tick(self) -> None:
        with self._lock:
            self.current_time += 1
            released: List[Request] = []
            for car in self._roster():
                result = car.advance()
                self._record_step(result)
                released.extend(result.released)
            self._requeue(released)
            self._emit_assignments(self.dispatcher.drain_pending(self._roster()))

    def run(self, ticks: int) -> None:
        for _ in range(ticks):
            self.tick()

    def car_status(self, car_id: int) -> CarStatus:
        with self._lock:
            return self._get_car(car_id).status()

    def statuses(self) -> List[CarStatus]:
        with self._lock:
            return [car.status() for car in self._roster()]

    def pending_requests(self) -> Tuple[Request, ...]:
        with self._lock:
            return tuple(self.dispatcher.pending)

    def service_status(self) -> ServiceStatus:
        with self._lock:
            in_service = [car.in_service() for car in self._roster()]
        if all(in_service):
            return ServiceStatus.NORMAL
        if any(in_service):
            return ServiceStatus.DEGRADED
        return ServiceStatus.NO_SERVICE

    def trigger_emergency(self, car_id: int) -> None:
        car = self._get_car(car_id)
        car.signal_emergency()
        logger.info("Emergency signalled for car %s", car_id)

    def take_out_of_service(self, car_id: int) -> None:
        with self._lock:
            car = self._get_car(car_id)
            if not car.in_service():
                return
            released = car.take_out_of_service()
            self._emit("out_of_service", {"car_id": car_id, "time": self.current_time})
            self._requeue(released)
            self._emit_assignments(self.dispatcher.drain_pending(self._roster()))

    def restore_service(self, car_id: int) -> None:
        with self._lock:
            car = self._get_car(car_id)
            if car.restore_service():
                self._emit("restore", {"car_id": car_id, "time": self.current_time})
            self._emit_assignments(self.dispatcher.drain_pending(self._roster()))

    def remove_destination(self, car_id: int, floor: int) -> bool:
        """Drop a queued stop; hall calls waiting on it go back to the dispatcher."""
        self._validate_floor(floor)
        with self._lock:
            car = self._get_car(car_id)
            if floor not in car.up_destinations and floor not in car.down_destinations:
                return False
            self._requeue(car.remove_destination(floor))
            self._emit_assignments(self.dispatcher.drain_pending(self._roster()))
        logger.info("Removed floor %s from car %s", floor, car_id)
        return True

    def update_load(self, car_id: int, load: int) -> None:
        with self._lock:
            self._get_car(car_id).set_load(load)
            self._emit_assignments(self.dispatcher.drain_pending(self._roster()))

    def set_scoring(self, name: str, **options) -> None:
        scoring = self.config.build_scoring(name, **options)
        with self._lock:
            self.dispatcher.set_scoring(scoring)
            self.scoring_name = name.lower()

    def on_event(self, event: str, callback: Callable[[dict], None]) -> None:
        self.event_hooks.setdefault(event, []).append(callback)

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "time": self.current_time,
                "service": self.service_status().value,
                "scoring": self.scoring_name,
                "floors": {
                    "lowest": self.config.lowest_floor,
                    "highest": self.config.highest_floor,
                },
                "pending": [
                    {
                        "id": request.request_id,
                        "floor": request.floor,
                        "direction": request.direction.name.lower(),
                        "timestamp": request.timestamp,
                    }
                    for request in self.dispatcher.pending
                ],
                "cars": [car.status().as_dict() for car in self._roster()],
            }

    def _record_step(self, result: StepResult) -> None:
        if result.entered_emergency:
            self._emit("emergency", {"car_id": result.car_id, "time": self.current_time})
        if result.arrived_at is not None:
            self._emit(
                "arrival",
                {"car_id": result.car_id, "floor": result.arrived_at, "time": self.current_time},
            )
        for request in result.served:
            self._emit(
                "served",
                {"car_id": result.car_id, "request": request, "time": self.current_time},
            )
        if result.became_idle:
            self._emit("idle", {"car_id": result.car_id, "time": self.current_time})

    def _requeue(self, released: List[Request]) -> None:
        if released:
            self.dispatcher.requeue(released)
            self._emit("requeued", {"requests": released, "time": self.current_time})

    def _emit_assignments(self, assignments: List[Assignment]) -> None:
        for assignment in assignments:
            self._emit("assigned", {"assignment": assignment, "time": self.current_time})

    def _emit(self, event: str, payload: dict) -> None:
        for callback in self.event_hooks.get(event, []):
            callback(payload)

    def _roster(self) -> List[Car]:
        return [self.cars[car_id] for car_id in sorted(self.cars)]

    def _get_car(self, car_id: int) -> Car:
        car = self.cars.get(car_id)
        if car is None:
            logger.warning("Rejected call for unknown car %s", car_id)
            raise UnknownCar(car_id)
        return car

    def _validate_floor(self, floor: int) -> None:
        if not self.config.contains(floor):
            logger.warning("Rejected call for floor %s", floor)
            raise InvalidFloor(floor, self.config.lowest_floor, self.config.highest_floor)
