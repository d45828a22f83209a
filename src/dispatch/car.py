from __future__ import annotations

import bisect
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .errors import CapacityExceeded
from .request import Direction, Request

logger = logging.getLogger(__name__)


class DoorState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


class CarMode(str, Enum):
    IDLE = "idle"
    MOVING = "moving"
    DOOR_CYCLE = "door_cycle"
    EMERGENCY = "emergency"
    OUT_OF_SERVICE = "out_of_service"


HALTED_MODES = (CarMode.EMERGENCY, CarMode.OUT_OF_SERVICE)


@dataclass(frozen=True)
class CarStatus:
    """Read-only view of a car for scoring and display collaborators."""

    car_id: int
    current_floor: int
    mode: CarMode
    direction: Direction
    door_state: DoorState
    load: int
    capacity: int
    up_destinations: Tuple[int, ...] = ()
    down_destinations: Tuple[int, ...] = ()
    door_ticks_remaining: int = 0

    @property
    def is_idle(self) -> bool:
        return self.mode is CarMode.IDLE

    @property
    def has_destinations(self) -> bool:
        return bool(self.up_destinations or self.down_destinations)

    @property
    def available_capacity(self) -> int:
        return max(0, self.capacity - self.load)

    def as_dict(self) -> dict:
        return {
            "id": self.car_id,
            "floor": self.current_floor,
            "mode": self.mode.value,
            "direction": self.direction.name.lower(),
            "door_state": self.door_state.value,
            "load": self.load,
            "capacity": self.capacity,
            "up_destinations": list(self.up_destinations),
            "down_destinations": list(self.down_destinations),
        }


@dataclass
class StepResult:
    """What happened to a car during a single ``advance()`` call."""

    car_id: int
    arrived_at: Optional[int] = None
    served: List[Request] = field(default_factory=list)
    released: List[Request] = field(default_factory=list)
    became_idle: bool = False
    entered_emergency: bool = False


@dataclass
class Car:
    """A single elevator car driven one discrete step at a time.

    Pending stops are kept in two ordered sets: floors above the car sorted
    ascending and floors below it sorted descending. The car travels in one
    direction until that set is exhausted, then flips (LOOK). Door dwell is a
    tick counter, never a sleep.
    """

    car_id: int
    capacity: int = 8
    door_dwell_ticks: int = 2
    current_floor: int = 0
    direction: Direction = Direction.NONE
    door_state: DoorState = DoorState.CLOSED
    mode: CarMode = CarMode.IDLE
    load: int = 0
    up_destinations: List[int] = field(default_factory=list)
    down_destinations: List[int] = field(default_factory=list)
    hall_calls: List[Request] = field(default_factory=list)
    _door_timer: int = 0
    _emergency_signal: threading.Event = field(
        default_factory=threading.Event, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError(f"Car {self.car_id} needs a positive capacity, got {self.capacity}")
        if self.door_dwell_ticks < 1:
            raise ValueError(f"Car {self.car_id} needs at least one door dwell tick")
        if not 0 <= self.load <= self.capacity:
            raise CapacityExceeded(self.car_id, self.load, self.capacity)

    def in_service(self) -> bool:
        return self.mode not in HALTED_MODES

    @property
    def emergency_pending(self) -> bool:
        return self._emergency_signal.is_set() and self.mode is not CarMode.EMERGENCY

    @property
    def state(self) -> str:
        if self.mode is CarMode.MOVING:
            return "moving_up" if self.direction is Direction.UP else "moving_down"
        if self.mode is CarMode.DOOR_CYCLE:
            return "door_open"
        return self.mode.value

    def is_eligible(self, request: Optional[Request] = None) -> bool:
        if not self.in_service() or self._emergency_signal.is_set():
            return False
        return self.load < self.capacity

    def add_destination(self, floor: int, request: Optional[Request] = None) -> bool:
        """Queue a stop; returns False when the car refuses new destinations.

        A floor equal to the current one opens the doors of an idle car and
        holds the doors of a car already stopped there. A hall call accepted
        while the doors are open boards at once whatever its direction; the
        rider then selects a destination from inside the car.
        """
        if not self.in_service() or self._emergency_signal.is_set():
            return False
        if request is not None and request.is_hall_call:
            self.hall_calls.append(request)

        if floor == self.current_floor:
            if self.mode is CarMode.IDLE:
                preferred = request.direction if request is not None else Direction.NONE
                self.direction = preferred if preferred is not Direction.NONE else Direction.UP
                self._open_doors()
                return True
            if self.mode is CarMode.DOOR_CYCLE:
                # Hold the door for the newcomer.
                self._door_timer = self.door_dwell_ticks
                return True
            # Already departing this floor; come back after the turnaround.
            self._insert(floor, Direction(-self.direction))
            return True

        heading = Direction.UP if floor > self.current_floor else Direction.DOWN
        self._insert(floor, heading)
        if self.mode is CarMode.IDLE:
            self.direction = heading
            self.mode = CarMode.MOVING
        return True

    def remove_destination(self, floor: int) -> List[Request]:
        """Drop a queued stop, returning any hall calls that were waiting on it."""
        removed = False
        for destinations in (self.up_destinations, self.down_destinations):
            if floor in destinations:
                destinations.remove(floor)
                removed = True
        if not removed:
            return []
        released = [r for r in self.hall_calls if r.floor == floor]
        self.hall_calls = [r for r in self.hall_calls if r.floor != floor]
        if self.mode is CarMode.MOVING and not self._destinations(self.direction):
            self._settle(StepResult(self.car_id))
        return released

    def advance(self) -> StepResult:
        """Perform exactly one step: one floor of travel or one door tick."""
        result = StepResult(self.car_id)
        if self.emergency_pending:
            result.released = self._halt(CarMode.EMERGENCY)
            result.entered_emergency = True
            logger.info("Car %s entered emergency at floor %s", self.car_id, self.current_floor)
            return result

        if self.mode is CarMode.DOOR_CYCLE:
            self._cycle_doors(result)
        elif self.mode is CarMode.MOVING:
            self._move(result)
        return result

    def signal_emergency(self) -> None:
        self._emergency_signal.set()

    def take_out_of_service(self) -> List[Request]:
        released = self._halt(CarMode.OUT_OF_SERVICE)
        logger.info("Car %s taken out of service at floor %s", self.car_id, self.current_floor)
        return released

    def restore_service(self) -> bool:
        if self.in_service():
            # A signal that has not been applied yet can simply be withdrawn.
            if not self._emergency_signal.is_set():
                return False
            self._emergency_signal.clear()
            return True
        self._emergency_signal.clear()
        self.mode = CarMode.IDLE
        self.direction = Direction.NONE
        self.door_state = DoorState.CLOSED
        self._door_timer = 0
        logger.info("Car %s restored to service at floor %s", self.car_id, self.current_floor)
        return True

    def set_load(self, load: int) -> None:
        if load < 0:
            raise ValueError(f"Load cannot be negative, got {load}")
        if load > self.capacity:
            raise CapacityExceeded(self.car_id, load, self.capacity)
        self.load = load

    def status(self) -> CarStatus:
        return CarStatus(
            car_id=self.car_id,
            current_floor=self.current_floor,
            mode=self.mode,
            direction=self.direction,
            door_state=self.door_state,
            load=self.load,
            capacity=self.capacity,
            up_destinations=tuple(self.up_destinations),
            down_destinations=tuple(self.down_destinations),
            door_ticks_remaining=self._door_timer,
        )

    def _move(self, result: StepResult) -> None:
        destinations = self._destinations(self.direction)
        if not destinations:
            self._settle(result)
            return
        target = destinations[0]
        if self.current_floor != target:
            self.current_floor += int(self.direction)
        if self.current_floor == target:
            destinations.pop(0)
            self._open_doors()
            result.arrived_at = self.current_floor
            self._collect_served(result)
            logger.debug("Car %s stopped at floor %s", self.car_id, self.current_floor)

    def _cycle_doors(self, result: StepResult) -> None:
        self._collect_served(result)
        self._door_timer -= 1
        if self._door_timer > 0:
            return
        self.door_state = DoorState.CLOSED
        self._settle(result)

    def _settle(self, result: StepResult) -> None:
        """Pick the next travel direction once the current run has no stops left."""
        if self.direction is Direction.NONE:
            if self.up_destinations:
                self.direction = Direction.UP
            elif self.down_destinations:
                self.direction = Direction.DOWN

        if self._destinations(self.direction):
            self.mode = CarMode.MOVING
        elif self._destinations(Direction(-self.direction)):
            self.direction = Direction(-self.direction)
            self.mode = CarMode.MOVING
        else:
            self.mode = CarMode.IDLE
            self.direction = Direction.NONE
            result.became_idle = True

    def _open_doors(self) -> None:
        self.door_state = DoorState.OPEN
        self.mode = CarMode.DOOR_CYCLE
        self._door_timer = self.door_dwell_ticks

    def _collect_served(self, result: StepResult) -> None:
        served = [r for r in self.hall_calls if r.floor == self.current_floor]
        if served:
            self.hall_calls = [r for r in self.hall_calls if r.floor != self.current_floor]
            result.served.extend(served)

    def _halt(self, mode: CarMode) -> List[Request]:
        released = list(self.hall_calls)
        dropped = self.up_destinations + self.down_destinations
        if dropped:
            logger.warning("Car %s dropped destinations %s on %s", self.car_id, dropped, mode.value)
        self.hall_calls.clear()
        self.up_destinations.clear()
        self.down_destinations.clear()
        self.mode = mode
        self.direction = Direction.NONE
        self.door_state = DoorState.CLOSED
        self._door_timer = 0
        return released

    def _destinations(self, direction: Direction) -> List[int]:
        if direction is Direction.UP:
            return self.up_destinations
        if direction is Direction.DOWN:
            return self.down_destinations
        return []

    def _insert(self, floor: int, direction: Direction) -> None:
        if direction is Direction.UP:
            if floor not in self.up_destinations:
                bisect.insort(self.up_destinations, floor)
        elif floor not in self.down_destinations:
            self.down_destinations.append(floor)
            self.down_destinations.sort(reverse=True)
