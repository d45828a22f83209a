from __future__ import annotations

from typing import Callable, List, Optional

import pytest

from dispatch import CarConstraints, CarMode, Controller, Direction, DispatchConfig


def _assert_car_invariants(controller: Controller) -> None:
    for car in controller.cars.values():
        destinations = car.up_destinations + car.down_destinations
        if not car.in_service():
            assert car.direction is Direction.NONE
            assert not destinations
            assert not car.hall_calls
            continue
        idle_and_empty = car.mode is CarMode.IDLE and not destinations
        assert (car.direction is Direction.NONE) == idle_and_empty, car
        assert car.up_destinations == sorted(set(car.up_destinations))
        assert car.down_destinations == sorted(set(car.down_destinations), reverse=True)
        assert 0 <= car.load <= car.capacity


@pytest.fixture
def make_controller() -> Callable[..., Controller]:
    def factory(
        num_floors: int = 10,
        start_floors: Optional[List[int]] = None,
        capacity: int = 8,
        door_dwell_ticks: int = 2,
        **kwargs,
    ) -> Controller:
        start_floors = start_floors or [0]
        config = DispatchConfig(
            num_floors=num_floors,
            car_count=len(start_floors),
            start_floors=start_floors,
            constraints=CarConstraints(capacity=capacity, door_dwell_ticks=door_dwell_ticks),
            **kwargs,
        )
        return Controller.build(config)

    return factory


@pytest.fixture
def check_invariants() -> Callable[[Controller], None]:
    return _assert_car_invariants


@pytest.fixture
def served_log() -> Callable[[Controller], list]:
    def attach(controller: Controller) -> list:
        served: list = []
        controller.on_event("served", served.append)
        return served

    return attach
