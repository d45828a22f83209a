from __future__ import annotations


class DispatchError(Exception):
    """Base class for errors raised at the controller boundary."""


class InvalidFloor(DispatchError, ValueError):
    def __init__(self, floor: int, lowest: int, highest: int, reason: str | None = None) -> None:
        self.floor = floor
        self.lowest = lowest
        self.highest = highest
        message = reason or f"Floor {floor} is outside the building range [{lowest}, {highest}]"
        super().__init__(message)


class UnknownCar(DispatchError, LookupError):
    def __init__(self, car_id: int) -> None:
        self.car_id = car_id
        super().__init__(f"Unknown car {car_id}")


class CapacityExceeded(DispatchError):
    def __init__(self, car_id: int, load: int, capacity: int) -> None:
        self.car_id = car_id
        self.load = load
        self.capacity = capacity
        super().__init__(f"Car {car_id} cannot carry load {load} (capacity {capacity})")
