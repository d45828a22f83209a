"""Elevator bank dispatch core for LiftDispatch."""

from .car import Car, CarMode, CarStatus, DoorState, StepResult
from .config import CarConstraints, DispatchConfig
from .controller import Controller, ServiceStatus
from .dispatcher import Assignment, Dispatcher
from .driver import TickDriver
from .errors import CapacityExceeded, DispatchError, InvalidFloor, UnknownCar
from .metrics import WaitSnapshot, WaitTimeTracker
from .request import Direction, Request, RequestKind

__all__ = [
    "Assignment",
    "CapacityExceeded",
    "Car",
    "CarConstraints",
    "CarMode",
    "CarStatus",
    "Controller",
    "DispatchConfig",
    "DispatchError",
    "Dispatcher",
    "Direction",
    "DoorState",
    "InvalidFloor",
    "Request",
    "RequestKind",
    "ServiceStatus",
    "StepResult",
    "TickDriver",
    "UnknownCar",
    "WaitSnapshot",
    "WaitTimeTracker",
]
