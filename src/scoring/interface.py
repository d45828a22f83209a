from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:  # pragma: no cover - import cycle safe typing
    from dispatch.car import CarStatus
    from dispatch.request import Request


REVERSAL_PENALTY = 100


class ScoringFunction(Protocol):
    """Cost of sending a car to a hall call; lower is better."""

    def __call__(self, car: "CarStatus", request: "Request") -> float:
        """
        Return a non-negative cost for ``car`` serving ``request``.

        Only eligible cars are scored. The dispatcher breaks ties on the
        lowest car id, so implementations do not need to.
        """
        ...
