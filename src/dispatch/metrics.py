from __future__ import annotations

import statistics
from dataclasses import dataclass
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:  # pragma: no cover - import cycle safe typing
    from .controller import Controller


@dataclass
class WaitSnapshot:
    time_step: int
    average_wait: float
    wait_p95: float
    served: int


class WaitTimeTracker:
    """Collects hall-call wait times, in ticks, from ``served`` events."""

    def __init__(self) -> None:
        self.wait_times: List[int] = []

    def attach(self, controller: "Controller") -> "WaitTimeTracker":
        controller.on_event("served", self.record)
        return self

    def record(self, payload: dict) -> None:
        request = payload["request"]
        self.wait_times.append(payload["time"] - request.timestamp)

    def snapshot(self, time_step: int) -> WaitSnapshot:
        waits = self.wait_times
        if len(waits) > 1:
            # Twentieths with linear interpolation between ranks; index 18 is p95.
            p95 = statistics.quantiles(waits, n=20, method="inclusive")[18]
        else:
            p95 = float(waits[0]) if waits else 0.0
        return WaitSnapshot(
            time_step=time_step,
            average_wait=float(statistics.fmean(waits)) if waits else 0.0,
            wait_p95=float(p95),
            served=len(self.wait_times),
        )
