from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from scoring import REVERSAL_PENALTY, ScoringFunction, get_scoring


@dataclass
class CarConstraints:
    """Per-car limits applied when the controller builds its roster."""

    capacity: int = 8
    door_dwell_ticks: int = 2


@dataclass
class DispatchConfig:
    num_floors: int = 20
    lowest_floor: int = 0
    car_count: int = 4
    constraints: CarConstraints = field(default_factory=CarConstraints)
    start_floors: Optional[List[int]] = None
    scoring: str = "look"
    scoring_options: Dict[str, Any] = field(default_factory=dict)
    reversal_penalty: float = REVERSAL_PENALTY

    def __post_init__(self) -> None:
        if self.num_floors < 2:
            raise ValueError(f"A building needs at least two floors, got {self.num_floors}")
        if self.car_count < 1:
            raise ValueError(f"A building needs at least one car, got {self.car_count}")
        if self.start_floors is not None and len(self.start_floors) != self.car_count:
            raise ValueError(
                f"Expected {self.car_count} start floors, got {len(self.start_floors)}"
            )

    @property
    def highest_floor(self) -> int:
        return self.lowest_floor + self.num_floors - 1

    def contains(self, floor: int) -> bool:
        return self.lowest_floor <= floor <= self.highest_floor

    def build_scoring(self, name: Optional[str] = None, **options) -> ScoringFunction:
        name = name or self.scoring
        merged = dict(self.scoring_options) if name == self.scoring else {}
        merged.update(options)
        if name.lower() == "look":
            merged.setdefault("reversal_penalty", self.reversal_penalty)
        return get_scoring(name, **merged)

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "DispatchConfig":
        building_cfg = config.get("building", {})
        constraints_cfg = building_cfg.get("constraints", {})
        scoring_cfg = config.get("scoring", {})
        return cls(
            num_floors=building_cfg.get("num_floors", 20),
            lowest_floor=building_cfg.get("lowest_floor", 0),
            car_count=building_cfg.get("car_count", 4),
            constraints=CarConstraints(**constraints_cfg),
            start_floors=building_cfg.get("start_floors"),
            scoring=scoring_cfg.get("name", "look"),
            scoring_options=scoring_cfg.get("options", {}),
            reversal_penalty=scoring_cfg.get("reversal_penalty", REVERSAL_PENALTY),
        )
