from __future__ import annotations

from typing import Callable, Dict

from .interface import REVERSAL_PENALTY, ScoringFunction
from .look import LookScoring
from .nearest import NearestCarScoring

__all__ = [
    "LookScoring",
    "NearestCarScoring",
    "REVERSAL_PENALTY",
    "ScoringFunction",
    "get_scoring",
]


SCORING_REGISTRY: Dict[str, Callable[..., ScoringFunction]] = {
    "look": LookScoring,
    "nearest": NearestCarScoring,
}


def get_scoring(name: str, **kwargs) -> ScoringFunction:
    factory = SCORING_REGISTRY.get(name.lower())
    if factory is None:
        raise ValueError(f"Unknown scoring '{name}'. Available: {', '.join(SCORING_REGISTRY)}")
    try:
        return factory(**kwargs)
    except TypeError as exc:
        raise ValueError(f"Invalid options for scoring '{name}': {exc}") from exc
