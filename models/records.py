"""Domain values consumed and produced by the forecasting and completion logic."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional


@dataclass(frozen=True, slots=True)
class MeasurementPoint:
    """One historical wear reading (e.g. brush thickness in mm)."""

    timestamp: datetime
    value: float


@dataclass(frozen=True, slots=True)
class ForecastResult:
    """Remaining service life estimated from a measurement history."""

    wear_rate_per_month: float
    months_remaining: float
    predicted_date: datetime
    confidence: float


@dataclass(frozen=True, slots=True)
class StepRecord:
    """A single sub-unit reading inside a multi-step inspection session."""

    index: int
    fields: Mapping[str, Optional[object]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CompletionState:
    completed_steps: int
    is_complete: bool
