"""Remaining-life forecasting for equipment whose readings shrink with wear."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from models.records import ForecastResult, MeasurementPoint

SECONDS_PER_MONTH = 30 * 24 * 60 * 60
MIN_SAFE_THRESHOLD = 20.0


def add_months(start: datetime, months: float) -> datetime:
    """Offset ``start`` by whole calendar months plus the fraction as 30-day months.

    The day of month is clamped to the target month's length. Offsets that
    leave the representable range saturate at ``datetime.max``.
    """
    whole = int(months)
    fraction = months - whole
    try:
        month_index = start.month - 1 + whole
        year = start.year + month_index // 12
        month = month_index % 12 + 1
        day = min(start.day, calendar.monthrange(year, month)[1])
        shifted = start.replace(year=year, month=month, day=day)
        return shifted + timedelta(days=fraction * 30)
    except (OverflowError, ValueError):
        return datetime.max.replace(tzinfo=start.tzinfo)


class WearForecaster:
    """Pure forecasting component that can be unit tested in isolation."""

    def __init__(self, threshold: float = MIN_SAFE_THRESHOLD) -> None:
        self.threshold = threshold

    def wear_rates(self, history: Iterable[MeasurementPoint]) -> List[float]:
        """Per-interval wear rates (value units per month) of a time-ordered history."""
        ordered = sorted(history, key=lambda point: point.timestamp)
        rates: List[float] = []
        for previous, current in zip(ordered, ordered[1:]):
            elapsed = (current.timestamp - previous.timestamp).total_seconds() / SECONDS_PER_MONTH
            wear = previous.value - current.value
            # A rising reading means a replacement or a noisy measurement.
            if elapsed > 0 and wear >= 0:
                rates.append(wear / elapsed)
        return rates

    def forecast(
        self,
        history: Iterable[MeasurementPoint],
        now: Optional[datetime] = None,
    ) -> Optional[ForecastResult]:
        """Estimate when the latest reading will cross the replacement threshold.

        Returns ``None`` when the history is too short, shows no usable wear,
        or is already at or below the threshold.
        """
        points = sorted(history, key=lambda point: point.timestamp)
        if len(points) < 2:
            return None

        rates = self.wear_rates(points)
        if not rates:
            return None

        average = sum(rates) / len(rates)
        latest = points[-1].value
        if average <= 0 or latest <= self.threshold:
            return None

        months_remaining = max(0.0, (latest - self.threshold) / average)
        variance = sum((rate - average) ** 2 for rate in rates) / len(rates)
        confidence = max(0.0, min(100.0, 100.0 - (variance / average) * 100.0))

        reference = now if now is not None else datetime.now(timezone.utc)
        return ForecastResult(
            wear_rate_per_month=average,
            months_remaining=months_remaining,
            predicted_date=add_months(reference, months_remaining),
            confidence=confidence,
        )
