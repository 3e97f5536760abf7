"""Completion tracking for inspection sessions made of a fixed number of steps."""

from __future__ import annotations

import math
from numbers import Real
from typing import AbstractSet, Iterable, Mapping, Optional

from models.records import CompletionState, StepRecord

ESP_TRANSFORMER_COUNT = 3

# Measured temperatures only; rdi* relay states and fan status never count.
ESP_TEMPERATURE_FIELDS = frozenset(
    {
        "mccb_ic_r_phase",
        "mccb_ic_b_phase",
        "mccb_c_og1",
        "mccb_c_og2",
        "mccb_body_temp",
        "scr_cooling_fins_temp",
    }
)


def _is_measured(value: Optional[object]) -> bool:
    if value is None or isinstance(value, bool) or not isinstance(value, Real):
        return False
    number = float(value)
    return not math.isnan(number) and number > 0


def is_step_completed(fields: Mapping[str, Optional[object]], meaningful_fields: AbstractSet[str]) -> bool:
    return any(_is_measured(fields.get(name)) for name in meaningful_fields)


def compute_completion(
    steps: Iterable[StepRecord],
    total_expected_steps: int,
    meaningful_fields: AbstractSet[str],
) -> CompletionState:
    """Count steps carrying at least one positive measured reading.

    The count never drops below 1: an existing session always reports its
    first step as in progress.
    """
    measured = sum(1 for step in steps if is_step_completed(step.fields, meaningful_fields))
    completed = max(1, measured)
    return CompletionState(
        completed_steps=completed,
        is_complete=completed == total_expected_steps,
    )
