from __future__ import annotations

import math

from models.records import StepRecord
from services.completion import (
    ESP_TEMPERATURE_FIELDS,
    ESP_TRANSFORMER_COUNT,
    compute_completion,
    is_step_completed,
)

FIELDS = frozenset({"temp_a", "temp_b"})


def _step(index: int, **fields) -> StepRecord:
    return StepRecord(index=index, fields=fields)


def test_empty_session_reports_first_step() -> None:
    state = compute_completion([], 3, FIELDS)

    assert state.completed_steps == 1
    assert state.is_complete is False


def test_partial_session() -> None:
    steps = [_step(1, temp_a=41.5), _step(2), _step(3, temp_b=0)]

    state = compute_completion(steps, 3, FIELDS)

    assert state.completed_steps == 1
    assert state.is_complete is False


def test_all_steps_measured() -> None:
    steps = [_step(1, temp_a=41.5), _step(2, temp_b=39.0), _step(3, temp_a=1, temp_b=None)]

    state = compute_completion(steps, 3, FIELDS)

    assert state.completed_steps == 3
    assert state.is_complete is True


def test_fields_outside_profile_do_not_count() -> None:
    assert is_step_completed({"relay": 1, "status": "On"}, FIELDS) is False


def test_non_numeric_and_invalid_values_do_not_count() -> None:
    assert is_step_completed({"temp_a": "45"}, FIELDS) is False
    assert is_step_completed({"temp_a": True}, FIELDS) is False
    assert is_step_completed({"temp_a": math.nan}, FIELDS) is False
    assert is_step_completed({"temp_a": -3.0}, FIELDS) is False


def test_single_step_session_floor_counts_as_complete() -> None:
    state = compute_completion([_step(1)], 1, FIELDS)

    assert state.completed_steps == 1
    assert state.is_complete is True


def test_esp_profile_ignores_relay_fields() -> None:
    relay_only = {"rdi68": 1, "rdi69": 1, "rdi70": 1, "kv_ma": 5}
    measured = {"mccb_body_temp": 38.2}
    steps = [_step(1, **measured), _step(2, **relay_only), _step(3, **measured)]

    state = compute_completion(steps, ESP_TRANSFORMER_COUNT, ESP_TEMPERATURE_FIELDS)

    assert "rdi68" not in ESP_TEMPERATURE_FIELDS
    assert state.completed_steps == 2
    assert state.is_complete is False
