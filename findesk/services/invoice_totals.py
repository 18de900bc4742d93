"""Invoice amount and pending-balance arithmetic.

Two-branch amount policy:
  - invoice has tasks    → amount = sum(hours × rate_per_hour), any manual
                           amount is ignored
  - invoice has no tasks → amount = the manually entered amount (or 0)
"""

from __future__ import annotations

from typing import Iterable

MONEY_PLACES = 2


def _task_value(task, key: str) -> float:
    if isinstance(task, dict):
        return float(task[key])
    return float(getattr(task, key))


def compute_total(tasks: Iterable) -> float:
    """Sum of hours × rate over the given tasks (dicts or objects)."""
    total = sum(
        _task_value(t, "hours") * _task_value(t, "rate_per_hour") for t in tasks
    )
    return round(total, MONEY_PLACES)


def compute_pending(total: float | None, received: float | None) -> float:
    """Outstanding balance, never negative."""
    return round(max(0.0, (total or 0.0) - (received or 0.0)), MONEY_PLACES)


def resolve_invoice_amount(tasks: list, manual_amount: float | None) -> float:
    if tasks:
        return compute_total(tasks)
    return float(manual_amount or 0.0)
