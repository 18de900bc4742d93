"""Invoice status transitions.

Every status may currently move to every other status.  Tighten
ALLOWED_TRANSITIONS to restrict the workflow; `check_transition` is the
single gate used by both the draft reducer and invoice updates.
"""

from findesk.middleware.exceptions import BusinessLogicError
from findesk.models.invoice import InvoiceStatus

ALLOWED_TRANSITIONS: dict[InvoiceStatus, set[InvoiceStatus]] = {
    status: set(InvoiceStatus) for status in InvoiceStatus
}

UNPAID_STATUSES = (
    InvoiceStatus.IN_PROGRESS.value,
    InvoiceStatus.PARTIALLY_PAID.value,
    InvoiceStatus.SENT.value,
)


def check_transition(current: str, new: str) -> None:
    current_s, new_s = InvoiceStatus(current), InvoiceStatus(new)
    if current_s == new_s:
        return
    if new_s not in ALLOWED_TRANSITIONS[current_s]:
        raise BusinessLogicError(
            f"Cannot move invoice from {current_s.value} to {new_s.value}",
            "INVALID_STATUS_TRANSITION",
        )
