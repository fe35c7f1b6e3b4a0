from decimal import Decimal
from typing import Iterable

from .models import PaymentStatus, PaymentSummary

_PENDING_STATUSES = {PaymentStatus.PENDING.value, PaymentStatus.PARTIAL.value}


def aggregate_summary(rows: Iterable) -> PaymentSummary:
    """Reduce rows exposing ``amount_outstanding``, ``amount_paid`` and ``status``.

    Every row counts toward both totals. Pending and partial rows count as
    pending, overdue rows as overdue; anything else (paid, unknown) only
    feeds the totals.
    """
    total_outstanding = Decimal("0")
    total_paid = Decimal("0")
    pending_count = 0
    overdue_count = 0

    for row in rows:
        total_outstanding += row.amount_outstanding or 0
        total_paid += row.amount_paid or 0

        status = _status_value(row.status)
        if status in _PENDING_STATUSES:
            pending_count += 1
        elif status == PaymentStatus.OVERDUE.value:
            overdue_count += 1

    return PaymentSummary(
        total_outstanding=total_outstanding,
        total_paid=total_paid,
        pending_count=pending_count,
        overdue_count=overdue_count,
    )


def _status_value(status) -> str:
    if isinstance(status, PaymentStatus):
        return status.value
    return status
