from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from .models import PaymentMethod, PaymentStatus


def calculate_payment_status(
    amount_due: Decimal,
    amount_paid: Decimal,
    due_date: Optional[date],
    reference_date: datetime,
    tax_rate: Decimal = Decimal("0.13"),
    tolerance: Decimal = Decimal("0.01"),
    payment_method: Optional[PaymentMethod] = None,
) -> PaymentStatus:
    if payment_method == PaymentMethod.WAIVED:
        return PaymentStatus.PAID

    total_with_tax = amount_due * (1 + tax_rate)
    if amount_paid >= total_with_tax - tolerance:
        return PaymentStatus.PAID
    if amount_paid > 0:
        return PaymentStatus.PARTIAL
    if due_date is not None and due_date < reference_date.date():
        return PaymentStatus.OVERDUE
    return PaymentStatus.PENDING
