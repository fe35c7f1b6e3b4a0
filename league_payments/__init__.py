"""
League Payment Reconciliation

This module provides:
- Early-bird aware league pricing with a frozen price for paid rows
- Reconciliation of ledger entries with roster teams not yet billed
- Outstanding / paid totals and pending / overdue counts per user
- A fail-soft service boundary that shows nothing rather than crashing
"""

from .models import (
    PaymentStatus,
    PaymentMethod,
    LeagueDue,
    TeamMembership,
    LedgerEntry,
    RealPayment,
    VirtualPayment,
    PaymentView,
    PaymentSummary,
)
from .pricing import resolve_effective_price, effective_league_cost, is_early_bird_active
from .reconciler import reconcile_user_payments
from .summary import aggregate_summary
from .service import PaymentService

__all__ = [
    "PaymentStatus",
    "PaymentMethod",
    "LeagueDue",
    "TeamMembership",
    "LedgerEntry",
    "RealPayment",
    "VirtualPayment",
    "PaymentView",
    "PaymentSummary",
    "resolve_effective_price",
    "effective_league_cost",
    "is_early_bird_active",
    "reconcile_user_payments",
    "aggregate_summary",
    "PaymentService",
]
