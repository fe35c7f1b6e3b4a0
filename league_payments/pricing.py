import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from .models import LeagueDue, PaymentStatus

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
END_OF_DAY = time(23, 59, 59)


def end_of_day(day: date, tzinfo=None) -> datetime:
    return datetime.combine(day, END_OF_DAY, tzinfo=tzinfo)


def is_early_bird_active(league: LeagueDue, reference_date: datetime) -> bool:
    """Return True while the early-bird price applies.

    The deadline date itself still qualifies: the window closes at
    23:59:59 on that day, in the timezone of ``reference_date``.
    """
    has_cost = league.early_bird_cost is not None
    has_deadline = league.early_bird_deadline is not None
    if has_cost != has_deadline:
        logger.warning(
            "League %s has a partial early-bird configuration, using standard cost",
            league.league_id,
        )
    if not (has_cost and has_deadline):
        return False
    return reference_date <= end_of_day(league.early_bird_deadline, reference_date.tzinfo)


def effective_league_cost(league: LeagueDue, reference_date: datetime) -> Decimal:
    if is_early_bird_active(league, reference_date):
        return league.early_bird_cost
    return league.standard_cost or ZERO


def resolve_effective_price(
    league: LeagueDue,
    reference_date: datetime,
    ledger_status: Optional[PaymentStatus] = None,
    recorded_amount_due: Optional[Decimal] = None,
) -> Decimal:
    """Amount a registration in ``league`` owes at ``reference_date``.

    A paid ledger row keeps the amount it was billed at, whatever the
    league's pricing says today.
    """
    if ledger_status == PaymentStatus.PAID and recorded_amount_due is not None:
        return recorded_amount_due
    return effective_league_cost(league, reference_date)
