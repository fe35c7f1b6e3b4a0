import logging
from datetime import datetime, timedelta
from typing import Iterable, Mapping
from uuid import UUID

from .models import (
    LeagueDue,
    LedgerEntry,
    PaymentStatus,
    RealPayment,
    TeamMembership,
    VirtualPayment,
)
from .pricing import ZERO, resolve_effective_price

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 30


def reconcile_user_payments(
    user_id: UUID,
    ledger_entries: Iterable[LedgerEntry],
    memberships: Iterable[TeamMembership],
    leagues_by_id: Mapping[int, LeagueDue],
    reference_date: datetime,
    default_due_days: int = DEFAULT_DUE_DAYS,
) -> list:
    """Build one payment view per registration of ``user_id``.

    Ledger entries become :class:`RealPayment` rows. Every roster team
    that has no ledger entry yet and plays in a paying league becomes a
    :class:`VirtualPayment`. Real rows come first, in input order.
    Registrations whose league is missing from ``leagues_by_id`` are
    skipped.
    """
    memberships = list(memberships)
    team_names = {m.team_id: m.team_name for m in memberships}

    real = [
        view for view in (
            _real_payment(entry, leagues_by_id, team_names, reference_date)
            for entry in ledger_entries if entry.user_id == user_id
        ) if view is not None
    ]
    covered_teams = {view.team_id for view in real if view.team_id is not None}

    virtual = []
    for membership in memberships:
        if not membership.user_is_on_roster or membership.team_id in covered_teams:
            continue
        view = _virtual_payment(user_id, membership, leagues_by_id, reference_date, default_due_days)
        if view is not None:
            virtual.append(view)
            covered_teams.add(membership.team_id)

    return real + virtual


def _real_payment(entry, leagues_by_id, team_names, reference_date):
    league = leagues_by_id.get(entry.league_id)
    if league is None:
        logger.warning(
            "Skipping ledger entry %s: no pricing for league %s", entry.id, entry.league_id
        )
        return None

    amount_due = resolve_effective_price(league, reference_date, entry.status, entry.amount_due)
    team_name = entry.team_name
    if team_name is None and entry.team_id is not None:
        team_name = team_names.get(entry.team_id)

    return RealPayment(
        ledger_id=entry.id,
        user_id=entry.user_id,
        team_id=entry.team_id,
        league_id=entry.league_id,
        amount_due=amount_due,
        amount_paid=entry.amount_paid,
        amount_outstanding=max(ZERO, amount_due - entry.amount_paid),
        status=entry.status,
        due_date=entry.due_date,
        payment_method=entry.payment_method,
        notes=entry.notes,
        league_name=entry.league_name or league.name,
        team_name=team_name,
    )


def _virtual_payment(user_id, membership, leagues_by_id, reference_date, default_due_days):
    league = leagues_by_id.get(membership.league_id)
    if league is None:
        logger.warning(
            "Skipping team %s: no pricing for league %s", membership.team_id, membership.league_id
        )
        return None
    if not league.standard_cost or league.standard_cost <= 0:
        return None

    amount_due = resolve_effective_price(league, reference_date)
    due_date = league.payment_due_date
    if due_date is None:
        due_date = (reference_date + timedelta(days=default_due_days)).date()

    return VirtualPayment(
        user_id=user_id,
        team_id=membership.team_id,
        league_id=membership.league_id,
        amount_due=amount_due,
        amount_paid=ZERO,
        amount_outstanding=max(ZERO, amount_due),
        status=PaymentStatus.PENDING,
        due_date=due_date,
        league_name=league.name,
        team_name=membership.team_name,
    )
