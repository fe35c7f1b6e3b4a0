import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Generic, Optional, TypeVar
from uuid import UUID

from .config import Settings, get_settings
from .models import (
    CreatePaymentRequest,
    EffectivePrice,
    LedgerEntry,
    PaymentStatus,
    PaymentSummary,
    UpdatePaymentRequest,
    format_payment_method,
)
from .pricing import effective_league_cost, is_early_bird_active
from .reconciler import reconcile_user_payments
from .repository import InMemoryStorage, PaymentRepository
from .status import calculate_payment_status
from .summary import aggregate_summary

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PaymentServiceError(Exception):
    pass


class PaymentNotFoundError(PaymentServiceError):
    pass


class LeagueNotFoundError(PaymentServiceError):
    pass


class DuplicatePaymentError(PaymentServiceError):
    pass


class OverpaymentError(PaymentServiceError):
    pass


class FetchError(PaymentServiceError):
    def __init__(self, source: str, cause: Exception):
        super().__init__(f"Failed to fetch {source}: {cause}")
        self.source = source
        self.cause = cause


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[FetchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default


def fetch(source: str, func: Callable[..., T], *args: Any) -> FetchResult[T]:
    try:
        return FetchResult(value=func(*args))
    except Exception as e:
        return FetchResult(error=FetchError(source, e))


class PaymentService:
    def __init__(self, storage: Optional[PaymentRepository] = None, settings: Optional[Settings] = None):
        self.storage = storage or InMemoryStorage()
        self.settings = settings or get_settings()

    def get_user_payments(self, user_id: Optional[UUID], reference_date: Optional[datetime] = None) -> list:
        """Reconciled payment views for ``user_id``; empty whenever data can't be loaded."""
        if user_id is None:
            return []
        reference_date = reference_date or datetime.now()

        with ThreadPoolExecutor(max_workers=3) as pool:
            entries_future = pool.submit(fetch, "ledger entries", self.storage.list_ledger_entries, user_id)
            memberships_future = pool.submit(fetch, "team memberships", self.storage.list_memberships, user_id)
            leagues_future = pool.submit(fetch, "league pricing", self.storage.list_leagues_for_user, user_id)
        entries = entries_future.result()
        memberships = memberships_future.result()
        leagues = leagues_future.result()

        if not entries.ok:
            logger.error("Error fetching user league payments: %s", entries.error)
            return []
        if not leagues.ok:
            logger.error("Error fetching league pricing: %s", leagues.error)
            return []
        if not memberships.ok:
            logger.error("Error fetching user teams: %s", memberships.error)

        return reconcile_user_payments(
            user_id,
            entries.value,
            memberships.unwrap_or([]),
            leagues.value,
            reference_date,
            default_due_days=self.settings.default_due_days,
        )

    def get_payment_summary(self, user_id: Optional[UUID], reference_date: Optional[datetime] = None) -> PaymentSummary:
        if user_id is None:
            return PaymentSummary()
        return aggregate_summary(self.get_user_payments(user_id, reference_date))

    def get_outstanding_balance(self, user_id: Optional[UUID], reference_date: Optional[datetime] = None) -> Decimal:
        return self.get_payment_summary(user_id, reference_date).total_outstanding

    def get_effective_price(self, league_id: int, reference_date: Optional[datetime] = None) -> EffectivePrice:
        league = self._get_league(league_id)
        reference_date = reference_date or datetime.now()
        return EffectivePrice(
            league_id=league_id,
            amount=effective_league_cost(league, reference_date),
            early_bird_active=is_early_bird_active(league, reference_date),
            as_of=reference_date,
        )

    def create_league_payment(
        self, request: CreatePaymentRequest, reference_date: Optional[datetime] = None
    ) -> LedgerEntry:
        league = self._get_league(request.league_id)
        existing = self.storage.find_ledger_entry(request.user_id, request.league_id)
        if existing is not None:
            raise DuplicatePaymentError(
                f"User {request.user_id} already has payment {existing.id} in league {request.league_id}"
            )
        now = datetime.now()
        reference_date = reference_date or now

        amount_due = request.amount_due
        if amount_due is None:
            amount_due = effective_league_cost(league, reference_date)

        entry = LedgerEntry(
            id=self.storage.next_ledger_id(),
            user_id=request.user_id,
            team_id=request.team_id,
            league_id=request.league_id,
            amount_due=amount_due,
            amount_paid=Decimal("0"),
            status=PaymentStatus.PENDING,
            due_date=request.due_date,
            notes=request.notes,
            created_at=now,
            updated_at=now,
        )
        logger.info("Created league payment %s for user %s in league %s", entry.id, entry.user_id, entry.league_id)
        return self.storage.save_ledger_entry(entry)

    def update_league_payment(
        self, payment_id: int, request: UpdatePaymentRequest, reference_date: Optional[datetime] = None
    ) -> LedgerEntry:
        entry = self.storage.get_ledger_entry(payment_id)
        if entry is None:
            raise PaymentNotFoundError(f"Payment {payment_id} not found")

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        updated = entry.model_copy(update=changes)

        limit = updated.amount_due * (1 + self.settings.tax_rate) + self.settings.paid_tolerance
        if updated.amount_paid > limit:
            raise OverpaymentError(
                f"Payment amount {updated.amount_paid} cannot exceed the amount owing ({limit:.2f})"
            )

        deposit = updated.amount_paid - entry.amount_paid
        if deposit > 0 and request.notes is None:
            updated = updated.model_copy(update={
                "notes": f"Payment of ${deposit:.2f} via {format_payment_method(updated.payment_method)}"
            })

        now = datetime.now()
        status = calculate_payment_status(
            updated.amount_due,
            updated.amount_paid,
            updated.due_date,
            reference_date or now,
            tax_rate=self.settings.tax_rate,
            tolerance=self.settings.paid_tolerance,
            payment_method=updated.payment_method,
        )
        updated = updated.model_copy(update={"status": status, "updated_at": now})
        logger.info("Updated league payment %s: status %s -> %s", payment_id, entry.status.value, status.value)
        return self.storage.save_ledger_entry(updated)

    def _get_league(self, league_id: int):
        league = self.storage.get_league(league_id)
        if league is None:
            raise LeagueNotFoundError(f"League {league_id} not found")
        return league
