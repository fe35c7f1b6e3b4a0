"""
Unit Tests for the Payment Service

Tests cover:
1. Reconciled payments and summary for seeded users
2. Fail-soft reads when the data store errors
3. Billing a registration
4. Recording payments
5. Settings from the environment
"""

import logging
import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from league_payments.config import Settings
from league_payments.models import (
    CreatePaymentRequest,
    PaymentMethod,
    PaymentStatus,
    PaymentSummary,
    UpdatePaymentRequest,
)
from league_payments.repository import InMemoryStorage
from league_payments.service import (
    DuplicatePaymentError,
    FetchResult,
    OverpaymentError,
    LeagueNotFoundError,
    PaymentNotFoundError,
    PaymentService,
    fetch,
)


# Test constants
CAPTAIN_ID = UUID("550e8400-e29b-41d4-a716-446655440000")
PLAYER_ID = UUID("660e8400-e29b-41d4-a716-446655440001")
STRANGER_ID = UUID("00000000-0000-0000-0000-000000000000")
EARLY = datetime(2024, 6, 1, 12, 0)
LATE = datetime(2024, 8, 1, 12, 0)


class BrokenStorage(InMemoryStorage):
    def __init__(self, broken: str):
        super().__init__()
        self.broken = broken

    def list_ledger_entries(self, user_id):
        if self.broken == "ledger":
            raise ConnectionError("ledger unavailable")
        return super().list_ledger_entries(user_id)

    def list_memberships(self, user_id):
        if self.broken == "teams":
            raise ConnectionError("teams unavailable")
        return super().list_memberships(user_id)

    def list_leagues_for_user(self, user_id):
        if self.broken == "leagues":
            raise ConnectionError("leagues unavailable")
        return super().list_leagues_for_user(user_id)


@pytest.fixture
def service():
    return PaymentService(InMemoryStorage(), Settings())


class TestUserPayments:
    """Tests for reading a user's payments."""

    def test_captain_payments(self, service):
        """Billed team stays real, unbilled team is synthesized."""
        payments = service.get_user_payments(CAPTAIN_ID, EARLY)

        assert [p.id for p in payments] == [1, -8]

        billed = payments[0]
        assert billed.team_name == "Net Gains"
        assert billed.amount_due == Decimal("80.00")
        assert billed.amount_outstanding == Decimal("30.00")

        unbilled = payments[1]
        assert unbilled.amount_due == Decimal("50.00")
        assert unbilled.status == PaymentStatus.PENDING
        assert unbilled.due_date == date(2024, 7, 1)

    def test_player_free_league_hidden(self, service):
        """The player's free-league team never shows up."""
        payments = service.get_user_payments(PLAYER_ID, EARLY)

        assert [p.id for p in payments] == [-7]
        assert payments[0].amount_due == Decimal("80.00")
        assert payments[0].due_date == date(2024, 7, 1)

    def test_price_after_early_bird(self, service):
        payments = service.get_user_payments(PLAYER_ID, LATE)
        assert payments[0].amount_due == Decimal("100.00")

    def test_unknown_user_has_nothing(self, service):
        assert service.get_user_payments(STRANGER_ID, EARLY) == []

    def test_unauthenticated_has_nothing(self, service):
        assert service.get_user_payments(None) == []
        assert service.get_payment_summary(None) == PaymentSummary()

    def test_summary(self, service):
        summary = service.get_payment_summary(CAPTAIN_ID, EARLY)

        assert summary.total_outstanding == Decimal("80.00")
        assert summary.total_paid == Decimal("50.00")
        assert summary.pending_count == 2
        assert summary.overdue_count == 0

    def test_outstanding_balance(self, service):
        assert service.get_outstanding_balance(CAPTAIN_ID, LATE) == Decimal("100.00")

    def test_default_due_days_from_settings(self):
        service = PaymentService(InMemoryStorage(), Settings(default_due_days=10))
        payments = service.get_user_payments(CAPTAIN_ID, EARLY)
        assert payments[1].due_date == date(2024, 6, 11)


class TestFailSoftReads:
    """Tests for the show-nothing-rather-than-crash policy."""

    def test_ledger_failure_returns_empty(self, caplog):
        service = PaymentService(BrokenStorage("ledger"), Settings())

        with caplog.at_level(logging.ERROR, logger="league_payments.service"):
            payments = service.get_user_payments(CAPTAIN_ID, EARLY)

        assert payments == []
        assert "ledger unavailable" in caplog.text

    def test_ledger_failure_zero_summary(self):
        service = PaymentService(BrokenStorage("ledger"), Settings())
        assert service.get_payment_summary(CAPTAIN_ID, EARLY) == PaymentSummary()

    def test_team_failure_keeps_ledger_rows(self):
        """Without memberships only billed rows are shown."""
        service = PaymentService(BrokenStorage("teams"), Settings())

        payments = service.get_user_payments(CAPTAIN_ID, EARLY)

        assert [p.id for p in payments] == [1]

    def test_league_pricing_loads_without_memberships(self):
        """Pricing is read independently of the membership fetch."""
        storage = BrokenStorage("teams")
        assert set(storage.list_leagues_for_user(CAPTAIN_ID)) == {1, 2}

    def test_league_failure_returns_empty(self):
        service = PaymentService(BrokenStorage("leagues"), Settings())
        assert service.get_user_payments(CAPTAIN_ID, EARLY) == []

    def test_fetch_wraps_errors(self):
        def boom():
            raise ValueError("bad row")

        result = fetch("ledger entries", boom)

        assert not result.ok
        assert result.error.source == "ledger entries"
        assert result.unwrap_or([]) == []

    def test_fetch_success(self):
        result = fetch("numbers", lambda: [1, 2])
        assert result == FetchResult(value=[1, 2])
        assert result.unwrap_or([]) == [1, 2]


class TestCreatePayment:
    """Tests for billing a registration."""

    def test_defaults_to_current_price(self, service):
        """Without an amount the league's current price is billed."""
        entry = service.create_league_payment(
            CreatePaymentRequest(user_id=PLAYER_ID, league_id=1, team_id=7), EARLY
        )

        assert entry.id == 2
        assert entry.amount_due == Decimal("80.00")
        assert entry.amount_paid == Decimal("0")
        assert entry.status == PaymentStatus.PENDING

    def test_billed_team_replaces_virtual_row(self, service):
        service.create_league_payment(
            CreatePaymentRequest(user_id=CAPTAIN_ID, league_id=2, team_id=8), EARLY
        )

        payments = service.get_user_payments(CAPTAIN_ID, EARLY)

        assert [p.id for p in payments] == [1, 2]

    def test_explicit_amount(self, service):
        entry = service.create_league_payment(
            CreatePaymentRequest(user_id=PLAYER_ID, league_id=2, amount_due=Decimal("25")), EARLY
        )
        assert entry.amount_due == Decimal("25")
        assert entry.team_id is None

    def test_unknown_league_fails(self, service):
        with pytest.raises(LeagueNotFoundError):
            service.create_league_payment(CreatePaymentRequest(user_id=PLAYER_ID, league_id=99))

    def test_second_bill_for_same_league_rejected(self, service):
        """A user is billed at most once per league, so a team never gets two rows."""
        service.create_league_payment(
            CreatePaymentRequest(user_id=CAPTAIN_ID, league_id=2, team_id=8), EARLY
        )

        with pytest.raises(DuplicatePaymentError):
            service.create_league_payment(
                CreatePaymentRequest(user_id=CAPTAIN_ID, league_id=2, team_id=8), EARLY
            )

        payments = service.get_user_payments(CAPTAIN_ID, EARLY)
        assert len([p for p in payments if p.team_id == 8]) == 1
        assert service.get_payment_summary(CAPTAIN_ID, EARLY).total_outstanding == Decimal("80.00")

    def test_other_user_same_league_allowed(self, service):
        service.create_league_payment(CreatePaymentRequest(user_id=PLAYER_ID, league_id=1, team_id=7), EARLY)
        entry = service.create_league_payment(
            CreatePaymentRequest(user_id=STRANGER_ID, league_id=1, team_id=7), EARLY
        )
        assert entry.user_id == STRANGER_ID


class TestEffectivePrice:
    """Tests for a league's current price."""

    def test_early_bird_price(self, service):
        price = service.get_effective_price(1, EARLY)

        assert price.amount == Decimal("80.00")
        assert price.early_bird_active is True
        assert price.as_of == EARLY

    def test_standard_price(self, service):
        price = service.get_effective_price(1, LATE)

        assert price.amount == Decimal("100.00")
        assert price.early_bird_active is False

    def test_unknown_league(self, service):
        with pytest.raises(LeagueNotFoundError):
            service.get_effective_price(99, EARLY)


class TestUpdatePayment:
    """Tests for recording payments against a ledger entry."""

    def test_full_payment_with_tax_marks_paid(self, service):
        entry = service.update_league_payment(
            1, UpdatePaymentRequest(amount_paid=Decimal("113.00"), payment_method=PaymentMethod.E_TRANSFER), EARLY
        )

        assert entry.status == PaymentStatus.PAID
        assert entry.payment_method == PaymentMethod.E_TRANSFER
        assert entry.amount_paid == Decimal("113.00")
        assert entry.notes == "Payment of $63.00 via E-Transfer"

    def test_default_note_without_method(self, service):
        entry = service.update_league_payment(1, UpdatePaymentRequest(amount_paid=Decimal("60.00")), EARLY)
        assert entry.notes == "Payment of $10.00 via Not specified"

    def test_explicit_note_kept(self, service):
        entry = service.update_league_payment(
            1, UpdatePaymentRequest(amount_paid=Decimal("60.00"), notes="Cash at the gym"), EARLY
        )
        assert entry.notes == "Cash at the gym"

    def test_overpayment_rejected(self, service):
        """Paying more than the amount owing plus tax is refused and nothing is stored."""
        with pytest.raises(OverpaymentError):
            service.update_league_payment(1, UpdatePaymentRequest(amount_paid=Decimal("5000")), EARLY)

        assert service.storage.get_ledger_entry(1).amount_paid == Decimal("50.00")

    def test_payment_up_to_tolerance_accepted(self, service):
        entry = service.update_league_payment(1, UpdatePaymentRequest(amount_paid=Decimal("113.01")), EARLY)
        assert entry.status == PaymentStatus.PAID

    def test_just_over_tolerance_rejected(self, service):
        with pytest.raises(OverpaymentError):
            service.update_league_payment(1, UpdatePaymentRequest(amount_paid=Decimal("113.02")), EARLY)

    def test_paid_row_frozen_after_price_change(self, service):
        """Once paid, the billed amount is kept even inside the early-bird window."""
        service.update_league_payment(1, UpdatePaymentRequest(amount_paid=Decimal("113.00")), EARLY)

        payments = service.get_user_payments(CAPTAIN_ID, EARLY)

        assert payments[0].amount_due == Decimal("100.00")
        assert payments[0].amount_outstanding == Decimal("0")

    def test_notes_only_keeps_amounts(self, service):
        entry = service.update_league_payment(1, UpdatePaymentRequest(notes="Paid half in cash"), EARLY)

        assert entry.notes == "Paid half in cash"
        assert entry.amount_paid == Decimal("50.00")
        assert entry.status == PaymentStatus.PARTIAL

    def test_waived(self, service):
        entry = service.update_league_payment(1, UpdatePaymentRequest(payment_method=PaymentMethod.WAIVED), EARLY)
        assert entry.status == PaymentStatus.PAID

    def test_unknown_payment_fails(self, service):
        with pytest.raises(PaymentNotFoundError):
            service.update_league_payment(999, UpdatePaymentRequest(notes="x"))


class TestSettings:
    """Tests for environment configuration."""

    def test_defaults(self):
        settings = Settings()
        assert settings.default_due_days == 30
        assert settings.tax_rate == Decimal("0.13")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LEAGUE_PAYMENTS_DEFAULT_DUE_DAYS", "14")
        monkeypatch.setenv("LEAGUE_PAYMENTS_TAX_RATE", "0.05")

        settings = Settings.from_env()

        assert settings.default_due_days == 14
        assert settings.tax_rate == Decimal("0.05")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
