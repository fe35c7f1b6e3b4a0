from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict, computed_field


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class PaymentMethod(str, Enum):
    STRIPE = "stripe"
    CASH = "cash"
    E_TRANSFER = "e_transfer"
    WAIVED = "waived"

    @property
    def label(self) -> str:
        return _METHOD_LABELS[self]


_METHOD_LABELS = {
    PaymentMethod.STRIPE: "Online",
    PaymentMethod.CASH: "Cash",
    PaymentMethod.E_TRANSFER: "E-Transfer",
    PaymentMethod.WAIVED: "Waived",
}


def format_payment_method(method: Optional[PaymentMethod]) -> str:
    if method is None:
        return "Not specified"
    return method.label


class LeagueDue(BaseModel):
    league_id: int
    name: str
    standard_cost: Optional[Decimal] = None
    early_bird_cost: Optional[Decimal] = None
    early_bird_deadline: Optional[date] = None
    payment_due_date: Optional[date] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)


class TeamMembership(BaseModel):
    team_id: int
    team_name: str
    league_id: int
    user_is_on_roster: bool = True

    model_config = ConfigDict(from_attributes=True, frozen=True)


class LedgerEntry(BaseModel):
    id: int = Field(..., gt=0)
    user_id: UUID
    team_id: Optional[int] = None
    league_id: int
    amount_due: Decimal
    amount_paid: Decimal = Decimal("0")
    status: PaymentStatus = PaymentStatus.PENDING
    due_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None
    league_name: Optional[str] = None
    team_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)


class _PaymentViewBase(BaseModel):
    user_id: UUID
    league_id: int
    amount_due: Decimal
    amount_paid: Decimal
    amount_outstanding: Decimal
    status: PaymentStatus
    due_date: Optional[date] = None
    league_name: str
    team_name: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class RealPayment(_PaymentViewBase):
    """A payment view backed by a persisted ledger entry."""

    source: Literal["ledger"] = "ledger"
    ledger_id: int = Field(..., gt=0)
    team_id: Optional[int] = None
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None

    @computed_field
    @property
    def id(self) -> int:
        return self.ledger_id


class VirtualPayment(_PaymentViewBase):
    """An obligation inferred from roster membership before any billing happened.

    Its ``id`` is the negated team id so it can share a key space with
    ledger ids, which are always positive.
    """

    source: Literal["virtual"] = "virtual"
    team_id: int = Field(..., gt=0)

    @computed_field
    @property
    def id(self) -> int:
        return -self.team_id


PaymentView = Annotated[Union[RealPayment, VirtualPayment], Field(discriminator="source")]


class SummaryRow(BaseModel):
    amount_outstanding: Decimal = Decimal("0")
    amount_paid: Decimal = Decimal("0")
    status: Optional[Union[PaymentStatus, str]] = None


class PaymentSummary(BaseModel):
    total_outstanding: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    pending_count: int = 0
    overdue_count: int = 0


class CreatePaymentRequest(BaseModel):
    user_id: UUID
    league_id: int
    team_id: Optional[int] = None
    amount_due: Optional[Decimal] = Field(default=None, ge=0, description="Defaults to the league's current price")
    due_date: Optional[date] = None
    notes: Optional[str] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "user_id": "550e8400-e29b-41d4-a716-446655440000",
            "league_id": 1,
            "team_id": 7,
            "notes": "Team registration"
        }
    })


class UpdatePaymentRequest(BaseModel):
    amount_paid: Optional[Decimal] = Field(default=None, ge=0)
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None


class OutstandingBalance(BaseModel):
    user_id: UUID
    amount_outstanding: Decimal
    as_of: datetime


class EffectivePrice(BaseModel):
    league_id: int
    amount: Decimal
    early_bird_active: bool
    as_of: datetime
