from datetime import datetime
from typing import Optional
from uuid import UUID
from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from .config import configure_logging
from .models import (
    CreatePaymentRequest, UpdatePaymentRequest, LedgerEntry, PaymentSummary,
    PaymentView, OutstandingBalance, EffectivePrice,
)
from .service import (
    PaymentService, PaymentServiceError, PaymentNotFoundError, LeagueNotFoundError,
    DuplicatePaymentError,
)

configure_logging()

app = FastAPI(
    title="League Payments API",
    description="What each player owes across team and individual league registrations",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

payment_service = PaymentService()


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "healthy", "service": "league-payments"}


@app.get("/users/{user_id}/payments", response_model=list[PaymentView], tags=["Users"])
def get_user_payments(user_id: UUID, as_of: Optional[datetime] = None) -> list:
    return payment_service.get_user_payments(user_id, as_of)


@app.get("/users/{user_id}/payments/summary", response_model=PaymentSummary, tags=["Users"])
def get_user_payment_summary(user_id: UUID, as_of: Optional[datetime] = None) -> PaymentSummary:
    return payment_service.get_payment_summary(user_id, as_of)


@app.get("/users/{user_id}/balance", response_model=OutstandingBalance, tags=["Users"])
def get_user_balance(user_id: UUID, as_of: Optional[datetime] = None) -> OutstandingBalance:
    as_of = as_of or datetime.now()
    return OutstandingBalance(
        user_id=user_id,
        amount_outstanding=payment_service.get_outstanding_balance(user_id, as_of),
        as_of=as_of,
    )


@app.get("/leagues/{league_id}/price", response_model=EffectivePrice, tags=["Leagues"])
def get_league_price(league_id: int, as_of: Optional[datetime] = None) -> EffectivePrice:
    try:
        return payment_service.get_effective_price(league_id, as_of)
    except LeagueNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@app.post("/payments", response_model=LedgerEntry, status_code=status.HTTP_201_CREATED, tags=["Payments"])
def create_payment(request: CreatePaymentRequest) -> LedgerEntry:
    try:
        return payment_service.create_league_payment(request)
    except DuplicatePaymentError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except LeagueNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PaymentServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.patch("/payments/{payment_id}", response_model=LedgerEntry, tags=["Payments"])
def update_payment(payment_id: int, request: UpdatePaymentRequest) -> LedgerEntry:
    try:
        return payment_service.update_league_payment(payment_id, request)
    except PaymentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PaymentServiceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
