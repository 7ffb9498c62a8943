"""Debt endpoints - payment confirmation and debt detail"""

import logging
import time
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from finflow_core.api.dependencies import (
    get_debt_payment_service,
    get_request_id,
    get_store,
    get_today,
    http_error_for,
)
from finflow_core.api.v1.schemas import DebtPaymentResponse, DebtSchema, PaymentRequestBody
from finflow_core.domain.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from finflow_core.domain.models import PaymentRequest
from finflow_core.infrastructure.database.repositories import SqlFinanceStore
from finflow_core.infrastructure.observability.logging import log_debt_payment
from finflow_core.services.debt_payments import DebtPaymentService

router = APIRouter()


@router.post("/spaces/{space_id}/debts/{debt_id}/confirm-payment", response_model=DebtPaymentResponse)
def confirm_debt_payment(
    space_id: str,
    debt_id: str,
    request: Request,
    body: Optional[PaymentRequestBody] = None,
    service: DebtPaymentService = Depends(get_debt_payment_service),
    today: date = Depends(get_today),
):
    """
    Confirm a payment against a debt.

    Flow:
    1. Shrink the balance (never below zero) and advance the schedule
    2. Record the expense transaction (debt restored if this fails)
    3. Close or reduce the matching open obligation, best effort
    """
    start_time = time.time()
    request_id = get_request_id(request)
    body = body or PaymentRequestBody()

    try:
        result = service.confirm_debt_payment(
            space_id,
            debt_id,
            PaymentRequest(
                payment_amount=body.payment_amount,
                payment_date=body.payment_date,
                description=body.description,
            ),
            today,
        )
    except (ValidationError, NotFoundError, ConflictError) as e:
        logging.warning(f"Debt payment rejected: {e}", extra={"request_id": request_id, "debt_id": debt_id})
        raise http_error_for(e)
    except PersistenceError as e:
        logging.error(f"Debt payment failed: {e}", extra={"request_id": request_id, "debt_id": debt_id})
        raise http_error_for(e)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id, "debt_id": debt_id})
        raise HTTPException(status_code=500, detail="No se pudo confirmar el pago de la deuda.")

    duration_ms = (time.time() - start_time) * 1000
    log_debt_payment(request_id, space_id, debt_id, result.transaction.id, result.obligation_id, duration_ms)

    return DebtPaymentResponse.model_validate(result)


@router.get("/spaces/{space_id}/debts/{debt_id}", response_model=DebtSchema)
def get_debt(space_id: str, debt_id: str, store: SqlFinanceStore = Depends(get_store)):
    """Retrieve a debt with its current balance and schedule"""
    try:
        debt = store.get_debt(debt_id, space_id)
    except PersistenceError as e:
        raise http_error_for(e)

    if not debt:
        raise HTTPException(status_code=404, detail="Deuda no encontrada")

    return DebtSchema.model_validate(debt)
