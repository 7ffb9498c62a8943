"""POST /v1/spaces/{space_id}/obligations/{obligation_id}/confirm-payment"""

import logging
import time
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from finflow_core.api.dependencies import get_obligation_payment_service, get_request_id, get_today, http_error_for
from finflow_core.api.v1.schemas import ObligationPaymentResponse, PaymentRequestBody
from finflow_core.domain.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from finflow_core.domain.models import PaymentRequest
from finflow_core.infrastructure.observability.logging import log_obligation_payment
from finflow_core.services.obligation_payments import ObligationPaymentService

router = APIRouter()


@router.post(
    "/spaces/{space_id}/obligations/{obligation_id}/confirm-payment",
    response_model=ObligationPaymentResponse,
)
def confirm_obligation_payment(
    space_id: str,
    obligation_id: str,
    request: Request,
    body: Optional[PaymentRequestBody] = None,
    service: ObligationPaymentService = Depends(get_obligation_payment_service),
    today: date = Depends(get_today),
):
    """Pay an obligation; partial payments leave it pending with the remaining amount"""
    start_time = time.time()
    request_id = get_request_id(request)
    body = body or PaymentRequestBody()
    context = {"request_id": request_id, "obligation_id": obligation_id}

    try:
        result = service.confirm_obligation_payment(
            space_id,
            obligation_id,
            PaymentRequest(
                payment_amount=body.payment_amount,
                payment_date=body.payment_date,
                description=body.description,
            ),
            today,
        )
    except (ValidationError, NotFoundError, ConflictError) as e:
        logging.warning(f"Obligation payment rejected: {e}", extra=context)
        raise http_error_for(e)
    except PersistenceError as e:
        logging.error(f"Obligation payment failed: {e}", extra=context)
        raise http_error_for(e)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra=context)
        raise HTTPException(status_code=500, detail="No se pudo confirmar el pago.")

    duration_ms = (time.time() - start_time) * 1000
    log_obligation_payment(request_id, space_id, obligation_id, result.transaction.id, result.remaining, duration_ms)

    return ObligationPaymentResponse.model_validate(result)
