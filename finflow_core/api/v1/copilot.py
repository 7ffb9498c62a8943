"""POST /v1/spaces/{space_id}/copilot/confirm - save a confirmed document extraction"""

import logging
import time
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request

from finflow_core.api.dependencies import (
    get_document_confirmation_service,
    get_request_id,
    get_today,
    http_error_for,
)
from finflow_core.api.v1.schemas import DocumentConfirmationRequest, DocumentConfirmationResponse
from finflow_core.domain.exceptions import PersistenceError, ValidationError
from finflow_core.domain.models import DocumentConfirmationInput
from finflow_core.infrastructure.observability.logging import log_document_confirmation
from finflow_core.services.document_confirmation import DocumentConfirmationService

router = APIRouter()


@router.post("/spaces/{space_id}/copilot/confirm", response_model=DocumentConfirmationResponse)
def confirm_document(
    space_id: str,
    request_body: DocumentConfirmationRequest,
    request: Request,
    service: DocumentConfirmationService = Depends(get_document_confirmation_service),
    today: date = Depends(get_today),
):
    """
    Persist the obligation a user confirmed from an uploaded document.

    Optionally creates the installment debt it belongs to, or records the
    payment that settles it. Either everything is saved or nothing is.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = service.confirm_document(
            space_id,
            DocumentConfirmationInput(**request_body.model_dump()),
            today,
        )
    except ValidationError as e:
        logging.warning(f"Document confirmation rejected: {e}", extra={"request_id": request_id})
        raise http_error_for(e)
    except PersistenceError as e:
        logging.error(f"Document confirmation failed: {e}", extra={"request_id": request_id})
        raise http_error_for(e)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="No se pudo confirmar el documento.")

    duration_ms = (time.time() - start_time) * 1000
    log_document_confirmation(
        request_id,
        space_id,
        result.obligation.id,
        result.debt.id if result.debt else None,
        result.transaction.id if result.transaction else None,
        duration_ms,
    )

    return DocumentConfirmationResponse.model_validate(result)
