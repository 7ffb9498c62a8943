"""POST /v1/spaces/{space_id}/recurring/run - generate transactions for due rules"""

import logging
import time
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Request

from finflow_core.api.dependencies import get_recurring_runner, get_request_id, get_today, http_error_for
from finflow_core.api.v1.schemas import RecurringRunResponse
from finflow_core.domain.exceptions import PersistenceError
from finflow_core.infrastructure.observability.logging import log_recurring_run
from finflow_core.services.recurring_runner import RecurringRunner

router = APIRouter()


@router.post("/spaces/{space_id}/recurring/run", response_model=RecurringRunResponse)
def run_recurring(
    space_id: str,
    request: Request,
    runner: RecurringRunner = Depends(get_recurring_runner),
    today: date = Depends(get_today),
):
    """
    Catch up every active rule due on or before today.

    Returns:
        Number of transactions generated and rules advanced
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = runner.run_due_recurring_rules(space_id, today)
    except PersistenceError as e:
        logging.error(f"Recurring run failed: {e}", extra={"request_id": request_id})
        raise http_error_for(e)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Error al ejecutar recurrencias")

    duration_ms = (time.time() - start_time) * 1000
    log_recurring_run(request_id, space_id, result.generated, result.updated_rules, duration_ms)

    return RecurringRunResponse.model_validate(result)
