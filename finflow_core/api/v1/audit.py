"""GET /v1/spaces/{space_id}/audit - Fetch a space's recent activity"""

from fastapi import APIRouter, Depends, Query

from finflow_core.api.dependencies import get_store, http_error_for
from finflow_core.api.v1.schemas import AuditEventSchema, AuditHistoryResponse
from finflow_core.domain.exceptions import PersistenceError
from finflow_core.infrastructure.database.repositories import SqlFinanceStore

router = APIRouter()


@router.get("/spaces/{space_id}/audit", response_model=AuditHistoryResponse)
def get_audit_history(
    space_id: str,
    limit: int = Query(20, ge=1, le=200, description="Maximum events to return"),
    store: SqlFinanceStore = Depends(get_store),
):
    """
    Retrieve recent audit events for a space, newest first.

    Returns:
        Writes made by payments, recurring runs and document confirmations
    """
    try:
        events = store.list_audit_events(space_id, limit=limit)
    except PersistenceError as e:
        raise http_error_for(e)

    return AuditHistoryResponse(
        space_id=space_id,
        events=[AuditEventSchema.model_validate(event) for event in events],
    )
