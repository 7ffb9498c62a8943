"""Dependency injection for FastAPI endpoints"""

from datetime import date

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from finflow_core.domain.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from finflow_core.infrastructure.audit import AuditRecorder
from finflow_core.infrastructure.database.repositories import SqlFinanceStore
from finflow_core.infrastructure.database.session import get_db
from finflow_core.services.debt_payments import DebtPaymentService
from finflow_core.services.document_confirmation import DocumentConfirmationService
from finflow_core.services.obligation_payments import ObligationPaymentService
from finflow_core.services.recurring_runner import RecurringRunner
from finflow_core.utils.date_utils import utc_today


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_today() -> date:
    """Reference date for payments and recurring runs (UTC)"""
    return utc_today()


def get_store(db: Session = Depends(get_db)) -> SqlFinanceStore:
    return SqlFinanceStore(db)


def get_audit_recorder(store: SqlFinanceStore = Depends(get_store)) -> AuditRecorder:
    return AuditRecorder(store)


def get_debt_payment_service(
    store: SqlFinanceStore = Depends(get_store),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> DebtPaymentService:
    return DebtPaymentService(store, audit)


def get_obligation_payment_service(
    store: SqlFinanceStore = Depends(get_store),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> ObligationPaymentService:
    return ObligationPaymentService(store, audit)


def get_recurring_runner(
    store: SqlFinanceStore = Depends(get_store),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> RecurringRunner:
    return RecurringRunner(store, audit)


def get_document_confirmation_service(
    store: SqlFinanceStore = Depends(get_store),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> DocumentConfirmationService:
    return DocumentConfirmationService(store, audit)


def http_error_for(error: Exception) -> HTTPException:
    """Map domain exceptions onto HTTP status codes"""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, ConflictError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, PersistenceError):
        return HTTPException(status_code=500, detail=f"{error.step or 'store'} failed")
    return HTTPException(status_code=500, detail="Internal server error")
