"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PaymentRequestBody(BaseModel):
    """Request body for the confirm-payment endpoints; every field is optional"""

    # Coerced and validated by the service so invalid amounts get a 400 with a reason
    payment_amount: Optional[Union[float, str]] = None
    payment_date: Optional[str] = Field(None, description="YYYY-MM-DD; defaults to today")
    description: Optional[str] = None


class DocumentConfirmationRequest(BaseModel):
    """Request body for POST /v1/spaces/{space_id}/copilot/confirm"""

    title: str = Field(..., min_length=1, description="Obligation title")
    amount: float = Field(..., gt=0, description="Statement or bill amount")
    due_date: date
    category: str = Field("Varios", min_length=1)
    minimum_payment: Optional[float] = None
    monthly_payment: Optional[float] = None
    total_installments: Optional[int] = None
    remaining_installments: Optional[int] = None
    debt_next_payment_date: Optional[date] = None
    document_type: Literal["credit_card", "invoice", "bank_statement", "other"] = "other"
    extraction_id: Optional[str] = None
    document_id: Optional[str] = None
    create_debt: bool = False
    mark_paid: bool = False
    payment_date: Optional[date] = None
    payment_amount: Optional[Union[float, str]] = None
    payment_description: Optional[str] = None


class DebtSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    total_amount: float
    monthly_payment: float
    remaining_installments: int
    total_installments: int
    category: str
    next_payment_date: date


class ObligationSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    amount: float
    due_date: date
    status: str
    category: Optional[str] = None
    minimum_payment: Optional[float] = None


class TransactionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    amount: float
    description: str
    category: str
    date: date


class DebtPaymentResponse(BaseModel):
    """Response for POST .../debts/{debt_id}/confirm-payment"""

    model_config = ConfigDict(from_attributes=True)

    debt: DebtSchema
    transaction: TransactionSchema
    obligation_updated: bool
    obligation_id: Optional[str] = None


class ObligationPaymentResponse(BaseModel):
    """Response for POST .../obligations/{obligation_id}/confirm-payment"""

    model_config = ConfigDict(from_attributes=True)

    obligation: ObligationSchema
    transaction: TransactionSchema
    remaining: float


class RecurringRunResponse(BaseModel):
    """Response for POST .../recurring/run"""

    model_config = ConfigDict(from_attributes=True)

    generated: int
    updated_rules: int


class DocumentConfirmationResponse(BaseModel):
    """Response for POST .../copilot/confirm"""

    model_config = ConfigDict(from_attributes=True)

    obligation: ObligationSchema
    debt: Optional[DebtSchema] = None
    transaction: Optional[TransactionSchema] = None
    remaining: Optional[float] = None


class AuditEventSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    entity_type: str
    entity_id: str
    action: str
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = {}
    created_at: Optional[datetime] = None


class AuditHistoryResponse(BaseModel):
    """Response for GET .../audit"""

    space_id: str
    events: List[AuditEventSchema]
