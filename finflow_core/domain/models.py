"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

# Obligation status
PENDING = "pending"
OVERDUE = "overdue"
PAID = "paid"
OPEN_OBLIGATION_STATUSES = (PENDING, OVERDUE)

# Transaction type
INCOME = "income"
EXPENSE = "expense"

# Recurring frequency
WEEKLY = "weekly"
BIWEEKLY = "biweekly"
MONTHLY = "monthly"


@dataclass
class Debt:
    """Installment debt owned by a space"""

    id: Optional[str]
    space_id: str
    name: str
    total_amount: float
    monthly_payment: float
    remaining_installments: int
    total_installments: int
    category: str
    next_payment_date: date

    @property
    def is_settled(self) -> bool:
        return self.total_amount <= 0


@dataclass
class Obligation:
    """Bill or statement amount the space must act on"""

    id: Optional[str]
    space_id: str
    title: str
    amount: float
    due_date: date
    status: str = PENDING  # pending | overdue | paid
    category: Optional[str] = None
    minimum_payment: Optional[float] = None
    extraction_id: Optional[str] = None


@dataclass
class Transaction:
    """Income or expense movement"""

    id: Optional[str]
    space_id: str
    type: str  # "income" or "expense"
    amount: float
    description: str
    category: str
    date: date


@dataclass
class RecurringRule:
    """Schedule that materializes a transaction every frequency step"""

    id: Optional[str]
    space_id: str
    type: str
    amount: float
    description: str
    category: str
    frequency: str  # weekly | biweekly | monthly
    start_date: date
    next_run: date
    is_active: bool = True


@dataclass
class AuditEvent:
    """Before/after snapshot of a write, kept for the activity log"""

    space_id: str
    entity_type: str
    entity_id: str
    action: str  # create | update | delete | system
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class PaymentRequest:
    """Payment confirmation input; every field is optional"""

    payment_amount: Any = None
    payment_date: Any = None
    description: Optional[str] = None


@dataclass
class DocumentConfirmationInput:
    """User-confirmed extraction from an uploaded bill or statement"""

    title: str
    amount: float
    due_date: date
    category: str = "Varios"
    minimum_payment: Optional[float] = None
    monthly_payment: Optional[float] = None
    total_installments: Optional[int] = None
    remaining_installments: Optional[int] = None
    debt_next_payment_date: Optional[date] = None
    document_type: str = "other"
    extraction_id: Optional[str] = None
    document_id: Optional[str] = None
    create_debt: bool = False
    mark_paid: bool = False
    payment_date: Optional[date] = None
    payment_amount: Any = None
    payment_description: Optional[str] = None


@dataclass
class DebtPaymentPlan:
    """Arithmetic outcome of applying one payment to a debt"""

    payment_amount: float
    updated_total: float
    updated_remaining_installments: int
    next_payment_date: date

    @property
    def settles_debt(self) -> bool:
        return self.updated_total <= 0


@dataclass
class DebtPaymentResult:
    """Output of a debt payment confirmation"""

    debt: Debt
    transaction: Transaction
    obligation_updated: bool
    obligation_id: Optional[str]


@dataclass
class ObligationPaymentResult:
    """Output of an obligation payment confirmation"""

    obligation: Obligation
    transaction: Transaction
    remaining: float


@dataclass
class RecurringProjection:
    """Occurrences owed by a rule and where its pointer lands afterwards"""

    transactions: List[Transaction]
    next_run: date


@dataclass
class RecurringRunResult:
    """Output of a recurring rules run"""

    generated: int
    updated_rules: int


@dataclass
class DocumentConfirmationResult:
    """Records written for a confirmed document"""

    obligation: Obligation
    debt: Optional[Debt] = None
    transaction: Optional[Transaction] = None
    remaining: Optional[float] = None
