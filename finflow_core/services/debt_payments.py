"""Debt payment reconciliation"""

import logging
from datetime import date
from typing import Optional

from finflow_core.config import settings
from finflow_core.domain.amortization import apply_debt_payment, settle_obligation
from finflow_core.domain.exceptions import NotFoundError
from finflow_core.domain.matching import MatchingRules, pick_matching_obligation
from finflow_core.domain.models import (
    EXPENSE,
    OPEN_OBLIGATION_STATUSES,
    PAID,
    Debt,
    DebtPaymentResult,
    PaymentRequest,
    Transaction,
)
from finflow_core.domain.ports import FinanceStore
from finflow_core.infrastructure.audit import AuditRecorder
from finflow_core.infrastructure.observability.metrics import record_debt_payment, record_obligation_update
from finflow_core.services.compensation import CompensationChain
from finflow_core.utils.date_utils import coerce_date

logger = logging.getLogger(__name__)


class DebtPaymentService:
    """Applies payments to debts and closes the obligation they settle"""

    def __init__(
        self,
        store: FinanceStore,
        audit: AuditRecorder,
        matching_rules: Optional[MatchingRules] = None,
        full_payment_ratio: float = settings.full_payment_ratio,
        obligation_limit: int = settings.open_obligation_limit,
    ):
        self.store = store
        self.audit = audit
        self.matching_rules = matching_rules or MatchingRules()
        self.full_payment_ratio = full_payment_ratio
        self.obligation_limit = obligation_limit

    def confirm_debt_payment(
        self,
        space_id: str,
        debt_id: str,
        request: PaymentRequest,
        today: date,
    ) -> DebtPaymentResult:
        """
        Record one payment against a debt.

        Flow:
        1. Validate debt and payment amount (no writes on failure)
        2. Update debt balance, installments and next due date
        3. Insert the expense transaction, restoring the debt if it fails
        4. Best effort: close or reduce the matching open obligation

        Raises:
            NotFoundError: debt missing in this space
            ConflictError: debt already settled
            ValidationError: invalid payment amount
            PersistenceError: debt update or transaction insert failed
        """
        debt = self.store.get_debt(debt_id, space_id)
        if debt is None:
            raise NotFoundError("Deuda no encontrada")

        payment_date = coerce_date(request.payment_date, today)
        plan = apply_debt_payment(debt, request.payment_amount, payment_date, today)

        previous_state = {
            "total_amount": debt.total_amount,
            "remaining_installments": debt.remaining_installments,
            "next_payment_date": debt.next_payment_date,
        }
        description = (request.description or "").strip() or f"Pago de deuda: {debt.name}"

        with CompensationChain("confirm_debt_payment", {"space_id": space_id, "debt_id": debt_id}) as chain:
            updated_debt = chain.step(
                "update_debt",
                lambda: self.store.update_debt(
                    debt_id,
                    space_id,
                    {
                        "total_amount": plan.updated_total,
                        "remaining_installments": plan.updated_remaining_installments,
                        "next_payment_date": plan.next_payment_date,
                    },
                ),
                rollback=lambda _: self.store.update_debt(debt_id, space_id, previous_state),
            )
            transaction = chain.step(
                "insert_transaction",
                lambda: self.store.insert_transaction(
                    Transaction(
                        id=None,
                        space_id=space_id,
                        type=EXPENSE,
                        amount=plan.payment_amount,
                        description=description,
                        category=debt.category or "Deudas",
                        date=payment_date,
                    )
                ),
            )

        record_debt_payment(plan.settles_debt)
        obligation_id = self._settle_matching_obligation(space_id, debt, plan.payment_amount, payment_date)

        self.audit.record_event(
            space_id,
            "debt",
            updated_debt.id,
            "update",
            before=debt,
            after=updated_debt,
            metadata={"payment_amount": plan.payment_amount, "payment_date": payment_date},
        )
        self.audit.record_event(
            space_id,
            "transaction",
            transaction.id,
            "create",
            after=transaction,
            metadata={"source": "debt_confirm_payment", "debt_id": updated_debt.id},
        )
        if obligation_id:
            self.audit.record_event(
                space_id,
                "obligation",
                obligation_id,
                "update",
                metadata={"source": "debt_confirm_payment", "debt_id": updated_debt.id},
            )

        return DebtPaymentResult(
            debt=updated_debt,
            transaction=transaction,
            obligation_updated=obligation_id is not None,
            obligation_id=obligation_id,
        )

    def _settle_matching_obligation(
        self,
        space_id: str,
        debt: Debt,
        payment_amount: float,
        payment_date: date,
    ) -> Optional[str]:
        """Close or reduce the obligation this payment settles; never raises"""
        try:
            open_obligations = self.store.list_open_obligations(
                space_id, OPEN_OBLIGATION_STATUSES, self.obligation_limit
            )
            match = pick_matching_obligation(
                open_obligations, debt.name, payment_amount, payment_date, self.matching_rules
            )
            if match is None:
                return None

            settlement = settle_obligation(match.amount, payment_amount, self.full_payment_ratio)
            patch = {"status": PAID} if settlement.closes else {"amount": settlement.remaining}
            self.store.update_obligation(match.id, space_id, patch)
        except Exception as e:
            # Debt and transaction are already committed at this point
            record_obligation_update("debt_payment", "failed")
            logger.warning(
                f"Obligation matching skipped: {e}",
                extra={"space_id": space_id, "debt_id": debt.id, "error_type": type(e).__name__},
            )
            return None

        record_obligation_update("debt_payment", "paid" if settlement.closes else "reduced")
        return match.id
