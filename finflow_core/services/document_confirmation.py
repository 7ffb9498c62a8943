"""Turns a user-confirmed document extraction into obligation, debt and payment records"""

from datetime import date
from typing import Optional

from finflow_core.domain.amortization import settle_obligation
from finflow_core.domain.exceptions import ValidationError
from finflow_core.domain.models import (
    EXPENSE,
    PAID,
    PENDING,
    Debt,
    DocumentConfirmationInput,
    DocumentConfirmationResult,
    Obligation,
    Transaction,
)
from finflow_core.domain.money import parse_amount
from finflow_core.domain.ports import FinanceStore
from finflow_core.infrastructure.audit import AuditRecorder
from finflow_core.services.compensation import CompensationChain
from finflow_core.utils.date_utils import coerce_date


def debt_from_document(space_id: str, data: DocumentConfirmationInput) -> Debt:
    """
    Build the installment debt described by a confirmed statement.

    - total installments is at least 1
    - remaining installments defaults to the total and is clamped to [0, total]
    - monthly payment: explicit value, else minimum payment, else the full amount
    """
    total_installments = max(1, int(data.total_installments or 1))
    if data.remaining_installments is None:
        remaining_installments = total_installments
    else:
        remaining_installments = min(max(0, int(data.remaining_installments)), total_installments)

    monthly_payment = parse_amount(data.monthly_payment)
    if monthly_payment is None:
        monthly_payment = parse_amount(data.minimum_payment)
    if monthly_payment is None or monthly_payment <= 0:
        monthly_payment = data.amount

    return Debt(
        id=None,
        space_id=space_id,
        name=data.title,
        total_amount=data.amount,
        monthly_payment=monthly_payment,
        remaining_installments=remaining_installments,
        total_installments=total_installments,
        category=data.category or "Deuda",
        next_payment_date=data.debt_next_payment_date or data.due_date,
    )


class DocumentConfirmationService:
    """Coordinated obligation / debt / payment writes with manual rollback"""

    def __init__(self, store: FinanceStore, audit: AuditRecorder):
        self.store = store
        self.audit = audit

    def confirm_document(
        self,
        space_id: str,
        data: DocumentConfirmationInput,
        today: date,
    ) -> DocumentConfirmationResult:
        """
        Persist a confirmed extraction.

        Flow:
        1. Insert the obligation (pending)
        2. create_debt and not mark_paid: insert the debt
        3. mark_paid: validate the payment and insert the settling transaction
        4. mark_paid: mark the obligation paid, or reduce it to the remaining balance

        Any failure undoes the records already written in this call, newest first.

        Raises:
            ValidationError: payment amount invalid (after undoing earlier writes)
            PersistenceError: a write failed (after undoing earlier writes)
        """
        should_create_debt = data.create_debt and not data.mark_paid
        context = {"space_id": space_id, "document_id": data.document_id}

        debt: Optional[Debt] = None
        transaction: Optional[Transaction] = None
        remaining: Optional[float] = None

        with CompensationChain("confirm_document", context) as chain:
            obligation = chain.step(
                "insert_obligation",
                lambda: self.store.insert_obligation(
                    Obligation(
                        id=None,
                        space_id=space_id,
                        title=data.title,
                        amount=data.amount,
                        due_date=data.due_date,
                        status=PENDING,
                        category=data.category or "Varios",
                        minimum_payment=data.minimum_payment,
                        extraction_id=data.extraction_id,
                    )
                ),
                rollback=lambda created: self.store.delete_obligation(created.id, space_id),
            )

            if should_create_debt:
                debt = chain.step(
                    "insert_debt",
                    lambda: self.store.insert_debt(debt_from_document(space_id, data)),
                    rollback=lambda created: self.store.delete_debt(created.id, space_id),
                )

            if data.mark_paid:
                payment_amount = data.amount if data.payment_amount is None else parse_amount(data.payment_amount)
                if payment_amount is None or payment_amount <= 0:
                    raise ValidationError("Monto de pago inválido.")

                payment_date = coerce_date(data.payment_date, today)
                description = (data.payment_description or "").strip() or f"Pago confirmado desde resumen: {data.title}"
                transaction = chain.step(
                    "insert_transaction",
                    lambda: self.store.insert_transaction(
                        Transaction(
                            id=None,
                            space_id=space_id,
                            type=EXPENSE,
                            amount=payment_amount,
                            description=description,
                            category=data.category or "Deudas",
                            date=payment_date,
                        )
                    ),
                    rollback=lambda created: self.store.delete_transaction(created.id, space_id),
                )

                settlement = settle_obligation(data.amount, payment_amount)
                patch = {"status": PAID} if settlement.closes else {"status": PENDING, "amount": settlement.remaining}
                obligation_id = obligation.id
                obligation = chain.step(
                    "update_obligation",
                    lambda: self.store.update_obligation(obligation_id, space_id, patch),
                )
                remaining = settlement.remaining

        self._audit_created(space_id, data, obligation, debt, transaction)
        return DocumentConfirmationResult(
            obligation=obligation,
            debt=debt,
            transaction=transaction,
            remaining=remaining,
        )

    def _audit_created(
        self,
        space_id: str,
        data: DocumentConfirmationInput,
        obligation: Obligation,
        debt: Optional[Debt],
        transaction: Optional[Transaction],
    ) -> None:
        self.audit.record_event(
            space_id,
            "obligation",
            obligation.id,
            "create",
            after=obligation,
            metadata={
                "source": "copilot_confirm",
                "document_type": data.document_type,
                "document_id": data.document_id,
            },
        )
        if debt is not None:
            self.audit.record_event(
                space_id,
                "debt",
                debt.id,
                "create",
                after=debt,
                metadata={"source": "copilot_confirm", "linked_obligation_id": obligation.id},
            )
        if transaction is not None:
            self.audit.record_event(
                space_id,
                "transaction",
                transaction.id,
                "create",
                after=transaction,
                metadata={"source": "copilot_confirm", "linked_obligation_id": obligation.id},
            )
