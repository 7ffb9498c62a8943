"""Direct payment of an obligation (bill or statement)"""

from datetime import date

from finflow_core.domain.amortization import settle_obligation
from finflow_core.domain.exceptions import ConflictError, NotFoundError, ValidationError
from finflow_core.domain.models import EXPENSE, PAID, PENDING, ObligationPaymentResult, PaymentRequest, Transaction
from finflow_core.domain.money import parse_amount
from finflow_core.domain.ports import FinanceStore
from finflow_core.infrastructure.audit import AuditRecorder
from finflow_core.infrastructure.observability.metrics import record_obligation_update
from finflow_core.services.compensation import CompensationChain
from finflow_core.utils.date_utils import coerce_date


class ObligationPaymentService:
    """Records a payment and closes or reduces the obligation"""

    def __init__(self, store: FinanceStore, audit: AuditRecorder):
        self.store = store
        self.audit = audit

    def confirm_obligation_payment(
        self,
        space_id: str,
        obligation_id: str,
        request: PaymentRequest,
        today: date,
    ) -> ObligationPaymentResult:
        """
        Pay an obligation in full (default) or in part.

        A partial payment keeps the obligation pending with its amount
        reduced to the outstanding balance.
        """
        obligation = self.store.get_obligation(obligation_id, space_id)
        if obligation is None:
            raise NotFoundError("Obligación no encontrada")

        obligation_amount = parse_amount(obligation.amount)
        if obligation_amount is None or obligation_amount <= 0:
            raise ConflictError("Monto de obligación inválido.")

        requested = obligation_amount if request.payment_amount is None else parse_amount(request.payment_amount)
        if requested is None or requested <= 0:
            raise ValidationError("Monto de pago inválido.")
        payment_amount = min(requested, obligation_amount)

        payment_date = coerce_date(request.payment_date, today)
        description = (request.description or "").strip() or f"Pago de obligación: {obligation.title or 'Obligación'}"
        settlement = settle_obligation(obligation_amount, payment_amount)
        patch = {"status": PAID} if settlement.closes else {"status": PENDING, "amount": settlement.remaining}

        context = {"space_id": space_id, "obligation_id": obligation_id}
        with CompensationChain("confirm_obligation_payment", context) as chain:
            transaction = chain.step(
                "insert_transaction",
                lambda: self.store.insert_transaction(
                    Transaction(
                        id=None,
                        space_id=space_id,
                        type=EXPENSE,
                        amount=payment_amount,
                        description=description,
                        category=obligation.category or "Deudas",
                        date=payment_date,
                    )
                ),
                rollback=lambda created: self.store.delete_transaction(created.id, space_id),
            )
            updated = chain.step(
                "update_obligation",
                lambda: self.store.update_obligation(obligation_id, space_id, patch),
            )

        record_obligation_update("obligation_payment", "paid" if settlement.closes else "reduced")
        self.audit.record_event(
            space_id,
            "transaction",
            transaction.id,
            "create",
            after=transaction,
            metadata={"source": "obligation_confirm_payment", "obligation_id": obligation_id},
        )
        self.audit.record_event(
            space_id,
            "obligation",
            obligation_id,
            "update",
            before=obligation,
            after=updated,
            metadata={
                "payment_amount": payment_amount,
                "payment_date": payment_date,
                "transaction_id": transaction.id,
            },
        )

        return ObligationPaymentResult(obligation=updated, transaction=transaction, remaining=settlement.remaining)
