"""Data access layer for finance entities"""

import logging
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, Iterator, List, Optional, Sequence, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finflow_core.domain.exceptions import PersistenceError
from finflow_core.domain.models import AuditEvent, Debt, Obligation, RecurringRule, Transaction
from finflow_core.infrastructure.database.models import (
    AuditEventRecord,
    Base,
    DebtRecord,
    ObligationRecord,
    RecurringRuleRecord,
    TransactionRecord,
)

logger = logging.getLogger(__name__)

STORE_ERROR_MESSAGE = "No se pudo completar la operación en la base de datos."


class Repository:
    """Shared session handling: each write commits on its own"""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, step: str, commit: bool = True, refresh: Sequence[Base] = ()) -> Iterator[None]:
        """Commit and reload ``refresh`` records; on driver errors roll back and raise PersistenceError"""
        try:
            yield
            if commit:
                self.db.commit()
            for record in refresh:
                self.db.refresh(record)
        except SQLAlchemyError as e:
            self.db.rollback()
            # Driver text stays in the logs, not in the error surfaced to callers
            logger.error(f"{step} failed: {e}", extra={"step": step})
            raise PersistenceError(STORE_ERROR_MESSAGE, step=step) from e

    def _get(self, model: Type[Base], record_id: str, space_id: str):
        return (
            self.db.query(model)
            .filter(model.id == record_id, model.space_id == space_id)
            .first()
        )

    def _patch(self, model: Type[Base], record_id: str, space_id: str, patch: Dict[str, Any], step: str):
        # Reject the whole patch before touching the record
        for key in patch:
            if key in ("id", "space_id") or not hasattr(model, key):
                raise PersistenceError(f"Campo no actualizable: {key}", step=step)

        with self._guard(step, commit=False):
            record = self._get(model, record_id, space_id)
        if record is None:
            raise PersistenceError("Registro no encontrado.", step=step)

        with self._guard(step, refresh=[record]):
            for key, value in patch.items():
                setattr(record, key, value)
        return record

    def _delete(self, model: Type[Base], record_id: str, space_id: str, step: str) -> None:
        with self._guard(step):
            (
                self.db.query(model)
                .filter(model.id == record_id, model.space_id == space_id)
                .delete(synchronize_session=False)
            )


class DebtRepository(Repository):
    """Repository for debts"""

    def get_debt(self, debt_id: str, space_id: str) -> Optional[Debt]:
        with self._guard("get_debt", commit=False):
            record = self._get(DebtRecord, debt_id, space_id)
        return _to_debt(record) if record else None

    def update_debt(self, debt_id: str, space_id: str, patch: Dict[str, Any]) -> Debt:
        return _to_debt(self._patch(DebtRecord, debt_id, space_id, patch, "update_debt"))

    def insert_debt(self, debt: Debt) -> Debt:
        record = DebtRecord(
            space_id=debt.space_id,
            name=debt.name,
            total_amount=debt.total_amount,
            monthly_payment=debt.monthly_payment,
            remaining_installments=debt.remaining_installments,
            total_installments=debt.total_installments,
            category=debt.category,
            next_payment_date=debt.next_payment_date,
        )
        with self._guard("insert_debt", refresh=[record]):
            self.db.add(record)
        return _to_debt(record)

    def delete_debt(self, debt_id: str, space_id: str) -> None:
        self._delete(DebtRecord, debt_id, space_id, "delete_debt")


class ObligationRepository(Repository):
    """Repository for obligations"""

    def get_obligation(self, obligation_id: str, space_id: str) -> Optional[Obligation]:
        with self._guard("get_obligation", commit=False):
            record = self._get(ObligationRecord, obligation_id, space_id)
        return _to_obligation(record) if record else None

    def list_open_obligations(self, space_id: str, statuses: Sequence[str], limit: int) -> List[Obligation]:
        """Fetch obligations in the given statuses, earliest due first"""
        with self._guard("list_open_obligations", commit=False):
            records = (
                self.db.query(ObligationRecord)
                .filter(ObligationRecord.space_id == space_id, ObligationRecord.status.in_(list(statuses)))
                .order_by(ObligationRecord.due_date.asc())
                .limit(limit)
                .all()
            )
        return [_to_obligation(r) for r in records]

    def insert_obligation(self, obligation: Obligation) -> Obligation:
        record = ObligationRecord(
            space_id=obligation.space_id,
            extraction_id=obligation.extraction_id,
            title=obligation.title,
            amount=obligation.amount,
            due_date=obligation.due_date,
            status=obligation.status,
            category=obligation.category,
            minimum_payment=obligation.minimum_payment,
        )
        with self._guard("insert_obligation", refresh=[record]):
            self.db.add(record)
        return _to_obligation(record)

    def update_obligation(self, obligation_id: str, space_id: str, patch: Dict[str, Any]) -> Obligation:
        return _to_obligation(
            self._patch(ObligationRecord, obligation_id, space_id, patch, "update_obligation")
        )

    def delete_obligation(self, obligation_id: str, space_id: str) -> None:
        self._delete(ObligationRecord, obligation_id, space_id, "delete_obligation")


class TransactionRepository(Repository):
    """Repository for transactions"""

    def insert_transaction(self, transaction: Transaction) -> Transaction:
        return self.insert_transactions([transaction])[0]

    def insert_transactions(self, transactions: Sequence[Transaction]) -> List[Transaction]:
        """Insert a batch in a single commit"""
        records = [
            TransactionRecord(
                space_id=t.space_id,
                type=t.type,
                amount=t.amount,
                description=t.description,
                category=t.category,
                date=t.date,
            )
            for t in transactions
        ]
        with self._guard("insert_transactions", refresh=records):
            self.db.add_all(records)
        return [_to_transaction(r) for r in records]

    def delete_transaction(self, transaction_id: str, space_id: str) -> None:
        self._delete(TransactionRecord, transaction_id, space_id, "delete_transaction")


class RecurringRuleRepository(Repository):
    """Repository for recurring rules"""

    def list_due_recurring_rules(self, space_id: str, today: date) -> List[RecurringRule]:
        with self._guard("list_due_recurring_rules", commit=False):
            records = (
                self.db.query(RecurringRuleRecord)
                .filter(
                    RecurringRuleRecord.space_id == space_id,
                    RecurringRuleRecord.is_active.is_(True),
                    RecurringRuleRecord.next_run <= today,
                )
                .order_by(RecurringRuleRecord.next_run.asc())
                .all()
            )
        return [_to_rule(r) for r in records]

    def update_recurring_rule(self, rule_id: str, space_id: str, patch: Dict[str, Any]) -> RecurringRule:
        return _to_rule(self._patch(RecurringRuleRecord, rule_id, space_id, patch, "update_recurring_rule"))


class AuditEventRepository(Repository):
    """Repository for audit events"""

    def insert_audit_event(self, event: AuditEvent) -> AuditEvent:
        record = AuditEventRecord(
            space_id=event.space_id,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            action=event.action,
            before_data=event.before,
            after_data=event.after,
            event_metadata=event.metadata,
        )
        with self._guard("insert_audit_event", refresh=[record]):
            self.db.add(record)
        return _to_audit_event(record)

    def list_audit_events(self, space_id: str, limit: int = 20) -> List[AuditEvent]:
        """Fetch most recent audit events for a space"""
        with self._guard("list_audit_events", commit=False):
            records = (
                self.db.query(AuditEventRecord)
                .filter(AuditEventRecord.space_id == space_id)
                .order_by(AuditEventRecord.created_at.desc())
                .limit(limit)
                .all()
            )
        return [_to_audit_event(r) for r in records]


class SqlFinanceStore(
    DebtRepository,
    ObligationRepository,
    TransactionRepository,
    RecurringRuleRepository,
    AuditEventRepository,
):
    """All repositories over one session; implements FinanceStore"""


def _to_debt(record: DebtRecord) -> Debt:
    return Debt(
        id=record.id,
        space_id=record.space_id,
        name=record.name,
        total_amount=record.total_amount,
        monthly_payment=record.monthly_payment,
        remaining_installments=record.remaining_installments,
        total_installments=record.total_installments,
        category=record.category,
        next_payment_date=record.next_payment_date,
    )


def _to_obligation(record: ObligationRecord) -> Obligation:
    return Obligation(
        id=record.id,
        space_id=record.space_id,
        title=record.title,
        amount=record.amount,
        due_date=record.due_date,
        status=record.status,
        category=record.category,
        minimum_payment=record.minimum_payment,
        extraction_id=record.extraction_id,
    )


def _to_transaction(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=record.id,
        space_id=record.space_id,
        type=record.type,
        amount=record.amount,
        description=record.description,
        category=record.category,
        date=record.date,
    )


def _to_rule(record: RecurringRuleRecord) -> RecurringRule:
    return RecurringRule(
        id=record.id,
        space_id=record.space_id,
        type=record.type,
        amount=record.amount,
        description=record.description,
        category=record.category,
        frequency=record.frequency,
        start_date=record.start_date,
        next_run=record.next_run,
        is_active=record.is_active,
    )


def _to_audit_event(record: AuditEventRecord) -> AuditEvent:
    return AuditEvent(
        id=record.id,
        space_id=record.space_id,
        entity_type=record.entity_type,
        entity_id=record.entity_id,
        action=record.action,
        before=record.before_data,
        after=record.after_data,
        metadata=record.event_metadata or {},
        created_at=record.created_at,
    )
