"""Persistence operations the reconciliation services depend on"""

from datetime import date
from typing import Any, Dict, List, Optional, Protocol, Sequence

from finflow_core.domain.models import AuditEvent, Debt, Obligation, RecurringRule, Transaction


class FinanceStore(Protocol):
    """
    Space-scoped CRUD over debts, obligations, transactions and recurring rules.

    Every method takes the owning ``space_id``; reads never return another
    space's rows. Write failures raise PersistenceError.
    """

    def get_debt(self, debt_id: str, space_id: str) -> Optional[Debt]: ...

    def update_debt(self, debt_id: str, space_id: str, patch: Dict[str, Any]) -> Debt: ...

    def insert_debt(self, debt: Debt) -> Debt: ...

    def delete_debt(self, debt_id: str, space_id: str) -> None: ...

    def get_obligation(self, obligation_id: str, space_id: str) -> Optional[Obligation]: ...

    def list_open_obligations(
        self, space_id: str, statuses: Sequence[str], limit: int
    ) -> List[Obligation]: ...

    def insert_obligation(self, obligation: Obligation) -> Obligation: ...

    def update_obligation(
        self, obligation_id: str, space_id: str, patch: Dict[str, Any]
    ) -> Obligation: ...

    def delete_obligation(self, obligation_id: str, space_id: str) -> None: ...

    def insert_transaction(self, transaction: Transaction) -> Transaction: ...

    def insert_transactions(self, transactions: Sequence[Transaction]) -> List[Transaction]: ...

    def delete_transaction(self, transaction_id: str, space_id: str) -> None: ...

    def list_due_recurring_rules(self, space_id: str, today: date) -> List[RecurringRule]: ...

    def update_recurring_rule(
        self, rule_id: str, space_id: str, patch: Dict[str, Any]
    ) -> RecurringRule: ...

    def insert_audit_event(self, event: AuditEvent) -> AuditEvent: ...

    def list_audit_events(self, space_id: str, limit: int = 20) -> List[AuditEvent]: ...
