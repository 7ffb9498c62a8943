"""Pytest fixtures for testing"""

import dataclasses
import uuid
import pytest
from datetime import date, datetime, timezone
from typing import Any, Dict, Generator, List, Optional, Sequence
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finflow_core.api.dependencies import get_today
from finflow_core.api.main import create_app
from finflow_core.domain.exceptions import PersistenceError
from finflow_core.domain.models import AuditEvent, Debt, Obligation, RecurringRule, Transaction
from finflow_core.infrastructure.audit import AuditRecorder
from finflow_core.infrastructure.database.models import Base
from finflow_core.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TODAY = date(2024, 6, 1)
SPACE_ID = "space-personal"
OTHER_SPACE_ID = "space-family"


class InMemoryFinanceStore:
    """
    FinanceStore double backed by dicts.

    Add a method name to ``fail_on`` to make that call raise PersistenceError.
    ``calls`` records every write in order.
    """

    def __init__(self):
        self.debts: Dict[str, Debt] = {}
        self.obligations: Dict[str, Obligation] = {}
        self.transactions: Dict[str, Transaction] = {}
        self.rules: Dict[str, RecurringRule] = {}
        self.audit_events: List[AuditEvent] = []
        self.fail_on: set = set()
        self.calls: List[str] = []

    def _check(self, method: str) -> None:
        if method in self.fail_on:
            raise PersistenceError("simulated failure")

    def _write(self, method: str) -> None:
        self._check(method)
        self.calls.append(method)

    @staticmethod
    def _owned(table: Dict[str, Any], record_id: str, space_id: str):
        record = table.get(record_id)
        if record is None or record.space_id != space_id:
            return None
        return record

    def _patch(self, table: Dict[str, Any], record_id: str, space_id: str, patch: Dict[str, Any]):
        record = self._owned(table, record_id, space_id)
        if record is None:
            raise PersistenceError("Registro no encontrado.")
        table[record_id] = dataclasses.replace(record, **patch)
        return dataclasses.replace(table[record_id])

    def _insert(self, table: Dict[str, Any], record):
        created = dataclasses.replace(record, id=str(uuid.uuid4()))
        table[created.id] = created
        return dataclasses.replace(created)

    # Debts
    def add_debt(self, **fields) -> Debt:
        defaults = dict(
            id=None,
            space_id=SPACE_ID,
            name="Préstamo auto",
            total_amount=6000.0,
            monthly_payment=1000.0,
            remaining_installments=6,
            total_installments=12,
            category="Deudas",
            next_payment_date=date(2024, 1, 15),
        )
        defaults.update(fields)
        return self._insert(self.debts, Debt(**defaults))

    def get_debt(self, debt_id: str, space_id: str) -> Optional[Debt]:
        self._check("get_debt")
        record = self._owned(self.debts, debt_id, space_id)
        return dataclasses.replace(record) if record else None

    def update_debt(self, debt_id: str, space_id: str, patch: Dict[str, Any]) -> Debt:
        self._write("update_debt")
        return self._patch(self.debts, debt_id, space_id, patch)

    def insert_debt(self, debt: Debt) -> Debt:
        self._write("insert_debt")
        return self._insert(self.debts, debt)

    def delete_debt(self, debt_id: str, space_id: str) -> None:
        self._write("delete_debt")
        if self._owned(self.debts, debt_id, space_id):
            del self.debts[debt_id]

    # Obligations
    def add_obligation(self, **fields) -> Obligation:
        defaults = dict(
            id=None,
            space_id=SPACE_ID,
            title="Tarjeta Visa",
            amount=1000.0,
            due_date=date(2024, 1, 20),
            status="pending",
            category="Tarjetas",
        )
        defaults.update(fields)
        return self._insert(self.obligations, Obligation(**defaults))

    def get_obligation(self, obligation_id: str, space_id: str) -> Optional[Obligation]:
        self._check("get_obligation")
        record = self._owned(self.obligations, obligation_id, space_id)
        return dataclasses.replace(record) if record else None

    def list_open_obligations(self, space_id: str, statuses: Sequence[str], limit: int) -> List[Obligation]:
        self._check("list_open_obligations")
        rows = [o for o in self.obligations.values() if o.space_id == space_id and o.status in statuses]
        rows.sort(key=lambda o: o.due_date)
        return [dataclasses.replace(o) for o in rows[:limit]]

    def insert_obligation(self, obligation: Obligation) -> Obligation:
        self._write("insert_obligation")
        return self._insert(self.obligations, obligation)

    def update_obligation(self, obligation_id: str, space_id: str, patch: Dict[str, Any]) -> Obligation:
        self._write("update_obligation")
        return self._patch(self.obligations, obligation_id, space_id, patch)

    def delete_obligation(self, obligation_id: str, space_id: str) -> None:
        self._write("delete_obligation")
        if self._owned(self.obligations, obligation_id, space_id):
            del self.obligations[obligation_id]

    # Transactions
    def insert_transaction(self, transaction: Transaction) -> Transaction:
        self._write("insert_transaction")
        return self._insert(self.transactions, transaction)

    def insert_transactions(self, transactions: Sequence[Transaction]) -> List[Transaction]:
        self._write("insert_transactions")
        return [self._insert(self.transactions, t) for t in transactions]

    def delete_transaction(self, transaction_id: str, space_id: str) -> None:
        self._write("delete_transaction")
        if self._owned(self.transactions, transaction_id, space_id):
            del self.transactions[transaction_id]

    # Recurring rules
    def add_rule(self, **fields) -> RecurringRule:
        defaults = dict(
            id=None,
            space_id=SPACE_ID,
            type="expense",
            amount=50.0,
            description="Gimnasio",
            category="Salud",
            frequency="weekly",
            start_date=date(2024, 1, 1),
            next_run=date(2024, 5, 20),
            is_active=True,
        )
        defaults.update(fields)
        return self._insert(self.rules, RecurringRule(**defaults))

    def list_due_recurring_rules(self, space_id: str, today: date) -> List[RecurringRule]:
        self._check("list_due_recurring_rules")
        rows = [
            r for r in self.rules.values()
            if r.space_id == space_id and r.is_active and r.next_run <= today
        ]
        rows.sort(key=lambda r: r.next_run)
        return [dataclasses.replace(r) for r in rows]

    def update_recurring_rule(self, rule_id: str, space_id: str, patch: Dict[str, Any]) -> RecurringRule:
        self._write("update_recurring_rule")
        return self._patch(self.rules, rule_id, space_id, patch)

    # Audit
    def insert_audit_event(self, event: AuditEvent) -> AuditEvent:
        self._check("insert_audit_event")
        created = dataclasses.replace(event, id=str(uuid.uuid4()), created_at=datetime.now(timezone.utc))
        self.audit_events.append(created)
        return created

    def list_audit_events(self, space_id: str, limit: int = 20) -> List[AuditEvent]:
        rows = [e for e in reversed(self.audit_events) if e.space_id == space_id]
        return rows[:limit]


@pytest.fixture
def store() -> InMemoryFinanceStore:
    return InMemoryFinanceStore()


@pytest.fixture
def audit(store: InMemoryFinanceStore) -> AuditRecorder:
    return AuditRecorder(store)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database and a fixed today"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    return TestClient(app)
