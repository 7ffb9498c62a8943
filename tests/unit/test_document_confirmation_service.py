"""Unit tests for document confirmation"""

import pytest
from datetime import date
from finflow_core.domain.exceptions import PersistenceError, ValidationError
from finflow_core.domain.models import DocumentConfirmationInput
from finflow_core.services.document_confirmation import DocumentConfirmationService, debt_from_document

TODAY = date(2024, 6, 1)
SPACE_ID = "space-personal"


@pytest.fixture
def service(store, audit) -> DocumentConfirmationService:
    return DocumentConfirmationService(store, audit)


def make_input(**fields) -> DocumentConfirmationInput:
    values = dict(
        title="Resumen Visa",
        amount=1000.0,
        due_date=date(2024, 6, 10),
        category="Tarjetas",
        document_type="credit_card",
    )
    values.update(fields)
    return DocumentConfirmationInput(**values)


def test_obligation_only(store, service):
    """Test plain confirmation saves a pending obligation"""
    result = service.confirm_document(SPACE_ID, make_input(), TODAY)

    assert result.obligation.status == "pending"
    assert result.obligation.amount == 1000.0
    assert result.debt is None
    assert result.transaction is None
    assert result.remaining is None
    assert list(store.obligations) == [result.obligation.id]


def test_create_debt(store, service):
    """Test create_debt also saves the installment debt"""
    result = service.confirm_document(
        SPACE_ID,
        make_input(create_debt=True, total_installments=6, remaining_installments=4, minimum_payment=150.0),
        TODAY,
    )

    assert result.debt is not None
    assert result.debt.name == "Resumen Visa"
    assert result.debt.total_amount == 1000.0
    assert result.debt.total_installments == 6
    assert result.debt.remaining_installments == 4
    assert result.debt.monthly_payment == 150.0
    assert result.debt.next_payment_date == date(2024, 6, 10)
    assert result.debt.id in store.debts


def test_mark_paid_wins_over_create_debt(store, service):
    """Test mark_paid skips debt creation"""
    result = service.confirm_document(SPACE_ID, make_input(create_debt=True, mark_paid=True), TODAY)

    assert result.debt is None
    assert store.debts == {}
    assert result.obligation.status == "paid"
    assert result.remaining == 0.0


def test_mark_paid_records_settling_transaction(store, service):
    """Test mark_paid records the payment and closes the obligation"""
    result = service.confirm_document(
        SPACE_ID, make_input(mark_paid=True, payment_date=date(2024, 6, 5)), TODAY
    )

    assert result.transaction.type == "expense"
    assert result.transaction.amount == 1000.0
    assert result.transaction.date == date(2024, 6, 5)
    assert result.transaction.description == "Pago confirmado desde resumen: Resumen Visa"
    assert store.obligations[result.obligation.id].status == "paid"


def test_partial_payment_reduces_obligation(store, service):
    """Test partial payment leaves the obligation pending with the rest"""
    result = service.confirm_document(SPACE_ID, make_input(mark_paid=True, payment_amount=600), TODAY)

    assert result.remaining == 400.0
    stored = store.obligations[result.obligation.id]
    assert stored.status == "pending"
    assert stored.amount == 400.0
    assert result.transaction.date == TODAY


def test_debt_insert_failure_rolls_back_obligation(store, service):
    """Failing debt insert removes the obligation already written"""
    # mark_paid never creates a debt, so debt + obligation rollback is driven by insert_debt
    store.fail_on.add("insert_debt")

    with pytest.raises(PersistenceError) as exc_info:
        service.confirm_document(SPACE_ID, make_input(create_debt=True), TODAY)

    assert exc_info.value.step == "insert_debt"
    assert store.obligations == {}


def test_transaction_failure_removes_obligation(store, service):
    """Test failed payment insert removes the obligation"""
    store.fail_on.add("insert_transaction")

    with pytest.raises(PersistenceError):
        service.confirm_document(SPACE_ID, make_input(mark_paid=True), TODAY)

    assert store.obligations == {}
    assert store.transactions == {}
    assert store.calls == ["insert_obligation", "delete_obligation"]


@pytest.mark.parametrize("payment_amount", [0, -1, "abc", float("nan")])
def test_invalid_payment_amount_undoes_obligation(store, service, payment_amount):
    """Test invalid payment amount removes the obligation"""
    with pytest.raises(ValidationError):
        service.confirm_document(SPACE_ID, make_input(mark_paid=True, payment_amount=payment_amount), TODAY)

    assert store.obligations == {}
    assert store.transactions == {}


def test_obligation_update_failure_undoes_everything(store, service):
    """Test failed obligation update undoes payment and obligation"""
    store.fail_on.add("update_obligation")

    with pytest.raises(PersistenceError) as exc_info:
        service.confirm_document(SPACE_ID, make_input(mark_paid=True), TODAY)

    assert exc_info.value.step == "update_obligation"
    assert store.obligations == {}
    assert store.transactions == {}
    assert store.calls == [
        "insert_obligation",
        "insert_transaction",
        "delete_transaction",
        "delete_obligation",
    ]


def test_obligation_failure_writes_nothing(store, service):
    """Test failed obligation insert leaves nothing to undo"""
    store.fail_on.add("insert_obligation")

    with pytest.raises(PersistenceError):
        service.confirm_document(SPACE_ID, make_input(create_debt=True), TODAY)

    assert store.calls == []


def test_audit_events_for_created_records(store, service):
    """Test created records are audited with document metadata"""
    service.confirm_document(SPACE_ID, make_input(mark_paid=True, document_id="doc-1"), TODAY)

    actions = [(e.entity_type, e.action) for e in store.audit_events]
    assert actions == [("obligation", "create"), ("transaction", "create")]
    assert store.audit_events[0].metadata["document_id"] == "doc-1"


def test_debt_from_document_defaults():
    """Test defaults for a statement with no installment data"""
    debt = debt_from_document(SPACE_ID, make_input(category=""))

    assert debt.total_installments == 1
    assert debt.remaining_installments == 1
    assert debt.monthly_payment == 1000.0
    assert debt.category == "Deuda"


def test_debt_from_document_clamps_installments():
    """Test remaining installments are clamped to the total"""
    assert debt_from_document(SPACE_ID, make_input(total_installments=3, remaining_installments=9)).remaining_installments == 3
    assert debt_from_document(SPACE_ID, make_input(total_installments=3, remaining_installments=-2)).remaining_installments == 0
    assert debt_from_document(SPACE_ID, make_input(total_installments=0)).total_installments == 1


def test_debt_from_document_monthly_payment_precedence():
    """Test monthly payment, minimum payment and amount precedence"""
    explicit = make_input(monthly_payment=200.0, minimum_payment=100.0)
    non_positive = make_input(monthly_payment=0, minimum_payment=100.0)
    next_date = make_input(debt_next_payment_date=date(2024, 7, 1))

    assert debt_from_document(SPACE_ID, explicit).monthly_payment == 200.0
    assert debt_from_document(SPACE_ID, non_positive).monthly_payment == 1000.0
    assert debt_from_document(SPACE_ID, next_date).next_payment_date == date(2024, 7, 1)
