"""Debt amortization - applies a single payment to an open debt"""

from datetime import date
from typing import Any, NamedTuple, Optional

from finflow_core.domain.exceptions import ConflictError, ValidationError
from finflow_core.domain.models import Debt, DebtPaymentPlan
from finflow_core.domain.money import parse_amount, round_money, to_number
from finflow_core.utils.date_utils import add_month


class ObligationSettlement(NamedTuple):
    closes: bool
    remaining: float


def settle_obligation(
    obligation_amount: Any,
    payment_amount: float,
    full_payment_ratio: float = 1.0,
) -> ObligationSettlement:
    """
    Decide whether a payment closes an obligation or only reduces it.

    A payment of at least ``full_payment_ratio`` of the amount closes it;
    anything smaller leaves the rest outstanding.
    """
    amount = to_number(obligation_amount)
    if payment_amount >= amount * full_payment_ratio:
        return ObligationSettlement(closes=True, remaining=0.0)
    return ObligationSettlement(closes=False, remaining=round_money(max(amount - payment_amount, 0.0)))


def default_payment_amount(debt: Debt) -> float:
    """Monthly payment when set, otherwise the whole outstanding balance"""
    monthly_payment = to_number(debt.monthly_payment)
    return monthly_payment if monthly_payment > 0 else to_number(debt.total_amount)


def apply_debt_payment(
    debt: Debt,
    requested_amount: Any,
    payment_date: date,
    today: Optional[date] = None,
) -> DebtPaymentPlan:
    """
    Compute the debt state after one payment.

    Rules:
    - A settled debt (total_amount <= 0) cannot take payments
    - The payment never exceeds the outstanding balance
    - A debt stored with 0 remaining installments still gets one virtual installment
    - Remaining installments never drop below 1 while balance remains
    - Next due date moves one month forward while balance remains,
      otherwise it closes on the payment date

    Raises:
        ConflictError: debt already settled
        ValidationError: payment amount missing, non-finite or not positive
    """
    current_total = to_number(debt.total_amount)
    if current_total <= 0:
        raise ConflictError("Esta deuda ya está saldada.")

    if requested_amount is None:
        requested_amount = default_payment_amount(debt)
    requested = parse_amount(requested_amount)
    if requested is None or requested <= 0:
        raise ValidationError("Monto de pago inválido.")

    payment_amount = min(requested, current_total)
    updated_total = round_money(max(current_total - payment_amount, 0.0))

    effective_remaining = max(int(to_number(debt.remaining_installments)), 1)
    updated_remaining = effective_remaining - 1
    if updated_total > 0 and updated_remaining < 1:
        updated_remaining = 1

    if updated_total > 0:
        next_payment_date = add_month(debt.next_payment_date, today)
    else:
        next_payment_date = payment_date

    return DebtPaymentPlan(
        payment_amount=payment_amount,
        updated_total=updated_total,
        updated_remaining_installments=updated_remaining,
        next_payment_date=next_payment_date,
    )
