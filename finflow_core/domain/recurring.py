"""Recurring rule projection - materializes occurrences a rule still owes"""

from datetime import date
from typing import List

from finflow_core.config import settings
from finflow_core.domain.models import RecurringProjection, RecurringRule, Transaction
from finflow_core.utils.date_utils import advance_by_frequency


def project_occurrences(
    rule: RecurringRule,
    today: date,
    guard: int = settings.recurring_catch_up_guard,
    description_suffix: str = settings.recurring_description_suffix,
) -> RecurringProjection:
    """
    Build the transactions a rule owes up to and including today.

    Catch-up is bounded by ``guard`` occurrences per call; a rule further
    behind stays due and catches up on later runs.

    Example:
        weekly rule, next_run 52 weeks ago, guard 24
        -> 24 transactions, next_run advanced by 168 days
    """
    transactions: List[Transaction] = []
    cursor = rule.next_run

    while cursor <= today and len(transactions) < guard:
        transactions.append(
            Transaction(
                id=None,
                space_id=rule.space_id,
                type=rule.type,
                amount=rule.amount,
                description=f"{rule.description}{description_suffix}",
                category=rule.category,
                date=cursor,
            )
        )
        cursor = advance_by_frequency(cursor, rule.frequency)

    return RecurringProjection(transactions=transactions, next_run=cursor)
