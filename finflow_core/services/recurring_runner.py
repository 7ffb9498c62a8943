"""Recurring rules runner - generates transactions for due rules"""

import logging
from datetime import date
from typing import List

from finflow_core.config import settings
from finflow_core.domain.models import RecurringRule, RecurringRunResult, Transaction
from finflow_core.domain.ports import FinanceStore
from finflow_core.domain.recurring import project_occurrences
from finflow_core.infrastructure.audit import AuditRecorder
from finflow_core.infrastructure.observability.metrics import (
    recurring_generated_counter,
    recurring_rule_failures_counter,
)
from finflow_core.services.compensation import CompensationChain

logger = logging.getLogger(__name__)


class RecurringRunner:
    """Catches up every active rule whose next_run is on or before today"""

    def __init__(
        self,
        store: FinanceStore,
        audit: AuditRecorder,
        guard: int = settings.recurring_catch_up_guard,
        description_suffix: str = settings.recurring_description_suffix,
    ):
        self.store = store
        self.audit = audit
        self.guard = guard
        self.description_suffix = description_suffix

    def run_due_recurring_rules(self, space_id: str, today: date) -> RecurringRunResult:
        """
        Generate missed occurrences for all due rules, one rule at a time.

        A rule whose writes fail is skipped for this run and keeps its
        next_run; the remaining rules are still processed.

        Raises:
            PersistenceError: due rules could not be listed
        """
        rules = self.store.list_due_recurring_rules(space_id, today)

        generated = 0
        updated_rules = 0
        for rule in rules:
            try:
                created = self._run_rule(space_id, rule, today)
            except Exception as e:
                recurring_rule_failures_counter.inc()
                logger.warning(
                    f"Recurring rule skipped: {e}",
                    extra={"space_id": space_id, "rule_id": rule.id, "error_type": type(e).__name__},
                )
                continue

            if created:
                generated += created
                updated_rules += 1

        recurring_generated_counter.inc(generated)
        self.audit.record_event(
            space_id,
            "recurring_runner",
            space_id,
            "system",
            metadata={
                "generated": generated,
                "updated_rules": updated_rules,
                "run_date": today,
            },
        )
        return RecurringRunResult(generated=generated, updated_rules=updated_rules)

    def _run_rule(self, space_id: str, rule: RecurringRule, today: date) -> int:
        projection = project_occurrences(rule, today, self.guard, self.description_suffix)
        if not projection.transactions:
            return 0

        context = {"space_id": space_id, "rule_id": rule.id}
        with CompensationChain("run_recurring_rule", context) as chain:
            created = chain.step(
                "insert_transactions",
                lambda: self.store.insert_transactions(projection.transactions),
                rollback=lambda rows: self._delete_transactions(space_id, rows),
            )
            chain.step(
                "update_recurring_rule",
                lambda: self.store.update_recurring_rule(rule.id, space_id, {"next_run": projection.next_run}),
            )
        return len(created)

    def _delete_transactions(self, space_id: str, transactions: List[Transaction]) -> None:
        for transaction in transactions:
            self.store.delete_transaction(transaction.id, space_id)
