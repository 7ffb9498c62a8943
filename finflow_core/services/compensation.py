"""Compensating writes for multi-step operations without a database transaction"""

import logging
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from finflow_core.domain.exceptions import PersistenceError
from finflow_core.infrastructure.observability.metrics import compensation_counter

T = TypeVar("T")

logger = logging.getLogger(__name__)


class CompensationChain:
    """
    Ordered list of committed steps and the inverse write for each.

    Usage:
        with CompensationChain("confirm_document") as chain:
            obligation = chain.step("insert_obligation", insert, rollback=delete)
            ...

    Leaving the block through an exception undoes the committed steps in
    reverse order, then re-raises. A rollback that fails is logged and the
    unwind carries on with the remaining steps.
    """

    def __init__(self, operation: str, context: Optional[Dict[str, Any]] = None):
        self.operation = operation
        self.context = context or {}
        self._committed: List[Tuple[str, Callable[[], Any]]] = []

    def __enter__(self) -> "CompensationChain":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.unwind(reason=str(exc))
        return False

    @property
    def committed_steps(self) -> List[str]:
        return [name for name, _ in self._committed]

    def step(
        self,
        name: str,
        commit: Callable[[], T],
        rollback: Optional[Callable[[T], Any]] = None,
    ) -> T:
        """Run ``commit``; on success remember ``rollback(result)`` for unwinding"""
        try:
            result = commit()
        except PersistenceError as e:
            if e.step is None:
                e.step = name
            raise

        if rollback is not None:
            self._committed.append((name, partial(rollback, result)))
        return result

    def unwind(self, reason: str = "") -> None:
        if not self._committed:
            return

        failed_steps = []
        while self._committed:
            name, undo = self._committed.pop()
            try:
                undo()
            except Exception as e:
                failed_steps.append(name)
                logger.warning(
                    f"Rollback of {name} failed: {e}",
                    extra={**self.context, "operation": self.operation, "step": name},
                )

        outcome = "incomplete" if failed_steps else "unwound"
        compensation_counter.labels(operation=self.operation, outcome=outcome).inc()
        logger.warning(
            "Operation rolled back",
            extra={
                **self.context,
                "operation": self.operation,
                "outcome": outcome,
                "failed_rollbacks": failed_steps,
                "reason": reason,
            },
        )
