"""Fire-and-forget audit trail of writes made by the reconciliation services"""

import dataclasses
import logging
from datetime import date, datetime
from typing import Any, Dict, Optional

from finflow_core.domain.models import AuditEvent
from finflow_core.domain.ports import FinanceStore
from finflow_core.infrastructure.observability.metrics import audit_failure_counter

logger = logging.getLogger(__name__)


def snapshot(value: Any) -> Any:
    """JSON-safe copy of a dataclass, dict or scalar for the audit columns"""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)
    if isinstance(value, dict):
        return {key: snapshot(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [snapshot(item) for item in value]
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


class AuditRecorder:
    """Writes audit events; storage failures are logged and never propagated"""

    def __init__(self, store: FinanceStore):
        self.store = store

    def record_event(
        self,
        space_id: str,
        entity_type: str,
        entity_id: Optional[str],
        action: str,
        before: Any = None,
        after: Any = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = AuditEvent(
            space_id=space_id,
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
            before=snapshot(before),
            after=snapshot(after),
            metadata=snapshot(metadata or {}),
        )
        try:
            self.store.insert_audit_event(event)
        except Exception as e:
            audit_failure_counter.inc()
            logger.warning(
                f"Audit event insert failed: {e}",
                extra={
                    "space_id": space_id,
                    "entity_type": entity_type,
                    "entity_id": event.entity_id,
                    "action": action,
                },
            )
