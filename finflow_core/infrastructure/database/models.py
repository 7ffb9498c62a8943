"""SQLAlchemy ORM models for the finance tables"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, Numeric, Text, JSON, Index
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


def _money():
    return Numeric(12, 2, asdecimal=False)


class DebtRecord(Base):
    """Installment debt"""

    __tablename__ = "debts"

    id = Column(String(36), primary_key=True, default=_uuid)
    space_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    total_amount = Column(_money(), nullable=False)
    monthly_payment = Column(_money(), nullable=False)
    remaining_installments = Column(Integer, nullable=False)
    total_installments = Column(Integer, nullable=False)
    category = Column(Text, nullable=False)
    next_payment_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ObligationRecord(Base):
    """Bill or statement awaiting payment"""

    __tablename__ = "obligations"
    __table_args__ = (Index("idx_obligations_space_status_due", "space_id", "status", "due_date"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    space_id = Column(Text, nullable=False, index=True)
    extraction_id = Column(Text, nullable=True)
    title = Column(Text, nullable=False)
    amount = Column(_money(), nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    category = Column(Text, nullable=True)
    minimum_payment = Column(_money(), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class TransactionRecord(Base):
    """Income or expense movement"""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    space_id = Column(Text, nullable=False, index=True)
    type = Column(Text, nullable=False)
    amount = Column(_money(), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class RecurringRuleRecord(Base):
    """Recurring transaction schedule"""

    __tablename__ = "recurring_transactions"
    __table_args__ = (Index("idx_recurring_space_next_run", "space_id", "next_run"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    space_id = Column(Text, nullable=False, index=True)
    type = Column(Text, nullable=False)
    amount = Column(_money(), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(Text, nullable=False)
    frequency = Column(Text, nullable=False)
    start_date = Column(Date, nullable=False)
    next_run = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class AuditEventRecord(Base):
    """Activity log entry with before/after snapshots"""

    __tablename__ = "audit_events"
    __table_args__ = (Index("idx_audit_events_space_created", "space_id", "created_at"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    space_id = Column(Text, nullable=False)
    entity_type = Column(Text, nullable=False)
    entity_id = Column(Text, nullable=False)
    action = Column(Text, nullable=False)
    before_data = Column(JSON, nullable=True)
    after_data = Column(JSON, nullable=True)
    event_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
