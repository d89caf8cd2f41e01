import uuid

from sqlalchemy import JSON, Column, DateTime, Float, Index, String, Text
from sqlalchemy.dialects.postgresql import INET, JSONB
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
from sqlalchemy.types import CHAR, TypeDecorator

Base = declarative_base()


class GUID(TypeDecorator):
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PGUUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return value if dialect.name == "postgresql" else str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(value)
        except ValueError:
            return value


UUID_TYPE = GUID()
JSON_TYPE = JSON().with_variant(JSONB, "postgresql")
INET_TYPE = String(45).with_variant(INET, "postgresql")


class AuditLog(Base):
    """One row per AI run (success or classified failure)."""

    __tablename__ = "audit_logs"
    __table_args__ = (Index("ix_audit_logs_action_timestamp", "action", "timestamp"),)

    id = Column(UUID_TYPE, primary_key=True, default=uuid.uuid4)
    action = Column(String(64), nullable=False)
    scope = Column(String(50), nullable=False)
    context = Column(String(100))
    outcome = Column(String(50), nullable=False)
    provider = Column(String(50), nullable=False)
    model = Column(String(100))
    latency_ms = Column(Float)
    ip_address = Column(INET_TYPE)
    user_agent = Column(Text)
    new_value = Column(JSON_TYPE)
    audit_meta = Column("metadata", JSON_TYPE, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
