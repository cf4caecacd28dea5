"""
SQLAlchemy ORM models.

Chat history is stored as one row per user with the ordered message list
kept in a JSONB column; every turn appends to that list.
"""

from sqlalchemy import Column, String, Float, Text, CheckConstraint
from sqlalchemy import TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.sql import func
from enum import Enum
import uuid

from enybot.database import Base


class UserRole(str, Enum):
    """Account roles, lowest to highest privilege."""
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class LeadStatus(str, Enum):
    NEW = "new"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


# ============================================================================
# USER
# ============================================================================

class User(Base):
    """User account."""
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(50), default="+123456789")
    role = Column(String(50), nullable=False, default=UserRole.USER.value)
    password_hash = Column(String(255), nullable=False)
    profile_image = Column(String(1024))
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin', 'super_admin')", name="chk_user_role"),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


# ============================================================================
# CHAT
# ============================================================================

class ChatHistory(Base):
    """Per-user conversation log."""
    __tablename__ = "chat_histories"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(String(64), nullable=False, unique=True, index=True)
    messages = Column(JSONB, nullable=False, default=list)
    # Each message: {"content": str, "role": "user"|"assistant",
    #                "confidence": float|None, "timestamp": iso8601}
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<ChatHistory(user_id='{self.user_id}', messages={len(self.messages or [])})>"


class Escalation(Base):
    """A query flagged for human follow-up."""
    __tablename__ = "escalations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    query = Column(Text, nullable=False)
    user_email = Column(String(255), nullable=False)
    confidence = Column(Float)
    reason = Column(Text)
    context_used = Column(JSONB, default=list)
    extra_metadata = Column("metadata", JSONB, default=dict)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), index=True)


class Lead(Base):
    """Prospect contact captured from the chat widget."""
    __tablename__ = "leads"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, index=True)
    query = Column(Text, nullable=False)
    assigned_to = Column(String(64))
    status = Column(String(50), nullable=False, default=LeadStatus.NEW.value)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "status IN ('new', 'assigned', 'in_progress', 'closed')",
            name="chk_lead_status"
        ),
    )
