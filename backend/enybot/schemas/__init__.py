"""Pydantic schemas for request/response validation."""

from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from uuid import UUID

from enybot.models import UserRole, MessageRole


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class CamelModel(BaseModel):
    """Accept and emit the camelCase field names the frontend uses."""
    model_config = ConfigDict(
        alias_generator=_camel,
        populate_by_name=True,
        from_attributes=True
    )


# Authentication Schemas
class RegisterRequest(BaseModel):
    """Registration request."""
    username: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    password: str = Field(..., min_length=6, max_length=64)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v


class LoginRequest(BaseModel):
    """Login request with email and password."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=64)


class UserResponse(CamelModel):
    """User information response. Never carries the password hash."""
    id: UUID
    username: str
    email: str
    phone: Optional[str] = None
    role: str
    profile_image: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserUpdate(CamelModel):
    """Profile fields a user may change."""
    username: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    profile_image: Optional[str] = Field(None, max_length=1024)


class RoleUpdate(BaseModel):
    role: UserRole


class AuthResponse(BaseModel):
    status: str = "success"
    message: str
    user: UserResponse
    token: str


# Chat Schemas
class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Message is required")
        return v


class AIChatReply(BaseModel):
    """The `data` object returned by the AI core backend."""
    response: str
    confidence_score: float
    escalated: bool = False
    escalation_reason: Optional[str] = None


class ChatResult(CamelModel):
    answer: str
    confidence: float
    escalated: bool
    escalation_id: Optional[str] = None


class ChatMessageResponse(BaseModel):
    content: str
    role: MessageRole
    confidence: Optional[float] = None
    timestamp: Optional[datetime] = None


class ChatHistoryResponse(CamelModel):
    user_id: str
    messages: List[ChatMessageResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Lead & Escalation Schemas
class LeadCreate(BaseModel):
    email: EmailStr
    query: str = Field(..., min_length=1)


class LeadAssign(CamelModel):
    lead_id: UUID
    user_id: str = Field(..., min_length=1)


class LeadResponse(CamelModel):
    id: UUID
    email: str
    query: str
    assigned_to: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EscalationCreate(CamelModel):
    query: str = Field(..., min_length=1)
    user_email: EmailStr


class EscalationResponse(CamelModel):
    id: UUID
    query: str
    user_email: str
    confidence: Optional[float] = None
    reason: Optional[str] = None
    context_used: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="extra_metadata")
    created_at: Optional[datetime] = None
