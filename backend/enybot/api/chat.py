"""Chatbot API endpoints: chat proxy, history, leads and escalations."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID
import logging

from enybot.auth import Identity, get_optional_identity
from enybot.database import get_db
from enybot.models import LeadStatus
from enybot.rbac import require_admin, require_login
from enybot.redis_client import RedisCache, get_cache
from enybot.schemas import (
    ChatRequest, LeadCreate, LeadAssign, LeadResponse,
    EscalationCreate, EscalationResponse
)
from enybot.services import chat_history, chatbot_service, escalation_service, lead_service
from enybot.services.ai_client import AIClient, get_ai_client

logger = logging.getLogger(__name__)
router = APIRouter()


def _lead(lead) -> dict:
    return LeadResponse.model_validate(lead).model_dump(by_alias=True, mode="json")


def _escalation(escalation) -> dict:
    return EscalationResponse.model_validate(escalation).model_dump(by_alias=True, mode="json")


# ============================================================================
# CHAT
# ============================================================================

@router.post("")
async def chat(
    payload: ChatRequest,
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_db),
    cache: RedisCache = Depends(get_cache),
    ai_client: AIClient = Depends(get_ai_client)
):
    """
    Send a message to the AI core backend.

    Logged-in users have their stored history forwarded and the new turns
    saved. Low-confidence answers create an escalation.
    """
    result = await chatbot_service.create_chat(
        db,
        cache,
        ai_client,
        user_id=identity.id if identity else None,
        message=payload.message,
        user_email=identity.email if identity else None,
    )
    return {
        "status": "success",
        "data": result.model_dump(by_alias=True, mode="json"),
    }


@router.get("/history")
async def get_history(
    identity: Identity = Depends(require_login),
    db: AsyncSession = Depends(get_db),
    cache: RedisCache = Depends(get_cache)
):
    history = await chat_history.get_chat_history(db, cache, identity.id)
    return {
        "status": "success",
        "data": history.model_dump(by_alias=True, mode="json"),
    }


@router.delete("/history")
async def clear_history(
    identity: Identity = Depends(require_login),
    db: AsyncSession = Depends(get_db),
    cache: RedisCache = Depends(get_cache)
):
    await chat_history.clear_chat_history(db, cache, identity.id)
    return {
        "status": "success",
        "message": "Chat history cleared",
    }


# ============================================================================
# LEADS
# ============================================================================

@router.post("/leads", status_code=status.HTTP_201_CREATED)
async def create_lead(
    payload: LeadCreate,
    db: AsyncSession = Depends(get_db)
):
    """Capture a prospect's contact and query."""
    lead = await lead_service.create_lead(db, payload.email, payload.query)
    return {
        "status": "success",
        "message": "Lead captured",
        "data": _lead(lead),
    }


@router.get("/leads")
async def list_leads(
    page: int = Query(1),
    limit: int = Query(10),
    lead_status: Optional[LeadStatus] = Query(None, alias="status"),
    current: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    leads = await lead_service.list_leads(db, page, limit, lead_status)
    return {
        "status": "success",
        "data": [_lead(lead) for lead in leads],
    }


@router.post("/leads/assign")
async def assign_lead(
    payload: LeadAssign,
    current: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Assign a lead to a staff member (admin only)."""
    lead = await lead_service.assign_lead(db, payload.lead_id, payload.user_id)
    return {
        "status": "success",
        "message": "Lead assigned successfully",
        "data": _lead(lead),
    }


# ============================================================================
# ESCALATIONS
# ============================================================================

@router.get("/escalations")
async def list_escalations(
    page: int = Query(1),
    limit: int = Query(10),
    current: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Paginated escalations, newest first (admin only)."""
    escalations = await escalation_service.list_escalations(db, page, limit)
    return {
        "status": "success",
        "data": [_escalation(e) for e in escalations],
    }


@router.get("/escalations/{escalation_id}")
async def get_escalation(
    escalation_id: UUID,
    current: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    escalation = await escalation_service.get_escalation(db, escalation_id)
    return {
        "status": "success",
        "data": _escalation(escalation),
    }


@router.post("/escalations", status_code=status.HTTP_201_CREATED)
async def escalate(
    payload: EscalationCreate,
    db: AsyncSession = Depends(get_db)
):
    """Escalate a query to human support."""
    escalation = await escalation_service.create_escalation(db, payload.query, payload.user_email)
    return {
        "status": "success",
        "message": "Query escalated",
        "data": _escalation(escalation),
    }
