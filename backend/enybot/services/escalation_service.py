"""Escalation records for low-confidence answers."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from enybot.errors import not_found, wrap
from enybot.models import Escalation
from enybot.services.pagination import validate_page

logger = logging.getLogger(__name__)


async def create_escalation(
    db: AsyncSession,
    query: str,
    user_email: str,
    confidence: Optional[float] = None,
    reason: Optional[str] = None
) -> Escalation:
    try:
        escalation = Escalation(
            query=query,
            user_email=user_email,
            confidence=confidence,
            reason=reason,
            context_used=[],
            extra_metadata={}
        )
        db.add(escalation)
        await db.commit()
        await db.refresh(escalation)

        logger.warning(f"Escalation created for {user_email} | reason: {reason}")
        return escalation
    except Exception as e:
        await db.rollback()
        logger.error(f"Escalation error: {e}")
        raise wrap(e, "Failed to escalate query")


async def list_escalations(db: AsyncSession, page: int = 1, limit: int = 10) -> List[Escalation]:
    """Newest first, at most `limit` records."""
    try:
        offset = validate_page(page, limit)
        result = await db.execute(
            select(Escalation)
            .order_by(Escalation.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        escalations = list(result.scalars().all())

        logger.info(f"Escalations retrieved: page {page}, limit {limit}")
        return escalations
    except Exception as e:
        logger.error(f"Escalations retrieval error: {e}")
        raise wrap(e, "Failed to retrieve escalations")


async def get_escalation(db: AsyncSession, escalation_id: UUID) -> Escalation:
    result = await db.execute(select(Escalation).where(Escalation.id == escalation_id))
    escalation = result.scalar_one_or_none()
    if not escalation:
        raise not_found("Escalation not found")
    return escalation
