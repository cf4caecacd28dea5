"""Lead capture and assignment."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from enybot.errors import not_found, wrap
from enybot.models import Lead, LeadStatus
from enybot.services.pagination import validate_page

logger = logging.getLogger(__name__)


async def create_lead(db: AsyncSession, email: str, query: str) -> Lead:
    try:
        lead = Lead(email=email.lower(), query=query, status=LeadStatus.NEW.value)
        db.add(lead)
        await db.commit()
        await db.refresh(lead)

        logger.info(f"Lead captured: {email}")
        return lead
    except Exception as e:
        await db.rollback()
        logger.error(f"Lead save error: {e}")
        raise wrap(e, "Failed to save lead")


async def get_lead(db: AsyncSession, lead_id: UUID) -> Lead:
    result = await db.execute(select(Lead).where(Lead.id == lead_id))
    lead = result.scalar_one_or_none()
    if not lead:
        raise not_found("Lead not found")
    return lead


async def list_leads(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    status: Optional[LeadStatus] = None
) -> List[Lead]:
    try:
        offset = validate_page(page, limit)
        query = select(Lead)
        if status:
            query = query.where(Lead.status == LeadStatus(status).value)
        result = await db.execute(
            query.order_by(Lead.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all())
    except Exception as e:
        logger.error(f"Leads retrieval error: {e}")
        raise wrap(e, "Failed to retrieve leads")


async def assign_lead(db: AsyncSession, lead_id: UUID, user_id: str) -> Lead:
    """Assign a lead to a staff member. The prior status is not checked."""
    try:
        lead = await get_lead(db, lead_id)
        lead.assigned_to = str(user_id)
        lead.status = LeadStatus.ASSIGNED.value
        await db.commit()
        await db.refresh(lead)

        logger.info(f"Lead {lead_id} assigned to user {user_id}")
        return lead
    except Exception as e:
        await db.rollback()
        logger.error(f"Assign lead error: {e}")
        raise wrap(e, "Failed to assign lead")
