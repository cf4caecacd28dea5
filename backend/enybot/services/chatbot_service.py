"""
Chat orchestration.

Flow for one user message:
1. Load stored history (authenticated users only; guests send none)
2. Ask the AI core backend
3. Append the user/assistant turns to history (authenticated users only)
4. Escalate when confidence is below ESCALATION_CONFIDENCE_THRESHOLD

Escalation failures are logged and never fail the chat request.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from enybot.auth import GUEST_USER_ID
from enybot.config import settings
from enybot.errors import wrap
from enybot.redis_client import RedisCache, guest_reply_key
from enybot.schemas import AIChatReply, ChatResult
from enybot.services import chat_history
from enybot.services.ai_client import AIClient
from enybot.services.escalation_service import create_escalation

logger = logging.getLogger(__name__)


def is_guest(user_id: Optional[str]) -> bool:
    return not user_id or user_id == GUEST_USER_ID


async def _ask(
    cache: RedisCache,
    ai_client: AIClient,
    history: List[dict],
    message: str,
    guest: bool
) -> AIChatReply:
    use_cache = guest and settings.CACHE_GUEST_RESPONSES
    if use_cache:
        cached = await cache.get_json(guest_reply_key(message))
        if cached:
            logger.info(f"Cache hit for guest message: \"{message}\"")
            return AIChatReply.model_validate(cached)

    reply = await ai_client.chat(history, message)

    if use_cache:
        await cache.set_json(guest_reply_key(message), reply.model_dump(), settings.CHAT_CACHE_TTL)
    return reply


async def create_chat(
    db: AsyncSession,
    cache: RedisCache,
    ai_client: AIClient,
    user_id: Optional[str],
    message: str,
    user_email: Optional[str] = None
) -> ChatResult:
    """Proxy one message to the AI backend and record the outcome."""
    guest = is_guest(user_id)
    caller = GUEST_USER_ID if guest else user_id

    try:
        history = [] if guest else await chat_history.load_history_messages(db, user_id)

        logger.info(f"Sending to AI backend | user: {caller} | message: \"{message}\"")
        reply = await _ask(cache, ai_client, history, message, guest)

        if not guest:
            await chat_history.save_chat_history(
                db, cache, user_id, message, reply.response, reply.confidence_score
            )

        escalation_id = None
        if reply.confidence_score < settings.ESCALATION_CONFIDENCE_THRESHOLD:
            try:
                escalation = await create_escalation(
                    db,
                    query=message,
                    user_email=user_email or GUEST_USER_ID,
                    confidence=reply.confidence_score,
                    reason=reply.escalation_reason,
                )
                escalation_id = str(escalation.id)
            except Exception as e:
                logger.error(f"Failed to create escalation: {e}")

        return ChatResult(
            answer=reply.response,
            confidence=reply.confidence_score,
            escalated=reply.escalated or escalation_id is not None,
            escalation_id=escalation_id,
        )
    except Exception as e:
        logger.error(f"Chat proxy error: {e}")
        raise wrap(e, "Failed to proxy chat")
