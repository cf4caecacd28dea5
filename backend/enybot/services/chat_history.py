"""
Chat history access.

One ChatHistory row per user holds the ordered message list. Reads go
through the Redis cache (key ``chat_history:{userId}``); writes and
clears invalidate that entry.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.dialects.postgresql import JSONB, insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from enybot.config import settings
from enybot.errors import not_found, wrap
from enybot.models import ChatHistory, MessageRole
from enybot.redis_client import RedisCache, chat_history_key
from enybot.schemas import ChatHistoryResponse

logger = logging.getLogger(__name__)


async def _find(db: AsyncSession, user_id: str) -> Optional[ChatHistory]:
    result = await db.execute(
        select(ChatHistory).where(ChatHistory.user_id == str(user_id))
    )
    return result.scalar_one_or_none()


async def load_history_messages(db: AsyncSession, user_id: str) -> List[Dict[str, str]]:
    """Stored turns as {content, role} pairs, oldest first."""
    history = await _find(db, user_id)
    if not history:
        return []
    return [
        {"content": m["content"], "role": m["role"]}
        for m in (history.messages or [])
    ]


async def get_chat_history(
    db: AsyncSession,
    cache: RedisCache,
    user_id: str
) -> ChatHistoryResponse:
    """Cache-first read of a user's history; NOT_FOUND when none exists."""
    key = chat_history_key(user_id)
    try:
        cached = await cache.get_json(key)
        if cached:
            logger.info(f"Cache hit for chat history: {user_id}")
            return ChatHistoryResponse.model_validate(cached)

        history = await _find(db, user_id)
        if not history:
            raise not_found("No chat history found")

        response = ChatHistoryResponse.model_validate(history)
        await cache.set_json(key, response.model_dump(mode="json"), settings.CHAT_CACHE_TTL)

        logger.info(f"Chat history retrieved for user: {user_id}")
        return response
    except Exception as e:
        logger.error(f"Get chat history error: {e}")
        raise wrap(e, "Failed to fetch chat history")


async def save_chat_history(
    db: AsyncSession,
    cache: RedisCache,
    user_id: str,
    query: str,
    response: str,
    confidence: Optional[float]
) -> bool:
    """
    Append a user turn and an assistant turn, creating the row if needed.

    One upsert on the unique user_id; JSONB `||` appends to the stored list.
    """
    now = datetime.now(timezone.utc).isoformat()
    new_messages: List[Dict[str, Any]] = [
        {
            "content": query,
            "role": MessageRole.USER.value,
            "timestamp": now,
        },
        {
            "content": response,
            "role": MessageRole.ASSISTANT.value,
            "confidence": confidence,
            "timestamp": now,
        },
    ]

    try:
        stmt = pg_insert(ChatHistory).values(user_id=str(user_id), messages=new_messages)
        stmt = stmt.on_conflict_do_update(
            index_elements=[ChatHistory.user_id],
            set_={
                "messages": ChatHistory.messages.op("||", return_type=JSONB)(stmt.excluded.messages),
                "updated_at": func.now(),
            }
        )
        await db.execute(stmt)

        await db.commit()
        await cache.delete(chat_history_key(user_id))

        logger.info(f"Chat history updated for user: {user_id}")
        return True
    except Exception as e:
        await db.rollback()
        logger.error(f"Save chat history error: {e}")
        raise wrap(e, "Failed to save chat history")


async def clear_chat_history(db: AsyncSession, cache: RedisCache, user_id: str) -> bool:
    """Delete the stored history and its cache entry."""
    try:
        await db.execute(delete(ChatHistory).where(ChatHistory.user_id == str(user_id)))
        await db.commit()
        await cache.delete(chat_history_key(user_id))

        logger.info(f"Chat history cleared for user: {user_id}")
        return True
    except Exception as e:
        await db.rollback()
        logger.error(f"Clear chat history error: {e}")
        raise wrap(e, "Failed to clear chat history")
