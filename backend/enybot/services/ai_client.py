"""Client for the AI core backend chat endpoint."""

from typing import Any, Dict, List, Optional
import httpx
import logging

from pydantic import ValidationError

from enybot.config import settings
from enybot.errors import bad_request, internal
from enybot.schemas import AIChatReply

logger = logging.getLogger(__name__)


class AIClient:
    """Issues one POST per user message; no retries."""

    CHAT_PATH = "/api/v1/chat"

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = (base_url if base_url is not None else settings.AI_BACKEND_URL).rstrip("/")
        self.timeout = timeout or settings.AI_BACKEND_TIMEOUT
        self.headers = {
            "Content-Type": "application/json",
            "User-Agent": "EnyBot-Backend/1.0",
        }

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}{self.CHAT_PATH}"

    async def chat(self, chat_history: List[Dict[str, str]], message: str) -> AIChatReply:
        """Send the conversation so far plus the new message; return the parsed reply."""
        if not self.base_url:
            raise internal("AI backend not configured")

        payload = {
            "chat_history": chat_history,
            "message": message,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.chat_url, json=payload, headers=self.headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"AI backend returned {e.response.status_code}: {e.response.text[:200]}")
            raise internal(f"AI backend returned {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"AI backend request failed: {e}")
            raise internal(str(e) or "AI backend request failed")

        return self.parse_reply(response)

    @staticmethod
    def parse_reply(response: httpx.Response) -> AIChatReply:
        """Extract the `data` envelope; a missing or malformed one is a bad request."""
        try:
            body: Any = response.json()
        except ValueError:
            logger.error("AI backend returned a non-JSON body")
            raise bad_request("Invalid AI response")

        data = body.get("data") if isinstance(body, dict) else None
        if not data:
            logger.error(f"AI backend response missing data: {str(body)[:200]}")
            raise bad_request("Invalid AI response")

        try:
            return AIChatReply.model_validate(data)
        except ValidationError as e:
            logger.error(f"AI backend response has unexpected shape: {e}")
            raise bad_request("Invalid AI response")


def get_ai_client() -> AIClient:
    """Dependency returning a client bound to the configured backend."""
    return AIClient()
