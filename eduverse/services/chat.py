"""
Assistant pédagogique (API de chat compatible OpenAI).
"""
import logging
from typing import List, Optional

from openai import OpenAI, OpenAIError

from eduverse.core.config import settings
from eduverse.core.exceptions import ServiceUnavailableError, ValidationFailedError
from eduverse.schemas.chat import ChatMessage

logger = logging.getLogger(__name__)

NOT_CONFIGURED_REPLY = "AI is not configured. Please set AI_API_KEY."

SYSTEM_PROMPT = (
    "You are EduVerse's learning assistant. Help students understand course material, "
    "explain concepts step by step, and suggest how to practice. Answer in the language of the "
    "question. If you are not sure about something, say so."
)


class ChatAssistant:
    def __init__(self, client: Optional[OpenAI] = None):
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(settings.AI_API_KEY)

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=settings.AI_API_KEY, base_url=settings.AI_BASE_URL or None)
        return self._client

    @staticmethod
    def build_messages(history: List[ChatMessage], prompt: str) -> List[dict]:
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        for turn in history[-settings.AI_HISTORY_LIMIT:]:
            if not turn.content.strip():
                continue
            messages.append({
                "role": "assistant" if turn.role == "model" else "user",
                "content": turn.content,
            })
        messages.append({"role": "user", "content": prompt})
        return messages

    def reply(self, history: List[ChatMessage], prompt: str) -> str:
        prompt = (prompt or "").strip()
        if not prompt:
            raise ValidationFailedError("Prompt cannot be empty.")
        if not self.configured:
            return NOT_CONFIGURED_REPLY

        try:
            response = self._get_client().chat.completions.create(
                model=settings.AI_MODEL,
                messages=self.build_messages(history, prompt),
                max_tokens=settings.AI_MAX_TOKENS,
                temperature=settings.AI_TEMPERATURE,
            )
        except OpenAIError as e:
            logger.error(f"Chat completion failed: {e}")
            raise ServiceUnavailableError("The assistant is unavailable right now. Please try again later.")

        return (response.choices[0].message.content or "").strip()


def get_chat_assistant() -> ChatAssistant:
    return ChatAssistant()
