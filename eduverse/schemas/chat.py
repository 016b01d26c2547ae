from typing import List, Literal

from pydantic import Field

from eduverse.schemas.common import CamelModel


class ChatMessage(CamelModel):
    role: Literal["user", "model"]
    content: str


class ChatRequest(CamelModel):
    history: List[ChatMessage] = Field(default_factory=list)
    prompt: str


class ChatResponse(CamelModel):
    response: str
