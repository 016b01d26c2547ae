from fastapi import APIRouter, Depends

from eduverse.core.security import get_current_active_user
from eduverse.schemas.auth import CurrentUser
from eduverse.schemas.chat import ChatRequest, ChatResponse
from eduverse.services.chat import ChatAssistant, get_chat_assistant

router = APIRouter()


@router.post("", response_model=ChatResponse)
def chat(
    payload: ChatRequest,
    current_user: CurrentUser = Depends(get_current_active_user),
    assistant: ChatAssistant = Depends(get_chat_assistant),
):
    return ChatResponse(response=assistant.reply(payload.history, payload.prompt))
