from types import SimpleNamespace

import httpx
import pytest
from openai import APIConnectionError

from eduverse.core.exceptions import ServiceUnavailableError, ValidationFailedError
from eduverse.main import app
from eduverse.schemas.chat import ChatMessage
from eduverse.services import chat as chat_service
from eduverse.services.chat import NOT_CONFIGURED_REPLY, SYSTEM_PROMPT, ChatAssistant, get_chat_assistant


class FakeCompletions:
    def __init__(self, reply="Une boucle `for` parcourt un itérable.", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=f"  {self.reply}\n")
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_unconfigured_assistant_returns_fixed_reply(monkeypatch):
    monkeypatch.setattr(chat_service.settings, "AI_API_KEY", None)
    assert ChatAssistant().reply([], "Hello") == NOT_CONFIGURED_REPLY


def test_empty_prompt_is_rejected():
    with pytest.raises(ValidationFailedError):
        ChatAssistant(client=_client(FakeCompletions())).reply([], "   ")


def test_history_is_mapped_and_trimmed(monkeypatch):
    monkeypatch.setattr(chat_service.settings, "AI_HISTORY_LIMIT", 2)
    history = [
        ChatMessage(role="user", content="first"),
        ChatMessage(role="model", content="answer"),
        ChatMessage(role="user", content=" "),
    ]

    messages = ChatAssistant.build_messages(history, "next")

    assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert messages[1:] == [
        {"role": "assistant", "content": "answer"},
        {"role": "user", "content": "next"},
    ]


def test_reply_strips_model_output():
    completions = FakeCompletions()
    reply = ChatAssistant(client=_client(completions)).reply([], "Explain for loops")
    assert reply == "Une boucle `for` parcourt un itérable."
    assert completions.calls[0]["messages"][-1] == {"role": "user", "content": "Explain for loops"}


def test_provider_errors_become_unavailable():
    error = APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    with pytest.raises(ServiceUnavailableError):
        ChatAssistant(client=_client(FakeCompletions(error=error))).reply([], "Hi")


def test_chat_endpoint(login, student):
    app.dependency_overrides[get_chat_assistant] = lambda: ChatAssistant(client=_client(FakeCompletions("Bonjour")))
    client = login(student)

    response = client.post("/api/v1/chat", json={"history": [{"role": "user", "content": "Salut"}],
                                                 "prompt": "Bonjour ?"})
    assert response.status_code == 200
    assert response.json() == {"response": "Bonjour"}

    assert client.post("/api/v1/chat", json={"prompt": ""}).status_code == 400
