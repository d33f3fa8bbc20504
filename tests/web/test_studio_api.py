"""
测试交互面 API 路由
"""
import asyncio

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from soulscribe.exceptions import (
    ChatFailedError,
    GenerationFailedError,
    MessageNotFoundError,
    NoProfileError,
    StaleResponseError,
)
from soulscribe.style.models import ChatMessage, ChatRole, Feedback, HumanizationConfig
from soulscribe.web.routers.studio import (
    chat,
    chat_feedback,
    chat_history,
    mirror,
    summon,
    update_humanization,
)
from soulscribe.web.schemas.studio import (
    ChatRequest,
    FeedbackRequest,
    MirrorRequest,
    SummonRequest,
)


class _DummyOrchestrator:
    def __init__(self):
        self.calls = []
        self.humanization = None

    def summon(self, topic, word_count, creativity):
        self.calls.append(("summon", topic, word_count, creativity))
        return {
            "content": "Rain again. Of course.",
            "word_count": 4,
            "target_words": word_count,
            "usage": {"total_tokens": 50},
            "cost": 0.001,
        }

    def rewrite(self, text):
        self.calls.append(("rewrite", text))
        return {"content": "Invoice? Fine. Received.", "source_chars": len(text), "usage": {}, "cost": 0.0}

    def chat(self, text):
        self.calls.append(("chat", text))
        return {"message": ChatMessage(role=ChatRole.MODEL, content="Whatever."), "index": 1}

    def chat_feedback(self, index, feedback=None, positive=False):
        self.calls.append(("feedback", index, feedback, positive))
        if positive:
            message = ChatMessage(role=ChatRole.MODEL, content="Whatever.", feedback=Feedback.POSITIVE)
            return {"message": message, "index": index, "regenerated": False}
        return {"message": ChatMessage(role=ChatRole.MODEL, content="Fine."), "index": index, "regenerated": True}

    def chat_history(self):
        return [
            ChatMessage(role=ChatRole.USER, content="hi"),
            ChatMessage(role=ChatRole.MODEL, content="Whatever."),
        ]

    def update_humanization(self, config):
        self.humanization = config
        return config


class _FailOrchestrator:
    def __init__(self, error):
        self.error = error

    def summon(self, *args):
        raise self.error

    def rewrite(self, text):
        raise self.error

    def chat(self, text):
        raise self.error

    def chat_feedback(self, *args):
        raise self.error


def test_summon_success():
    orch = _DummyOrchestrator()
    req = SummonRequest(topic="rain", word_count=120, creativity=1.1)

    result = asyncio.run(summon(request_data=req, orch=orch))

    assert result.content == "Rain again. Of course."
    assert result.word_count == 4
    assert orch.calls == [("summon", "rain", 120, 1.1)]


def test_summon_request_defaults_and_ranges():
    req = SummonRequest(topic="rain")
    assert req.word_count == 350
    assert req.creativity == 0.9

    with pytest.raises(ValidationError):
        SummonRequest(topic="rain", word_count=10)
    with pytest.raises(ValidationError):
        SummonRequest(topic="rain", creativity=3.0)
    with pytest.raises(ValidationError):
        SummonRequest(topic="")


def test_mirror_success():
    orch = _DummyOrchestrator()
    result = asyncio.run(mirror(request_data=MirrorRequest(text="Please confirm receipt."), orch=orch))

    assert result.content == "Invoice? Fine. Received."
    assert result.word_count == 3
    assert orch.calls == [("rewrite", "Please confirm receipt.")]


def test_chat_and_history():
    orch = _DummyOrchestrator()

    reply = asyncio.run(chat(request_data=ChatRequest(message="hi"), orch=orch))
    history = asyncio.run(chat_history(orch=orch))

    assert reply.index == 1
    assert reply.message.role == ChatRole.MODEL
    assert reply.regenerated is False
    assert [m.role for m in history.messages] == [ChatRole.USER, ChatRole.MODEL]


def test_feedback_positive_and_negative():
    orch = _DummyOrchestrator()

    liked = asyncio.run(chat_feedback(index=1, request_data=FeedbackRequest(positive=True), orch=orch))
    redo = asyncio.run(chat_feedback(index=1, request_data=FeedbackRequest(feedback="less smug"), orch=orch))

    assert liked.message.feedback == Feedback.POSITIVE
    assert liked.regenerated is False
    assert redo.regenerated is True
    assert orch.calls == [("feedback", 1, None, True), ("feedback", 1, "less smug", False)]


def test_update_humanization():
    orch = _DummyOrchestrator()
    config = HumanizationConfig.model_validate({"burstiness": False, "culturalContext": True})

    result = asyncio.run(update_humanization(config=config, orch=orch))

    assert result.cultural_context is True
    assert result.burstiness is False
    assert orch.humanization is config


@pytest.mark.parametrize("handler,kwargs", [
    (summon, {"request_data": SummonRequest(topic="rain")}),
    (mirror, {"request_data": MirrorRequest(text="x")}),
    (chat, {"request_data": ChatRequest(message="hi")}),
])
def test_no_profile_is_404(handler, kwargs):
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(handler(orch=_FailOrchestrator(NoProfileError()), **kwargs))
    assert exc_info.value.status_code == 404


@pytest.mark.parametrize("error,status_code", [
    (GenerationFailedError("503"), 502),
    (StaleResponseError("summon"), 409),
])
def test_summon_errors(error, status_code):
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(summon(request_data=SummonRequest(topic="rain"), orch=_FailOrchestrator(error)))
    assert exc_info.value.status_code == status_code


def test_feedback_errors():
    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(
            chat_feedback(
                index=7,
                request_data=FeedbackRequest(feedback="nope"),
                orch=_FailOrchestrator(MessageNotFoundError(7)),
            )
        )
    assert exc_info.value.status_code == 404

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(
            chat_feedback(
                index=1,
                request_data=FeedbackRequest(feedback="nope"),
                orch=_FailOrchestrator(ChatFailedError("timeout", regenerating=True)),
            )
        )
    assert exc_info.value.status_code == 502
