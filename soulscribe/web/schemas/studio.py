"""
交互面相关的 Pydantic 模型
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from soulscribe.studio.generator import (
    DEFAULT_CREATIVITY,
    DEFAULT_WORDS,
    MAX_CREATIVITY,
    MAX_WORDS,
    MIN_CREATIVITY,
    MIN_WORDS,
)
from soulscribe.style.models import ChatMessage


# ============ 请求模型 ============


class SummonRequest(BaseModel):
    """风格召唤请求"""

    topic: str = Field(..., min_length=1, description="主题")
    word_count: int = Field(DEFAULT_WORDS, ge=MIN_WORDS, le=MAX_WORDS, description="目标词数")
    creativity: float = Field(DEFAULT_CREATIVITY, ge=MIN_CREATIVITY, le=MAX_CREATIVITY, description="采样温度")


class MirrorRequest(BaseModel):
    """风格改写请求"""

    text: str = Field(..., min_length=1, description="待改写文本")


class ChatRequest(BaseModel):
    """对话请求"""

    message: str = Field(..., min_length=1, description="用户消息")


class FeedbackRequest(BaseModel):
    """对话反馈请求"""

    positive: bool = Field(False, description="true 为正反馈（仅标签）")
    feedback: Optional[str] = Field(None, description="负反馈说明（负反馈时必填）")


# ============ 响应模型 ============


class GenerationResponse(BaseModel):
    """召唤 / 改写响应"""

    content: str
    word_count: Optional[int] = None
    usage: Dict[str, Any] = Field(default_factory=dict)
    cost: float = 0.0


class ChatResponse(BaseModel):
    """对话回复响应"""

    message: ChatMessage
    index: int
    regenerated: bool = False


class ChatHistoryResponse(BaseModel):
    """对话历史响应"""

    messages: List[ChatMessage] = Field(default_factory=list)
