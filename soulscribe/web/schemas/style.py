"""
风格分析相关的 Pydantic 模型

定义API请求和响应的数据格式
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


# ============ 请求模型 (Request Models) ============


class SubmitTextRequest(BaseModel):
    """提交粘贴文本请求"""

    text: str = Field(..., description="样本文本（至少50个字符）")


# ============ 响应模型 (Response Models) ============


class AnalysisResponse(BaseModel):
    """分析结果响应"""

    profile: Dict[str, Any] = Field(..., description="风格档案（camelCase）")
    doc_count: int = Field(..., description="语料中的文档数")
    lens: str = Field(..., description="本次分析使用的视角")
    truncated: bool = Field(False, description="样本是否被截断")
    usage: Dict[str, Any] = Field(default_factory=dict)
    cost: float = 0.0


class SessionStatusResponse(BaseModel):
    """会话状态响应"""

    state: str
    doc_count: int
    has_profile: bool
    persona_name: Optional[str] = None
    busy: List[str] = Field(default_factory=list)
    last_error: Optional[str] = None
    chat_turns: int = 0
