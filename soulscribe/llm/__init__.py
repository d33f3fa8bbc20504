"""
LLM接入层 - 提供统一的多平台LLM API调用接口

支持的平台:
- Google Gemini (gemini-2.5-pro, gemini-2.5-flash)
- OpenAI (gpt-4o, gpt-4o-mini)及OpenAI兼容接口
- Anthropic Claude (claude-sonnet-4-5, claude-haiku-4-5)
- 阿里通义千问 (qwen-max, qwen-plus)

核心功能:
- 统一的生成接口(含采样/惩罚参数)
- 结构化输出(JSON Schema)
- 限流自动重试
- 日志记录
"""

from soulscribe.llm.base import BaseLLMClient
from soulscribe.llm.openai_client import OpenAIClient
from soulscribe.llm.claude_client import ClaudeClient
from soulscribe.llm.qwen_client import QwenClient
from soulscribe.llm.gemini_client import GeminiClient
from soulscribe.llm.factory import LLMFactory, LLMConfig
from soulscribe.llm.exceptions import (
    LLMError,
    APIKeyError,
    TokenLimitError,
    RateLimitError,
    EmptyResponseError,
)

__all__ = [
    "BaseLLMClient",
    "OpenAIClient",
    "ClaudeClient",
    "QwenClient",
    "GeminiClient",
    "LLMFactory",
    "LLMConfig",
    "LLMError",
    "APIKeyError",
    "TokenLimitError",
    "RateLimitError",
    "EmptyResponseError",
]
