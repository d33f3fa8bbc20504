"""
LLM配置和工厂类

提供统一的配置管理和客户端创建接口
"""

import os
from typing import Dict, Optional, Tuple, Type

from loguru import logger
from pydantic import BaseModel, Field, field_validator

from soulscribe.llm.base import BaseLLMClient
from soulscribe.llm.claude_client import ClaudeClient
from soulscribe.llm.exceptions import APIKeyError
from soulscribe.llm.gemini_client import GeminiClient
from soulscribe.llm.openai_client import OpenAIClient
from soulscribe.llm.qwen_client import QwenClient


# 提供商 -> (客户端类, LLMConfig中的密钥字段)
PROVIDERS: Dict[str, Tuple[Type[BaseLLMClient], str]] = {
    "gemini": (GeminiClient, "gemini_api_key"),
    "openai": (OpenAIClient, "openai_api_key"),
    "claude": (ClaudeClient, "anthropic_api_key"),
    "qwen": (QwenClient, "dashscope_api_key"),
}

# 各提供商的默认模型: (分析模型, 对话模型)
DEFAULT_MODELS = {
    "gemini": ("gemini-2.5-pro", "gemini-2.5-flash"),
    "openai": ("gpt-4o", "gpt-4o-mini"),
    "claude": ("claude-sonnet-4-5", "claude-haiku-4-5"),
    "qwen": ("qwen-max", "qwen-plus"),
}

MODEL_ENV_VARS = {
    "gemini": "GEMINI_MODEL",
    "openai": "OPENAI_MODEL",
    "claude": "ANTHROPIC_MODEL",
    "qwen": "QIANWEN_MODEL",
}


class LLMConfig(BaseModel):
    """LLM配置模型"""

    provider: str = Field(default="gemini", description="LLM提供商: gemini/openai/claude/qwen")
    model: str = Field(default="gemini-2.5-flash", description="模型名称")

    gemini_api_key: Optional[str] = Field(default=None, description="Gemini API密钥")
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API密钥")
    openai_api_base: Optional[str] = Field(
        default="https://api.openai.com/v1",
        description="OpenAI兼容接口地址",
    )
    anthropic_api_key: Optional[str] = Field(default=None, description="Anthropic API密钥")
    dashscope_api_key: Optional[str] = Field(default=None, description="DashScope API密钥")

    timeout: int = Field(default=120, gt=0, description="API调用超时(秒)")

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        provider = v.lower().strip()
        if provider not in PROVIDERS:
            raise ValueError(
                f"Unknown LLM provider '{v}', expected one of: {', '.join(PROVIDERS)}"
            )
        return provider

    @property
    def api_key(self) -> Optional[str]:
        """当前提供商的API密钥"""
        return getattr(self, PROVIDERS[self.provider][1])

    @classmethod
    def from_env(cls, **kwargs) -> "LLMConfig":
        """
        从环境变量加载配置

        优先级: kwargs > 环境变量 > 默认值。未指定模型时使用提供商的模型环境变量,
        再退回到该提供商的对话模型
        """
        config_dict = {
            "provider": os.getenv("LLM_PROVIDER", "gemini"),
            "gemini_api_key": os.getenv("GEMINI_API_KEY"),
            "openai_api_key": os.getenv("OPENAI_API_KEY"),
            "openai_api_base": os.getenv("OPENAI_API_BASE", "https://api.openai.com/v1"),
            "anthropic_api_key": os.getenv("ANTHROPIC_API_KEY"),
            "dashscope_api_key": os.getenv("DASHSCOPE_API_KEY"),
        }
        config_dict.update({k: v for k, v in kwargs.items() if v is not None})

        provider = config_dict["provider"].lower().strip()
        if "model" not in config_dict and provider in DEFAULT_MODELS:
            config_dict["model"] = os.getenv(MODEL_ENV_VARS[provider], DEFAULT_MODELS[provider][1])

        return cls(**config_dict)


class LLMFactory:
    """
    LLM客户端工厂

    按 provider:model 缓存客户端,同一进程内复用
    """

    _clients: Dict[str, BaseLLMClient] = {}

    @classmethod
    def create_client(
        cls,
        config: Optional[LLMConfig] = None,
        provider: Optional[str] = None,
        **kwargs,
    ) -> BaseLLMClient:
        """
        创建LLM客户端

        Args:
            config: 配置对象(优先使用)
            provider: 提供商名称(当config为None时使用)
            **kwargs: 覆盖环境变量的配置项;api_key 为当前提供商密钥的简写

        Raises:
            ValueError: 未知提供商
            APIKeyError: API密钥未配置
        """
        if config is None:
            api_key = kwargs.pop("api_key", None)
            config = LLMConfig.from_env(provider=provider, **kwargs)
            if api_key and not config.api_key:
                setattr(config, PROVIDERS[config.provider][1], api_key)

        # 先校验密钥,缺失密钥时不返回缓存客户端
        if not config.api_key:
            raise APIKeyError(f"{config.provider} API密钥未配置")

        cache_key = f"{config.provider}:{config.model}"
        if cache_key in cls._clients:
            logger.debug(f"使用缓存的LLM客户端: {cache_key}")
            return cls._clients[cache_key]

        logger.info(f"创建LLM客户端: {config.provider}, 模型: {config.model}")
        client_cls = PROVIDERS[config.provider][0]
        client = client_cls(
            api_key=config.api_key,
            model=config.model,
            timeout=config.timeout,
            api_base=config.openai_api_base,
        )
        cls._clients[cache_key] = client
        return client

    @classmethod
    def clear_cache(cls) -> None:
        """清空客户端缓存"""
        cls._clients.clear()
        logger.info("已清空LLM客户端缓存")

    @staticmethod
    def default_models(provider: str) -> Tuple[str, str]:
        """
        获取提供商默认的 (分析模型, 对话模型)

        未知提供商返回 OpenAI 的默认值
        """
        return DEFAULT_MODELS.get(provider.lower().strip(), DEFAULT_MODELS["openai"])
