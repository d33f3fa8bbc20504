"""
Google Gemini客户端实现(默认提供商)

支持的模型: gemini-2.5-pro, gemini-2.5-flash, gemini-2.5-flash-lite
"""

from typing import Any, Dict, List

from google import genai
from google.genai import types
from loguru import logger

from soulscribe.llm.base import BaseLLMClient, Completion
from soulscribe.llm.exceptions import APIKeyError, RateLimitError, TokenLimitError


# 标准角色名 -> Gemini角色名
ROLE_MAP = {"user": "user", "assistant": "model", "model": "model"}


class GeminiClient(BaseLLMClient):
    """Google Gemini API客户端"""

    provider_name = "Gemini"
    DEFAULT_MODEL = "gemini-2.5-flash"
    PRICING = {
        "gemini-2.5-pro": (0.00125, 0.01),
        "gemini-2.5-flash": (0.0003, 0.0025),
        "gemini-2.5-flash-lite": (0.0001, 0.0004),
    }
    ERROR_MARKERS = (
        (RateLimitError, ("429", "resource_exhausted")),
        (APIKeyError, ("api_key_invalid", "401", "403")),
        (TokenLimitError, ("exceeds the maximum number of tokens",)),
    )

    def __init__(self, api_key: str, model: str = None, **kwargs):
        super().__init__(api_key, model, **kwargs)
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=self.timeout * 1000),
        )

    def _complete(self, messages, temperature, max_tokens, sampling, **kwargs) -> Completion:
        # system消息映射为 system_instruction
        system_instruction, dialogue = self._split_system(messages)
        contents = [
            types.Content(
                role=ROLE_MAP.get(msg["role"], "user"),
                parts=[types.Part(text=msg["content"])],
            )
            for msg in dialogue
        ]
        config = types.GenerateContentConfig(
            system_instruction=system_instruction or None,
            temperature=temperature,
            max_output_tokens=max_tokens,
            **sampling,
            **kwargs,
        )

        response = self.client.models.generate_content(
            model=self.model, contents=contents, config=config
        )
        usage = response.usage_metadata
        return Completion(
            content=response.text,
            input_tokens=(usage.prompt_token_count or 0) if usage else 0,
            output_tokens=(usage.candidates_token_count or 0) if usage else 0,
            model=self.model,
        )

    def generate_structured(
        self,
        messages: List[Dict[str, str]],
        schema: Dict[str, Any],
        temperature: float = 0.4,
        max_tokens: int = 8192,
        **kwargs,
    ) -> Dict[str, Any]:
        """使用 response_json_schema 的原生结构化输出"""
        kwargs.pop("schema_name", None)
        return self.generate(
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
            response_mime_type="application/json",
            response_json_schema=schema,
            **kwargs,
        )

    def count_tokens(self, text: str) -> int:
        """使用Gemini的count_tokens API计数,失败时粗略估计"""
        try:
            return self.client.models.count_tokens(model=self.model, contents=text).total_tokens
        except Exception as e:
            logger.error(f"Token计数失败: {e}")
            return super().count_tokens(text)
