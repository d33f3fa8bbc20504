"""
OpenAI客户端实现

支持的模型: gpt-4o, gpt-4o-mini, gpt-4.1, gpt-4.1-mini
"""

from typing import Any, Dict, List

import tiktoken
from loguru import logger
from openai import OpenAI

from soulscribe.llm.base import BaseLLMClient, Completion
from soulscribe.llm.exceptions import APIKeyError, RateLimitError, TokenLimitError


class OpenAIClient(BaseLLMClient):
    """OpenAI API客户端"""

    provider_name = "OpenAI"
    DEFAULT_MODEL = "gpt-4o-mini"
    # 美元/1k tokens
    PRICING = {
        "gpt-4o": (0.0025, 0.01),
        "gpt-4o-mini": (0.00015, 0.0006),
        "gpt-4.1": (0.002, 0.008),
        "gpt-4.1-mini": (0.0004, 0.0016),
    }
    ERROR_MARKERS = (
        (RateLimitError, ("rate_limit", "429")),
        (APIKeyError, ("invalid_api_key", "401")),
        (TokenLimitError, ("maximum context length",)),
    )

    def __init__(self, api_key: str, model: str = None, **kwargs):
        super().__init__(api_key, model, **kwargs)
        self.client = OpenAI(
            api_key=api_key,
            base_url=kwargs.get("api_base") or "https://api.openai.com/v1",
            timeout=self.timeout,
        )
        self._encoding = None

    def _complete(self, messages, temperature, max_tokens, sampling, **kwargs) -> Completion:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            **sampling,
            **kwargs,
        )
        usage = response.usage
        return Completion(
            content=response.choices[0].message.content,
            input_tokens=usage.prompt_tokens,
            output_tokens=usage.completion_tokens,
            model=response.model,
        )

    def generate_structured(
        self,
        messages: List[Dict[str, str]],
        schema: Dict[str, Any],
        temperature: float = 0.4,
        max_tokens: int = 8192,
        **kwargs,
    ) -> Dict[str, Any]:
        """使用 json_schema 响应格式的原生结构化输出"""
        response_format = {
            "type": "json_schema",
            "json_schema": {
                "name": kwargs.pop("schema_name", "structured_output"),
                "schema": schema,
                "strict": False,
            },
        }
        return self.generate(
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format=response_format,
            **kwargs,
        )

    def count_tokens(self, text: str) -> int:
        """使用tiktoken计算Token数量(编码器首次使用时加载)"""
        try:
            if self._encoding is None:
                try:
                    self._encoding = tiktoken.encoding_for_model(self.model)
                except KeyError:
                    logger.warning(f"模型 {self.model} 无对应编码器,使用cl100k_base")
                    self._encoding = tiktoken.get_encoding("cl100k_base")
            return len(self._encoding.encode(text))
        except Exception as e:
            logger.error(f"Token计数失败: {e}")
            return super().count_tokens(text)
