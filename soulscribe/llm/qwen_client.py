"""
阿里通义千问客户端实现

支持的模型: qwen-max, qwen-plus, qwen-turbo
"""

from typing import Any, Dict, List

import dashscope
from dashscope import Generation
from loguru import logger

from soulscribe.llm.base import BaseLLMClient, Completion
from soulscribe.llm.exceptions import APIKeyError, RateLimitError, TokenLimitError


class QwenClient(BaseLLMClient):
    """阿里通义千问API客户端"""

    provider_name = "通义千问"
    DEFAULT_MODEL = "qwen-max"
    PRICING = {
        "qwen-max": (0.0024, 0.0096),
        "qwen-plus": (0.0008, 0.002),
        "qwen-turbo": (0.0003, 0.0006),
    }
    CURRENCY = "¥"
    ERROR_MARKERS = (
        (RateLimitError, ("rate_limit", "throttling")),
        (APIKeyError, ("invalid api", "unauthorized")),
        (TokenLimitError, ("range of input length", "tokens exceed")),
    )
    # 暂无官方Token计数API
    CHARS_PER_TOKEN = 2

    def __init__(self, api_key: str, model: str = None, **kwargs):
        super().__init__(api_key, model, **kwargs)
        # dashscope使用全局配置
        dashscope.api_key = api_key

    def _complete(self, messages, temperature, max_tokens, sampling, **kwargs) -> Completion:
        if sampling.pop("frequency_penalty", None) is not None:
            logger.debug("通义千问不支持frequency_penalty,已忽略")

        response = Generation.call(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            result_format="message",
            **sampling,
            **kwargs,
        )
        if response.status_code != 200:
            raise RuntimeError(f"{response.code} {response.message}")

        return Completion(
            content=response.output.choices[0].message.content,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
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
        """JSON模式不接受schema,schema仍写入system指令"""
        return super().generate_structured(
            messages,
            schema,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
            **kwargs,
        )
