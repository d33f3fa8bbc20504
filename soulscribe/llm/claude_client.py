"""
Anthropic Claude客户端实现

支持的模型: claude-sonnet-4-5, claude-haiku-4-5, claude-3-5-haiku-20241022
"""

from loguru import logger
from anthropic import Anthropic

from soulscribe.llm.base import BaseLLMClient, Completion
from soulscribe.llm.exceptions import APIKeyError, RateLimitError, TokenLimitError


# Claude的temperature上限
MAX_TEMPERATURE = 1.0


class ClaudeClient(BaseLLMClient):
    """Anthropic Claude API客户端(不支持惩罚参数)"""

    provider_name = "Claude"
    DEFAULT_MODEL = "claude-haiku-4-5"
    PRICING = {
        "claude-sonnet-4-5": (0.003, 0.015),
        "claude-haiku-4-5": (0.001, 0.005),
        "claude-3-5-haiku-20241022": (0.0008, 0.004),
    }
    ERROR_MARKERS = (
        (RateLimitError, ("rate_limit", "429")),
        (APIKeyError, ("invalid x-api-key", "401")),
        (TokenLimitError, ("prompt is too long", "too many tokens")),
    )

    def __init__(self, api_key: str, model: str = None, **kwargs):
        super().__init__(api_key, model, **kwargs)
        self.client = Anthropic(api_key=api_key, timeout=self.timeout)

    def _complete(self, messages, temperature, max_tokens, sampling, **kwargs) -> Completion:
        dropped = [name for name in ("presence_penalty", "frequency_penalty") if sampling.pop(name, None) is not None]
        if dropped:
            logger.debug(f"Claude不支持 {', '.join(dropped)},已忽略")
        if temperature > MAX_TEMPERATURE:
            logger.debug(f"Claude temperature {temperature} 超过上限,截断为 {MAX_TEMPERATURE}")
            temperature = MAX_TEMPERATURE

        system, dialogue = self._split_system(messages)
        if system:
            sampling["system"] = system

        response = self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=dialogue,
            **sampling,
            **kwargs,
        )
        return Completion(
            content="".join(b.text for b in response.content if getattr(b, "text", None)),
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=response.model,
        )

    def count_tokens(self, text: str) -> int:
        """使用Claude的count_tokens API计数,失败时粗略估计"""
        try:
            result = self.client.messages.count_tokens(
                model=self.model,
                messages=[{"role": "user", "content": text}],
            )
            return result.input_tokens
        except Exception as e:
            logger.error(f"Token计数失败: {e}")
            return super().count_tokens(text)
