"""
LLM客户端抽象基类

统一各平台的调用流程：参数整理 -> 平台调用(_complete) -> 错误归类 -> 空响应检查 -> 成本统计。
子类只需实现 _complete，并声明计费表与错误特征
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple, Type

from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from soulscribe.llm.exceptions import (
    APIKeyError,
    EmptyResponseError,
    LLMError,
    RateLimitError,
)


STRUCTURED_OUTPUT_INSTRUCTION = (
    "Respond ONLY with a single valid JSON object that conforms to this JSON schema. "
    "Do not wrap it in prose.\n<json_schema>\n{schema}\n</json_schema>"
)

# 仅限流错误自动重试(最多3次,指数退避)
retry_on_rate_limit = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(RateLimitError),
    reraise=True,
)


class Completion(NamedTuple):
    """平台调用的原始结果"""

    content: Optional[str]
    input_tokens: int
    output_tokens: int
    model: str


class BaseLLMClient(ABC):
    """
    LLM客户端抽象基类

    子类声明:
        provider_name: 日志与报错中使用的平台名
        DEFAULT_MODEL: 默认模型(同时作为计费表的兜底)
        PRICING: {模型: (输入单价, 输出单价)}，单位为每1k tokens
        ERROR_MARKERS: ((异常类型, (错误信息特征, ...)), ...)，按顺序匹配
    """

    provider_name: str = "LLM"
    DEFAULT_MODEL: str = ""
    PRICING: Dict[str, Tuple[float, float]] = {}
    CURRENCY: str = "$"
    ERROR_MARKERS: Sequence[Tuple[Type[LLMError], Tuple[str, ...]]] = ()
    # 无法精确计数时的粗略估计: 1 token ≈ N 字符
    CHARS_PER_TOKEN: int = 4

    def __init__(self, api_key: str, model: Optional[str] = None, **kwargs):
        """
        Args:
            api_key: API密钥
            model: 模型名称,为空时使用 DEFAULT_MODEL
            **kwargs: 其他配置(timeout, api_base等)

        Raises:
            APIKeyError: 未提供API密钥
        """
        if not api_key:
            raise APIKeyError(f"{self.provider_name} API密钥未配置")

        self.api_key = api_key
        self.model = model or self.DEFAULT_MODEL
        self.timeout = kwargs.get("timeout", 120)
        self.config = kwargs
        logger.info(f"初始化 {self.__class__.__name__}, 模型: {self.model}")

    @retry_on_rate_limit
    def generate(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 2000,
        top_p: Optional[float] = None,
        presence_penalty: Optional[float] = None,
        frequency_penalty: Optional[float] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """
        生成文本(核心接口)

        Args:
            messages: 对话历史,格式为 [{"role": "system|user|assistant", "content": "..."}],
                最后一条为本轮用户消息
            temperature: 温度参数,控制随机性
            max_tokens: 最大生成token数
            top_p: 核采样参数(可选)
            presence_penalty: 存在惩罚(可选,平台不支持时忽略)
            frequency_penalty: 频率惩罚(可选,平台不支持时忽略)
            **kwargs: 透传给平台SDK的参数(如结构化输出配置)

        Returns:
            {
                "content": str,
                "usage": {"input_tokens": int, "output_tokens": int, "total_tokens": int},
                "cost": float,
                "model": str,
            }

        Raises:
            APIKeyError: API密钥错误
            TokenLimitError: Token超限
            RateLimitError: 限流错误(已重试3次)
            EmptyResponseError: 返回内容为空
            LLMError: 其他错误
        """
        sampling = {
            name: value
            for name, value in (
                ("top_p", top_p),
                ("presence_penalty", presence_penalty),
                ("frequency_penalty", frequency_penalty),
            )
            if value is not None
        }

        logger.debug(f"调用{self.provider_name} API, 模型: {self.model}, 消息数: {len(messages)}")
        try:
            completion = self._complete(messages, temperature, max_tokens, sampling, **kwargs)
        except Exception as e:
            raise self._classify_error(e) from e

        if not completion.content or not completion.content.strip():
            raise EmptyResponseError(f"{self.provider_name} 返回了空内容")

        return self._build_result(completion)

    @abstractmethod
    def _complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: int,
        sampling: Dict[str, float],
        **kwargs,
    ) -> Completion:
        """调用平台SDK,返回原始结果(SDK异常直接抛出,由基类归类)"""

    def generate_structured(
        self,
        messages: List[Dict[str, str]],
        schema: Dict[str, Any],
        temperature: float = 0.4,
        max_tokens: int = 8192,
        **kwargs,
    ) -> Dict[str, Any]:
        """
        结构化输出生成(返回内容为符合schema的JSON字符串)

        默认实现将schema写入system指令;支持原生结构化输出的平台重写此方法
        """
        kwargs.pop("schema_name", None)
        instruction = STRUCTURED_OUTPUT_INSTRUCTION.format(
            schema=json.dumps(schema, ensure_ascii=False)
        )
        return self.generate(
            self._with_system_suffix(messages, instruction),
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )

    def count_tokens(self, text: str) -> int:
        """计算Token数量(默认按字符数粗略估计)"""
        return len(text) // self.CHARS_PER_TOKEN

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        """
        按计费表预估成本

        未收录的模型按 DEFAULT_MODEL 的单价计算
        """
        input_price, output_price = self.PRICING.get(
            self.model, self.PRICING.get(self.DEFAULT_MODEL, (0.0, 0.0))
        )
        return (input_tokens / 1000) * input_price + (output_tokens / 1000) * output_price

    def _build_result(self, completion: Completion) -> Dict[str, Any]:
        cost = self.estimate_cost(completion.input_tokens, completion.output_tokens)
        logger.info(
            f"{self.provider_name}生成成功, "
            f"输入: {completion.input_tokens} tokens, "
            f"输出: {completion.output_tokens} tokens, "
            f"成本: {self.CURRENCY}{cost:.6f}"
        )
        return {
            "content": completion.content,
            "usage": {
                "input_tokens": completion.input_tokens,
                "output_tokens": completion.output_tokens,
                "total_tokens": completion.input_tokens + completion.output_tokens,
            },
            "cost": cost,
            "model": completion.model,
        }

    def _classify_error(self, error: Exception) -> LLMError:
        """按错误信息特征将SDK异常归类为 LLMError 子类"""
        message = str(error).lower()
        for error_type, markers in self.ERROR_MARKERS:
            if any(marker in message for marker in markers):
                if error_type is RateLimitError:
                    logger.warning(f"{self.provider_name}限流: {error}")
                return error_type(f"{self.provider_name}: {error}")
        return LLMError(f"{self.provider_name} API调用失败: {error}")

    @staticmethod
    def _split_system(messages: List[Dict[str, str]]) -> Tuple[str, List[Dict[str, str]]]:
        """
        分离system消息与对话消息(多条system消息按顺序拼接)

        Returns:
            (system_text, other_messages)
        """
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        others = [m for m in messages if m["role"] != "system"]
        return "\n\n".join(system_parts), others

    @staticmethod
    def _with_system_suffix(
        messages: List[Dict[str, str]], suffix: str
    ) -> List[Dict[str, str]]:
        """在system消息末尾追加指令;无system消息时新建一条"""
        result = [dict(m) for m in messages]
        for msg in result:
            if msg["role"] == "system":
                msg["content"] = f"{msg['content']}\n\n{suffix}"
                return result
        return [{"role": "system", "content": suffix}] + result
