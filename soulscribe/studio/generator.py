"""
风格召唤器

以风格档案为系统提示词，围绕用户给定主题一次性生成原创文本
"""
from typing import Any, Dict

from loguru import logger

from soulscribe.core.prompt_manager import PromptManager
from soulscribe.exceptions import EmptyInputError, GenerationFailedError, InputValidationError
from soulscribe.llm.base import BaseLLMClient
from soulscribe.style.models import StyleProfile


MIN_WORDS = 50
MAX_WORDS = 2000
DEFAULT_WORDS = 350

MIN_CREATIVITY = 0.0
MAX_CREATIVITY = 2.0
DEFAULT_CREATIVITY = 0.9


class StyleSummoner:
    """风格化生成器"""

    def __init__(self, llm_client: BaseLLMClient):
        """
        Args:
            llm_client: 生成用LLM客户端
        """
        self.llm_client = llm_client
        self.prompt_manager = PromptManager()

    def summon(
        self,
        profile: StyleProfile,
        topic: str,
        word_count: int = DEFAULT_WORDS,
        creativity: float = DEFAULT_CREATIVITY,
    ) -> Dict[str, Any]:
        """
        以档案风格生成一篇原创文本

        Args:
            profile: 风格档案（只读）
            topic: 主题
            word_count: 目标字数（仅作为提示，不强制）
            creativity: 采样温度

        Returns:
            {
                "content": "...",
                "word_count": 342,  # 实际输出词数
                "target_words": 350,
                "usage": {...},
                "cost": 0.01,
            }

        Raises:
            EmptyInputError: 主题为空
            InputValidationError: 字数或温度超出范围
            GenerationFailedError: 生成失败
        """
        if not topic or not topic.strip():
            raise EmptyInputError("topic")
        if not MIN_WORDS <= word_count <= MAX_WORDS:
            raise InputValidationError(
                f"word_count must be between {MIN_WORDS} and {MAX_WORDS}",
                details={"word_count": word_count},
            )
        if not MIN_CREATIVITY <= creativity <= MAX_CREATIVITY:
            raise InputValidationError(
                f"creativity must be between {MIN_CREATIVITY} and {MAX_CREATIVITY}",
                details={"creativity": creativity},
            )

        messages = [
            {"role": "system", "content": self.prompt_manager.build_summon_system_prompt(profile.system_prompt)},
            {"role": "user", "content": self.prompt_manager.generate_summon_prompt(topic, word_count)},
        ]

        logger.info(f"风格召唤: {profile.persona_name}, 主题={topic[:50]}, 目标 {word_count} 词")

        try:
            response = self.llm_client.generate(
                messages=messages,
                temperature=creativity,
                # 英文约 1.3 token/词，留出余量
                max_tokens=max(1024, word_count * 3),
            )
        except Exception as e:
            logger.error(f"风格召唤失败: {e}")
            raise GenerationFailedError(str(e)) from e

        content = response["content"].strip()
        actual_words = len(content.split())
        logger.info(f"风格召唤完成: {actual_words} 词")

        return {
            "content": content,
            "word_count": actual_words,
            "target_words": word_count,
            "usage": response.get("usage", {}),
            "cost": response.get("cost", 0),
        }
