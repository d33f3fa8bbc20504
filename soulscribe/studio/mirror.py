"""
风格镜像改写

将用户提供的文本改写为档案风格，保持原意，不回答文本内容
"""
from typing import Any, Dict

from loguru import logger

from soulscribe.core.prompt_manager import PromptManager
from soulscribe.exceptions import EmptyInputError, RewriteFailedError
from soulscribe.llm.base import BaseLLMClient
from soulscribe.style.models import StyleProfile


# 改写输出上限（字符数约为 token 数的 3-4 倍）
MAX_OUTPUT_TOKENS = 16384


class MirrorEditor:
    """风格改写器"""

    def __init__(self, llm_client: BaseLLMClient, temperature: float = 0.8):
        self.llm_client = llm_client
        self.temperature = temperature
        self.prompt_manager = PromptManager()

    def rewrite(self, profile: StyleProfile, text: str) -> Dict[str, Any]:
        """
        改写文本

        Args:
            profile: 风格档案（只读）
            text: 待改写文本

        Returns:
            {"content": "...", "source_chars": int, "usage": {...}, "cost": 0.01}

        Raises:
            EmptyInputError: 文本为空
            RewriteFailedError: 改写失败
        """
        if not text or not text.strip():
            raise EmptyInputError("text")

        messages = [
            {"role": "system", "content": self.prompt_manager.build_mirror_system_prompt(profile.system_prompt)},
            {"role": "user", "content": self.prompt_manager.generate_mirror_prompt(text)},
        ]

        logger.info(f"风格改写: {profile.persona_name}, 原文 {len(text)} 字符")

        try:
            response = self.llm_client.generate(
                messages=messages,
                temperature=self.temperature,
                max_tokens=min(MAX_OUTPUT_TOKENS, max(1024, len(text))),
            )
        except Exception as e:
            logger.error(f"风格改写失败: {e}")
            raise RewriteFailedError(str(e)) from e

        return {
            "content": response["content"].strip(),
            "source_chars": len(text),
            "usage": response.get("usage", {}),
            "cost": response.get("cost", 0),
        }
