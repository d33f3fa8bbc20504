"""
核心层 - 提示词模板管理
"""
from soulscribe.core.prompt_manager import PromptManager, MIN_KEY_TRAITS

__all__ = ["PromptManager", "MIN_KEY_TRAITS"]
