"""
风格学习层

- StyleAnalyzer：合并语料并调用 LLM 提取风格档案
- StyleSession：会话内的语料、当前档案与并发状态
- models：风格档案、对话消息、拟人化开关等数据模型
"""
from soulscribe.style.models import (
    StyleProfile,
    StyleMetrics,
    KeyTrait,
    TraitImpact,
    ChatMessage,
    ChatRole,
    Feedback,
    HumanizationConfig,
)
from soulscribe.style.lens import AnalysisLens, ANALYSIS_LENSES, random_lens, fixed_lens, get_lens
from soulscribe.style.analyzer import StyleAnalyzer, combine_corpus, DOCUMENT_SEPARATOR
from soulscribe.style.session import StyleSession, Corpus, SessionState

__all__ = [
    "StyleProfile",
    "StyleMetrics",
    "KeyTrait",
    "TraitImpact",
    "ChatMessage",
    "ChatRole",
    "Feedback",
    "HumanizationConfig",
    "AnalysisLens",
    "ANALYSIS_LENSES",
    "random_lens",
    "fixed_lens",
    "get_lens",
    "StyleAnalyzer",
    "combine_corpus",
    "DOCUMENT_SEPARATOR",
    "StyleSession",
    "Corpus",
    "SessionState",
]
