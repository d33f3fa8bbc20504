"""
流程编排器

管理一次会话的完整流程：提交样本 -> 提取校验 -> 累积语料 -> 重新分析 -> 交互使用
"""
from typing import Any, Dict, List, Optional

from loguru import logger

from soulscribe.document.extractor import SourceDocument, TextExtractor
from soulscribe.exceptions import MessageNotFoundError, SoulScribeError
from soulscribe.llm.base import BaseLLMClient
from soulscribe.studio.generator import StyleSummoner, DEFAULT_WORDS, DEFAULT_CREATIVITY
from soulscribe.studio.mirror import MirrorEditor
from soulscribe.studio.tester import StyleTester, DEFAULT_WINDOW
from soulscribe.style.analyzer import StyleAnalyzer
from soulscribe.style.models import ChatMessage, HumanizationConfig, StyleProfile
from soulscribe.style.session import SessionState, StyleSession


# 交互面名称（同一交互面不允许重叠请求）
SURFACE_ANALYSIS = "analysis"
SURFACE_SUMMON = "summon"
SURFACE_MIRROR = "mirror"
SURFACE_CHAT = "chat"


class StudioOrchestrator:
    """会话编排器"""

    def __init__(
        self,
        analysis_client: BaseLLMClient,
        chat_client: BaseLLMClient,
        session: Optional[StyleSession] = None,
        extractor: Optional[TextExtractor] = None,
        analyzer: Optional[StyleAnalyzer] = None,
        chat_window: int = DEFAULT_WINDOW,
    ):
        """
        初始化编排器

        Args:
            analysis_client: 分析用LLM客户端（高能力模型）
            chat_client: 召唤/改写/对话用LLM客户端（低延迟模型）
            session: 会话上下文，None 时新建
            extractor: 文本提取器，None 时使用默认配置
            analyzer: 风格分析器，None 时基于 analysis_client 创建
            chat_window: 对话携带的历史消息上限
        """
        self.analysis_client = analysis_client
        self.chat_client = chat_client
        self.session = session or StyleSession()
        self.extractor = extractor or TextExtractor()
        self.analyzer = analyzer or StyleAnalyzer(analysis_client)
        self.summoner = StyleSummoner(chat_client)
        self.mirror = MirrorEditor(chat_client)
        self.chat_window = chat_window

        self.humanization = HumanizationConfig()
        self._tester: Optional[StyleTester] = None

    # ========== 分析 ==========

    def submit_text(self, text: str) -> Dict[str, Any]:
        """
        提交粘贴文本并重新分析整份语料

        Returns:
            {
                "profile": StyleProfile,
                "doc_count": 2,
                "lens": "PSYCHOLINGUIST",
                "truncated": false,
                "usage": {...},
                "cost": 0.01,
            }

        Raises:
            SampleTooShortError: 文本过短（不发起任何网络调用）
            AnalysisFailedError: 分析失败
            SurfaceBusyError: 已有分析在进行
            StaleResponseError: 分析期间会话被重置
        """
        with self.session.begin(SURFACE_ANALYSIS) as token:
            sample = self._extract(lambda: self.extractor.extract_text(text), token)
            return self._ingest(sample, token)

    def submit_document(self, document: SourceDocument) -> Dict[str, Any]:
        """
        提交文档（PDF / 文本文件）并重新分析整份语料

        Raises:
            UnsupportedFormatError: 不支持的格式
            DocumentUnreadableError: 文档损坏或加密
            其余同 submit_text
        """
        with self.session.begin(SURFACE_ANALYSIS) as token:
            self.session.mark_state(SessionState.READING, token)
            sample = self._extract(lambda: self.extractor.extract(document), token)
            return self._ingest(sample, token)

    def _extract(self, extract, token: int) -> str:
        try:
            return extract()
        except SoulScribeError as e:
            self.session.mark_state(SessionState.ERROR, token, e.message)
            raise

    def _ingest(self, sample: str, token: int) -> Dict[str, Any]:
        corpus = self.session.append_sample(sample, token)
        logger.info(f"语料已追加: 第 {len(corpus)} 份文档, {len(sample)} 字符")

        self.session.mark_state(SessionState.ANALYZING, token)
        try:
            result = self.analyzer.analyze(corpus)
        except SoulScribeError as e:
            self.session.mark_state(SessionState.ERROR, token, e.message)
            raise

        profile = result["profile"]
        self.session.commit_profile(profile, token)
        self._tester = None

        return {
            "profile": profile,
            "doc_count": len(corpus),
            "lens": result["lens"].name,
            "truncated": result["truncated"],
            "usage": result["usage"],
            "cost": result["cost"],
        }

    # ========== 会话 ==========

    def reset(self):
        """清空语料、档案与对话"""
        self.session.reset()
        self._tester = None

    def status(self) -> Dict[str, Any]:
        profile = self.session.profile
        return {
            "state": self.session.state.value,
            "doc_count": len(self.session.corpus),
            "has_profile": profile is not None,
            "persona_name": profile.persona_name if profile else None,
            "busy": self.session.busy_surfaces,
            "last_error": self.session.last_error,
            "chat_turns": len(self._tester.history) if self._tester else 0,
        }

    def export_system_prompt(self) -> str:
        return self.session.export_system_prompt()

    # ========== 交互 ==========

    def summon(
        self,
        topic: str,
        word_count: int = DEFAULT_WORDS,
        creativity: float = DEFAULT_CREATIVITY,
    ) -> Dict[str, Any]:
        """按主题生成（不影响对话历史）"""
        profile = self.session.require_profile()
        with self.session.begin(SURFACE_SUMMON) as token:
            result = self.summoner.summon(profile, topic, word_count, creativity)
            self.session.ensure_current(token, SURFACE_SUMMON)
            return result

    def rewrite(self, text: str) -> Dict[str, Any]:
        """风格改写（不影响对话历史）"""
        profile = self.session.require_profile()
        with self.session.begin(SURFACE_MIRROR) as token:
            result = self.mirror.rewrite(profile, text)
            self.session.ensure_current(token, SURFACE_MIRROR)
            return result

    def chat(self, text: str) -> Dict[str, Any]:
        """
        发送对话消息

        Returns:
            {"message": ChatMessage, "index": int}
        """
        profile = self.session.require_profile()
        with self.session.begin(SURFACE_CHAT) as token:
            tester = self._tester_for(profile)
            reply = tester.send(text)
            self.session.ensure_current(token, SURFACE_CHAT)
            return {"message": reply, "index": len(tester.history) - 1}

    def chat_feedback(
        self,
        index: int,
        feedback: Optional[str] = None,
        positive: bool = False,
    ) -> Dict[str, Any]:
        """
        对第 index 条回复给出反馈

        Args:
            index: 模型回复在历史中的位置
            feedback: 负反馈的文字说明
            positive: True 为正反馈（仅标签）

        Returns:
            {"message": ChatMessage, "index": int, "regenerated": bool}
        """
        profile = self.session.require_profile()
        with self.session.begin(SURFACE_CHAT) as token:
            tester = self._tester
            if tester is None or tester.profile is not profile:
                raise MessageNotFoundError(index, "no active conversation")

            if positive:
                message = tester.mark_positive(index)
                return {"message": message, "index": index, "regenerated": False}

            message = tester.mark_negative(index, feedback or "")
            self.session.ensure_current(token, SURFACE_CHAT)
            return {"message": message, "index": index, "regenerated": True}

    def chat_history(self) -> List[ChatMessage]:
        if self._tester is None or self._tester.profile is not self.session.profile:
            return []
        return list(self._tester.history)

    def update_humanization(self, config: HumanizationConfig) -> HumanizationConfig:
        self.humanization = config
        if self._tester is not None:
            self._tester.update_humanization(config)
        return config

    def _tester_for(self, profile: StyleProfile) -> StyleTester:
        # 新档案开启新的对话
        if self._tester is None or self._tester.profile is not profile:
            self._tester = StyleTester(
                self.chat_client,
                profile,
                humanization=self.humanization,
                window=self.chat_window,
            )
            logger.info(f"开启新对话: {profile.persona_name}")
        return self._tester
