"""
风格会话

保存一次会话内的语料、当前风格档案与各交互面的并发状态。
会话只存在于内存中，重置即清空
"""
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from loguru import logger

from soulscribe.exceptions import (
    NoProfileError,
    StaleResponseError,
    SurfaceBusyError,
)
from soulscribe.style.analyzer import combine_corpus
from soulscribe.style.models import StyleProfile


class SessionState(str, Enum):
    """会话状态"""

    IDLE = "idle"
    READING = "reading"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"


class Corpus:
    """语料：只追加、保持提交顺序"""

    def __init__(self):
        self._entries: List[str] = []

    def append(self, text: str) -> int:
        """追加一份样本，返回追加后的文档数"""
        self._entries.append(text)
        return len(self._entries)

    @property
    def entries(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    def combined(self) -> str:
        return combine_corpus(self._entries)

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class StyleSession:
    """
    会话上下文

    - 同一交互面同一时刻只允许一个请求（busy 标记）
    - 每次重置递增 epoch，重置前发出的请求其结果会被丢弃
    """

    def __init__(self):
        self.corpus = Corpus()
        self.profile: Optional[StyleProfile] = None
        self.state = SessionState.IDLE
        self.last_error: Optional[str] = None
        self._epoch = 0
        self._busy: Dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def busy_surfaces(self) -> List[str]:
        with self._lock:
            return sorted(self._busy)

    @contextmanager
    def begin(self, surface: str) -> Iterator[int]:
        """
        进入交互面（拒绝同一交互面的重叠调用）

        Yields:
            当前 epoch，用于结果回写前检查会话是否已重置

        Raises:
            SurfaceBusyError: 该交互面已有未完成的请求
        """
        with self._lock:
            if surface in self._busy:
                raise SurfaceBusyError(surface)
            token = self._epoch
            self._busy[surface] = token

        try:
            yield token
        finally:
            with self._lock:
                # 重置后 busy 已被清空，不能误释放新请求的标记
                if self._busy.get(surface) == token:
                    del self._busy[surface]

    def is_current(self, token: int) -> bool:
        return token == self._epoch

    def ensure_current(self, token: int, surface: str = "request"):
        """
        Raises:
            StaleResponseError: 会话在请求期间被重置
        """
        if not self.is_current(token):
            logger.warning(f"会话已重置，丢弃迟到的 {surface} 响应")
            raise StaleResponseError(surface)

    def append_sample(self, sample: str, token: int) -> Tuple[str, ...]:
        """
        追加样本到语料，返回追加后的完整语料

        Raises:
            StaleResponseError: 会话在提取期间被重置
        """
        with self._lock:
            self.ensure_current(token, "analysis")
            self.corpus.append(sample)
            return self.corpus.entries

    def commit_profile(self, profile: StyleProfile, token: int):
        """
        保存新的风格档案（替换旧档案）

        Raises:
            StaleResponseError: 会话在分析期间被重置
        """
        with self._lock:
            self.ensure_current(token, "analysis")
            self.profile = profile
            self.state = SessionState.COMPLETE
            self.last_error = None
        logger.info(f"风格档案已更新: {profile.persona_name}")

    def mark_state(self, state: SessionState, token: int, error: Optional[str] = None):
        """更新会话状态（已过期的请求不影响当前状态）"""
        with self._lock:
            if self.is_current(token):
                self.state = state
                self.last_error = error

    def reset(self):
        """清空语料与档案，使所有进行中的请求失效"""
        with self._lock:
            self.corpus.clear()
            self.profile = None
            self.state = SessionState.IDLE
            self.last_error = None
            self._epoch += 1
            self._busy.clear()
        logger.info(f"会话已重置 (epoch={self._epoch})")

    def require_profile(self) -> StyleProfile:
        """
        Raises:
            NoProfileError: 尚未生成风格档案
        """
        if self.profile is None:
            raise NoProfileError()
        return self.profile

    def export_system_prompt(self) -> str:
        """导出 systemPrompt 原文"""
        return self.require_profile().system_prompt
