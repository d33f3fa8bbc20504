"""
FastAPI 依赖注入

提供全局共享的依赖实例（LLM Client、会话编排器）
"""
from typing import Annotated, Optional
from fastapi import Depends

from soulscribe.document.extractor import TextExtractor
from soulscribe.exceptions import ConfigurationError, MissingConfigError
from soulscribe.llm.base import BaseLLMClient
from soulscribe.llm.exceptions import APIKeyError
from soulscribe.llm.factory import LLMFactory
from soulscribe.style.analyzer import StyleAnalyzer
from soulscribe.style.session import StyleSession
from soulscribe.workflow.orchestrator import StudioOrchestrator
from soulscribe.web.config import settings


# ============ 全局单例（首次请求时初始化） ============

_orchestrator: Optional[StudioOrchestrator] = None


def _create_client(model: str) -> BaseLLMClient:
    try:
        return LLMFactory.create_client(
            provider=settings.provider,
            model=model,
            gemini_api_key=settings.GEMINI_API_KEY,
            openai_api_key=settings.OPENAI_API_KEY,
            openai_api_base=settings.OPENAI_API_BASE,
            anthropic_api_key=settings.ANTHROPIC_API_KEY,
            dashscope_api_key=settings.DASHSCOPE_API_KEY,
            timeout=settings.LLM_TIMEOUT,
        )
    except APIKeyError as e:
        raise MissingConfigError(f"{settings.provider} API key") from e
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def get_analysis_client() -> BaseLLMClient:
    """
    获取分析用 LLM Client

    Raises:
        MissingConfigError: 未配置当前提供商的 API 密钥
    """
    return _create_client(settings.analysis_model)


def get_chat_client() -> BaseLLMClient:
    """获取交互用 LLM Client"""
    return _create_client(settings.chat_model)


def get_orchestrator() -> StudioOrchestrator:
    """
    获取全局会话编排器（进程内唯一会话）

    Returns:
        StudioOrchestrator 实例
    """
    global _orchestrator
    if _orchestrator is None:
        analysis_client = get_analysis_client()
        _orchestrator = StudioOrchestrator(
            analysis_client=analysis_client,
            chat_client=get_chat_client(),
            session=StyleSession(),
            extractor=TextExtractor(min_chars=settings.MIN_SAMPLE_CHARS),
            analyzer=StyleAnalyzer(analysis_client, max_chars=settings.MAX_ANALYSIS_CHARS),
            chat_window=settings.CHAT_WINDOW,
        )
    return _orchestrator


def reset_orchestrator() -> None:
    """丢弃全局编排器（配置变更或测试时使用）"""
    global _orchestrator
    _orchestrator = None
    LLMFactory.clear_cache()


# ============ 类型别名（简化路由签名） ============

OrchestratorDep = Annotated[StudioOrchestrator, Depends(get_orchestrator)]
