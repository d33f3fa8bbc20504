"""
风格分析路由

提交样本（粘贴文本 / 上传文件）、查看风格档案、导出 systemPrompt、重置会话
"""
import asyncio

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import PlainTextResponse

from soulscribe.document.extractor import SourceDocument, detect_kind
from soulscribe.exceptions import SoulScribeError
from soulscribe.web.dependencies import OrchestratorDep
from soulscribe.web.errors import to_http_exception
from soulscribe.web.schemas.style import (
    AnalysisResponse,
    SessionStatusResponse,
    SubmitTextRequest,
)

router = APIRouter()


def _analysis_response(result: dict) -> AnalysisResponse:
    return AnalysisResponse(
        profile=result["profile"].to_wire(),
        doc_count=result["doc_count"],
        lens=result["lens"],
        truncated=result.get("truncated", False),
        usage=result.get("usage", {}),
        cost=result.get("cost", 0.0),
    )


@router.post("/text", response_model=AnalysisResponse)
async def submit_text(request_data: SubmitTextRequest, orch: OrchestratorDep):
    """提交粘贴文本，追加到语料并重新分析"""
    try:
        result = await asyncio.to_thread(orch.submit_text, request_data.text)
        return _analysis_response(result)
    except SoulScribeError as e:
        raise to_http_exception(e)


@router.post("/upload", response_model=AnalysisResponse)
async def upload_document(orch: OrchestratorDep, file: UploadFile = File(...)):
    """上传 PDF / TXT 文件，追加到语料并重新分析"""
    try:
        kind = detect_kind(file.filename, file.content_type)
        content = await file.read()
        document = SourceDocument(content=content, kind=kind, filename=file.filename or "document")
        result = await asyncio.to_thread(orch.submit_document, document)
        return _analysis_response(result)
    except SoulScribeError as e:
        raise to_http_exception(e)


@router.get("/profile", response_model=dict)
async def get_profile(orch: OrchestratorDep):
    """获取当前风格档案"""
    try:
        return orch.session.require_profile().to_wire()
    except SoulScribeError as e:
        raise to_http_exception(e)


@router.get("/system-prompt", response_class=PlainTextResponse)
async def export_system_prompt(orch: OrchestratorDep):
    """导出 systemPrompt 原文（可直接复制到其他模型使用）"""
    try:
        return PlainTextResponse(orch.export_system_prompt())
    except SoulScribeError as e:
        raise to_http_exception(e)


@router.post("/reset", response_model=SessionStatusResponse)
async def reset_session(orch: OrchestratorDep):
    """清空语料、档案与对话"""
    orch.reset()
    return SessionStatusResponse(**orch.status())


@router.get("/status", response_model=SessionStatusResponse)
async def get_status(orch: OrchestratorDep):
    """获取会话状态"""
    return SessionStatusResponse(**orch.status())
