"""
交互面路由

风格召唤、风格改写、对话测试（含反馈纠偏与拟人化开关）
"""
import asyncio

from fastapi import APIRouter

from soulscribe.exceptions import SoulScribeError
from soulscribe.style.models import HumanizationConfig
from soulscribe.web.dependencies import OrchestratorDep
from soulscribe.web.errors import to_http_exception
from soulscribe.web.schemas.studio import (
    ChatHistoryResponse,
    ChatRequest,
    ChatResponse,
    FeedbackRequest,
    GenerationResponse,
    MirrorRequest,
    SummonRequest,
)

router = APIRouter()


@router.post("/summon", response_model=GenerationResponse)
async def summon(request_data: SummonRequest, orch: OrchestratorDep):
    """以当前档案风格按主题生成原创文本"""
    try:
        result = await asyncio.to_thread(
            orch.summon,
            request_data.topic,
            request_data.word_count,
            request_data.creativity,
        )
        return GenerationResponse(**result)
    except SoulScribeError as e:
        raise to_http_exception(e)


@router.post("/mirror", response_model=GenerationResponse)
async def mirror(request_data: MirrorRequest, orch: OrchestratorDep):
    """将文本改写为当前档案风格"""
    try:
        result = await asyncio.to_thread(orch.rewrite, request_data.text)
        return GenerationResponse(
            content=result["content"],
            word_count=len(result["content"].split()),
            usage=result.get("usage", {}),
            cost=result.get("cost", 0.0),
        )
    except SoulScribeError as e:
        raise to_http_exception(e)


@router.post("/chat", response_model=ChatResponse)
async def chat(request_data: ChatRequest, orch: OrchestratorDep):
    """发送对话消息"""
    try:
        result = await asyncio.to_thread(orch.chat, request_data.message)
        return ChatResponse(**result)
    except SoulScribeError as e:
        raise to_http_exception(e)


@router.post("/chat/{index}/feedback", response_model=ChatResponse)
async def chat_feedback(index: int, request_data: FeedbackRequest, orch: OrchestratorDep):
    """对第 index 条回复给出反馈；负反馈会重新生成该回复"""
    try:
        result = await asyncio.to_thread(
            orch.chat_feedback,
            index,
            request_data.feedback,
            request_data.positive,
        )
        return ChatResponse(**result)
    except SoulScribeError as e:
        raise to_http_exception(e)


@router.get("/chat", response_model=ChatHistoryResponse)
async def chat_history(orch: OrchestratorDep):
    """获取当前对话历史"""
    return ChatHistoryResponse(messages=orch.chat_history())


@router.put("/humanization", response_model=HumanizationConfig)
async def update_humanization(config: HumanizationConfig, orch: OrchestratorDep):
    """更新拟人化开关（只影响对话测试）"""
    return orch.update_humanization(config)
