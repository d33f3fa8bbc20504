"""
FastAPI 主应用

初始化 FastAPI 应用，配置路由与错误处理
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from soulscribe.exceptions import SoulScribeError
from soulscribe.web.config import settings
from soulscribe.web.errors import error_detail, status_code_for


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期"""
    logger.info(f"🚀 {settings.APP_NAME} v{settings.APP_VERSION} 启动中...")
    logger.info(
        f"LLM 提供商: {settings.provider}, 分析模型: {settings.analysis_model}, "
        f"交互模型: {settings.chat_model}"
    )
    if not settings.active_api_key:
        logger.warning(f"⚠️ 未配置 {settings.provider} 的 API 密钥，分析与交互接口将不可用")
    logger.info(f"🌐 Web 服务器运行在 http://{settings.HOST}:{settings.PORT}")
    yield
    logger.info("🛑 应用关闭")


# 创建 FastAPI 应用
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="SoulScribe 写作风格分析与复刻",
    debug=settings.DEBUG,
    lifespan=lifespan,
)


@app.get("/health", summary="健康检查")
async def health_check():
    """
    健康检查接口

    用于监控和容器健康检查
    """
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "provider": settings.provider,
    }


# ============ 注册路由 ============

from soulscribe.web.routers import style, studio

app.include_router(style.router, prefix="/style", tags=["风格分析"])
app.include_router(studio.router, prefix="/studio", tags=["交互"])


# ============ 错误处理 ============


@app.exception_handler(SoulScribeError)
async def soulscribe_error_handler(request: Request, exc: SoulScribeError):
    """路由外抛出的业务异常（如依赖初始化时缺少配置）"""
    status_code = status_code_for(exc)
    logger.error(f"{request.method} {request.url.path} 失败 [{status_code}]: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": error_detail(exc)})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "soulscribe.web.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
    )
