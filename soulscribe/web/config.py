"""
Web 应用配置管理

使用 Pydantic Settings 管理环境变量配置
"""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from soulscribe.llm.factory import LLMFactory


class Settings(BaseSettings):
    """应用配置"""

    # 应用基础配置
    APP_NAME: str = "SoulScribe"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = Field(default=False, description="调试模式")

    # LLM 配置
    LLM_PROVIDER: str = Field(default="gemini", description="当前激活的 LLM 提供商")
    ANALYSIS_MODEL: Optional[str] = Field(default=None, description="分析模型（为空时按提供商默认）")
    CHAT_MODEL: Optional[str] = Field(default=None, description="召唤/改写/对话模型（为空时按提供商默认）")
    LLM_TIMEOUT: int = Field(default=120, description="请求超时（秒）")

    # Google Gemini
    GEMINI_API_KEY: Optional[str] = Field(default=None, description="Gemini API密钥")

    # OpenAI
    OPENAI_API_KEY: Optional[str] = Field(default=None, description="OpenAI API密钥")
    OPENAI_API_BASE: str = Field(default="https://api.openai.com/v1", description="OpenAI API 地址")

    # Anthropic Claude
    ANTHROPIC_API_KEY: Optional[str] = Field(default=None, description="Claude API密钥")

    # 通义千问
    DASHSCOPE_API_KEY: Optional[str] = Field(default=None, description="通义千问API密钥")

    # 分析参数
    MIN_SAMPLE_CHARS: int = Field(default=50, description="有效样本的最小字符数")
    MAX_ANALYSIS_CHARS: int = Field(default=500_000, description="送入分析模型的最大字符数")
    CHAT_WINDOW: int = Field(default=15, description="对话携带的历史消息上限")

    # Web 服务器配置
    HOST: str = Field(default="0.0.0.0", description="监听地址")
    PORT: int = Field(default=8000, description="监听端口")
    RELOAD: bool = Field(default=True, description="热重载（开发模式）")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def provider(self) -> str:
        return self.LLM_PROVIDER.lower()

    @property
    def analysis_model(self) -> str:
        """分析模型名（未配置时使用提供商默认）"""
        return self.ANALYSIS_MODEL or LLMFactory.default_models(self.provider)[0]

    @property
    def chat_model(self) -> str:
        """交互模型名（未配置时使用提供商默认）"""
        return self.CHAT_MODEL or LLMFactory.default_models(self.provider)[1]

    @property
    def active_api_key(self) -> Optional[str]:
        """根据当前激活 provider 返回对应 API Key。"""
        keys = {
            "gemini": self.GEMINI_API_KEY,
            "openai": self.OPENAI_API_KEY,
            "claude": self.ANTHROPIC_API_KEY,
            "qwen": self.DASHSCOPE_API_KEY,
        }
        return keys.get(self.provider)


# 全局配置实例
settings = Settings()


def get_settings() -> Settings:
    """获取配置实例（用于依赖注入）"""
    return settings
