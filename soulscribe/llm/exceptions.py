"""
模型调用异常

只由各平台客户端抛出。分析器与各交互面捕获后转换为领域异常
(AnalysisFailedError / GenerationFailedError / RewriteFailedError / ChatFailedError)，
原始异常保留在 __cause__ 中
"""


class LLMError(Exception):
    """平台调用失败（未归入以下类别的SDK错误、网络错误、非200状态）"""


class APIKeyError(LLMError):
    """当前提供商的密钥缺失或被平台拒绝；Web 启动时缺失会转为 MissingConfigError"""


class TokenLimitError(LLMError):
    """请求超出模型上下文（通常是语料过长的分析请求）"""


class RateLimitError(LLMError):
    """平台限流；唯一会被自动重试的错误"""


class EmptyResponseError(LLMError):
    """模型返回空白内容，分析无法解析档案，对话/召唤/改写没有可展示的回复"""
