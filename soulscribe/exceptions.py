"""
业务异常类

定义SoulScribe系统的业务层异常，提供更精确的错误语义
"""


class SoulScribeError(Exception):
    """SoulScribe基础异常类"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


# ========== 输入校验异常（不发起任何网络调用） ==========


class InputValidationError(SoulScribeError):
    """输入校验失败"""

    pass


class SampleTooShortError(InputValidationError):
    """样本文本过短，不足以作为有效样本"""

    def __init__(self, length: int, minimum: int):
        super().__init__(
            "The specimen is too short for a valid analysis",
            details={"length": length, "minimum": minimum},
        )
        self.length = length
        self.minimum = minimum


class UnsupportedFormatError(InputValidationError):
    """不支持的文件格式"""

    def __init__(self, filename: str = None, content_type: str = None):
        super().__init__(
            "Unsupported format, use PDF or TXT",
            details={"filename": filename, "content_type": content_type},
        )
        self.filename = filename
        self.content_type = content_type


class EmptyInputError(InputValidationError):
    """必填输入为空"""

    def __init__(self, field: str):
        super().__init__(
            f"Field must not be empty: {field}",
            details={"field": field},
        )
        self.field = field


# ========== 文档提取异常 ==========


class DocumentUnreadableError(SoulScribeError):
    """文档无法读取（损坏或加密）"""

    def __init__(self, filename: str = None, reason: str = ""):
        super().__init__(
            "Could not read the document. Make sure it is not corrupted or password-protected",
            details={"filename": filename, "reason": reason},
        )
        self.filename = filename
        self.reason = reason


# ========== 上游模型异常 ==========


class UpstreamError(SoulScribeError):
    """上游模型调用失败（空响应、JSON格式错误、传输失败）"""

    pass


class AnalysisFailedError(UpstreamError):
    """风格分析失败"""

    def __init__(self, reason: str):
        super().__init__(
            "Could not dissect the style. The text may be insufficient or the service is saturated",
            details={"reason": reason},
        )
        self.reason = reason


class GenerationFailedError(UpstreamError):
    """风格化生成失败"""

    def __init__(self, reason: str):
        super().__init__("Style generation failed", details={"reason": reason})
        self.reason = reason


class ChatFailedError(UpstreamError):
    """对话回复生成失败"""

    def __init__(self, reason: str, regenerating: bool = False):
        super().__init__(
            "Could not generate the reply, please try again",
            details={"reason": reason, "regenerating": regenerating},
        )
        self.reason = reason
        self.regenerating = regenerating


class RewriteFailedError(UpstreamError):
    """风格改写失败"""

    def __init__(self, reason: str):
        super().__init__("Style rewrite failed", details={"reason": reason})
        self.reason = reason


# ========== 会话状态异常 ==========


class NoProfileError(SoulScribeError):
    """当前会话尚无风格档案"""

    def __init__(self):
        super().__init__("No style profile has been analysed in this session yet")


class SurfaceBusyError(SoulScribeError):
    """同一交互面已有未完成的请求"""

    def __init__(self, surface: str):
        super().__init__(
            "A request is already in progress",
            details={"surface": surface},
        )
        self.surface = surface


class StaleResponseError(SoulScribeError):
    """会话已重置，迟到的响应被丢弃"""

    def __init__(self, surface: str):
        super().__init__(
            "Session was reset while the request was in flight",
            details={"surface": surface},
        )
        self.surface = surface


class MessageNotFoundError(SoulScribeError):
    """对话消息不存在或角色不符"""

    def __init__(self, index: int, reason: str = "no such message"):
        super().__init__(
            f"Invalid chat message: {reason}",
            details={"index": index},
        )
        self.index = index


# ========== 配置异常 ==========


class ConfigurationError(SoulScribeError):
    """配置错误"""

    pass


class MissingConfigError(ConfigurationError):
    """缺少配置项"""

    def __init__(self, config_key: str):
        super().__init__(
            f"Missing required configuration: {config_key}",
            details={"config_key": config_key},
        )
        self.config_key = config_key
