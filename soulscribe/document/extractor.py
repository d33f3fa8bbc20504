"""
文本提取器

将上传文件（PDF / 纯文本）或粘贴文本统一转换为一段样本文本，
并在发起任何模型调用之前完成最小长度校验
"""
import io
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from loguru import logger
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from soulscribe.document.sampler import sample_document
from soulscribe.exceptions import (
    DocumentUnreadableError,
    SampleTooShortError,
    UnsupportedFormatError,
)


# 有效样本的最小字符数
MIN_SAMPLE_CHARS = 50

_WHITESPACE = re.compile(r"[ \t\r\f\v]+")


class DocumentKind(str, Enum):
    """支持的文档类型"""

    PDF = "application/pdf"
    TEXT = "text/plain"


_EXTENSION_KINDS = {
    ".pdf": DocumentKind.PDF,
    ".txt": DocumentKind.TEXT,
    ".text": DocumentKind.TEXT,
    ".md": DocumentKind.TEXT,
}


@dataclass
class SourceDocument:
    """用户上传的原始文档（提取后即丢弃）"""

    content: Union[bytes, str]
    kind: DocumentKind
    filename: str = "document"

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "SourceDocument":
        """从本地文件构造，类型按扩展名判断"""
        path = Path(path)
        kind = detect_kind(path.name)
        return cls(content=path.read_bytes(), kind=kind, filename=path.name)


def detect_kind(filename: Optional[str], content_type: Optional[str] = None) -> DocumentKind:
    """
    判断文档类型

    优先使用 content type，其次使用文件扩展名

    Raises:
        UnsupportedFormatError: 既不是PDF也不是纯文本
    """
    if content_type:
        mime = content_type.split(";")[0].strip().lower()
        for kind in DocumentKind:
            if mime == kind.value:
                return kind

    suffix = Path(filename or "").suffix.lower()
    if suffix in _EXTENSION_KINDS:
        return _EXTENSION_KINDS[suffix]

    raise UnsupportedFormatError(filename=filename, content_type=content_type)


class PdfPageSource:
    """基于 pypdf 的逐页文本访问器"""

    def __init__(self, data: bytes, filename: str = "document.pdf"):
        self.filename = filename
        try:
            self.reader = PdfReader(io.BytesIO(data))
        except (PdfReadError, ValueError, OSError) as e:
            raise DocumentUnreadableError(filename, str(e)) from e

        if self.reader.is_encrypted:
            raise DocumentUnreadableError(filename, "document is password-protected")

    @property
    def page_count(self) -> int:
        return len(self.reader.pages)

    def page_text(self, page_number: int) -> str:
        """提取单页文本（1-based），行内空白折叠为单个空格"""
        raw = self.reader.pages[page_number - 1].extract_text() or ""
        lines = [_WHITESPACE.sub(" ", line).strip() for line in raw.splitlines()]
        return " ".join(line for line in lines if line)


class TextExtractor:
    """文本提取器"""

    def __init__(self, min_chars: int = MIN_SAMPLE_CHARS):
        """
        Args:
            min_chars: 有效样本的最小字符数
        """
        self.min_chars = min_chars

    def extract(self, document: SourceDocument) -> str:
        """
        从上传文档提取样本文本

        Args:
            document: 原始文档

        Returns:
            样本文本（已通过最小长度校验）

        Raises:
            UnsupportedFormatError: 不支持的文档类型
            DocumentUnreadableError: 文档损坏、加密或编码错误
            SampleTooShortError: 提取结果过短
        """
        if document.kind == DocumentKind.TEXT:
            text = self._decode_text(document)
        elif document.kind == DocumentKind.PDF:
            data = document.content
            if isinstance(data, str):
                raise DocumentUnreadableError(document.filename, "PDF content must be bytes")
            text = sample_document(PdfPageSource(data, document.filename))
        else:
            raise UnsupportedFormatError(filename=document.filename)

        logger.info(f"文档提取完成: {document.filename}, {len(text)} 字符")
        return self.validate(text)

    def extract_text(self, text: str) -> str:
        """粘贴文本原样透传，仅做长度校验"""
        return self.validate(text or "")

    def validate(self, text: str) -> str:
        """
        校验样本长度

        Raises:
            SampleTooShortError: 去除首尾空白后不足 min_chars 个字符
        """
        length = len(text.strip())
        if length < self.min_chars:
            logger.warning(f"样本过短: {length} < {self.min_chars}")
            raise SampleTooShortError(length, self.min_chars)
        return text

    @staticmethod
    def _decode_text(document: SourceDocument) -> str:
        if isinstance(document.content, str):
            return document.content
        try:
            return document.content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise DocumentUnreadableError(document.filename, f"not valid UTF-8: {e}") from e
