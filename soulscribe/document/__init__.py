"""
文档层

提供文本提取（TextExtractor）与长文档页面采样（select_pages / sample_document）
"""
from soulscribe.document.sampler import (
    select_pages,
    join_pages,
    sample_document,
    GAP_MARKER,
)
from soulscribe.document.extractor import (
    TextExtractor,
    SourceDocument,
    DocumentKind,
    PdfPageSource,
    detect_kind,
    MIN_SAMPLE_CHARS,
)

__all__ = [
    "select_pages",
    "join_pages",
    "sample_document",
    "GAP_MARKER",
    "TextExtractor",
    "SourceDocument",
    "DocumentKind",
    "PdfPageSource",
    "detect_kind",
    "MIN_SAMPLE_CHARS",
]
