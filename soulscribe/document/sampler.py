"""
文档页面采样

长文档按「开头 + 中段 + 结尾」三段取样，页数有上限且保留结构信号。
"""
from typing import List, Sequence, Tuple, Protocol

from loguru import logger

from soulscribe.exceptions import DocumentUnreadableError


# 不超过该页数时整本提取
FULL_EXTRACTION_LIMIT = 15
# 每段采样页数
SAMPLE_WINDOW = 5
# 非相邻页之间插入的缺口标记
GAP_MARKER = "[...GAP IN MANUSCRIPT...]"


class PageSource(Protocol):
    """逐页文本访问器（页码从1开始）"""

    filename: str

    @property
    def page_count(self) -> int: ...

    def page_text(self, page_number: int) -> str: ...


def select_pages(total_pages: int) -> List[int]:
    """
    选择需要提取的页码

    Args:
        total_pages: 文档总页数（>= 1）

    Returns:
        严格递增、无重复的页码列表（1-based）
    """
    if total_pages < 1:
        raise ValueError(f"total_pages 必须 >= 1: {total_pages}")

    if total_pages <= FULL_EXTRACTION_LIMIT:
        return list(range(1, total_pages + 1))

    half = SAMPLE_WINDOW // 2
    mid = total_pages // 2

    selected = set(range(1, SAMPLE_WINDOW + 1))
    selected.update(range(mid - half, mid + half + 1))
    selected.update(range(total_pages - SAMPLE_WINDOW + 1, total_pages + 1))

    return sorted(p for p in selected if 1 <= p <= total_pages)


def join_pages(pages: Sequence[Tuple[int, str]]) -> str:
    """
    拼接已提取的页面文本

    相邻页之间用段落分隔；原文中不相邻的两页之间插入缺口标记

    Args:
        pages: [(page_number, text), ...]，按页码升序

    Returns:
        拼接后的文本
    """
    parts: List[str] = []
    previous = None
    for page_number, text in pages:
        if previous is not None and page_number != previous + 1:
            parts.append(GAP_MARKER)
        parts.append(text.strip())
        previous = page_number
    return "\n\n".join(parts).strip()


def sample_document(source: PageSource) -> str:
    """
    对文档执行采样并提取文本

    任意一页读取失败即整体中止，不返回部分结果

    Raises:
        DocumentUnreadableError: 页数或页面文本无法读取
    """
    filename = getattr(source, "filename", None)
    try:
        total = source.page_count
    except Exception as e:
        raise DocumentUnreadableError(filename, f"page count: {e}") from e

    if total < 1:
        raise DocumentUnreadableError(filename, "document has no pages")

    page_numbers = select_pages(total)
    logger.info(f"智能采样: 从 {total} 页中提取 {len(page_numbers)} 页")

    extracted: List[Tuple[int, str]] = []
    for page_number in page_numbers:
        try:
            extracted.append((page_number, source.page_text(page_number)))
        except DocumentUnreadableError:
            raise
        except Exception as e:
            logger.error(f"第 {page_number} 页提取失败: {e}")
            raise DocumentUnreadableError(filename, f"page {page_number}: {e}") from e

    return join_pages(extracted)
