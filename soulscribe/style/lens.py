"""
分析视角

每次分析随机选择一种视角，避免模型对不同样本输出雷同的分析结构
"""
import random
from dataclasses import dataclass
from typing import Callable, Sequence


@dataclass(frozen=True)
class AnalysisLens:
    """分析视角（名称 + 优先关注点）"""

    name: str
    focus: str


ANALYSIS_LENSES: Sequence[AnalysisLens] = (
    AnalysisLens(
        name="ATOMIZATION MICROSCOPE",
        focus=(
            "Do not group traits. Separate syntax from morphology. Separate rhythm "
            "from punctuation. I want the smallest possible detail."
        ),
    ),
    AnalysisLens(
        name="PSYCHOLINGUIST",
        focus=(
            "Analyse what the language vices say about the author's psychology. "
            "Insecurity (lots of 'perhaps')? Arrogance (imperatives)?"
        ),
    ),
    AnalysisLens(
        name="RHETORIC ARCHITECT",
        focus=(
            "Hunt for hidden rhetorical figures: accidental alliteration, recurring "
            "metaphors, anaphora and three-beat structures."
        ),
    ),
)

# 视角选择器：无参调用，返回一个视角
LensSelector = Callable[[], AnalysisLens]


def random_lens() -> AnalysisLens:
    """随机选择一个视角（默认选择器）"""
    return random.choice(ANALYSIS_LENSES)


def get_lens(name: str) -> AnalysisLens:
    """
    按名称查找视角（不区分大小写）

    Raises:
        KeyError: 名称不存在
    """
    for lens in ANALYSIS_LENSES:
        if lens.name.lower() == name.strip().lower():
            return lens
    available = ", ".join(lens.name for lens in ANALYSIS_LENSES)
    raise KeyError(f"未知分析视角: {name}（可选: {available}）")


def fixed_lens(name: str) -> LensSelector:
    """返回总是选择同一视角的选择器，用于可复现的分析"""
    lens = get_lens(name)
    return lambda: lens
