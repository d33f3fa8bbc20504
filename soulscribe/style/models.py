"""
风格档案数据模型

对外（API / JSON导出）使用 camelCase 字段名，代码内部使用 snake_case
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _clamp(value, low: int = 0, high: int = 100):
    # 模型偶尔会给出越界分数，截断到合法区间
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return max(low, min(high, value))
    return value


class TraitImpact(str, Enum):
    """特征对文本质量的影响"""

    VIRTUE = "virtue"
    VICE = "vice"
    NEUTRAL = "neutral"


class KeyTrait(BaseModel):
    """单条风格特征"""

    name: str = Field(..., description="原子化的特征技术名称")
    description: str = Field(..., description="特征说明")
    example: str = Field(..., description="样本中的原文引用")
    impact: TraitImpact = Field(default=TraitImpact.NEUTRAL, description="virtue / vice / neutral")

    @field_validator("impact", mode="before")
    @classmethod
    def normalize_impact(cls, v):
        if v is None:
            return TraitImpact.NEUTRAL
        if isinstance(v, str):
            v = v.strip().lower()
            if v not in {item.value for item in TraitImpact}:
                return TraitImpact.NEUTRAL
        return v


class StyleMetrics(BaseModel):
    """五个 0-100 的风格维度"""

    complexity: float = Field(..., ge=0, le=100)
    formality: float = Field(..., ge=0, le=100)
    emotionality: float = Field(..., ge=0, le=100)
    sarcasm: float = Field(..., ge=0, le=100)
    creativity: float = Field(..., ge=0, le=100)

    @field_validator("*", mode="before")
    @classmethod
    def clamp_score(cls, v):
        return _clamp(v)


class StyleProfile(BaseModel):
    """
    风格档案

    一次分析的完整结果，不可被交互面修改；
    重新分析会生成一个全新的档案对象
    """

    model_config = ConfigDict(populate_by_name=True)

    persona_name: str = Field(..., alias="personaName", description="风格人格名称")
    writing_level: str = Field(..., alias="writingLevel", description="写作水平分级")
    writing_score: int = Field(..., alias="writingScore", ge=0, le=100, description="复杂度评分 0-100")
    metrics: Optional[StyleMetrics] = Field(None, description="五维风格指标")
    summary: str = Field(..., description="技术性总结")
    key_traits: List[KeyTrait] = Field(default_factory=list, alias="keyTraits")
    system_prompt: str = Field(..., alias="systemPrompt", description="XML行为规格（克隆体）")

    @field_validator("writing_score", mode="before")
    @classmethod
    def clamp_writing_score(cls, v):
        v = _clamp(v)
        if isinstance(v, float):
            return round(v)
        return v

    def is_enforced(self, block: str) -> bool:
        return self.system_prompt.endswith(block)

    def apply_enforcement(self, block: str) -> "StyleProfile":
        """
        追加强制执行层（幂等）

        Returns:
            self，便于链式调用
        """
        if not self.is_enforced(block):
            self.system_prompt = self.system_prompt + block
        return self

    def traits_by_impact(self) -> Dict[TraitImpact, List[KeyTrait]]:
        """按影响分组特征（顺序 virtue / vice / neutral，保持原有先后）"""
        groups: Dict[TraitImpact, List[KeyTrait]] = {impact: [] for impact in TraitImpact}
        for trait in self.key_traits:
            groups[trait.impact].append(trait)
        return groups

    def to_wire(self) -> dict:
        """导出为 camelCase JSON 字典"""
        return self.model_dump(mode="json", by_alias=True)


class ChatRole(str, Enum):
    USER = "user"
    MODEL = "model"


class Feedback(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class ChatMessage(BaseModel):
    """对话消息"""

    role: ChatRole
    content: str
    feedback: Optional[Feedback] = None


class HumanizationConfig(BaseModel):
    """拟人化开关（只影响对话测试）"""

    model_config = ConfigDict(populate_by_name=True)

    burstiness: bool = True
    imperfections: bool = False
    personal_touch: bool = Field(True, alias="personalTouch")
    cultural_context: bool = Field(False, alias="culturalContext")
    anti_repetition: bool = Field(True, alias="antiRepetition")
