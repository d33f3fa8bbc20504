"""
风格分析器

将语料合并为一段样本，调用 LLM 进行法证式风格分析，
并把结构化结果校验为 StyleProfile
"""
import json
import re
from typing import Any, Dict, Optional, Sequence

from loguru import logger

from soulscribe.core.prompt_manager import PromptManager, MIN_KEY_TRAITS
from soulscribe.exceptions import AnalysisFailedError
from soulscribe.llm.base import BaseLLMClient
from soulscribe.style.lens import AnalysisLens, LensSelector, random_lens
from soulscribe.style.models import StyleProfile


# 语料中相邻文档之间的分隔符
DOCUMENT_SEPARATOR = "\n\n*** NEXT DOCUMENT ***\n\n"
# 送入模型的样本最大字符数
MAX_ANALYSIS_CHARS = 500_000


def combine_corpus(corpus: Sequence[str]) -> str:
    """按提交顺序合并语料"""
    return DOCUMENT_SEPARATOR.join(corpus)


class StyleAnalyzer:
    """风格分析器：从语料中提取风格档案"""

    def __init__(
        self,
        llm_client: BaseLLMClient,
        lens_selector: LensSelector = random_lens,
        max_chars: int = MAX_ANALYSIS_CHARS,
    ):
        """
        Args:
            llm_client: 分析用LLM客户端（建议使用高能力模型）
            lens_selector: 分析视角选择器，默认随机
            max_chars: 合并后样本的截断长度
        """
        self.llm_client = llm_client
        self.lens_selector = lens_selector
        self.max_chars = max_chars
        self.prompt_manager = PromptManager()

    def analyze(
        self,
        corpus: Sequence[str],
        lens: Optional[AnalysisLens] = None,
        temperature: float = 0.4,
        max_tokens: int = 8192,
    ) -> Dict[str, Any]:
        """
        分析整份语料，生成新的风格档案

        Args:
            corpus: 语料（按提交顺序）
            lens: 指定分析视角，None 时由 lens_selector 选择
            temperature: LLM温度
            max_tokens: 最大token数

        Returns:
            {
                "profile": StyleProfile,  # 已追加强制执行层
                "lens": AnalysisLens,
                "truncated": bool,
                "usage": {...},
                "cost": 0.01,
            }

        Raises:
            AnalysisFailedError: 调用失败、空响应、JSON无效或结构不符
        """
        combined = combine_corpus(corpus)
        truncated = len(combined) > self.max_chars
        if truncated:
            logger.warning(f"样本过长，截断至 {self.max_chars} 字符（原长 {len(combined)}）")
            combined = combined[: self.max_chars]

        lens = lens or self.lens_selector()
        prompt = self.prompt_manager.generate_style_analysis_prompt(combined, lens)

        logger.info(
            f"开始风格分析: {len(corpus)} 份文档, {len(combined)} 字符, 视角={lens.name}"
        )

        try:
            response = self.llm_client.generate_structured(
                messages=[{"role": "user", "content": prompt}],
                schema=StyleProfile.model_json_schema(by_alias=True),
                temperature=temperature,
                max_tokens=max_tokens,
                schema_name="style_profile",
            )
            data = self._parse_profile_json(response["content"])
            profile = StyleProfile.model_validate(data)
        except Exception as e:
            logger.error(f"风格分析失败: {e}")
            raise AnalysisFailedError(str(e)) from e

        if len(profile.key_traits) < MIN_KEY_TRAITS:
            logger.warning(
                f"关键特征数量不足: {len(profile.key_traits)} < {MIN_KEY_TRAITS}"
            )

        profile.apply_enforcement(self.prompt_manager.ENFORCEMENT_BLOCK)

        logger.info(
            f"风格分析完成: {profile.persona_name}, 评分={profile.writing_score}, "
            f"特征={len(profile.key_traits)}"
        )

        return {
            "profile": profile,
            "lens": lens,
            "truncated": truncated,
            "usage": response.get("usage", {}),
            "cost": response.get("cost", 0),
        }

    def _parse_profile_json(self, content: str) -> Dict[str, Any]:
        """
        解析LLM输出的风格档案JSON

        支持 ```json 代码块与裸JSON两种形式

        Raises:
            ValueError: 无法解析JSON
        """
        json_match = re.search(r"```(?:json)?\s*(\{.*\})\s*```", content, re.DOTALL)
        if json_match:
            json_str = json_match.group(1)
        else:
            json_match = re.search(r"\{.*\}", content, re.DOTALL)
            if json_match:
                json_str = json_match.group(0)
            else:
                raise ValueError(f"无法从LLM输出中提取JSON: {content[:200]}")

        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ValueError(f"风格档案JSON解析失败: {e}")

        if not isinstance(data, dict):
            raise ValueError("风格档案JSON必须是对象")
        return data
