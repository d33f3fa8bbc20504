"""
风格分析层单元测试

覆盖：StyleProfile 数据模型、分析视角、StyleAnalyzer（mock LLM）
"""
import json
from unittest.mock import Mock

import pytest

from soulscribe.core.prompt_manager import PromptManager
from soulscribe.exceptions import AnalysisFailedError
from soulscribe.llm.base import BaseLLMClient
from soulscribe.style.analyzer import DOCUMENT_SEPARATOR, StyleAnalyzer, combine_corpus
from soulscribe.style.lens import ANALYSIS_LENSES, fixed_lens, get_lens, random_lens
from soulscribe.style.models import KeyTrait, StyleMetrics, StyleProfile, TraitImpact


def profile_payload(trait_count: int = 15, **overrides) -> dict:
    """构造一份模型返回的风格档案 JSON（camelCase）"""
    payload = {
        "personaName": "Bar-Stool Philosopher",
        "writingLevel": "B2 - Conversational",
        "writingScore": 62,
        "metrics": {
            "complexity": 40,
            "formality": 20,
            "emotionality": 70,
            "sarcasm": 85,
            "creativity": 55,
        },
        "summary": "Cynical, digressive, fond of rhetorical questions.",
        "keyTraits": [
            {
                "name": f"Trait {n}",
                "description": f"Description {n}",
                "example": f"Example {n}",
                "impact": ["virtue", "vice", "neutral"][n % 3],
            }
            for n in range(trait_count)
        ],
        "systemPrompt": "<author_neural_pattern><meta_identity/></author_neural_pattern>",
    }
    payload.update(overrides)
    return payload


def llm_returning(content: str) -> Mock:
    client = Mock(spec=BaseLLMClient)
    client.generate_structured.return_value = {
        "content": content,
        "usage": {"input_tokens": 1200, "output_tokens": 900, "total_tokens": 2100},
        "cost": 0.02,
        "model": "gemini-2.5-pro",
    }
    return client


# ===== 数据模型 =====

class TestStyleProfileModel:

    def test_wire_names(self):
        profile = StyleProfile.model_validate(profile_payload())
        assert profile.persona_name == "Bar-Stool Philosopher"
        assert profile.writing_score == 62
        assert len(profile.key_traits) == 15

        wire = profile.to_wire()
        assert wire["personaName"] == "Bar-Stool Philosopher"
        assert wire["keyTraits"][0]["impact"] == "virtue"
        assert "persona_name" not in wire

    def test_scores_clamped(self):
        profile = StyleProfile.model_validate(
            profile_payload(
                writingScore=104.6,
                metrics={"complexity": -5, "formality": 150, "emotionality": 50, "sarcasm": 0, "creativity": 100},
            )
        )
        assert profile.writing_score == 100
        assert profile.metrics.complexity == 0
        assert profile.metrics.formality == 100

    def test_metrics_optional(self):
        payload = profile_payload()
        del payload["metrics"]
        assert StyleProfile.model_validate(payload).metrics is None

    def test_unknown_impact_is_neutral(self):
        trait = KeyTrait(name="x", description="y", example="z", impact="Glorious")
        assert trait.impact == TraitImpact.NEUTRAL
        assert KeyTrait(name="x", description="y", example="z", impact=None).impact == TraitImpact.NEUTRAL
        assert KeyTrait(name="x", description="y", example="z", impact=" VICE ").impact == TraitImpact.VICE

    def test_missing_system_prompt_rejected(self):
        payload = profile_payload()
        del payload["systemPrompt"]
        with pytest.raises(ValueError):
            StyleProfile.model_validate(payload)

    def test_enforcement_idempotent(self):
        profile = StyleProfile.model_validate(profile_payload())
        block = PromptManager.ENFORCEMENT_BLOCK

        profile.apply_enforcement(block).apply_enforcement(block)

        assert profile.is_enforced(block)
        assert profile.system_prompt.count("<system_override>") == 1

    def test_traits_by_impact(self):
        profile = StyleProfile.model_validate(profile_payload(trait_count=4))
        groups = profile.traits_by_impact()

        assert [t.name for t in groups[TraitImpact.VIRTUE]] == ["Trait 0", "Trait 3"]
        assert [t.name for t in groups[TraitImpact.VICE]] == ["Trait 1"]
        assert [t.name for t in groups[TraitImpact.NEUTRAL]] == ["Trait 2"]

    def test_metrics_bounds_on_direct_construction(self):
        metrics = StyleMetrics(complexity=10, formality=20, emotionality=30, sarcasm=40, creativity=50)
        assert metrics.creativity == 50


# ===== 分析视角 =====

class TestLens:

    def test_three_lenses(self):
        names = [lens.name for lens in ANALYSIS_LENSES]
        assert names == ["ATOMIZATION MICROSCOPE", "PSYCHOLINGUIST", "RHETORIC ARCHITECT"]

    def test_random_lens_from_catalogue(self):
        for _ in range(20):
            assert random_lens() in ANALYSIS_LENSES

    def test_get_lens_case_insensitive(self):
        assert get_lens("rhetoric architect") is ANALYSIS_LENSES[2]

    def test_unknown_lens(self):
        with pytest.raises(KeyError):
            get_lens("ASTROLOGER")


# ===== StyleAnalyzer =====

class TestStyleAnalyzer:

    def test_combine_corpus_order(self):
        assert combine_corpus(["A", "B", "C"]) == f"A{DOCUMENT_SEPARATOR}B{DOCUMENT_SEPARATOR}C"
        assert combine_corpus(["only"]) == "only"

    def test_analyze_success(self):
        client = llm_returning(json.dumps(profile_payload()))
        analyzer = StyleAnalyzer(client, lens_selector=fixed_lens("PSYCHOLINGUIST"))

        result = analyzer.analyze(["First sample text.", "Second sample text."])

        profile = result["profile"]
        assert isinstance(profile, StyleProfile)
        assert profile.is_enforced(PromptManager.ENFORCEMENT_BLOCK)
        assert profile.system_prompt.startswith("<author_neural_pattern>")
        assert result["lens"].name == "PSYCHOLINGUIST"
        assert result["truncated"] is False
        assert result["cost"] == 0.02

        kwargs = client.generate_structured.call_args.kwargs
        prompt = kwargs["messages"][0]["content"]
        assert "OPERATING MODE: [PSYCHOLINGUIST]" in prompt
        assert f"First sample text.{DOCUMENT_SEPARATOR}Second sample text." in prompt
        assert kwargs["schema_name"] == "style_profile"
        assert "keyTraits" in json.dumps(kwargs["schema"])

    def test_explicit_lens_overrides_selector(self):
        client = llm_returning(json.dumps(profile_payload()))
        selector = Mock(side_effect=AssertionError("selector should not be called"))
        analyzer = StyleAnalyzer(client, lens_selector=selector)

        result = analyzer.analyze(["text"], lens=ANALYSIS_LENSES[0])

        assert result["lens"] is ANALYSIS_LENSES[0]

    def test_fenced_json(self):
        content = "Here you go:\n```json\n" + json.dumps(profile_payload()) + "\n```"
        analyzer = StyleAnalyzer(llm_returning(content), lens_selector=fixed_lens("PSYCHOLINGUIST"))
        assert analyzer.analyze(["text"])["profile"].writing_score == 62

    def test_truncation(self):
        client = llm_returning(json.dumps(profile_payload()))
        analyzer = StyleAnalyzer(client, lens_selector=fixed_lens("PSYCHOLINGUIST"), max_chars=100)

        result = analyzer.analyze(["a" * 80, "b" * 80])

        assert result["truncated"] is True
        prompt = client.generate_structured.call_args.kwargs["messages"][0]["content"]
        assert "b" * 80 not in prompt

    def test_few_traits_still_accepted(self):
        analyzer = StyleAnalyzer(
            llm_returning(json.dumps(profile_payload(trait_count=3))),
            lens_selector=fixed_lens("PSYCHOLINGUIST"),
        )
        assert len(analyzer.analyze(["text"])["profile"].key_traits) == 3

    @pytest.mark.parametrize("content", [
        "",
        "I cannot help with that.",
        "{not json at all}",
        "[1, 2, 3]",
        json.dumps({"personaName": "Missing everything else"}),
    ])
    def test_bad_output_is_analysis_failure(self, content):
        analyzer = StyleAnalyzer(llm_returning(content), lens_selector=fixed_lens("PSYCHOLINGUIST"))
        with pytest.raises(AnalysisFailedError):
            analyzer.analyze(["text"])

    def test_upstream_error_wrapped(self):
        client = Mock(spec=BaseLLMClient)
        client.generate_structured.side_effect = RuntimeError("quota exceeded")
        analyzer = StyleAnalyzer(client, lens_selector=fixed_lens("PSYCHOLINGUIST"))

        with pytest.raises(AnalysisFailedError) as exc_info:
            analyzer.analyze(["text"])
        assert "quota exceeded" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
