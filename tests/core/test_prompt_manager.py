"""
提示词管理器单元测试
"""
import pytest

from soulscribe.core.prompt_manager import MIN_KEY_TRAITS, PromptManager
from soulscribe.style.lens import ANALYSIS_LENSES, fixed_lens
from soulscribe.style.models import HumanizationConfig


class TestStyleAnalysisPrompt:
    """测试风格分析提示词"""

    def test_contains_lens_and_source(self):
        lens = fixed_lens("PSYCHOLINGUIST")()
        prompt = PromptManager.generate_style_analysis_prompt("I mean, honestly {braces} ok", lens)

        assert "OPERATING MODE: [PSYCHOLINGUIST]" in prompt
        assert lens.focus in prompt
        assert "I mean, honestly {braces} ok" in prompt

    def test_demands_traits_and_xml(self):
        prompt = PromptManager.generate_style_analysis_prompt("text", ANALYSIS_LENSES[0])

        assert f"AT LEAST {MIN_KEY_TRAITS}" in prompt
        assert "<author_neural_pattern>" in prompt
        assert '"keyTraits"' in prompt
        assert '"metrics"' in prompt
        for token in PromptManager.FORBIDDEN_TOKENS:
            assert token in prompt

    def test_enforcement_block(self):
        block = PromptManager.ENFORCEMENT_BLOCK
        assert "<system_override>" in block
        assert "ABSOLUTE MIMESIS" in block
        assert "ANTI-AI FILTER" in block


class TestHumanizationDirectives:
    """测试拟人化指令"""

    def test_defaults(self):
        text = PromptManager.build_humanization_directives(HumanizationConfig())
        lines = text.splitlines()

        assert lines == [
            "<dynamic_mode name='burstiness'>ACTIVE: Alternate 3-word sentences with 50-word paragraphs.</dynamic_mode>",
            "<dynamic_mode name='subjectivity'>ACTIVE: Filter everything through a strong, opinionated ego.</dynamic_mode>",
            "<dynamic_mode name='anti_ai'>ACTIVE: List structures are forbidden unless the author uses them.</dynamic_mode>",
        ]

    def test_all_off(self):
        config = HumanizationConfig(burstiness=False, personal_touch=False, anti_repetition=False)
        assert PromptManager.build_humanization_directives(config) == ""
        assert PromptManager.build_humanization_directives(None) == ""

    def test_all_on_fixed_order(self):
        config = HumanizationConfig(
            burstiness=True,
            imperfections=True,
            personal_touch=True,
            cultural_context=True,
            anti_repetition=True,
        )
        text = PromptManager.build_humanization_directives(config)
        names = ["burstiness", "imperfection", "subjectivity", "anti_ai", "grounding"]
        positions = [text.index(f"name='{name}'") for name in names]
        assert positions == sorted(positions)


class TestChatSystemPrompt:
    """测试对话系统提示词组装"""

    def test_profile_prompt_first_then_directives_then_constraints(self):
        constraint = PromptManager.build_feedback_constraint("  too formal  ")
        prompt = PromptManager.build_chat_system_prompt(
            "<author_neural_pattern/>",
            HumanizationConfig(),
            [constraint],
        )

        assert prompt.startswith("<author_neural_pattern/>")
        assert prompt.index("dynamic_mode") < prompt.index("negative_constraint")
        assert '"too formal"' in prompt

    def test_no_extras(self):
        assert PromptManager.build_chat_system_prompt("base", None, []) == "base"


class TestSurfacePrompts:
    """测试召唤与改写提示词"""

    def test_summon(self):
        system = PromptManager.build_summon_system_prompt("<clone/>")
        prompt = PromptManager.generate_summon_prompt("  rainy Mondays ", 350)

        assert system.startswith("<clone/>")
        assert "TOPIC: rainy Mondays" in prompt
        assert "350 words" in prompt

    def test_mirror_transform_not_answer(self):
        system = PromptManager.build_mirror_system_prompt("<clone/>")
        prompt = PromptManager.generate_mirror_prompt("What time is it?")

        assert system.startswith("<clone/>")
        assert "TRANSFORM, DO NOT ANSWER" in system
        assert "What time is it?" in prompt


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
