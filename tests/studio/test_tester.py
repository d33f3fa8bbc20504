"""
风格对话测试器单元测试
"""
from unittest.mock import Mock

import pytest

from soulscribe.exceptions import ChatFailedError, EmptyInputError, MessageNotFoundError
from soulscribe.llm.base import BaseLLMClient
from soulscribe.llm.exceptions import EmptyResponseError
from soulscribe.studio.tester import CHAT_SAMPLING, StyleTester
from soulscribe.style.models import ChatRole, Feedback, HumanizationConfig, StyleProfile


SYSTEM_PROMPT = "<author_neural_pattern>terse, bitter</author_neural_pattern>"


@pytest.fixture
def profile():
    return StyleProfile(
        persona_name="Bitter Telegraphist",
        writing_level="B1",
        writing_score=35,
        summary="Short, bitter sentences.",
        system_prompt=SYSTEM_PROMPT,
    )


@pytest.fixture
def llm():
    client = Mock(spec=BaseLLMClient)
    replies = iter(f"reply {n}" for n in range(1, 100))
    client.generate.side_effect = lambda **kwargs: {
        "content": next(replies),
        "usage": {},
        "cost": 0,
        "model": "gemini-2.5-flash",
    }
    return client


def sent_messages(llm, call=-1):
    return llm.generate.call_args_list[call].kwargs["messages"]


class TestSend:

    def test_first_message(self, llm, profile):
        tester = StyleTester(llm, profile)
        reply = tester.send("Hello there")

        assert reply.role == ChatRole.MODEL
        assert reply.content == "reply 1"
        assert [m.role for m in tester.history] == [ChatRole.USER, ChatRole.MODEL]

        messages = sent_messages(llm)
        assert messages[0]["role"] == "system"
        assert messages[0]["content"].startswith(SYSTEM_PROMPT)
        assert messages[1:] == [{"role": "user", "content": "Hello there"}]

        kwargs = llm.generate.call_args.kwargs
        for key, value in CHAT_SAMPLING.items():
            assert kwargs[key] == value

    def test_history_mapped_to_assistant(self, llm, profile):
        tester = StyleTester(llm, profile)
        tester.send("one")
        tester.send("two")

        messages = sent_messages(llm)
        assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
        assert messages[-1]["content"] == "two"

    def test_window_limits_history(self, llm, profile):
        tester = StyleTester(llm, profile, window=4)
        for n in range(5):
            tester.send(f"message {n}")

        messages = sent_messages(llm)
        # system + 3 条历史 + 当前用户消息
        assert len(messages) == 5
        assert messages[2]["content"] == "message 3"
        assert messages[-1]["content"] == "message 4"

    def test_default_window_caps_outbound_messages(self, llm, profile):
        tester = StyleTester(llm, profile)
        for n in range(20):
            tester.send(f"message {n}")

        dialogue = [m for m in sent_messages(llm) if m["role"] != "system"]
        assert len(dialogue) == 15
        assert dialogue[-1] == {"role": "user", "content": "message 19"}
        assert dialogue[0] == {"role": "user", "content": "message 12"}

    def test_empty_message(self, llm, profile):
        with pytest.raises(EmptyInputError):
            StyleTester(llm, profile).send("   ")
        llm.generate.assert_not_called()

    def test_failure_keeps_user_turn(self, llm, profile):
        llm.generate.side_effect = RuntimeError("timeout")
        tester = StyleTester(llm, profile)

        with pytest.raises(ChatFailedError) as exc_info:
            tester.send("anyone?")

        assert exc_info.value.regenerating is False
        assert [m.role for m in tester.history] == [ChatRole.USER]

    def test_blank_reply_reported_as_chat_failure(self, llm, profile):
        llm.generate.side_effect = EmptyResponseError("Gemini 返回了空内容")
        tester = StyleTester(llm, profile)

        with pytest.raises(ChatFailedError) as exc_info:
            tester.send("hello?")

        assert isinstance(exc_info.value.__cause__, EmptyResponseError)
        assert len(tester.history) == 1

    def test_humanization_directives_in_system_prompt(self, llm, profile):
        tester = StyleTester(llm, profile, humanization=HumanizationConfig(imperfections=True))
        tester.send("hi")

        system = sent_messages(llm)[0]["content"]
        assert "name='imperfection'" in system
        assert "name='grounding'" not in system

    def test_update_humanization_applies_to_next_message(self, llm, profile):
        tester = StyleTester(llm, profile)
        tester.update_humanization(HumanizationConfig(burstiness=False, personal_touch=False, anti_repetition=False))
        tester.send("hi")

        assert sent_messages(llm)[0]["content"] == SYSTEM_PROMPT


class TestFeedback:

    def test_positive_is_tag_only(self, llm, profile):
        tester = StyleTester(llm, profile)
        tester.send("hi")
        prompt_before = tester.active_system_prompt

        message = tester.mark_positive(1)

        assert message.feedback == Feedback.POSITIVE
        assert tester.active_system_prompt == prompt_before
        assert llm.generate.call_count == 1

    def test_negative_regenerates_with_constraint(self, llm, profile):
        tester = StyleTester(llm, profile)
        tester.send("first")
        tester.send("second")

        reply = tester.mark_negative(3, "Too polite, be ruder")

        assert reply.content == "reply 3"
        assert len(tester.history) == 4
        assert tester.history[3] is reply
        assert tester.history[2].content == "second"

        messages = sent_messages(llm)
        assert '"Too polite, be ruder"' in messages[0]["content"]
        assert messages[0]["content"].startswith(SYSTEM_PROMPT)
        # 上下文是被否定回复之前的历史，最后是原用户消息
        assert [m["content"] for m in messages[1:]] == ["first", "reply 1", "second"]

    def test_constraints_accumulate(self, llm, profile):
        tester = StyleTester(llm, profile)
        tester.send("hi")
        tester.mark_negative(1, "no exclamation marks")
        tester.mark_negative(1, "shorter")

        system = sent_messages(llm)[0]["content"]
        assert system.count("<negative_constraint") == 2
        assert system.index("no exclamation marks") < system.index("shorter")

        tester.send("next")
        assert sent_messages(llm)[0]["content"].count("<negative_constraint") == 2

    def test_negative_on_earlier_turn_drops_later_turns(self, llm, profile):
        tester = StyleTester(llm, profile)
        tester.send("a")
        tester.send("b")

        tester.mark_negative(1, "wrong tone")

        assert [m.content for m in tester.history] == ["a", "reply 3"]

    def test_profile_never_mutated(self, llm, profile):
        tester = StyleTester(llm, profile)
        tester.send("hi")
        tester.mark_negative(1, "less formal")
        assert profile.system_prompt == SYSTEM_PROMPT

    @pytest.mark.parametrize("index", [-1, 0, 2, 99])
    def test_invalid_index(self, llm, profile, index):
        tester = StyleTester(llm, profile)
        tester.send("hi")
        with pytest.raises(MessageNotFoundError):
            tester.mark_negative(index, "bad")

    def test_empty_feedback(self, llm, profile):
        tester = StyleTester(llm, profile)
        tester.send("hi")
        with pytest.raises(EmptyInputError):
            tester.mark_negative(1, "  ")
        assert tester.constraints == []

    def test_regeneration_failure_leaves_no_reply(self, llm, profile):
        tester = StyleTester(llm, profile)
        tester.send("hi")
        llm.generate.side_effect = RuntimeError("overloaded")

        with pytest.raises(ChatFailedError) as exc_info:
            tester.mark_negative(1, "again")

        assert exc_info.value.regenerating is True
        assert [m.role for m in tester.history] == [ChatRole.USER]
        assert len(tester.constraints) == 1

    def test_clear(self, llm, profile):
        tester = StyleTester(llm, profile)
        tester.send("hi")
        tester.mark_negative(1, "nope")
        tester.clear()
        assert tester.history == []
        assert tester.constraints == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
