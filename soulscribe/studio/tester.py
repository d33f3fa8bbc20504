"""
风格对话测试

以风格档案为系统提示词进行多轮对话，支持拟人化开关与负反馈纠偏：
- 正反馈只打标签
- 负反馈会把用户的意见作为约束追加到系统提示词（本次对话内持续生效），
  丢弃被否定的回复，并基于纠正后的提示词重新回答上一条用户消息
"""
from typing import Dict, List, Optional

from loguru import logger

from soulscribe.core.prompt_manager import PromptManager
from soulscribe.exceptions import ChatFailedError, EmptyInputError, MessageNotFoundError
from soulscribe.llm.base import BaseLLMClient
from soulscribe.style.models import (
    ChatMessage,
    ChatRole,
    Feedback,
    HumanizationConfig,
    StyleProfile,
)


# 每次请求携带的历史消息上限
DEFAULT_WINDOW = 15

# 对话采样参数
CHAT_SAMPLING = {
    "temperature": 1.25,
    "top_p": 0.9,
    "presence_penalty": 0.1,
    "frequency_penalty": 0.2,
}

_ROLE_MAP = {ChatRole.USER: "user", ChatRole.MODEL: "assistant"}


class StyleTester:
    """对话测试器（一个实例对应一次对话）"""

    def __init__(
        self,
        llm_client: BaseLLMClient,
        profile: StyleProfile,
        humanization: Optional[HumanizationConfig] = None,
        window: int = DEFAULT_WINDOW,
        max_tokens: int = 2000,
    ):
        """
        Args:
            llm_client: 对话用LLM客户端（建议使用低延迟模型）
            profile: 风格档案（只读，不会被修改）
            humanization: 拟人化开关，None 时使用默认值
            window: 单次请求携带的对话消息上限（含本轮用户消息）
            max_tokens: 单次回复最大token数
        """
        self.llm_client = llm_client
        self.profile = profile
        self.humanization = humanization or HumanizationConfig()
        self.window = window
        self.max_tokens = max_tokens
        self.history: List[ChatMessage] = []
        self.constraints: List[str] = []
        self.prompt_manager = PromptManager()

    @property
    def active_system_prompt(self) -> str:
        """当前生效的系统提示词（档案原文 + 拟人化指令 + 约束）"""
        return self.prompt_manager.build_chat_system_prompt(
            self.profile.system_prompt,
            self.humanization,
            self.constraints,
        )

    def send(self, text: str) -> ChatMessage:
        """
        发送用户消息并获取回复

        失败时用户消息保留在历史中，不追加模型回复

        Raises:
            EmptyInputError: 消息为空
            ChatFailedError: 回复生成失败
        """
        if not text or not text.strip():
            raise EmptyInputError("message")

        prior = list(self.history)
        self.history.append(ChatMessage(role=ChatRole.USER, content=text))

        content = self._complete(prior, text, regenerating=False)
        reply = ChatMessage(role=ChatRole.MODEL, content=content)
        self.history.append(reply)
        return reply

    def mark_positive(self, index: int) -> ChatMessage:
        """标记回复为正反馈（仅标签，不影响提示词）"""
        message = self._model_turn(index)
        message.feedback = Feedback.POSITIVE
        return message

    def mark_negative(self, index: int, feedback: str) -> ChatMessage:
        """
        负反馈纠偏

        1. 将反馈转换为约束追加到系统提示词
        2. 丢弃第 index 条回复（及其之后的消息）
        3. 以 history[0..index-2] 为上下文重新回答第 index-1 条用户消息

        Returns:
            新的模型回复（位于 index）

        Raises:
            MessageNotFoundError: index 不是一条紧跟用户消息的模型回复
            EmptyInputError: 反馈为空
            ChatFailedError: 重新生成失败（对话停留在没有新回复的状态）
        """
        self._model_turn(index)
        if not feedback or not feedback.strip():
            raise EmptyInputError("feedback")

        self.constraints.append(self.prompt_manager.build_feedback_constraint(feedback))
        user_message = self.history[index - 1]
        prior = self.history[: index - 1]

        dropped = len(self.history) - index
        del self.history[index:]
        logger.info(f"负反馈: 丢弃第 {index} 条回复（共 {dropped} 条），约束数={len(self.constraints)}")

        content = self._complete(prior, user_message.content, regenerating=True)
        reply = ChatMessage(role=ChatRole.MODEL, content=content)
        self.history.append(reply)
        return reply

    def update_humanization(self, config: HumanizationConfig):
        self.humanization = config
        logger.debug(f"拟人化开关已更新: {config.model_dump()}")

    def clear(self):
        """清空对话与约束"""
        self.history.clear()
        self.constraints.clear()

    def _model_turn(self, index: int) -> ChatMessage:
        if not 0 <= index < len(self.history):
            raise MessageNotFoundError(index)
        message = self.history[index]
        if message.role != ChatRole.MODEL:
            raise MessageNotFoundError(index, "not a model reply")
        if index == 0 or self.history[index - 1].role != ChatRole.USER:
            raise MessageNotFoundError(index, "reply is not preceded by a user message")
        return message

    def _build_messages(self, prior: List[ChatMessage], text: str) -> List[Dict[str, str]]:
        # 窗口包含本轮用户消息
        keep = max(self.window - 1, 0)
        window = prior[-keep:] if keep else []
        messages = [{"role": "system", "content": self.active_system_prompt}]
        messages.extend(
            {"role": _ROLE_MAP[m.role], "content": m.content} for m in window
        )
        messages.append({"role": "user", "content": text})
        return messages

    def _complete(self, prior: List[ChatMessage], text: str, regenerating: bool) -> str:
        messages = self._build_messages(prior, text)
        logger.debug(f"对话请求: 历史 {len(messages) - 2} 条, 重新生成={regenerating}")

        try:
            response = self.llm_client.generate(
                messages=messages,
                max_tokens=self.max_tokens,
                **CHAT_SAMPLING,
            )
        except Exception as e:
            if regenerating:
                logger.error(f"负反馈重新生成失败，对话保持无回复状态: {e}")
            else:
                logger.error(f"对话回复失败: {e}")
            raise ChatFailedError(str(e), regenerating=regenerating) from e

        return response["content"]
