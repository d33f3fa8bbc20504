"""
交互层 - 基于风格档案的三种交互方式

- StyleSummoner：按主题一次性生成原创文本
- StyleTester：多轮对话测试（拟人化开关、负反馈纠偏）
- MirrorEditor：将任意文本改写为档案风格

三者都不会修改风格档案
"""
from soulscribe.studio.generator import StyleSummoner
from soulscribe.studio.tester import StyleTester, CHAT_SAMPLING
from soulscribe.studio.mirror import MirrorEditor

__all__ = ["StyleSummoner", "StyleTester", "MirrorEditor", "CHAT_SAMPLING"]
