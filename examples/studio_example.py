"""
SoulScribe 使用示例

演示一次完整会话：提交样本 -> 查看风格档案 -> 风格召唤 -> 风格改写 -> 对话测试与负反馈纠偏
"""
import json
import os

from soulscribe.llm import LLMFactory
from soulscribe.style.models import HumanizationConfig
from soulscribe.workflow import StudioOrchestrator


SAMPLE_1 = """Look, I'll be honest with you. The bus is never on time. Never. I have stopped
pretending to mind, the way you stop minding a neighbour's dog that barks at nothing; it is
simply part of the weather now, like drizzle, or tax letters, or my brother's opinions."""

SAMPLE_2 = """Mondays, I think, were invented by someone who hated breakfast. I mean it. Who else
would schedule the whole week to begin at the exact hour when toast is still a possibility
and not yet a memory? Anyway. The coffee machine at work is broken again. Of course it is."""


def build_mock_clients():
    """未配置 API 密钥时使用的 Mock 客户端"""
    from unittest.mock import Mock

    profile = {
        "personaName": "Resigned Commuter",
        "writingLevel": "B2 - Conversational",
        "writingScore": 58,
        "metrics": {"complexity": 45, "formality": 15, "emotionality": 60, "sarcasm": 80, "creativity": 65},
        "summary": "Weary, candid and digressive; complaints delivered as shrugs.",
        "keyTraits": [
            {"name": "Candour openers", "description": "Sentences open with 'Look' or 'I mean'",
             "example": "Look, I'll be honest with you.", "impact": "virtue"},
            {"name": "One-word verdicts", "description": "Fragment sentences close a thought",
             "example": "Never.", "impact": "virtue"},
            {"name": "Triplet lists", "description": "Closes similes with three mundane items",
             "example": "like drizzle, or tax letters, or my brother's opinions", "impact": "neutral"},
            {"name": "Resigned closers", "description": "Ends on 'Of course it is.'",
             "example": "Of course it is.", "impact": "vice"},
        ],
        "systemPrompt": "<author_neural_pattern><meta_identity><archetype>Tired cynic</archetype>"
                        "</meta_identity></author_neural_pattern>",
    }

    analysis_client = Mock()
    analysis_client.generate_structured.return_value = {
        "content": json.dumps(profile),
        "usage": {"input_tokens": 900, "output_tokens": 600, "total_tokens": 1500},
        "cost": 0.0,
        "model": "mock",
    }

    replies = iter([
        "Rain. Again. I mean, what did we expect, sunshine? In this town?",
        "Invoice received. Fine. I'll pay it, eventually, like everyone else.",
        "Oh, wonderful, another question. Go on then.",
        "Go on. Ask. I'm not going anywhere, the bus certainly isn't.",
    ])
    chat_client = Mock()
    chat_client.generate.side_effect = lambda **kwargs: {
        "content": next(replies),
        "usage": {"total_tokens": 80},
        "cost": 0.0,
        "model": "mock",
    }
    return analysis_client, chat_client


def main():
    """主函数"""
    print("=== SoulScribe 使用示例 ===\n")

    # 1. 配置LLM客户端
    print("1. 配置LLM客户端...")
    provider = os.getenv("LLM_PROVIDER", "gemini")
    key_env = {
        "gemini": "GEMINI_API_KEY",
        "openai": "OPENAI_API_KEY",
        "claude": "ANTHROPIC_API_KEY",
        "qwen": "DASHSCOPE_API_KEY",
    }.get(provider, "OPENAI_API_KEY")

    if os.getenv(key_env):
        analysis_model, chat_model = LLMFactory.default_models(provider)
        analysis_client = LLMFactory.create_client(provider=provider, model=analysis_model)
        chat_client = LLMFactory.create_client(provider=provider, model=chat_model)
    else:
        print(f"⚠️  警告: 未设置{key_env}环境变量，将使用Mock模式\n")
        analysis_client, chat_client = build_mock_clients()

    orch = StudioOrchestrator(analysis_client, chat_client)

    # 2. 提交样本（每次提交都会重新分析整份语料）
    print("2. 提交样本...")
    orch.submit_text(SAMPLE_1)
    result = orch.submit_text(SAMPLE_2)
    profile = result["profile"]
    print(f"✓ 语料 {result['doc_count']} 份, 视角: {result['lens']}")
    print(f"✓ 风格人格: {profile.persona_name} ({profile.writing_level}, {profile.writing_score}/100)")
    for impact, traits in profile.traits_by_impact().items():
        for trait in traits:
            print(f"   [{impact.value}] {trait.name}: {trait.example}")
    print()

    # 3. 风格召唤
    print("3. 风格召唤...")
    summoned = orch.summon("a rainy Tuesday", word_count=120, creativity=1.0)
    print(f"✓ {summoned['content']}\n")

    # 4. 风格改写
    print("4. 风格改写...")
    mirrored = orch.rewrite("Please find attached the invoice for last month's services.")
    print(f"✓ {mirrored['content']}\n")

    # 5. 对话测试与负反馈纠偏
    print("5. 对话测试...")
    orch.update_humanization(HumanizationConfig(imperfections=True))
    reply = orch.chat("Can I ask you something?")
    print(f"   [{reply['index']}] {reply['message'].content}")
    fixed = orch.chat_feedback(reply["index"], feedback="Less sarcastic, more tired")
    print(f"   [{fixed['index']}] (重新生成) {fixed['message'].content}\n")

    # 6. 导出系统提示词
    print("6. 导出 systemPrompt...")
    print(orch.export_system_prompt()[:200] + "...")
    print("\n=== 示例完成 ===")


if __name__ == "__main__":
    main()
