"""
CLI 命令行接口

提供命令行方式使用SoulScribe：分析样本、风格召唤、风格改写、对话测试
"""
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from loguru import logger

from soulscribe.document.extractor import PdfPageSource, SourceDocument, TextExtractor
from soulscribe.document.sampler import select_pages
from soulscribe.exceptions import DocumentUnreadableError, SoulScribeError
from soulscribe.llm.base import BaseLLMClient
from soulscribe.llm.exceptions import LLMError
from soulscribe.llm.factory import LLMFactory
from soulscribe.studio import MirrorEditor, StyleSummoner, StyleTester
from soulscribe.studio.generator import DEFAULT_CREATIVITY, DEFAULT_WORDS
from soulscribe.style.analyzer import StyleAnalyzer
from soulscribe.style.lens import fixed_lens, random_lens, ANALYSIS_LENSES
from soulscribe.style.models import ChatRole, Feedback, HumanizationConfig, StyleProfile, TraitImpact
from soulscribe.web.config import settings

console = Console()

IMPACT_STYLES = {
    TraitImpact.VIRTUE: ("Virtues", "green"),
    TraitImpact.VICE: ("Vices", "red"),
    TraitImpact.NEUTRAL: ("Neutral traits", "cyan"),
}

FEEDBACK_MARKS = {Feedback.POSITIVE: " (+)", Feedback.NEGATIVE: " (-)"}


def get_clients(provider: Optional[str] = None) -> Tuple[BaseLLMClient, BaseLLMClient]:
    """获取 (分析客户端, 交互客户端)"""
    provider = (provider or settings.provider).lower()
    analysis_default, chat_default = LLMFactory.default_models(provider)
    common = {
        "provider": provider,
        "gemini_api_key": settings.GEMINI_API_KEY,
        "openai_api_key": settings.OPENAI_API_KEY,
        "openai_api_base": settings.OPENAI_API_BASE,
        "anthropic_api_key": settings.ANTHROPIC_API_KEY,
        "dashscope_api_key": settings.DASHSCOPE_API_KEY,
        "timeout": settings.LLM_TIMEOUT,
    }
    analysis = LLMFactory.create_client(model=settings.ANALYSIS_MODEL or analysis_default, **common)
    chat = LLMFactory.create_client(model=settings.CHAT_MODEL or chat_default, **common)
    return analysis, chat


def load_profile(path: str) -> StyleProfile:
    """从 JSON 文件加载风格档案（camelCase 或 snake_case 均可）"""
    return StyleProfile.model_validate_json(Path(path).read_text(encoding="utf-8"))


def _fail(message: str, error: Exception):
    console.print(f"[red]Error: {error}[/red]")
    logger.exception(message)
    sys.exit(1)


def _score_bar(score: float, width: int = 20) -> str:
    filled = int(round(score / 100 * width))
    return "█" * filled + "░" * (width - filled)


def render_profile(profile: StyleProfile):
    """渲染风格档案"""
    console.print(Panel.fit(
        f"[bold]{profile.persona_name}[/bold]\n\n"
        f"[cyan]Level:[/cyan] {profile.writing_level}\n"
        f"[cyan]Score:[/cyan] {_score_bar(profile.writing_score)} {profile.writing_score}/100",
        title="Style Profile",
        border_style="magenta",
    ))

    if profile.metrics:
        table = Table(title="Metrics", show_header=True, header_style="bold cyan")
        table.add_column("Axis", width=14)
        table.add_column("Value", width=28)
        for axis, value in profile.metrics.model_dump().items():
            table.add_row(axis, f"{_score_bar(value)} {value:.0f}")
        console.print(table)

    for impact, traits in profile.traits_by_impact().items():
        if not traits:
            continue
        title, color = IMPACT_STYLES[impact]
        table = Table(title=f"{title} ({len(traits)})", show_header=True, header_style=f"bold {color}")
        table.add_column("Trait", min_width=20)
        table.add_column("Description")
        table.add_column("Example", style="dim")
        for trait in traits:
            table.add_row(trait.name, trait.description, trait.example)
        console.print(table)

    console.print(Panel(profile.summary, title="Summary", border_style="blue"))


@click.group()
@click.version_option(version="0.1.0", prog_name="soulscribe")
def cli():
    """
    SoulScribe - 写作风格分析与复刻

    从样本文本中提取作者的风格档案，并以该风格生成、改写与对话。
    """
    pass


@cli.command()
@click.argument("files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.option("--text", "texts", multiple=True, help="Pasted sample text (repeatable)")
@click.option("--lens", type=click.Choice([lens.name for lens in ANALYSIS_LENSES], case_sensitive=False),
              default=None, help="Fix the analysis lens instead of picking one at random")
@click.option("--provider", default=None, help="LLM provider (gemini/openai/claude/qwen)")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Save the profile as JSON")
@click.option("--prompt-out", type=click.Path(dir_okay=False), default=None, help="Save the system prompt")
def analyze(files: Tuple[str, ...], texts: Tuple[str, ...], lens: Optional[str],
            provider: Optional[str], output: Optional[str], prompt_out: Optional[str]):
    """
    分析样本文件（PDF / TXT）并生成风格档案

    示例：soulscribe analyze essay.pdf notes.txt -o profile.json
    """
    if not files and not texts:
        console.print("[yellow]Provide at least one file or --text sample[/yellow]")
        sys.exit(2)

    try:
        extractor = TextExtractor(min_chars=settings.MIN_SAMPLE_CHARS)
        corpus: List[str] = []
        for path in files:
            corpus.append(extractor.extract(SourceDocument.from_path(path)))
            console.print(f"[green]✓[/green] {path}")
        for text in texts:
            corpus.append(extractor.extract_text(text))

        analysis_client, _ = get_clients(provider)
        analyzer = StyleAnalyzer(
            analysis_client,
            lens_selector=fixed_lens(lens) if lens else random_lens,
            max_chars=settings.MAX_ANALYSIS_CHARS,
        )

        with console.status(f"[cyan]Dissecting {len(corpus)} document(s)...[/cyan]"):
            result = analyzer.analyze(corpus)

        profile = result["profile"]
        render_profile(profile)
        console.print(
            f"[dim]Lens: {result['lens'].name} | "
            f"Tokens: {result['usage'].get('total_tokens', 0)} | Cost: ${result['cost']:.4f}"
            f"{' | input truncated' if result['truncated'] else ''}[/dim]"
        )

        if output:
            Path(output).write_text(profile.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
            console.print(f"[green]✓[/green] Profile saved to {output}")
        if prompt_out:
            Path(prompt_out).write_text(profile.system_prompt, encoding="utf-8")
            console.print(f"[green]✓[/green] System prompt saved to {prompt_out}")

    except (SoulScribeError, LLMError, ValueError) as e:
        _fail("风格分析失败", e)


@cli.command()
@click.argument("profile_json", type=click.Path(exists=True, dir_okay=False))
@click.option("--topic", prompt="Topic", help="What to write about")
@click.option("--words", default=DEFAULT_WORDS, show_default=True, type=click.IntRange(50, 2000),
              help="Target word count")
@click.option("--creativity", default=DEFAULT_CREATIVITY, show_default=True, type=click.FloatRange(0.0, 2.0),
              help="Sampling temperature")
@click.option("--provider", default=None, help="LLM provider")
def summon(profile_json: str, topic: str, words: int, creativity: float, provider: Optional[str]):
    """
    以档案风格按主题生成原创文本

    示例：soulscribe summon profile.json --topic "Monday mornings" --words 300
    """
    try:
        profile = load_profile(profile_json)
        _, chat_client = get_clients(provider)
        with console.status(f"[cyan]Summoning {profile.persona_name}...[/cyan]"):
            result = StyleSummoner(chat_client).summon(profile, topic, words, creativity)

        console.print(Panel(result["content"], title=profile.persona_name, border_style="magenta"))
        console.print(f"[dim]{result['word_count']} words (target {result['target_words']})[/dim]")

    except (SoulScribeError, LLMError, ValueError) as e:
        _fail("风格召唤失败", e)


@cli.command()
@click.argument("profile_json", type=click.Path(exists=True, dir_okay=False))
@click.argument("text_file", required=False, type=click.Path(exists=True, dir_okay=False))
@click.option("--provider", default=None, help="LLM provider")
def mirror(profile_json: str, text_file: Optional[str], provider: Optional[str]):
    """
    将文本改写为档案风格（未给出文件时从标准输入读取）

    示例：soulscribe mirror profile.json draft.txt
    """
    try:
        profile = load_profile(profile_json)
        text = Path(text_file).read_text(encoding="utf-8") if text_file else sys.stdin.read()
        _, chat_client = get_clients(provider)
        with console.status("[cyan]Rewriting...[/cyan]"):
            result = MirrorEditor(chat_client).rewrite(profile, text)
        console.print(Panel(result["content"], title=f"{profile.persona_name} mirror", border_style="magenta"))

    except (SoulScribeError, LLMError, ValueError) as e:
        _fail("风格改写失败", e)


def _render_history(tester: StyleTester):
    for index, message in enumerate(tester.history):
        mark = FEEDBACK_MARKS.get(message.feedback, "")
        color = "cyan" if message.role == ChatRole.USER else "magenta"
        console.print(f"[{color}][{index}] {message.role.value}{mark}:[/{color}] {message.content}")


@cli.command()
@click.argument("profile_json", type=click.Path(exists=True, dir_okay=False))
@click.option("--burstiness/--no-burstiness", default=True, help="Alternate very short and long sentences")
@click.option("--imperfections/--no-imperfections", default=False, help="Simulate doubts and self-corrections")
@click.option("--personal-touch/--no-personal-touch", default=True, help="Opinionated, subjective voice")
@click.option("--anti-repetition/--no-anti-repetition", default=True, help="No list structures unless the author uses them")
@click.option("--cultural-context/--no-cultural-context", default=False, help="Add real-world references")
@click.option("--provider", default=None, help="LLM provider")
def chat(profile_json: str, burstiness: bool, imperfections: bool, personal_touch: bool,
         anti_repetition: bool, cultural_context: bool, provider: Optional[str]):
    """
    与风格克隆体对话

    命令：/good N 正反馈，/bad N 意见 负反馈并重新生成，/history 查看历史，/quit 退出
    """
    try:
        profile = load_profile(profile_json)
        _, chat_client = get_clients(provider)
    except (SoulScribeError, LLMError, ValueError) as e:
        _fail("对话初始化失败", e)
        return

    tester = StyleTester(
        chat_client,
        profile,
        humanization=HumanizationConfig(
            burstiness=burstiness,
            imperfections=imperfections,
            personal_touch=personal_touch,
            anti_repetition=anti_repetition,
            cultural_context=cultural_context,
        ),
        window=settings.CHAT_WINDOW,
    )
    console.print(f"[magenta]Talking to {profile.persona_name}. /quit to exit.[/magenta]")

    while True:
        line = click.prompt("you", prompt_suffix="> ", default="", show_default=False).strip()
        if not line:
            continue
        if line in ("/quit", "/exit"):
            break
        if line == "/history":
            _render_history(tester)
            continue

        try:
            if line.startswith("/good "):
                index = int(line.split()[1])
                tester.mark_positive(index)
                console.print(f"[green]Marked [{index}] as positive[/green]")
                continue
            if line.startswith("/bad "):
                parts = line.split(maxsplit=2)
                index = int(parts[1])
                feedback = parts[2] if len(parts) > 2 else click.prompt("What was wrong")
                with console.status("[cyan]Regenerating...[/cyan]"):
                    reply = tester.mark_negative(index, feedback)
            else:
                with console.status("[cyan]...[/cyan]"):
                    reply = tester.send(line)
            console.print(f"[magenta][{len(tester.history) - 1}] {profile.persona_name}:[/magenta] {reply.content}")
        except (SoulScribeError, ValueError) as e:
            console.print(f"[red]Error: {e}[/red]")


@cli.command()
@click.argument("pdf", type=click.Path(exists=True, dir_okay=False))
def sample(pdf: str):
    """
    查看长文档的采样页码（不调用模型）

    示例：soulscribe sample book.pdf
    """
    try:
        source = PdfPageSource(Path(pdf).read_bytes(), Path(pdf).name)
        total = source.page_count
        pages = select_pages(total) if total else []
    except SoulScribeError as e:
        _fail("读取PDF失败", e)
        return

    table = Table(title=f"{Path(pdf).name}: {len(pages)} of {total} pages", show_header=True,
                  header_style="bold cyan")
    table.add_column("Page", width=8)
    table.add_column("Preview")
    try:
        for page_number in pages:
            try:
                preview = source.page_text(page_number)[:80]
            except Exception as e:
                raise DocumentUnreadableError(Path(pdf).name, f"page {page_number}: {e}") from e
            table.add_row(str(page_number), preview or "[dim](no text)[/dim]")
    except SoulScribeError as e:
        _fail("读取PDF页面失败", e)
        return
    console.print(table)


if __name__ == "__main__":
    cli()
