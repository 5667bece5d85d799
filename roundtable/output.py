"""Rich console rendering of discussion events and transcript export to Markdown or text."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.text import Text

from roundtable.events import (
    DiscussionCompleteEvent,
    DiscussionEvent,
    DiscussionSummaryEvent,
    ErrorEvent,
    ExpertCompleteEvent,
    ExpertStartEvent,
    ModeratorPromptEvent,
    RoundCompleteEvent,
    TokenEvent,
)
from roundtable.i18n import t
from roundtable.models import ROLE_MODERATOR, DiscussionResult, DiscussionSummary, Message

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)

FORMATS = ("markdown", "text")


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def print_event(event: DiscussionEvent, language: str = "en") -> None:
    """Render one event as it arrives. Tokens are printed inline."""
    if isinstance(event, ExpertStartEvent):
        console.print()
        console.print(
            Rule(
                f"[bold {event.expert_color}]{event.expert_name}[/] "
                f"[dim]{t('round.indicator', language)} {event.round} · {event.debate_style}[/dim]"
            )
        )
    elif isinstance(event, TokenEvent):
        console.print(event.content, end="", markup=False, highlight=False)
    elif isinstance(event, ExpertCompleteEvent):
        console.print()
    elif isinstance(event, RoundCompleteEvent):
        score = event.consensus_score or 0.0
        console.print()
        console.print(
            Text(
                f"{t('round.indicator', language)} {event.round} · "
                f"{t('round.consensus', language)}: {score:.0%}",
                style="bold cyan",
            )
        )
    elif isinstance(event, ModeratorPromptEvent):
        console.print(Text(event.message, style="dim italic"))
    elif isinstance(event, DiscussionSummaryEvent):
        print_summary(event.summary, language)
    elif isinstance(event, DiscussionCompleteEvent):
        console.print(Rule(f"[bold green]{t('discussion.complete', language)}[/bold green]"))
    elif isinstance(event, ErrorEvent):
        console.print(f"\n[bold red]Error:[/bold red] {escape(event.message)}")


def print_summary(summary: DiscussionSummary, language: str = "en") -> None:
    """Print the summary as a Rich panel of markdown."""
    console.print(Panel(Markdown(_summary_markdown(summary, language, heading="###")),
                        title=f"[bold]{t('summary.title', language)}[/bold]",
                        border_style="green"))


def _sentiment_label(sentiment: str, language: str) -> str:
    return t(f"sentiment.{sentiment}", language)


def _speaker(msg: Message, language: str) -> tuple[str, str]:
    if msg.role == ROLE_MODERATOR:
        return t("moderator.label", language), ""
    if msg.expert is None:
        return t("unknown.speaker", language), ""
    return msg.expert.name, msg.expert.role


def _by_round(messages: list[Message]) -> dict[int, list[Message]]:
    grouped: dict[int, list[Message]] = {}
    for msg in messages:
        grouped.setdefault(msg.round or 1, []).append(msg)
    return dict(sorted(grouped.items()))


def _summary_markdown(summary: DiscussionSummary, language: str, heading: str = "###") -> str:
    lines = [f"{heading} {t('summary.keyTakeaways', language)}", ""]
    lines += [f"{i}. {item}" for i, item in enumerate(summary.key_takeaways, start=1)]
    lines += ["", f"{heading} {t('summary.actionItems', language)}", ""]
    lines += [f"- [ ] {item}" for item in summary.action_items]
    lines += [
        "",
        f"{heading} {t('summary.sentiment', language)}",
        "",
        f"**{_sentiment_label(summary.sentiment, language)}:** {summary.sentiment_explanation}",
        "",
        f"{heading} {t('summary.consensus', language)}",
        "",
        f"**{round(summary.consensus_level * 100)}%:** {summary.consensus_explanation}",
        "",
        f"{heading} {t('summary.nextSteps', language)}",
        "",
        summary.next_steps,
    ]
    return "\n".join(lines)


def render_markdown(result: DiscussionResult, created: datetime | None = None) -> str:
    language = result.config.language
    created = created or datetime.now()
    lines: list[str] = [
        f"# {result.display_title}",
        "",
        f"**{t('export.created', language)}:** {created.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        "---",
        "",
        f"## {t('discussion.topic', language)}",
        "",
        result.config.topic,
        "",
        f"## {t('discussion.panel', language)}",
        "",
    ]
    lines += [f"- **{e.name}** - {e.role}" for e in result.config.experts]
    lines += ["", "---", "", f"## {t('discussion.history', language)}", ""]

    for round_number, messages in _by_round(result.messages).items():
        lines += [f"### {t('round.indicator', language)} {round_number}", ""]
        for msg in messages:
            name, role = _speaker(msg, language)
            lines.append(f"#### {name} ({role})" if role else f"#### {name}")
            lines += ["", msg.content, ""]

    if result.summary:
        lines += ["---", "", f"## {t('summary.title', language)}", ""]
        lines.append(_summary_markdown(result.summary, language))
        lines.append("")

    return "\n".join(lines)


def render_text(result: DiscussionResult, created: datetime | None = None) -> str:
    language = result.config.language
    created = created or datetime.now()
    title = result.display_title
    rule = "-" * 20
    lines: list[str] = [
        title,
        "=" * len(title),
        "",
        f"{t('export.created', language)}: {created.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        t("discussion.topic", language).upper(),
        rule,
        "",
        result.config.topic,
        "",
        t("discussion.panel", language).upper(),
        rule,
        "",
    ]
    lines += [f"• {e.name} - {e.role}" for e in result.config.experts]
    lines += ["", t("discussion.history", language).upper(), rule, ""]

    for round_number, messages in _by_round(result.messages).items():
        lines += [f"--- {t('round.indicator', language)} {round_number} ---", ""]
        for msg in messages:
            name, role = _speaker(msg, language)
            lines += [f"[{name} - {role}]" if role else f"[{name}]", "", msg.content, ""]

    summary = result.summary
    if summary:
        lines += [t("summary.title", language).upper(), rule, ""]
        lines.append(f"{t('summary.keyTakeaways', language)}:")
        lines += [f"{i}. {item}" for i, item in enumerate(summary.key_takeaways, start=1)]
        lines += ["", f"{t('summary.actionItems', language)}:"]
        lines += [f"• {item}" for item in summary.action_items]
        lines += [
            "",
            f"{t('summary.sentiment', language)}: {_sentiment_label(summary.sentiment, language)}",
            summary.sentiment_explanation,
            "",
            f"{t('summary.consensus', language)}: {round(summary.consensus_level * 100)}%",
            summary.consensus_explanation,
            "",
            f"{t('summary.nextSteps', language)}:",
            summary.next_steps,
        ]

    return "\n".join(lines) + "\n"


def save_to_file(
    result: DiscussionResult,
    output_dir: Path,
    fmt: str = "markdown",
    slug_override: str | None = None,
) -> Path:
    """Save the discussion transcript as <timestamp>_<slug>.md or .txt.

    Args:
        result: The finished discussion.
        output_dir: Directory to save the file in (created if missing).
        fmt: "markdown" or "text".
        slug_override: Filename stem to use instead of one derived from the title.

    Returns:
        Path to the saved file.
    """
    if fmt not in FORMATS:
        raise ValueError(f"Unknown export format: {fmt}")
    output_dir.mkdir(parents=True, exist_ok=True)

    now = datetime.now()
    slug = slug_override if slug_override is not None else _slug(result.display_title)
    suffix = ".md" if fmt == "markdown" else ".txt"
    filepath = output_dir / f"{now.strftime('%Y%m%d_%H%M%S')}_{slug}{suffix}"

    content = render_markdown(result, now) if fmt == "markdown" else render_text(result, now)
    filepath.write_text(content, encoding="utf-8")
    logger.info("Discussion saved to: %s", filepath)
    return filepath
