"""Click entry point: build a discussion from flags and config, stream it, save the transcript."""

import asyncio
import logging
import random
import sys
import time
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from config.config_loader import AppConfig, load_config
from roundtable.channel import EventChannel
from roundtable.engine import DiscussionEngine
from roundtable.events import DiscussionSummaryEvent, ModeratorPromptEvent, RoundCompleteEvent
from roundtable.healthcheck import run_health_checks
from roundtable.i18n import t
from roundtable.models import DiscussionConfig, DiscussionResult, DiscussionSummary, Expert
from roundtable.output import FORMATS, print_event, save_to_file
from roundtable.providers.base import CompletionClient, LLMClientError
from roundtable.providers.openai_provider import ClientConfig, create_client
from roundtable.providers.registry import ClientFactory
from roundtable.topics import clean_moderator_message, clean_topic, parse_topic_file

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _client_factory(config: AppConfig, provider: str) -> ClientFactory:
    """Factory building clients for `provider` with the configured retry policy."""
    provider_cfg = config.providers.get(provider)

    def factory(model: str) -> CompletionClient:
        return create_client(
            ClientConfig(
                model=model,
                provider=provider,
                max_retries=config.llm.max_retries,
                retry_delay_sec=config.llm.retry_delay_sec,
                base_url=provider_cfg.base_url if provider_cfg else None,
                app_url=config.llm.app_url,
                app_title=config.llm.app_title,
            )
        )

    return factory


def _select_experts(config: AppConfig, panel_name: str) -> list[Expert]:
    if panel_name not in config.panels:
        known = ", ".join(sorted(config.panels)) or "none"
        raise click.BadParameter(f"Unknown panel '{panel_name}' (known: {known})", param_hint="--panel")
    experts = config.panels[panel_name]
    if not experts:
        raise click.BadParameter(f"Panel '{panel_name}' has no experts", param_hint="--panel")
    return experts


def _resolve(cli_value, meta: dict, key: str, default):
    """CLI flag > frontmatter > config default."""
    if cli_value is not None:
        return cli_value
    if key in meta:
        return meta[key]
    return default


def _check_clients(engine: DiscussionEngine) -> None:
    """Ping the default model and every expert model. Exits if the default model fails."""
    console.print("\n[bold]Checking models...[/bold]")
    results = asyncio.run(run_health_checks(engine.clients.clients()))

    failed: list[str] = []
    for model in sorted(results):
        ok, err = results[model]
        if ok:
            console.print(f"  [green]OK  [/green] {model}")
        else:
            short_err = err.splitlines()[0][:120] if err else "unknown error"
            console.print(f"  [red]FAIL[/red] {model}: {escape(short_err)}")
            failed.append(model)

    if not failed:
        console.print()
        return

    if engine.clients.default.model in failed:
        console.print("\n[bold red]Error:[/bold red] The discussion model failed the health check.")
        sys.exit(1)

    console.print(f"\n[yellow]{len(failed)} model(s) failed:[/yellow] {', '.join(failed)}")
    if not click.confirm("Continue anyway? Turns on failing models will be reported as errors.", default=True):
        sys.exit(0)
    console.print()


async def _ask_moderator(engine: DiscussionEngine) -> None:
    language = engine.config.language
    comment = await asyncio.to_thread(
        click.prompt, t("moderator.placeholder", language), default="", show_default=False
    )
    comment = clean_moderator_message(comment)
    if comment:
        engine.add_moderator_message(comment)


async def _run_discussion(
    engine: DiscussionEngine,
    output_dir: Path,
    fmt: str,
    interactive_moderator: bool,
    slug_override: str | None = None,
) -> Path:
    """Stream the discussion to the console and save the transcript."""
    language = engine.config.language
    start = time.monotonic()
    summary: DiscussionSummary | None = None
    rounds_completed = 0

    async with EventChannel(engine, pause_on_moderator_prompt=interactive_moderator) as channel:
        async for event in channel:
            print_event(event, language)
            if isinstance(event, RoundCompleteEvent):
                rounds_completed = event.round
            elif isinstance(event, DiscussionSummaryEvent):
                summary = event.summary
            elif isinstance(event, ModeratorPromptEvent) and interactive_moderator:
                try:
                    await _ask_moderator(engine)
                finally:
                    channel.resume()

    result = DiscussionResult(
        config=engine.config,
        messages=engine.messages,
        summary=summary,
        total_duration_sec=time.monotonic() - start,
        rounds_completed=rounds_completed,
    )
    saved = save_to_file(result, output_dir, fmt=fmt, slug_override=slug_override)
    console.print(f"\n[dim]Saved to: {saved} ({result.total_duration_sec:.1f}s)[/dim]")
    return saved


@click.command()
@click.argument("topic", required=False)
@click.option("--file", "topic_file", type=click.Path(exists=True), help="Read topic from .md file")
@click.option("--rounds", default=None, type=int, help="Number of discussion rounds (default: from config)")
@click.option("--language", default=None, help="Answer language code, e.g. en or de (default: from config)")
@click.option("--model", default=None, help="Fallback model for experts without their own (default: from config)")
@click.option("--provider", default=None, type=click.Choice(["openrouter", "openai"]),
              help="Completion provider (default: from config)")
@click.option("--panel", default=None, help="Expert panel name from settings.yaml (default: from config)")
@click.option("--moderator/--no-moderator", default=None,
              help="Pause after every turn for a moderator comment")
@click.option("--output", "output_path", default=None, help="Output directory (default: from config)")
@click.option("--format", "fmt", default="markdown", type=click.Choice(FORMATS), help="Transcript format")
@click.option("--seed", default=None, type=int, help="Seed speaking order and style choices")
@click.option("--verbose", is_flag=True, help="Enable DEBUG-level logging")
@click.option("--skip-health-check", is_flag=True, default=False,
              help="Skip the API connectivity check at startup")
def main(
    topic: str | None,
    topic_file: str | None,
    rounds: int | None,
    language: str | None,
    model: str | None,
    provider: str | None,
    panel: str | None,
    moderator: bool | None,
    output_path: str | None,
    fmt: str,
    seed: int | None,
    verbose: bool,
    skip_health_check: bool,
) -> None:
    """AI Expert Roundtable -- multi-round discussion between simulated experts.

    \b
    Examples:
      roundtable "How should we monetize a regional news portal?"
      roundtable "Relaunch plan for our blog" --rounds 3 --language de
      roundtable --file topic.md --moderator
      roundtable "Headless CMS or WordPress?" --model anthropic/claude-sonnet-4.5
    """
    load_dotenv()
    _setup_logging(verbose)

    try:
        config = load_config()
    except FileNotFoundError as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        sys.exit(1)

    meta: dict = {}
    slug_override: str | None = None
    if topic_file:
        topic_text, meta = parse_topic_file(Path(topic_file))
        slug_override = Path(topic_file).stem
    elif topic:
        topic_text = topic
    else:
        console.print("[bold red]Error:[/bold red] Provide a TOPIC argument or --file.")
        sys.exit(1)

    try:
        topic_text = clean_topic(topic_text)
    except ValueError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        sys.exit(1)

    try:
        effective_rounds = int(_resolve(rounds, meta, "rounds", config.defaults.rounds))
    except (TypeError, ValueError):
        effective_rounds = 0
    if not 1 <= effective_rounds <= config.defaults.max_rounds:
        console.print(
            f"[bold red]Error:[/bold red] Rounds must be between 1 and {config.defaults.max_rounds}."
        )
        sys.exit(1)

    effective_provider = provider or config.defaults.provider
    experts = _select_experts(config, str(_resolve(panel, meta, "panel", config.defaults.panel)))
    discussion = DiscussionConfig(
        topic=topic_text,
        experts=experts,
        language=str(_resolve(language, meta, "language", config.defaults.language)),
        moderator_mode=bool(_resolve(moderator, meta, "moderator", config.defaults.moderator_mode)),
        total_rounds=effective_rounds,
        model=str(_resolve(model, meta, "model", config.defaults.model)),
    )

    factory = _client_factory(config, effective_provider)
    try:
        engine = DiscussionEngine(
            factory(discussion.model),
            discussion,
            client_factory=factory,
            rng=random.Random(seed) if seed is not None else None,
        )
        if not skip_health_check:
            _check_clients(engine)
    except LLMClientError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        sys.exit(1)

    console.print(
        f"\n[bold cyan]AI Expert Roundtable[/bold cyan] — {len(experts)} experts, "
        f"{discussion.total_rounds} rounds, model {discussion.model}"
    )
    console.print(f"Panel: {', '.join(e.name for e in experts)}")
    console.print(f"Topic: [italic]{escape(topic_text[:80])}{'...' if len(topic_text) > 80 else ''}[/italic]")

    output_dir = Path(output_path) if output_path else config.defaults.output_dir
    asyncio.run(
        _run_discussion(
            engine,
            output_dir=output_dir,
            fmt=fmt,
            interactive_moderator=discussion.moderator_mode,
            slug_override=slug_override,
        )
    )


if __name__ == "__main__":
    main()
