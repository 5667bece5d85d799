"""Discussion orchestration: rounds, sequential expert turns, consensus, summary."""

import asyncio
import copy
import logging
import random
import uuid
from collections.abc import AsyncIterator
from contextlib import aclosing

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
from roundtable.models import (
    ROLE_EXPERT,
    ROLE_MODERATOR,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_NOT_STARTED,
    STATUS_RUNNING,
    DiscussionConfig,
    DiscussionSummary,
    EngineState,
    Expert,
    Message,
)
from roundtable.prompts import build_consensus_prompt, build_summary_prompt, build_turn_prompt
from roundtable.providers.base import CompletionClient, LLMClientError
from roundtable.providers.openai_provider import ClientConfig, create_client
from roundtable.providers.registry import ClientFactory, ClientRegistry
from roundtable.scheduler import StyleSelector, expert_order
from roundtable.synthesis import (
    extract_key_points,
    fallback_summary,
    format_transcript,
    parse_consensus_score,
    parse_summary,
)

logger = logging.getLogger(__name__)

# Delay before each retry of a failed turn; one initial attempt plus one per entry.
_RETRY_BACKOFF_SEC: tuple[float, ...] = (1.0, 2.0)

_TURN_MAX_TOKENS = 450
_TURN_TEMPERATURE = 0.8
_FINAL_TURN_TEMPERATURE = 0.6
_MIN_CONTENT_CHARS = 20

_CONSENSUS_MIN_MESSAGES = 5
_CONSENSUS_MAX_TOKENS = 10
_CONSENSUS_TEMPERATURE = 0.1
_UNCERTAIN_CONSENSUS = 0.5

_SUMMARY_MAX_TOKENS = 1000
_SUMMARY_TEMPERATURE = 0.3

_EARLY_STOP_SCORE = 0.85
_EARLY_STOP_MIN_ROUND = 3


def _default_factory(provider: str) -> ClientFactory:
    def factory(model: str) -> CompletionClient:
        return create_client(ClientConfig(model=model, provider=provider))

    return factory


class DiscussionEngine:
    """Runs one discussion and reports every step as a DiscussionEvent.

    The engine owns its state outright. Callers observe progress through the
    events from run() and may only add moderator comments via
    add_moderator_message().
    """

    def __init__(
        self,
        client: CompletionClient,
        config: DiscussionConfig,
        client_factory: ClientFactory | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config
        self._rng = rng or random.Random()
        factory = client_factory or _default_factory(getattr(client, "provider", "openrouter"))
        self._clients = ClientRegistry(client, factory)
        # Build every expert's client now so credential errors raise before any event
        for expert in config.experts:
            self._clients.get(expert.model or config.model)
        self._styles = StyleSelector(self._rng)
        self._state = EngineState()
        self._cancelled = False

    @property
    def config(self) -> DiscussionConfig:
        return self._config

    @property
    def clients(self) -> ClientRegistry:
        return self._clients

    @property
    def messages(self) -> list[Message]:
        return list(self._state.messages)

    @property
    def state(self) -> EngineState:
        """A snapshot; mutating it does not affect the engine."""
        snapshot = copy.deepcopy(self._state)
        snapshot.used_styles = self._styles.used
        return snapshot

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop producing events at the next fragment or turn boundary."""
        self._cancelled = True

    def add_moderator_message(self, content: str) -> Message:
        """Append a moderator comment so the next turn's prompt picks it up."""
        if not content.strip():
            raise ValueError("Moderator message cannot be empty")
        message = Message(
            id=f"msg_mod_{uuid.uuid4().hex}",
            content=content,
            role=ROLE_MODERATOR,
            round=self._state.current_round,
        )
        self._state.messages.append(message)
        return message

    async def run(self) -> AsyncIterator[DiscussionEvent]:
        """Run every round, then the summary. Stops early on strong consensus."""
        if self._state.status != STATUS_NOT_STARTED:
            raise RuntimeError(f"Discussion already {self._state.status.lower()}")
        self._state.status = STATUS_RUNNING
        self._state.is_running = True

        try:
            for round_number in range(1, self._config.total_rounds + 1):
                score: float | None = None
                async for event in self.run_round(round_number):
                    yield event
                    if isinstance(event, RoundCompleteEvent):
                        score = event.consensus_score

                if self._cancelled:
                    self._state.status = STATUS_CANCELLED
                    return

                if (
                    round_number >= _EARLY_STOP_MIN_ROUND
                    and score is not None
                    and score > _EARLY_STOP_SCORE
                ):
                    logger.info(
                        "Consensus %.2f after round %d, ending discussion early",
                        score, round_number,
                    )
                    break

            summary = await self.generate_summary()
            yield DiscussionSummaryEvent(summary=summary)
            self._state.status = STATUS_COMPLETED
            yield DiscussionCompleteEvent()
        finally:
            self._state.is_running = False

    async def run_round(self, round_number: int) -> AsyncIterator[DiscussionEvent]:
        self._state.current_round = round_number
        self._styles.reset()

        order = expert_order(self._config.experts, round_number, self._config.total_rounds, self._rng)
        logger.info(
            "Starting round %d/%d: %s",
            round_number, self._config.total_rounds, ", ".join(e.name for e in order),
        )

        for expert in order:
            if self._cancelled:
                return
            async for event in self.run_expert_turn(expert, round_number):
                yield event
            if self._cancelled:
                return

            if self._config.moderator_mode:
                yield ModeratorPromptEvent(
                    message=f"{expert.name} has finished. You can add a comment or question, or skip to continue."
                )

        score = await self.analyze_consensus()
        self._state.consensus_score = score
        logger.info("Round %d complete, consensus %.2f", round_number, score)
        yield RoundCompleteEvent(round=round_number, consensus_score=score)

    async def run_expert_turn(self, expert: Expert, round_number: int) -> AsyncIterator[DiscussionEvent]:
        """Stream one expert's turn, retrying failed attempts on the backoff schedule.

        Every attempt announces itself with an ExpertStartEvent. When all
        attempts fail an ErrorEvent is emitted and the turn adds no message.
        """
        attempts = len(_RETRY_BACKOFF_SEC) + 1
        last_error: Exception | None = None

        for attempt in range(attempts):
            style = self._styles.next_style()
            yield ExpertStartEvent(
                expert_id=expert.id,
                expert_name=expert.name,
                expert_color=expert.color,
                round=round_number,
                debate_style=style,
            )

            prompt = build_turn_prompt(
                self._config,
                expert,
                round_number,
                style,
                self._state.messages,
                self._state.expert_points.get(expert.name, []),
                self._rng,
            )
            if round_number >= self._config.total_rounds:
                temperature = _FINAL_TURN_TEMPERATURE
            else:
                temperature = _TURN_TEMPERATURE

            content = ""
            try:
                client = self._clients.get(expert.model or self._config.model)
                stream = client.generate_stream(prompt, max_tokens=_TURN_MAX_TOKENS, temperature=temperature)
                async with aclosing(stream) as fragments:
                    async for fragment in fragments:
                        content += fragment
                        yield TokenEvent(content=fragment)
                        if self._cancelled:
                            return
                if len(content.strip()) < _MIN_CONTENT_CHARS:
                    raise LLMClientError(client.model, "Response too short, possibly failed")
            except Exception as exc:
                last_error = exc
            else:
                message = self._record_turn(expert, round_number, style, content)
                yield ExpertCompleteEvent(
                    message_id=message.id,
                    expert_id=expert.id,
                    full_content=content,
                )
                return

            if attempt < attempts - 1:
                delay = _RETRY_BACKOFF_SEC[attempt]
                logger.warning(
                    "Retrying %s's turn in %.1fs (attempt %d/%d): %s",
                    expert.name, delay, attempt + 2, attempts, last_error,
                )
                await asyncio.sleep(delay)

        logger.warning("Giving up on %s's turn in round %d: %s", expert.name, round_number, last_error)
        yield ErrorEvent(
            message=f"Failed to get response from {expert.name} after {attempts} attempts: {last_error}"
        )

    def _record_turn(self, expert: Expert, round_number: int, style: str, content: str) -> Message:
        points = self._state.expert_points.setdefault(expert.name, [])
        points.extend(extract_key_points(content))

        message = Message(
            id=f"msg_{uuid.uuid4().hex}",
            content=content,
            role=ROLE_EXPERT,
            round=round_number,
            debate_style=style,
            expert=expert,
        )
        self._state.messages.append(message)
        return message

    async def analyze_consensus(self) -> float:
        """Model-estimated agreement in [0, 1] over the latest messages.

        Returns 0.0 without calling the model while the log is short, and 0.5
        when the model call or its parsing fails.
        """
        messages = self._state.messages
        if len(messages) < _CONSENSUS_MIN_MESSAGES:
            return 0.0

        prompt = build_consensus_prompt(messages)
        try:
            response = await self._clients.default.generate(
                prompt,
                max_tokens=_CONSENSUS_MAX_TOKENS,
                temperature=_CONSENSUS_TEMPERATURE,
            )
        except Exception as exc:
            logger.warning("Consensus analysis failed: %s", exc)
            return _UNCERTAIN_CONSENSUS

        score = parse_consensus_score(response)
        if score is None:
            logger.warning("Unparsable consensus score: %r", response)
            return _UNCERTAIN_CONSENSUS
        return score

    async def generate_summary(self) -> DiscussionSummary:
        """Structured summary of all expert messages. Never raises."""
        prompt = build_summary_prompt(self._config, format_transcript(self._state.messages))
        try:
            response = await self._clients.default.generate(
                prompt,
                max_tokens=_SUMMARY_MAX_TOKENS,
                temperature=_SUMMARY_TEMPERATURE,
            )
            summary = parse_summary(response, self._state.consensus_score)
        except Exception as exc:
            logger.warning("Summary generation failed, using fallback: %s", exc)
            return fallback_summary(self._state.consensus_score)
        return summary
