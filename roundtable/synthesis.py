"""Lenient decoding of model output: summary JSON, consensus scores, key points."""

import json
import logging
import re

from roundtable.models import ROLE_EXPERT, SENTIMENTS, DiscussionSummary, Message

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```json\n?|\n?```")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_LEADING_FLOAT_RE = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+))")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

_MAX_LIST_ITEMS = 5
_KEY_POINT_MIN_CHARS = 20
_MAX_KEY_POINTS = 3

DEFAULT_TAKEAWAYS = ["Discussion completed successfully"]
DEFAULT_ACTION_ITEMS = ["Review the discussion transcript for detailed insights"]


def format_transcript(messages: list[Message]) -> str:
    """Expert messages only, as 'Name (Role): content' paragraphs."""
    parts = [
        f"{m.expert.name if m.expert else 'Unknown'} ({m.expert.role if m.expert else ''}): {m.content}"
        for m in messages
        if m.role == ROLE_EXPERT
    ]
    return "\n\n".join(parts)


def fallback_summary(consensus_score: float) -> DiscussionSummary:
    return DiscussionSummary(
        key_takeaways=list(DEFAULT_TAKEAWAYS),
        action_items=list(DEFAULT_ACTION_ITEMS),
        sentiment="neutral",
        sentiment_explanation="Unable to analyze sentiment",
        consensus_level=consensus_score,
        consensus_explanation="Based on automated consensus scoring",
        next_steps="Review the expert recommendations and prioritize next steps.",
    )


def decode_json_object(text: str) -> dict | None:
    """Strip code fences, take the outermost {...} block and parse it. None on failure."""
    cleaned = _FENCE_RE.sub("", text).strip()
    match = _OBJECT_RE.search(cleaned)
    candidate = match.group(0) if match else cleaned
    try:
        parsed = json.loads(candidate)
    except (ValueError, RecursionError) as exc:
        logger.warning("Failed to parse JSON from model response: %s", exc)
        return None
    return parsed if isinstance(parsed, dict) else None


def _str_list(value: object, default: list[str]) -> list[str]:
    if not isinstance(value, list):
        return list(default)
    return [str(item) for item in value[:_MAX_LIST_ITEMS]]


def _text(value: object) -> str:
    return str(value) if value else ""


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def parse_summary(text: str, consensus_score: float) -> DiscussionSummary:
    """Decode a summary response, defaulting each field independently.

    An undecodable response yields the fallback summary carrying consensus_score.
    """
    parsed = decode_json_object(text)
    if parsed is None:
        logger.warning("Could not parse summary response, using fallback")
        return fallback_summary(consensus_score)

    sentiment = parsed.get("sentiment")
    if sentiment not in SENTIMENTS:
        sentiment = "neutral"

    level = parsed.get("consensusLevel")
    consensus_level = consensus_score
    if isinstance(level, (int, float)) and not isinstance(level, bool):
        try:
            consensus_level = _clamp(float(level))
        except OverflowError:
            logger.warning("Out-of-range consensusLevel in summary, using %.2f", consensus_score)

    return DiscussionSummary(
        key_takeaways=_str_list(parsed.get("keyTakeaways"), DEFAULT_TAKEAWAYS),
        action_items=_str_list(parsed.get("actionItems"), DEFAULT_ACTION_ITEMS),
        sentiment=sentiment,
        sentiment_explanation=_text(parsed.get("sentimentExplanation")),
        consensus_level=consensus_level,
        consensus_explanation=_text(parsed.get("consensusExplanation")),
        next_steps=_text(parsed.get("nextSteps")),
    )


def parse_consensus_score(text: str) -> float | None:
    """Leading float of the response clamped to [0, 1], or None if there is none."""
    match = _LEADING_FLOAT_RE.match(text)
    if not match:
        return None
    return _clamp(float(match.group(1)))


def extract_key_points(content: str) -> list[str]:
    """First few sentences long enough to count as a point."""
    sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(content)]
    return [s for s in sentences if len(s) > _KEY_POINT_MIN_CHARS][:_MAX_KEY_POINTS]
