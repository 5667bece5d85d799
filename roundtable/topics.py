"""Topic files (markdown + optional YAML frontmatter) and prompt-injection sanitising."""

import re
from pathlib import Path

import frontmatter

MIN_TOPIC_CHARS = 10
MAX_TOPIC_CHARS = 5000
MAX_MODERATOR_CHARS = 2000

_INJECTION_PATTERNS = (
    re.compile(r"ignore\s+(all\s+)?previous\s+instructions", re.IGNORECASE),
    re.compile(r"system\s*:", re.IGNORECASE),
    re.compile(r"\[INST\]", re.IGNORECASE),
    re.compile(r"<\|.*?\|>"),
)

_KNOWN_KEYS = {"rounds", "language", "model", "moderator", "panel"}


def sanitize_for_prompt(text: str) -> str:
    """Strip common prompt-injection markers from user-supplied text."""
    for pattern in _INJECTION_PATTERNS:
        text = pattern.sub("", text)
    return text.strip()


def clean_topic(text: str) -> str:
    """Sanitise and bound a discussion topic.

    Raises:
        ValueError: If the topic is shorter than MIN_TOPIC_CHARS after cleaning.
    """
    topic = sanitize_for_prompt(text[:MAX_TOPIC_CHARS])
    if len(topic) < MIN_TOPIC_CHARS:
        raise ValueError(f"Topic must be at least {MIN_TOPIC_CHARS} characters")
    return topic


def clean_moderator_message(text: str) -> str:
    return sanitize_for_prompt(text[:MAX_MODERATOR_CHARS])


def parse_topic_file(file_path: Path) -> tuple[str, dict]:
    """Parse a markdown topic file with optional YAML frontmatter.

    Returns:
        (topic, metadata) where topic is the body text and metadata holds any
        of: rounds (int), language (str), model (str), moderator (bool),
        panel (str). Unknown keys are dropped. If no frontmatter, metadata is {}.
    """
    post = frontmatter.load(str(file_path))
    topic = post.content.strip()
    metadata = {k: v for k, v in post.metadata.items() if k in _KNOWN_KEYS}
    return topic, metadata
