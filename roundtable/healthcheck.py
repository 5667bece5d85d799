"""Client health checks — ping each model before starting a discussion."""

import asyncio
import logging

from roundtable.providers.base import CompletionClient

logger = logging.getLogger(__name__)

_PING_PROMPT = "Reply with the word OK only."
_PING_MAX_TOKENS = 5
_TIMEOUT_SEC = 15.0


async def _check_one(model: str, client: CompletionClient) -> tuple[str, bool, str]:
    """Ping a single client. Returns (model, ok, error_message)."""
    try:
        await asyncio.wait_for(
            client.generate(_PING_PROMPT, max_tokens=_PING_MAX_TOKENS, temperature=0.0),
            timeout=_TIMEOUT_SEC,
        )
        return model, True, ""
    except Exception as exc:
        logger.debug("Health check failed for %s: %s", model, exc)
        return model, False, str(exc) or type(exc).__name__


async def run_health_checks(
    clients: dict[str, CompletionClient],
) -> dict[str, tuple[bool, str]]:
    """Ping all clients in parallel.

    Returns:
        Dict mapping model id -> (ok, error_message).
        error_message is "" when ok is True.
    """
    results = await asyncio.gather(*(_check_one(m, c) for m, c in clients.items()))
    return {model: (ok, err) for model, ok, err in results}
