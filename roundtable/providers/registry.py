"""Per-engine cache of completion clients, one per model identifier."""

import logging
from collections.abc import Callable

from roundtable.providers.base import CompletionClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], CompletionClient]


class ClientRegistry:
    """Owns the clients used by one discussion. Never shared between engines."""

    def __init__(self, default_client: CompletionClient, factory: ClientFactory) -> None:
        self._default = default_client
        self._factory = factory
        self._clients: dict[str, CompletionClient] = {default_client.model: default_client}

    @property
    def default(self) -> CompletionClient:
        return self._default

    def get(self, model: str | None) -> CompletionClient:
        """Return the cached client for model, creating it on first use.

        None resolves to the default client.
        """
        if not model:
            return self._default
        client = self._clients.get(model)
        if client is None:
            logger.debug("Creating completion client for %s", model)
            client = self._factory(model)
            self._clients[model] = client
        return client

    def models(self) -> list[str]:
        return list(self._clients)

    def clients(self) -> dict[str, CompletionClient]:
        return dict(self._clients)

    def evict(self, model: str) -> None:
        """Drop a cached client. The default client is never evicted."""
        if model != self._default.model:
            self._clients.pop(model, None)
