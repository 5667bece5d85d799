"""Shared pytest fixtures."""

import json
import random
from collections.abc import AsyncIterator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

import roundtable.engine as engine_module
from config.config_loader import AppConfig, DefaultsConfig, LLMConfig, ProviderConfig
from roundtable.engine import DiscussionEngine
from roundtable.models import DiscussionConfig, Expert
from roundtable.providers.base import CompletionClient

DEFAULT_TURN = (
    "We should start with a focused pilot in two regions. "
    "Measure retention weekly and adjust the editorial mix accordingly. "
    "Budget discipline matters more than reach in the first quarter."
)

SUMMARY_JSON = json.dumps(
    {
        "keyTakeaways": ["Start small", "Measure retention"],
        "actionItems": ["Pick pilot regions"],
        "sentiment": "positive",
        "sentimentExplanation": "Constructive debate",
        "consensusLevel": 0.7,
        "consensusExplanation": "Broad agreement",
        "nextSteps": "Run the pilot.",
    }
)


def make_expert(name: str, role: str, model: str | None = None) -> Expert:
    return Expert(
        id=name.lower(),
        name=name,
        role=role,
        personality="Pragmatic",
        expertise=["testing"],
        system_prompt=f"You are {name}, a {role}.",
        color="#123456",
        model=model,
    )


class MockClient(CompletionClient):
    """Test double CompletionClient with scripted stream and generate output.

    stream_text may be a string, an Exception to raise, or a callable taking
    the prompt and returning either of those.
    """

    def __init__(
        self,
        model_name: str = "mock/model",
        stream_text=DEFAULT_TURN,
        consensus_text: str = "0.3",
        summary_text: str = SUMMARY_JSON,
        fragment_size: int = 16,
    ) -> None:
        self._model = model_name
        self.stream_text = stream_text
        self.consensus_text = consensus_text
        self.summary_text = summary_text
        self.fragment_size = fragment_size
        self.stream_calls = 0
        self.prompts: list[str] = []
        self.temperatures: list[float] = []
        # Shadow the class method with an AsyncMock at the instance level.
        self.generate = AsyncMock(side_effect=self._scripted_generate)  # type: ignore[assignment]

    @property
    def model(self) -> str:
        return self._model

    async def _scripted_generate(self, prompt: str, max_tokens: int = 500, temperature: float = 0.7) -> str:
        if "rate the consensus level" in prompt:
            return self.consensus_text
        return self.summary_text

    async def generate(self, prompt: str, max_tokens: int = 500, temperature: float = 0.7) -> str:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return await self._scripted_generate(prompt, max_tokens, temperature)

    async def generate_stream(
        self, prompt: str, max_tokens: int = 500, temperature: float = 0.7
    ) -> AsyncIterator[str]:
        self.stream_calls += 1
        self.prompts.append(prompt)
        self.temperatures.append(temperature)
        text = self.stream_text(prompt) if callable(self.stream_text) else self.stream_text
        if isinstance(text, Exception):
            raise text
        for i in range(0, len(text), self.fragment_size):
            yield text[i:i + self.fragment_size]


async def collect(events) -> list:
    return [event async for event in events]


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    """Turn retries without waiting."""
    monkeypatch.setattr(engine_module, "_RETRY_BACKOFF_SEC", (0.0, 0.0))


@pytest.fixture
def experts() -> list[Expert]:
    return [
        make_expert("Sarah", "Business Developer"),
        make_expert("Marcus", "WordPress Developer"),
        make_expert("Lisa", "SEO Expert"),
    ]


@pytest.fixture
def discussion_config(experts) -> DiscussionConfig:
    return DiscussionConfig(
        topic="How should we monetize a regional news portal?",
        experts=experts,
        language="en",
        moderator_mode=False,
        total_rounds=2,
        model="mock/model",
    )


@pytest.fixture
def mock_client() -> MockClient:
    return MockClient()


@pytest.fixture
def make_engine(mock_client):
    """Build an engine whose per-model clients come from `clients` (default: mock_client)."""

    def _make(config: DiscussionConfig, clients: dict[str, MockClient] | None = None, seed: int = 7):
        registry = clients or {}

        def factory(model: str) -> CompletionClient:
            return registry.get(model, mock_client)

        return DiscussionEngine(mock_client, config, client_factory=factory, rng=random.Random(seed))

    return _make


@pytest.fixture
def sample_app_config(tmp_path: Path, experts) -> AppConfig:
    return AppConfig(
        defaults=DefaultsConfig(
            rounds=3,
            output_dir=tmp_path / "output",
            model="openai/gpt-4o",
        ),
        providers={
            "openrouter": ProviderConfig(
                name="openrouter",
                api_key_env="OPENROUTER_API_KEY",
                base_url="https://openrouter.ai/api/v1",
            ),
            "openai": ProviderConfig(name="openai", api_key_env="OPENAI_API_KEY"),
        },
        llm=LLMConfig(max_retries=2, retry_delay_sec=0.0),
        panels={"default": experts},
        available_providers={"openrouter"},
    )
