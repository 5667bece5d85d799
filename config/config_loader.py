"""Load settings.yaml into typed dataclasses. Reports provider API keys at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from roundtable.models import Expert

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass
class ProviderConfig:
    name: str
    api_key_env: str
    base_url: str | None = None


@dataclass
class LLMConfig:
    max_retries: int = 3
    retry_delay_sec: float = 2.0
    app_url: str = "http://localhost:3000"
    app_title: str = "AI Expert Roundtable"


@dataclass
class DefaultsConfig:
    rounds: int
    output_dir: Path
    model: str
    max_rounds: int = 10
    language: str = "en"
    provider: str = "openrouter"
    moderator_mode: bool = False
    panel: str = "default"


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    providers: dict[str, ProviderConfig]
    llm: LLMConfig = field(default_factory=LLMConfig)
    panels: dict[str, list[Expert]] = field(default_factory=dict)
    available_providers: set[str] = field(default_factory=set)


def _slug_id(panel: str, name: str) -> str:
    return f"{panel}-{name.strip().lower().replace(' ', '-')}"


def _load_panel(panel_name: str, experts_raw: list[dict]) -> list[Expert]:
    experts: list[Expert] = []
    for raw in experts_raw:
        experts.append(
            Expert(
                id=str(raw.get("id") or _slug_id(panel_name, raw["name"])),
                name=str(raw["name"]),
                role=str(raw["role"]),
                personality=str(raw.get("personality", "")),
                expertise=[str(e) for e in raw.get("expertise", [])],
                system_prompt=str(raw.get("system_prompt", "")).strip(),
                color=str(raw.get("color", "#64748b")),
                model=raw.get("model") or None,
            )
        )
    return experts


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Logs missing API keys but does not raise; the client factory fails fast
    when a discussion actually needs the missing provider.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    defaults = DefaultsConfig(
        rounds=int(defaults_raw["rounds"]),
        max_rounds=int(defaults_raw.get("max_rounds", 10)),
        output_dir=Path(defaults_raw["output_dir"]),
        model=str(defaults_raw["model"]),
        language=str(defaults_raw.get("language", "en")),
        provider=str(defaults_raw.get("provider", "openrouter")),
        moderator_mode=bool(defaults_raw.get("moderator_mode", False)),
        panel=str(defaults_raw.get("panel", "default")),
    )

    llm_raw = raw.get("llm", {}) or {}
    llm = LLMConfig(
        max_retries=int(llm_raw.get("max_retries", 3)),
        retry_delay_sec=float(llm_raw.get("retry_delay_sec", 2.0)),
        app_url=str(llm_raw.get("app_url", "http://localhost:3000")),
        app_title=str(llm_raw.get("app_title", "AI Expert Roundtable")),
    )

    providers: dict[str, ProviderConfig] = {}
    available_providers: set[str] = set()

    for provider_name, provider_raw in raw["providers"].items():
        providers[provider_name] = ProviderConfig(
            name=provider_name,
            api_key_env=provider_raw["api_key_env"],
            base_url=provider_raw.get("base_url"),
        )

        api_key = os.environ.get(provider_raw["api_key_env"], "").strip()
        if api_key:
            available_providers.add(provider_name)
            logger.info("Provider available: %s", provider_name)
        else:
            logger.info(
                "Provider skipped (no API key): %s — set %s in .env",
                provider_name,
                provider_raw["api_key_env"],
            )

    panels = {
        name: _load_panel(name, experts_raw or [])
        for name, experts_raw in (raw.get("panels", {}) or {}).items()
    }

    return AppConfig(
        defaults=defaults,
        providers=providers,
        llm=llm,
        panels=panels,
        available_providers=available_providers,
    )
