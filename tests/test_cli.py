"""Tests for the click entry point and its helpers in roundtable/cli.py."""

import click
import pytest
from click.testing import CliRunner

import roundtable.cli as cli
from roundtable.cli import _resolve, _select_experts, main
from tests.conftest import MockClient


@pytest.fixture
def runner():
    return CliRunner()


def test_resolve_prefers_cli_then_frontmatter_then_default():
    assert _resolve(3, {"rounds": 5}, "rounds", 4) == 3
    assert _resolve(None, {"rounds": 5}, "rounds", 4) == 5
    assert _resolve(None, {}, "rounds", 4) == 4


def test_resolve_keeps_falsy_cli_values():
    assert _resolve(False, {"moderator": True}, "moderator", True) is False


def test_select_experts_known_panel(sample_app_config):
    experts = _select_experts(sample_app_config, "default")
    assert [e.name for e in experts] == ["Sarah", "Marcus", "Lisa"]


def test_select_experts_unknown_panel(sample_app_config):
    with pytest.raises(click.BadParameter, match="Unknown panel 'nope'"):
        _select_experts(sample_app_config, "nope")


def test_select_experts_empty_panel(sample_app_config):
    sample_app_config.panels["empty"] = []
    with pytest.raises(click.BadParameter, match="no experts"):
        _select_experts(sample_app_config, "empty")


def test_no_topic_exits_with_error(runner):
    result = runner.invoke(main, ["--skip-health-check"])
    assert result.exit_code == 1
    assert "Provide a TOPIC" in result.output


def test_short_topic_exits_with_error(runner):
    result = runner.invoke(main, ["Too short", "--skip-health-check"])
    assert result.exit_code == 1
    assert "at least 10 characters" in result.output


def test_rounds_out_of_range(runner):
    result = runner.invoke(main, ["How should we price the app?", "--rounds", "0", "--skip-health-check"])
    assert result.exit_code == 1
    assert "Rounds must be between" in result.output


def test_unknown_panel_is_a_usage_error(runner):
    result = runner.invoke(main, ["How should we price the app?", "--panel", "nope", "--skip-health-check"])
    assert result.exit_code == 2


def test_missing_api_key_exits_with_error(runner, monkeypatch):
    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    result = runner.invoke(main, ["How should we price the app?", "--skip-health-check"])
    assert result.exit_code == 1
    assert "OPENROUTER_API_KEY" in result.output


def test_full_run_saves_transcript(runner, monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "_client_factory", lambda config, provider: lambda model: MockClient(model))

    result = runner.invoke(
        main,
        [
            "How should we monetize a regional news portal?",
            "--rounds", "1",
            "--seed", "3",
            "--format", "text",
            "--output", str(tmp_path),
            "--skip-health-check",
        ],
    )

    assert result.exit_code == 0, result.output
    saved = list(tmp_path.glob("*.txt"))
    assert len(saved) == 1
    content = saved[0].read_text(encoding="utf-8")
    assert "How should we monetize a regional news portal?" in content
    assert "Sarah" in content


def test_topic_file_frontmatter_sets_rounds(runner, monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "_client_factory", lambda config, provider: lambda model: MockClient(model))
    topic = tmp_path / "pricing-review.md"
    topic.write_text("---\nrounds: 1\nlanguage: de\n---\nWie sollen wir die App bepreisen?\n", encoding="utf-8")
    out = tmp_path / "out"

    result = runner.invoke(main, ["--file", str(topic), "--output", str(out), "--skip-health-check"])

    assert result.exit_code == 0, result.output
    saved = list(out.glob("*_pricing-review.md"))
    assert len(saved) == 1
    content = saved[0].read_text(encoding="utf-8")
    assert "## Diskussionsthema" in content
    assert "### Runde 1" in content
    assert "### Runde 2" not in content


def test_non_numeric_frontmatter_rounds_exits_with_error(runner, tmp_path):
    topic = tmp_path / "topic.md"
    topic.write_text("---\nrounds: many\n---\nHow should we price the app?\n", encoding="utf-8")

    result = runner.invoke(main, ["--file", str(topic), "--skip-health-check"])

    assert result.exit_code == 1
    assert "Rounds must be between" in result.output
