"""Tests for roundtable/prompts.py."""

import random

import pytest

from roundtable.models import ROLE_EXPERT, ROLE_MODERATOR, DiscussionConfig, Message
from roundtable.prompts import (
    INITIAL_QUESTION,
    PROVOCATIVE_ADDITIONS,
    STYLE_INSTRUCTIONS,
    UNCATEGORIZED,
    build_consensus_prompt,
    build_summary_prompt,
    build_turn_prompt,
    categorize_role,
    language_instruction,
    moderator_callout,
    previous_points_reminder,
    recent_context,
    round_question,
)
from tests.conftest import make_expert


def _expert_msg(expert, content, round_number=1):
    return Message(id=f"m-{content[:5]}", content=content, role=ROLE_EXPERT, round=round_number,
                   debate_style="agreeable", expert=expert)


def _moderator_msg(content):
    return Message(id="mod", content=content, role=ROLE_MODERATOR, round=1)


@pytest.mark.parametrize(
    "role, category",
    [
        ("Business Developer", "business"),
        ("Marketing Director", "business"),
        ("Senior WordPress Developer", "technical"),
        ("Solutions Architect", "technical"),
        ("SEO Expert", "seo"),
        ("Organic Growth Lead", "seo"),
        ("Content Marketing Strategist", "content"),
        ("Community Lead", "social"),
        ("Social Media Expert", "social"),
        ("Data Scientist", "uncategorized"),
    ],
)
def test_categorize_role(role, category):
    assert categorize_role(role).name == category


def test_round_one_asks_for_initial_assessment():
    expert = make_expert("Sarah", "Business Developer")
    assert round_question(expert, 1, [], random.Random(0)) == INITIAL_QUESTION


def test_round_two_uses_deep_dive_and_later_rounds_final():
    expert = make_expert("Lisa", "SEO Expert")
    deep = round_question(expert, 2, [], random.Random(0))
    final = round_question(expert, 3, [], random.Random(0))
    assert deep.startswith("Lisa, given the constraints")
    assert final.startswith("Lisa, integrating all the strategies")
    assert round_question(expert, 7, [], random.Random(0)) == final


def test_uncategorized_role_mentions_role():
    expert = make_expert("Omar", "Data Scientist")
    question = round_question(expert, 2, [], random.Random(0))
    assert question == UNCATEGORIZED.deep_dive.format(name="Omar", role="Data Scientist")
    assert "Data Scientist perspective" in question


def test_provocative_addition_needs_history():
    expert = make_expert("Sarah", "Business Developer")
    history = [_expert_msg(expert, f"Point number {i}") for i in range(6)]

    with_history = round_question(expert, 2, history, random.Random(0))
    assert any(with_history.endswith(p) for p in PROVOCATIVE_ADDITIONS)

    short = round_question(expert, 2, history[:5], random.Random(0))
    assert not any(p in short for p in PROVOCATIVE_ADDITIONS)

    first_round = round_question(expert, 1, history, random.Random(0))
    assert first_round == INITIAL_QUESTION


def test_moderator_callout_only_for_recent_comments():
    expert = make_expert("Sarah", "Business Developer")
    recent = [_expert_msg(expert, "First"), _moderator_msg("What about costs?")]
    assert moderator_callout(recent) == (
        " The moderator has also commented: 'What about costs?' - please address this as well."
    )

    stale = recent + [_expert_msg(expert, f"Later {i}") for i in range(3)]
    assert moderator_callout(stale) == ""


def test_recent_context_window():
    expert = make_expert("Sarah", "Business Developer")
    messages = [_expert_msg(expert, f"message {i}") for i in range(6)]
    context = recent_context(messages)
    assert context.startswith("\n\nMost recent exchanges:\n")
    assert "Sarah: message 5" in context
    assert "message 1" not in context
    assert recent_context([]) == ""


def test_recent_context_labels_moderator():
    assert "Moderator: Focus please" in recent_context([_moderator_msg("Focus please")])


def test_previous_points_reminder_keeps_last_three():
    reminder = previous_points_reminder(["a point", "b point", "c point", "d point"])
    assert "b point; c point; d point" in reminder
    assert "a point" not in reminder
    assert reminder.endswith("Add NEW insights only.")
    assert previous_points_reminder([]) == ""


@pytest.mark.parametrize(
    "language, expected",
    [
        ("de", "- Always answer in German, very important."),
        ("en", "- Always answer in English."),
        ("fr", "- Always answer in fr."),
    ],
)
def test_language_instruction(language, expected):
    assert language_instruction(language) == expected


def test_turn_prompt_contents(discussion_config):
    sarah = discussion_config.experts[0]
    prompt = build_turn_prompt(discussion_config, sarah, 1, "challenging", [], [], random.Random(0))

    assert prompt.startswith(sarah.system_prompt)
    assert f"DISCUSSION TOPIC: {discussion_config.topic}" in prompt
    assert "ROUND 1 INSTRUCTIONS:" in prompt
    assert STYLE_INSTRUCTIONS["challenging"] in prompt
    assert "(Marcus, Lisa)" in prompt
    assert "Keep the discussion moving forward" in prompt
    assert f"SPECIFIC QUESTION FOR YOU: {INITIAL_QUESTION}" in prompt
    assert "Respond as Sarah (Business Developer)" in prompt


def test_turn_prompt_final_round_focus(discussion_config):
    sarah = discussion_config.experts[0]
    prompt = build_turn_prompt(
        discussion_config, sarah, discussion_config.total_rounds, "building", [], [], random.Random(0)
    )
    assert "Be very focused and conclusive" in prompt


def test_turn_prompt_in_german(experts):
    config = DiscussionConfig(topic="Wie monetarisieren wir das Portal?", experts=experts, language="de")
    prompt = build_turn_prompt(config, experts[1], 1, "agreeable", [], [], random.Random(0))
    assert "- Always answer in German, very important." in prompt


def test_consensus_prompt_truncates_last_six():
    expert = make_expert("Sarah", "Business Developer")
    messages = [_expert_msg(expert, f"msg{i} " + "x" * 300) for i in range(8)]
    prompt = build_consensus_prompt(messages)

    assert "rate the consensus level" in prompt
    assert "msg0" not in prompt and "msg1" not in prompt
    assert "msg7" in prompt
    assert "x" * 201 not in prompt
    assert prompt.count("...") == 6


def test_summary_prompt(discussion_config):
    prompt = build_summary_prompt(discussion_config, "Sarah (Business Developer): Go.")
    assert "IMPORTANT: Respond in English!" in prompt
    assert "PARTICIPANTS: Sarah, Marcus, Lisa" in prompt
    assert "Sarah (Business Developer): Go." in prompt
    assert '"keyTakeaways"' in prompt
