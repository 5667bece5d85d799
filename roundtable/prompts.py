"""Prompt builders for expert turns, consensus probes, and the final summary.

Everything here is a pure function of its arguments. Randomness (the
provocative follow-up) comes from the caller's ``random.Random``.
"""

import random
from dataclasses import dataclass

from roundtable.models import ROLE_MODERATOR, DiscussionConfig, Expert, Message

STYLE_INSTRUCTIONS: dict[str, str] = {
    "agreeable": "Build on what others have said and add your expertise. Show agreement where appropriate.",
    "challenging": (
        "Challenge assumptions or point out potential issues with what's been discussed. "
        "Be constructive but critical."
    ),
    "questioning": (
        "Ask probing questions about the ideas presented. What details are missing? What concerns do you have?"
    ),
    "building": "Take the ideas further. How can we expand or improve on what's been suggested?",
    "contrasting": "Offer a different perspective or alternative approach. What would you do differently?",
}

PROVOCATIVE_ADDITIONS: tuple[str, ...] = (
    " Also, do you see any potential conflicts between what's been proposed so far?",
    " What might the others be overlooking from your perspective?",
    " Are there any assumptions being made that you'd challenge?",
    " What questions would you ask your colleagues before moving forward?",
    " What's the biggest risk you see in the current direction?",
)

INITIAL_QUESTION = "Give your initial expert assessment and key recommendations."

# Provocative follow-ups need more history than this many messages
_PROVOCATION_MIN_MESSAGES = 5
_MODERATOR_LOOKBACK = 3
_CONSENSUS_WINDOW = 6
_CONSENSUS_SNIPPET_CHARS = 200


@dataclass(frozen=True)
class RoleCategory:
    """Question templates for a family of roles. Templates take {name} and {role}."""

    name: str
    keywords: tuple[str, ...]
    deep_dive: str
    final: str

    def matches(self, role: str) -> bool:
        lowered = role.lower()
        return any(kw in lowered for kw in self.keywords)


ROLE_CATEGORIES: tuple[RoleCategory, ...] = (
    RoleCategory(
        name="business",
        keywords=("business", "strategy", "director", "manager"),
        deep_dive=(
            "{name}, what do you think about the strategies proposed so far? "
            "What business risks do you see, and how can we ensure profitability?"
        ),
        final=(
            "{name}, after hearing everyone's perspectives, what would be your final business "
            "recommendation? What should be the absolute priorities?"
        ),
    ),
    RoleCategory(
        name="technical",
        keywords=("technical", "developer", "engineer", "architect", "wordpress"),
        deep_dive=(
            "{name}, considering the requirements outlined, what technical architecture would you "
            "recommend? Any concerns with the proposed approach?"
        ),
        final=(
            "{name}, considering all the feedback, what would your final technical implementation "
            "roadmap look like? Where do you see the biggest technical risks?"
        ),
    ),
    RoleCategory(
        name="seo",
        keywords=("seo", "search", "organic"),
        deep_dive=(
            "{name}, given the constraints and content volume planned, how would you structure the "
            "SEO strategy? What are your thoughts on the approach discussed?"
        ),
        final=(
            "{name}, integrating all the strategies discussed, what's your finalized SEO action plan? "
            "What do you think could make or break the goals?"
        ),
    ),
    RoleCategory(
        name="content",
        keywords=("content", "editorial", "writer", "copy", "marketing"),
        deep_dive=(
            "{name}, how would you balance automation with quality content? "
            "What's your take on the scalability challenges mentioned?"
        ),
        final=(
            "{name}, bringing together all considerations, what's your ultimate content strategy "
            "recommendation? How do we ensure sustainable growth?"
        ),
    ),
    RoleCategory(
        name="social",
        keywords=("social", "community", "media"),
        deep_dive=(
            "{name}, hearing all these strategies, how would you integrate social media to amplify "
            "this? What concerns do you have about community building?"
        ),
        final=(
            "{name}, considering the full strategy now, how would you execute a plan that supports "
            "all these goals? What's your biggest concern?"
        ),
    ),
)

UNCATEGORIZED = RoleCategory(
    name="uncategorized",
    keywords=(),
    deep_dive="{name}, what's your expert take on the discussion so far from your {role} perspective?",
    final="{name}, given everything discussed, what are your top 3 actionable recommendations?",
)


def categorize_role(role: str) -> RoleCategory:
    """First category whose keywords occur in the role, else UNCATEGORIZED."""
    for category in ROLE_CATEGORIES:
        if category.matches(role):
            return category
    return UNCATEGORIZED


def language_instruction(language: str) -> str:
    if language == "de":
        return "- Always answer in German, very important."
    if language == "en":
        return "- Always answer in English."
    return f"- Always answer in {language}."


def summary_language_instruction(language: str) -> str:
    if language == "de":
        return "WICHTIG: Antworte auf Deutsch!"
    if language == "en":
        return "IMPORTANT: Respond in English!"
    return f"IMPORTANT: Respond in {language}!"


def recent_context(messages: list[Message], count: int = 4) -> str:
    """Render the last `count` messages as 'Speaker: content' lines."""
    if not messages:
        return ""
    lines = [f"{msg.speaker}: {msg.content}" for msg in messages[-count:]]
    return "\n\nMost recent exchanges:\n" + "\n".join(lines) + "\n"


def previous_points_reminder(points: list[str]) -> str:
    if not points:
        return ""
    return f"\nYou've already covered these points: {'; '.join(points[-3:])}. Add NEW insights only."


def moderator_callout(messages: list[Message]) -> str:
    """Ask the expert to address the latest moderator comment among the last few messages."""
    recent = [m for m in messages[-_MODERATOR_LOOKBACK:] if m.role == ROLE_MODERATOR]
    if not recent:
        return ""
    return f" The moderator has also commented: '{recent[-1].content}' - please address this as well."


def round_question(
    expert: Expert,
    round_number: int,
    messages: list[Message],
    rng: random.Random,
) -> str:
    if round_number == 1:
        question = INITIAL_QUESTION
    else:
        category = categorize_role(expert.role)
        template = category.deep_dive if round_number == 2 else category.final
        question = template.format(name=expert.name, role=expert.role)

    if len(messages) > _PROVOCATION_MIN_MESSAGES and round_number >= 2:
        question += rng.choice(PROVOCATIVE_ADDITIONS)

    return question + moderator_callout(messages)


def build_turn_prompt(
    config: DiscussionConfig,
    expert: Expert,
    round_number: int,
    debate_style: str,
    messages: list[Message],
    previous_points: list[str],
    rng: random.Random,
) -> str:
    other_experts = ", ".join(e.name for e in config.experts if e.name != expert.name)
    if round_number >= config.total_rounds:
        focus = "Be very focused and conclusive in your final thoughts."
    else:
        focus = "Keep the discussion moving forward with fresh perspectives."

    return f"""{expert.system_prompt}

DISCUSSION TOPIC: {config.topic}
{recent_context(messages)}
{previous_points_reminder(previous_points)}

ROUND {round_number} INSTRUCTIONS:
- {STYLE_INSTRUCTIONS[debate_style]}
- Feel free to address other experts by name ({other_experts})
- Ask specific questions or request clarification if needed
- Don't just agree - bring your unique perspective and expertise
- If you disagree with something, explain why constructively
- Build on ideas, challenge assumptions, or propose alternatives
{language_instruction(config.language)}
- {focus}

SPECIFIC QUESTION FOR YOU: {round_question(expert, round_number, messages, rng)}

Respond as {expert.name} ({expert.role}). Keep focused and practical (under 350 words).
Make this feel like a real expert discussion - engage directly with your colleagues!
"""


def build_consensus_prompt(messages: list[Message]) -> str:
    lines = [
        f"{m.speaker}: {m.content[:_CONSENSUS_SNIPPET_CHARS]}..."
        for m in messages[-_CONSENSUS_WINDOW:]
    ]
    joined = "\n".join(lines)
    return f"""Analyze these expert discussion messages and rate the consensus level from 0.0 (complete disagreement) to 1.0 (full agreement).

Messages:
{joined}

Reply with ONLY a number between 0.0 and 1.0, nothing else."""


def build_summary_prompt(config: DiscussionConfig, transcript: str) -> str:
    language = summary_language_instruction(config.language)
    participants = ", ".join(e.name for e in config.experts)
    return f"""You are a professional meeting moderator. Analyze this expert discussion and provide a structured summary.

{language}

DISCUSSION TOPIC: {config.topic}

PARTICIPANTS: {participants}

DISCUSSION TRANSCRIPT:
{transcript}

Provide a JSON response with exactly this structure (no markdown, just pure JSON):
{{
  "keyTakeaways": ["takeaway 1", "takeaway 2", "takeaway 3"],
  "actionItems": ["action 1", "action 2", "action 3"],
  "sentiment": "positive" | "neutral" | "mixed" | "negative",
  "sentimentExplanation": "brief explanation of overall sentiment",
  "consensusLevel": 0.0-1.0,
  "consensusExplanation": "brief explanation of agreement level",
  "nextSteps": "recommended next steps in 1-2 sentences"
}}

Guidelines:
- keyTakeaways: 3-5 most important insights from the discussion
- actionItems: 3-5 concrete, actionable to-dos with clear ownership suggestions
- sentiment: overall tone of the discussion
- consensusLevel: how much the experts agreed (0=complete disagreement, 1=full agreement)
- nextSteps: practical recommendation for moving forward
- {language}

Respond ONLY with valid JSON, no additional text."""
