"""Pure dataclasses for the expert roundtable. No I/O, no deps."""

from dataclasses import dataclass, field

ROLE_EXPERT = "EXPERT"
ROLE_MODERATOR = "MODERATOR"

DEBATE_STYLES: tuple[str, ...] = (
    "agreeable",
    "challenging",
    "questioning",
    "building",
    "contrasting",
)

SENTIMENTS: tuple[str, ...] = ("positive", "neutral", "mixed", "negative")


@dataclass(frozen=True)
class Expert:
    id: str
    name: str
    role: str
    personality: str
    expertise: list[str]
    system_prompt: str
    color: str
    model: str | None = None  # overrides the discussion's fallback model


@dataclass(frozen=True)
class DiscussionConfig:
    topic: str
    experts: list[Expert]
    language: str = "en"
    moderator_mode: bool = False
    total_rounds: int = 4
    model: str = "openai/gpt-4o"  # fallback for experts without an override

    def __post_init__(self) -> None:
        if not self.experts:
            raise ValueError("A discussion needs at least one expert")
        if self.total_rounds < 1:
            raise ValueError(f"total_rounds must be >= 1, got {self.total_rounds}")


@dataclass(frozen=True)
class Message:
    id: str
    content: str
    role: str              # ROLE_EXPERT or ROLE_MODERATOR
    round: int
    debate_style: str | None = None
    expert: Expert | None = None

    @property
    def speaker(self) -> str:
        if self.role == ROLE_MODERATOR:
            return "Moderator"
        return self.expert.name if self.expert else "Unknown"


@dataclass
class DiscussionSummary:
    key_takeaways: list[str]
    action_items: list[str]
    sentiment: str         # one of SENTIMENTS
    sentiment_explanation: str
    consensus_level: float
    consensus_explanation: str
    next_steps: str

    def to_dict(self) -> dict:
        return {
            "keyTakeaways": list(self.key_takeaways),
            "actionItems": list(self.action_items),
            "sentiment": self.sentiment,
            "sentimentExplanation": self.sentiment_explanation,
            "consensusLevel": self.consensus_level,
            "consensusExplanation": self.consensus_explanation,
            "nextSteps": self.next_steps,
        }


@dataclass
class DiscussionResult:
    config: DiscussionConfig
    messages: list[Message]
    summary: DiscussionSummary | None
    total_duration_sec: float
    rounds_completed: int
    title: str = ""

    @property
    def display_title(self) -> str:
        return self.title or self.config.topic[:80]


STATUS_NOT_STARTED = "NOT_STARTED"
STATUS_RUNNING = "RUNNING"
STATUS_COMPLETED = "COMPLETED"
STATUS_CANCELLED = "CANCELLED"


@dataclass
class EngineState:
    status: str = STATUS_NOT_STARTED
    current_round: int = 0
    messages: list[Message] = field(default_factory=list)
    expert_points: dict[str, list[str]] = field(default_factory=dict)
    used_styles: list[str] = field(default_factory=list)
    is_running: bool = False
    consensus_score: float = 0.0
