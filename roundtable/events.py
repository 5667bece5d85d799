"""Discussion events emitted by the engine, one dataclass per wire tag."""

from dataclasses import dataclass

from roundtable.models import DiscussionSummary


@dataclass(frozen=True)
class ExpertStartEvent:
    expert_id: str
    expert_name: str
    expert_color: str
    round: int
    debate_style: str
    type: str = "expert_start"

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "expertId": self.expert_id,
            "expertName": self.expert_name,
            "expertColor": self.expert_color,
            "round": self.round,
            "debateStyle": self.debate_style,
        }


@dataclass(frozen=True)
class TokenEvent:
    content: str
    type: str = "token"

    def to_dict(self) -> dict:
        return {"type": self.type, "content": self.content}


@dataclass(frozen=True)
class ExpertCompleteEvent:
    message_id: str
    expert_id: str
    full_content: str
    type: str = "expert_complete"

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "messageId": self.message_id,
            "expertId": self.expert_id,
            "fullContent": self.full_content,
        }


@dataclass(frozen=True)
class RoundCompleteEvent:
    round: int
    consensus_score: float | None = None
    type: str = "round_complete"

    def to_dict(self) -> dict:
        data: dict = {"type": self.type, "round": self.round}
        if self.consensus_score is not None:
            data["consensusScore"] = self.consensus_score
        return data


@dataclass(frozen=True)
class ModeratorPromptEvent:
    message: str
    type: str = "moderator_prompt"

    def to_dict(self) -> dict:
        return {"type": self.type, "message": self.message}


@dataclass(frozen=True)
class DiscussionSummaryEvent:
    summary: DiscussionSummary
    type: str = "discussion_summary"

    def to_dict(self) -> dict:
        return {"type": self.type, "summary": self.summary.to_dict()}


@dataclass(frozen=True)
class DiscussionCompleteEvent:
    discussion_id: str = ""
    type: str = "discussion_complete"

    def to_dict(self) -> dict:
        return {"type": self.type, "discussionId": self.discussion_id}


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    type: str = "error"

    def to_dict(self) -> dict:
        return {"type": self.type, "message": self.message}


DiscussionEvent = (
    ExpertStartEvent
    | TokenEvent
    | ExpertCompleteEvent
    | RoundCompleteEvent
    | ModeratorPromptEvent
    | DiscussionSummaryEvent
    | DiscussionCompleteEvent
    | ErrorEvent
)
