from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from src.config import GameConfig


# --- Enums ---
class AnswerOutcome(str, Enum):
    INVALID_INPUT = "invalid_input"
    WRONG_ANSWER = "wrong_answer"
    CORRECT = "correct"
    NOT_ACCEPTING = "not_accepting"  # No puzzle on screen or session over


class SessionEventType(str, Enum):
    TICK = "tick"
    PUZZLE_LOADED = "puzzle_loaded"
    PUZZLE_UNAVAILABLE = "puzzle_unavailable"
    TIME_EXPIRED = "time_expired"
    CELEBRATING = "celebrating"
    TERMINATED = "terminated"


# --- Entities ---
class Puzzle(BaseModel):
    image_reference: str
    solution: int

    def is_solved_by(self, answer: int) -> bool:
        return answer == self.solution


class ScoreRecord(BaseModel):
    identity: str
    score: int = Field(default=0, ge=0)
    best_record: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _best_covers_score(self) -> "ScoreRecord":
        if self.best_record < self.score:
            raise ValueError("best_record must be >= score")
        return self

    def incremented(self, points: int = GameConfig.POINTS_PER_PUZZLE) -> "ScoreRecord":
        """Returns the record after one solved puzzle. Best never decreases."""
        new_score = self.score + points
        return ScoreRecord(
            identity=self.identity,
            score=new_score,
            best_record=max(self.best_record, new_score),
        )


class PlayerProfile(BaseModel):
    """The `profiles` row shown on the dashboard."""

    identity: str
    username: str
    avatar_url: str | None = None
    score: int = Field(default=0, ge=0)
    best_record: int = Field(default=0, ge=0)

    def to_record(self) -> ScoreRecord:
        return ScoreRecord(
            identity=self.identity, score=self.score, best_record=self.best_record
        )


# --- (Data Transfer Objects) ---
@dataclass
class AnswerResult:
    """
    What `GameSession.submit_answer` hands back to the caller.
    `warning` is set when the answer was right but the score could not be saved.
    """

    outcome: AnswerOutcome
    score: int | None = None
    warning: str | None = None

    @property
    def is_correct(self) -> bool:
        return self.outcome == AnswerOutcome.CORRECT


@dataclass
class SessionEvent:
    type: SessionEventType
    data: dict = field(default_factory=dict)
