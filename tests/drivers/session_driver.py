import asyncio

from src.config import Mode
from src.fsm import SessionStatus
from src.heart.application.session import GameSession
from src.heart.domain.models import AnswerOutcome, AnswerResult


class SessionDriver:
    """Fluent wrapper that plays a GameSession the way a player would."""

    def __init__(self, session: GameSession):
        self.session = session
        self.last_result: AnswerResult | None = None

    def start(self, mode: Mode):
        asyncio.run(self.session.start(mode))
        return self

    def type_answer(self, raw: str):
        self.last_result = asyncio.run(self.session.submit_answer(raw))
        return self

    def wait(self, units: int = 1):
        """Lets `units` seconds pass on the session's manual clock."""
        self.session.advance(units)
        return self

    def wait_until_remaining(self, remaining: int):
        while self.session.remaining_time > remaining:
            self.session.advance(1)
        return self

    def assert_status(self, status: SessionStatus):
        assert self.session.status == status, (
            f"Expected status '{status.name}', but got '{self.session.status.name}'"
        )
        return self

    def assert_outcome(self, outcome: AnswerOutcome):
        assert self.last_result is not None, "No answer submitted yet"
        assert self.last_result.outcome == outcome, (
            f"Expected outcome '{outcome.value}', got '{self.last_result.outcome.value}'"
        )
        return self

    def assert_remaining(self, remaining: int):
        assert self.session.remaining_time == remaining, (
            f"Expected {remaining} units left, got {self.session.remaining_time}"
        )
        return self
