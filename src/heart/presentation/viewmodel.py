import asyncio
import time
from collections.abc import Coroutine
from typing import Any, TypeVar

from src.config import GameConfig, Mode
from src.fsm import SessionStatus
from src.heart.application.accounts import AccountService
from src.heart.application.clock import ManualClock
from src.heart.application.session import ClockFactory, GameSession
from src.heart.domain.errors import HeartGameError
from src.heart.domain.models import (
    AnswerOutcome,
    PlayerProfile,
    SessionEvent,
    SessionEventType,
)
from src.heart.domain.ports import IPuzzleSource, IScoreStore
from src.heart.presentation.state_provider import IStateProvider
from src.shared.telemetry import Telemetry

T = TypeVar("T")

SCREEN_AUTH = "auth"
SCREEN_DASHBOARD = "dashboard"
SCREEN_GAME = "game"


class GameViewModel:
    """
    Glue between the Streamlit views and the services.
    Views call these methods and read back `screen`, `session` and messages;
    nothing here touches Streamlit directly.
    """

    def __init__(
        self,
        accounts: AccountService,
        puzzle_source: IPuzzleSource,
        score_store: IScoreStore,
        state_provider: IStateProvider,
        clock_factory: ClockFactory = ManualClock,
    ):
        self.accounts = accounts
        self.puzzle_source = puzzle_source
        self.score_store = score_store
        self.state = state_provider
        self.clock_factory = clock_factory
        self.telemetry = Telemetry("ViewModel")

    # --- Properties ---
    @property
    def screen(self) -> str:
        return self.state.get("screen", SCREEN_AUTH)

    @property
    def session(self) -> GameSession | None:
        return self.state.get("game_session")

    @property
    def last_mode(self) -> Mode:
        return self.state.get("last_mode", Mode.BEGINNER)

    def pop_messages(self) -> list[tuple[str, str]]:
        """Returns and clears pending (level, text) notices."""
        return self.state.pop("messages", None) or []

    def _notify(self, level: str, text: str) -> None:
        messages = self.state.get("messages", None) or []
        messages.append((level, text))
        self.state.set("messages", messages)

    def _run(self, coro: Coroutine[Any, Any, T]) -> T:
        return asyncio.run(coro)

    # --- Auth Actions ---

    def sign_up(self, email: str, password: str, username: str) -> bool:
        Telemetry.start_trace()
        try:
            profile = self._run(self.accounts.sign_up(email, password, username))
        except HeartGameError as e:
            self._notify("error", str(e))
            return False
        self.telemetry.log_info("Action: Sign Up", identity=profile.identity)
        self.state.set("screen", SCREEN_DASHBOARD)
        return True

    def sign_in(self, email: str, password: str) -> bool:
        Telemetry.start_trace()
        try:
            profile = self._run(self.accounts.sign_in(email, password))
        except HeartGameError as e:
            self._notify("error", str(e))
            return False
        self.telemetry.log_info("Action: Sign In", identity=profile.identity)
        self.state.set("screen", SCREEN_DASHBOARD)
        return True

    def sign_out(self) -> None:
        Telemetry.start_trace()
        self._close_session()
        try:
            self._run(self.accounts.sign_out())
        except HeartGameError as e:
            self.telemetry.log_error("Logout failed", e)
        self.state.set("screen", SCREEN_AUTH)

    def load_profile(self) -> PlayerProfile | None:
        try:
            profile = self._run(self.accounts.get_profile())
        except HeartGameError as e:
            self._notify("error", f"Could not load your profile: {e}")
            return None
        if profile is None:
            self.state.set("screen", SCREEN_AUTH)
        return profile

    # --- Game Actions ---

    def start_game(self, mode: Mode) -> None:
        Telemetry.start_trace()
        identity = self._run(self.accounts.require_auth())
        if identity is None:
            self.state.set("screen", SCREEN_AUTH)
            return

        self._close_session()
        session = GameSession(
            identity,
            self.puzzle_source,
            self.score_store,
            clock_factory=self.clock_factory,
            redirect_to=SCREEN_DASHBOARD,
        )
        session.subscribe(self._on_event)
        self.state.set("game_session", session)
        self.state.set("last_mode", mode)
        self.state.set("screen", SCREEN_GAME)

        self.telemetry.log_info("Action: Start Game", mode=mode.label, identity=identity)
        self.state.set("clock_synced_at", time.monotonic())
        self._run(session.start(mode))

    def retry_puzzle(self) -> None:
        session = self.session
        if session is None:
            return
        self._run(session.load_puzzle())

    def submit_answer(self, raw_input: str | None) -> AnswerOutcome | None:
        session = self.session
        if session is None:
            return None

        result = self._run(session.submit_answer(raw_input))

        if result.outcome == AnswerOutcome.INVALID_INPUT:
            self._notify("warning", "Please enter a valid number.")
        elif result.outcome == AnswerOutcome.WRONG_ANSWER:
            self._notify("error", "❌ Incorrect! Try again.")
        elif result.outcome == AnswerOutcome.CORRECT and result.warning:
            self._notify("warning", result.warning)
        return result.outcome

    def advance_clock(self, now: float | None = None) -> int:
        """
        Pushes the session clock forward by the whole time units elapsed since
        the last push. Full-page reruns therefore never add extra ticks.
        """
        session = self.session
        if session is None:
            return 0

        now = time.monotonic() if now is None else now
        last = self.state.get("clock_synced_at", now)
        units = int((now - last) // GameConfig.TIME_UNIT_SECONDS)
        if units <= 0:
            self.state.set("clock_synced_at", last)
            return 0

        self.state.set("clock_synced_at", last + units * GameConfig.TIME_UNIT_SECONDS)
        session.advance(units)
        return units

    def play_again(self) -> None:
        self.start_game(self.last_mode)

    def leave_game(self) -> None:
        self._close_session()
        self.state.set("screen", SCREEN_DASHBOARD)

    def _close_session(self) -> None:
        session = self.state.pop("game_session", None)
        if session is not None:
            session.close()

    def _on_event(self, event: SessionEvent) -> None:
        if event.type == SessionEventType.PUZZLE_UNAVAILABLE:
            self._notify("error", "Failed to load puzzle. Please refresh.")
        elif event.type == SessionEventType.TIME_EXPIRED:
            self._notify("error", "⏰ Time's up! Try again.")
        elif event.type == SessionEventType.TERMINATED:
            session = self.session
            if session is not None and session.termination_reason == SessionEventType.CELEBRATING:
                self.leave_game()

    def is_waiting_for_answer(self) -> bool:
        session = self.session
        return session is not None and session.status == SessionStatus.AWAITING_ANSWER
