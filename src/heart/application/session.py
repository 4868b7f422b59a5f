import re
from collections.abc import Callable

from src.config import GameConfig, Mode
from src.fsm import SessionAction, SessionStateMachine, SessionStatus
from src.heart.application.clock import SessionClock
from src.heart.domain.errors import PuzzleUnavailable, ScoreStoreError
from src.heart.domain.models import (
    AnswerOutcome,
    AnswerResult,
    Puzzle,
    SessionEvent,
    SessionEventType,
)
from src.heart.domain.ports import IPuzzleSource, IScoreStore
from src.shared.telemetry import Telemetry, count_event, measure_time

INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

SessionListener = Callable[[SessionEvent], None]
ClockFactory = Callable[[], SessionClock]


def parse_answer(raw_input: str | None) -> int | None:
    """Returns the integer typed by the player, or None for anything else."""
    if raw_input is None:
        return None
    text = raw_input.strip()
    if not INTEGER_PATTERN.fullmatch(text):
        return None
    return int(text)


class GameSession:
    """
    One play-through: puzzle load, timed answer, scoring, then termination.

    All mutations happen on a single event loop. The only suspension points
    are `IPuzzleSource.fetch` and `IScoreStore.increment`; clock callbacks
    and answer parsing run to completion without yielding.
    """

    def __init__(
        self,
        identity: str,
        puzzle_source: IPuzzleSource,
        score_store: IScoreStore,
        clock_factory: ClockFactory = SessionClock,
        redirect_to: str = "dashboard",
    ) -> None:
        self.identity = identity
        self.puzzle_source = puzzle_source
        self.score_store = score_store
        self.telemetry = Telemetry("GameSession")

        self._clock_factory = clock_factory
        self._fsm = SessionStateMachine()
        self._listeners: list[SessionListener] = []

        self.mode: Mode | None = None
        self.remaining_time = 0
        self.redirect_to = redirect_to
        self._puzzle: Puzzle | None = None
        self._clock: SessionClock | None = None

        self.last_score: int | None = None
        self.last_warning: str | None = None
        self.last_error: str | None = None
        self.termination_reason: SessionEventType | None = None

    # --- Properties ---
    @property
    def status(self) -> SessionStatus:
        return self._fsm.current_state

    @property
    def current_puzzle(self) -> Puzzle | None:
        return self._puzzle

    @property
    def image_reference(self) -> str | None:
        return self._puzzle.image_reference if self._puzzle else None

    @property
    def clock(self) -> SessionClock | None:
        """The single clock this session owns right now, if any."""
        return self._clock

    @property
    def timer_text(self) -> str:
        if self.mode is None or not self.mode.is_timed:
            return "∞ Unlimited"
        return f"⏱ {self.remaining_time}s"

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    # --- Lifecycle ---

    @measure_time("session_start")
    async def start(self, mode: Mode) -> Puzzle | None:
        if self.mode is not None:
            raise RuntimeError("A session can only be started once")

        Telemetry.start_trace()
        self.mode = mode
        self.remaining_time = mode.initial_time
        self.telemetry.log_info(
            "🎬 Session started", mode=mode.label, remaining=self.remaining_time
        )

        if mode.is_timed:
            self._start_countdown()

        return await self.load_puzzle()

    @measure_time("session_load_puzzle")
    async def load_puzzle(self) -> Puzzle | None:
        """
        Fetches a puzzle. On failure the session stays where it was and
        listeners get PUZZLE_UNAVAILABLE; retrying is up to the caller.
        """
        if self.status not in (SessionStatus.INITIALIZING, SessionStatus.AWAITING_ANSWER):
            self.telemetry.log_warning("Puzzle load ignored", status=self.status.name)
            return None

        try:
            puzzle = await self.puzzle_source.fetch()
        except PuzzleUnavailable as e:
            self.last_error = str(e)
            self.telemetry.log_error("Failed to load puzzle", e)
            if self.status == SessionStatus.INITIALIZING:
                self._fsm.transition(SessionAction.LOAD_FAILURE)
            self._emit(SessionEventType.PUZZLE_UNAVAILABLE, reason=str(e))
            return None

        # The countdown may have run out while we were waiting
        is_refresh = self._puzzle is not None
        if not self._fsm.transition(SessionAction.LOAD_SUCCESS):
            return None

        self._puzzle = puzzle
        self.last_error = None

        if is_refresh and self.mode is not None and self.mode.is_timed:
            self.remaining_time = self.mode.initial_time
            self._start_countdown()

        self._emit(
            SessionEventType.PUZZLE_LOADED, image_reference=puzzle.image_reference
        )
        return puzzle

    @measure_time("session_submit_answer")
    async def submit_answer(self, raw_input: str | None) -> AnswerResult:
        if self.status != SessionStatus.AWAITING_ANSWER or self._puzzle is None:
            return AnswerResult(AnswerOutcome.NOT_ACCEPTING)

        answer = parse_answer(raw_input)
        if answer is None:
            self.telemetry.log_info("Invalid input", raw=str(raw_input))
            return AnswerResult(AnswerOutcome.INVALID_INPUT)

        if not self._puzzle.is_solved_by(answer):
            self._fsm.transition(SessionAction.ANSWER_WRONG)
            self._count("wrong_answer")
            return AnswerResult(AnswerOutcome.WRONG_ANSWER)

        # Stop before anything else so no tick or expiry can slip in
        self._stop_clock()
        self._fsm.transition(SessionAction.ANSWER_CORRECT)
        self._count("correct")

        warning = None
        try:
            record = await self.score_store.increment(self.identity)
            score = record.score
        except ScoreStoreError as e:
            self.telemetry.log_error("Score update failed", e, identity=self.identity)
            score = 0
            warning = f"Your score could not be saved: {e}"

        self._fsm.transition(SessionAction.SCORE_RECORDED)
        self.last_score = score
        self.last_warning = warning
        self._emit(SessionEventType.CELEBRATING, score=score, warning=warning)
        self._start_celebration()
        return AnswerResult(AnswerOutcome.CORRECT, score=score, warning=warning)

    def tick(self) -> None:
        """One elapsed time unit of the answer countdown."""
        if self.mode is None or not self.mode.is_timed:
            return
        if self.status not in (SessionStatus.INITIALIZING, SessionStatus.AWAITING_ANSWER):
            return

        self.remaining_time = max(self.remaining_time - 1, 0)
        self._emit(SessionEventType.TICK, remaining=self.remaining_time)

        if self.remaining_time == 0:
            self._expire()

    def advance(self, units: int = 1) -> None:
        """Pushes time forward on a manually driven clock."""
        clock = self._clock
        if clock is not None and hasattr(clock, "advance"):
            clock.advance(units)

    def close(self) -> None:
        """Page teardown. Silences every clock without changing the status."""
        self._stop_clock()

    # --- Internals ---

    def _start_countdown(self) -> None:
        self._stop_clock()
        self._clock = self._clock_factory()
        self._clock.start(
            self.remaining_time,
            on_tick=lambda _remaining: self.tick(),
            on_expire=self._expire,
        )

    def _start_celebration(self) -> None:
        self._stop_clock()
        self._clock = self._clock_factory()
        self._clock.start(
            GameConfig.CELEBRATION_DELAY_UNITS,
            on_tick=lambda _remaining: None,
            on_expire=self._finish_celebration,
        )

    def _stop_clock(self) -> None:
        if self._clock is not None:
            self._clock.stop()
            self._clock = None

    def _expire(self) -> None:
        if not self._fsm.transition(SessionAction.TIME_UP):
            return
        self._stop_clock()
        self.telemetry.log_info("⏰ Time expired", identity=self.identity)
        self._count("time_expired")
        self._emit(SessionEventType.TIME_EXPIRED)
        self._terminate(SessionEventType.TIME_EXPIRED)

    def _finish_celebration(self) -> None:
        self._clock = None
        self._terminate(SessionEventType.CELEBRATING)

    def _terminate(self, reason: SessionEventType) -> None:
        if not self._fsm.transition(SessionAction.FINISH):
            return
        self.termination_reason = reason
        self.telemetry.log_info("🏁 Session terminated", reason=reason.value)
        self._emit(
            SessionEventType.TERMINATED, reason=reason.value, redirect_to=self.redirect_to
        )

    def _count(self, event: str) -> None:
        count_event(self.mode.label if self.mode else "unknown", event)

    def _emit(self, event_type: SessionEventType, **data) -> None:
        event = SessionEvent(type=event_type, data=data)
        for listener in list(self._listeners):
            listener(event)
