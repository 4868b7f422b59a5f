from enum import Enum, auto
import logging

logger = logging.getLogger(__name__)


class SessionStatus(Enum):
    INITIALIZING = auto()  # Session started, waiting for a puzzle
    AWAITING_ANSWER = auto()  # Puzzle displayed, waiting for input
    CORRECT = auto()  # Right answer accepted, score being persisted
    CELEBRATING = auto()  # Celebration overlay, redirect pending
    EXPIRED = auto()  # Countdown reached zero
    TERMINATED = auto()  # Session over, build a new one to play again


class SessionAction(Enum):
    LOAD_SUCCESS = auto()
    LOAD_FAILURE = auto()
    ANSWER_CORRECT = auto()
    ANSWER_WRONG = auto()
    SCORE_RECORDED = auto()
    TIME_UP = auto()
    FINISH = auto()


class SessionStateMachine:
    """
    Pure FSM Logic.
    It only cares about State Transitions, not timers, UI or DB.
    """

    def __init__(self, initial_state=SessionStatus.INITIALIZING):
        self._state = initial_state

    @property
    def current_state(self) -> SessionStatus:
        return self._state

    @property
    def is_terminated(self) -> bool:
        return self._state == SessionStatus.TERMINATED

    def transition(self, action: SessionAction) -> bool:
        """
        The Transition Table.
        Defines strictly what is allowed. Returns False for rejected transitions.
        """
        previous = self._state

        match (self._state, action):
            # INITIALIZING -> AWAITING_ANSWER, or stay put until a manual retry
            case (SessionStatus.INITIALIZING, SessionAction.LOAD_SUCCESS):
                self._state = SessionStatus.AWAITING_ANSWER
            case (SessionStatus.INITIALIZING, SessionAction.LOAD_FAILURE):
                self._state = SessionStatus.INITIALIZING

            # Manual refresh swaps the puzzle without leaving the state
            case (SessionStatus.AWAITING_ANSWER, SessionAction.LOAD_SUCCESS):
                self._state = SessionStatus.AWAITING_ANSWER

            # AWAITING_ANSWER -> CORRECT / AWAITING_ANSWER / EXPIRED
            case (SessionStatus.AWAITING_ANSWER, SessionAction.ANSWER_CORRECT):
                self._state = SessionStatus.CORRECT
            case (SessionStatus.AWAITING_ANSWER, SessionAction.ANSWER_WRONG):
                self._state = SessionStatus.AWAITING_ANSWER
            case (SessionStatus.INITIALIZING | SessionStatus.AWAITING_ANSWER, SessionAction.TIME_UP):
                self._state = SessionStatus.EXPIRED

            # CORRECT -> CELEBRATING (score persisted or degraded)
            case (SessionStatus.CORRECT, SessionAction.SCORE_RECORDED):
                self._state = SessionStatus.CELEBRATING

            # Terminal hops
            case (SessionStatus.CELEBRATING | SessionStatus.EXPIRED, SessionAction.FINISH):
                self._state = SessionStatus.TERMINATED

            # Catch-all for invalid transitions
            case _:
                logger.error(f"⛔ INVALID TRANSITION: {self._state.name} + {action.name}")
                return False

        logger.info(f"🔄 FSM: {previous.name} --[{action.name}]--> {self._state.name}")
        return True
