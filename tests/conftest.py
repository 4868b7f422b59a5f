from unittest.mock import Mock

import pytest

from src.heart.adapters.db_manager import DatabaseManager
from src.heart.adapters.sqlite_store import SQLiteScoreStore
from src.heart.application.clock import ManualClock
from src.heart.application.session import GameSession
from src.heart.domain.models import PlayerProfile, Puzzle, ScoreRecord, SessionEvent
from src.heart.domain.ports import IPuzzleSource, IScoreStore

PLAYER_ID = "player-1"


class ClockRecorder:
    """Clock factory that hands out ManualClocks and remembers them."""

    def __init__(self) -> None:
        self.clocks: list[ManualClock] = []

    def __call__(self) -> ManualClock:
        clock = ManualClock()
        self.clocks.append(clock)
        return clock

    @property
    def running(self) -> list[ManualClock]:
        return [c for c in self.clocks if c.is_running]


class EventLog:
    def __init__(self) -> None:
        self.events: list[SessionEvent] = []

    def __call__(self, event: SessionEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type) -> list[SessionEvent]:
        return [e for e in self.events if e.type == event_type]


@pytest.fixture
def sample_puzzle():
    return Puzzle(image_reference="https://heart.test/images/7.png", solution=7)


@pytest.fixture
def sample_user_id():
    return PLAYER_ID


@pytest.fixture
def mock_source(sample_puzzle):
    """Puzzle source whose async fetch() returns the sample puzzle."""
    source = Mock(spec=IPuzzleSource)
    source.fetch.return_value = sample_puzzle
    return source


@pytest.fixture
def mock_store():
    store = Mock(spec=IScoreStore)
    store.increment.return_value = ScoreRecord(identity=PLAYER_ID, score=5, best_record=5)
    store.get_profile.return_value = PlayerProfile(
        identity=PLAYER_ID, username="hearty", score=4, best_record=4
    )
    return store


@pytest.fixture
def clock_recorder():
    return ClockRecorder()


@pytest.fixture
def event_log():
    return EventLog()


@pytest.fixture
def session(mock_source, mock_store, clock_recorder, event_log):
    game = GameSession(PLAYER_ID, mock_source, mock_store, clock_factory=clock_recorder)
    game.subscribe(event_log)
    return game


@pytest.fixture
def in_memory_db():
    db_manager = DatabaseManager(db_path=":memory:")
    yield db_manager
    db_manager.close()


@pytest.fixture
def sqlite_store(in_memory_db):
    return SQLiteScoreStore(in_memory_db)
