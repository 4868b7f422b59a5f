import asyncio
from unittest.mock import MagicMock

import pytest
from postgrest.exceptions import APIError

from src.config import Mode
from src.fsm import SessionStatus
from src.heart.adapters.supabase_auth import SupabaseIdentityProvider
from src.heart.adapters.supabase_store import SupabaseScoreStore
from src.heart.application.session import GameSession
from src.heart.domain.errors import AuthenticationError, NotFound, PersistenceError
from src.heart.domain.models import AnswerOutcome, PlayerProfile


def client_with_row(row):
    """MagicMock Supabase client whose select chain returns `row`."""
    client = MagicMock()
    table = client.table.return_value
    table.select.return_value.eq.return_value.execute.return_value = MagicMock(
        data=[row] if row is not None else []
    )
    return client


@pytest.mark.parametrize(
    "start, expected",
    [((4, 4), (5, 5)), ((2, 9), (3, 9)), ((0, 0), (1, 1))],
)
def test_increment_writes_new_score_and_best(start, expected):
    client = client_with_row({"score": start[0], "best_record": start[1]})
    store = SupabaseScoreStore(client)

    record = asyncio.run(store.increment("player-1"))

    assert (record.score, record.best_record) == expected
    table = client.table.return_value
    table.update.assert_called_once_with(
        {"score": expected[0], "best_record": expected[1]}
    )
    table.update.return_value.eq.assert_called_once_with("id", "player-1")


def test_increment_unknown_identity_is_not_found():
    store = SupabaseScoreStore(client_with_row(None))

    with pytest.raises(NotFound):
        asyncio.run(store.increment("ghost"))


def test_api_error_becomes_persistence_error():
    client = client_with_row({"score": 1, "best_record": 1})
    client.table.return_value.update.return_value.eq.return_value.execute.side_effect = (
        APIError({"message": "permission denied", "code": "42501"})
    )
    store = SupabaseScoreStore(client)

    with pytest.raises(PersistenceError):
        asyncio.run(store.increment("player-1"))


def test_get_profile_maps_row():
    client = client_with_row(
        {
            "id": "player-1",
            "username": "hearty",
            "avatar_url": "https://avatar.test/h.svg",
            "score": 3,
            "best_record": 8,
        }
    )

    profile = asyncio.run(SupabaseScoreStore(client).get_profile("player-1"))

    assert profile == PlayerProfile(
        identity="player-1",
        username="hearty",
        avatar_url="https://avatar.test/h.svg",
        score=3,
        best_record=8,
    )


def test_create_profile_inserts_row():
    client = MagicMock()
    profile = PlayerProfile(identity="p", username="u", avatar_url=None)

    asyncio.run(SupabaseScoreStore(client).create_profile(profile))

    client.table.assert_called_with("profiles")
    client.table.return_value.insert.assert_called_once_with(
        {"id": "p", "username": "u", "avatar_url": None, "score": 0, "best_record": 0}
    )


class TestSupabaseIdentityProvider:
    def test_sign_in_returns_user_id(self):
        client = MagicMock()
        client.auth.sign_in_with_password.return_value = MagicMock(user=MagicMock(id="u1"))

        identity = asyncio.run(SupabaseIdentityProvider(client).sign_in("a@b.test", "pw"))

        assert identity == "u1"
        client.auth.sign_in_with_password.assert_called_once_with(
            {"email": "a@b.test", "password": "pw"}
        )

    def test_sign_in_error_is_authentication_error(self):
        client = MagicMock()
        client.auth.sign_in_with_password.side_effect = RuntimeError("Invalid login")

        with pytest.raises(AuthenticationError):
            asyncio.run(SupabaseIdentityProvider(client).sign_in("a@b.test", "pw"))

    def test_current_identity_none_without_session(self):
        client = MagicMock()
        client.auth.get_user.return_value = None

        assert asyncio.run(SupabaseIdentityProvider(client).get_current_identity()) is None


@pytest.mark.parametrize(
    "row",
    [
        {"score": -1, "best_record": 0},
        {"score": "lots", "best_record": 0},
        {"score": {"n": 1}, "best_record": 0},
    ],
)
def test_corrupt_row_becomes_persistence_error(row):
    store = SupabaseScoreStore(client_with_row(row))

    with pytest.raises(PersistenceError):
        asyncio.run(store.increment("player-1"))


def test_corrupt_profile_row_becomes_persistence_error():
    client = client_with_row({"id": "player-1", "username": "hearty", "score": -3})

    with pytest.raises(PersistenceError):
        asyncio.run(SupabaseScoreStore(client).get_profile("player-1"))


def test_session_celebrates_despite_corrupt_score_row(mock_source, clock_recorder):
    store = SupabaseScoreStore(client_with_row({"score": -1, "best_record": 0}))
    session = GameSession("player-1", mock_source, store, clock_factory=clock_recorder)
    asyncio.run(session.start(Mode.PRO))

    result = asyncio.run(session.submit_answer("7"))

    assert result.outcome == AnswerOutcome.CORRECT
    assert result.score == 0
    assert result.warning is not None
    assert session.status == SessionStatus.CELEBRATING
    assert session.clock is not None and session.clock.is_running
