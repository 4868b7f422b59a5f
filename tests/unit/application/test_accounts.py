import asyncio
from unittest.mock import Mock

import pytest

from src.heart.application.accounts import AccountService
from src.heart.domain.errors import AuthenticationError
from src.heart.domain.models import PlayerProfile
from src.heart.domain.ports import IIdentityProvider


@pytest.fixture
def identity_provider():
    provider = Mock(spec=IIdentityProvider)
    provider.sign_up.return_value = "new-id"
    provider.sign_in.return_value = "player-1"
    provider.get_current_identity.return_value = "player-1"
    return provider


@pytest.fixture
def accounts(identity_provider, mock_store):
    return AccountService(identity_provider, mock_store)


def test_sign_up_creates_zeroed_profile_with_avatar(accounts, mock_store):
    profile = asyncio.run(accounts.sign_up("a@b.test", "secret", "  Hearty "))

    assert profile.identity == "new-id"
    assert profile.username == "Hearty"
    assert profile.score == 0
    assert profile.best_record == 0
    assert profile.avatar_url.endswith("seed=Hearty")
    mock_store.create_profile.assert_awaited_once_with(profile)


def test_sign_up_requires_username(accounts, identity_provider):
    with pytest.raises(AuthenticationError):
        asyncio.run(accounts.sign_up("a@b.test", "secret", "   "))
    identity_provider.sign_up.assert_not_called()


def test_sign_in_returns_profile(accounts, mock_store):
    profile = asyncio.run(accounts.sign_in("a@b.test", "secret"))

    assert isinstance(profile, PlayerProfile)
    mock_store.get_profile.assert_awaited_once_with("player-1")


def test_sign_in_failure_propagates(accounts, identity_provider):
    identity_provider.sign_in.side_effect = AuthenticationError("Invalid login credentials")

    with pytest.raises(AuthenticationError):
        asyncio.run(accounts.sign_in("a@b.test", "wrong"))


def test_require_auth_is_none_when_signed_out(accounts, identity_provider):
    identity_provider.get_current_identity.return_value = None

    assert asyncio.run(accounts.require_auth()) is None
    assert asyncio.run(accounts.get_profile()) is None


def test_sign_out_delegates(accounts, identity_provider):
    asyncio.run(accounts.sign_out())
    identity_provider.sign_out.assert_awaited_once()
