from src.config import GameConfig
from src.heart.domain.errors import AuthenticationError
from src.heart.domain.models import PlayerProfile
from src.heart.domain.ports import IIdentityProvider, IScoreStore
from src.shared.telemetry import Telemetry, measure_time


class AccountService:
    """Sign up / sign in / profile lookups. Knows nothing about the backend."""

    def __init__(self, identity_provider: IIdentityProvider, score_store: IScoreStore):
        self.identity_provider = identity_provider
        self.score_store = score_store
        self.telemetry = Telemetry("AccountService")

    @measure_time("account_sign_up")
    async def sign_up(self, email: str, password: str, username: str) -> PlayerProfile:
        username = username.strip()
        if not username:
            raise AuthenticationError("Username is required")

        identity = await self.identity_provider.sign_up(email, password)
        profile = PlayerProfile(
            identity=identity,
            username=username,
            avatar_url=GameConfig.get_avatar_url(username),
            score=0,
            best_record=0,
        )
        await self.score_store.create_profile(profile)

        self.telemetry.log_info("Player registered", identity=identity, username=username)
        return profile

    @measure_time("account_sign_in")
    async def sign_in(self, email: str, password: str) -> PlayerProfile:
        identity = await self.identity_provider.sign_in(email, password)
        return await self.score_store.get_profile(identity)

    async def sign_out(self) -> None:
        await self.identity_provider.sign_out()

    async def current_identity(self) -> str | None:
        return await self.identity_provider.get_current_identity()

    async def require_auth(self) -> str | None:
        """Identity of the signed-in player, or None when the caller must redirect."""
        identity = await self.current_identity()
        if identity is None:
            self.telemetry.log_info("Unauthenticated access, redirecting")
        return identity

    async def get_profile(self) -> PlayerProfile | None:
        identity = await self.current_identity()
        if identity is None:
            return None
        return await self.score_store.get_profile(identity)
