from abc import ABC, abstractmethod

from src.heart.domain.models import PlayerProfile, Puzzle, ScoreRecord


class IPuzzleSource(ABC):
    @abstractmethod
    async def fetch(self) -> Puzzle:
        """
        Fetches one fresh puzzle.
        Raises SourceUnavailable or MalformedResponse.
        """
        pass


class IScoreStore(ABC):
    @abstractmethod
    async def increment(self, identity: str) -> ScoreRecord:
        """
        Read-then-write update of a single record.
        Raises NotFound or PersistenceError.
        """
        pass

    @abstractmethod
    async def get_profile(self, identity: str) -> PlayerProfile:
        pass

    @abstractmethod
    async def create_profile(self, profile: PlayerProfile) -> None:
        pass


class IIdentityProvider(ABC):
    @abstractmethod
    async def sign_up(self, email: str, password: str) -> str:
        """Creates an account and returns its identity."""
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> str:
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass

    @abstractmethod
    async def get_current_identity(self) -> str | None:
        pass
