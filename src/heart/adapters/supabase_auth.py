import asyncio

from src.heart.domain.errors import AuthenticationError
from src.heart.domain.ports import IIdentityProvider
from src.shared.telemetry import Telemetry
from supabase import Client, create_client


def build_client(url: str, key: str) -> Client:
    """The only place that turns credentials into a Supabase client."""
    return create_client(url, key)


class SupabaseIdentityProvider(IIdentityProvider):
    """
    Supabase Auth (email + password).
    The client keeps the auth session, so build one per browser session.
    """

    def __init__(self, client: Client) -> None:
        self.telemetry = Telemetry("SupabaseIdentityProvider")
        self.client = client

    async def sign_up(self, email: str, password: str) -> str:
        try:
            response = await asyncio.to_thread(
                self.client.auth.sign_up, {"email": email, "password": password}
            )
        except Exception as e:
            self.telemetry.log_error("sign_up failed", e)
            raise AuthenticationError(str(e)) from e

        if response.user is None:
            raise AuthenticationError("Sign up did not return a user")
        return response.user.id

    async def sign_in(self, email: str, password: str) -> str:
        try:
            response = await asyncio.to_thread(
                self.client.auth.sign_in_with_password,
                {"email": email, "password": password},
            )
        except Exception as e:
            self.telemetry.log_error("sign_in failed", e)
            raise AuthenticationError(str(e)) from e

        if response.user is None:
            raise AuthenticationError("Invalid login credentials")
        return response.user.id

    async def sign_out(self) -> None:
        try:
            await asyncio.to_thread(self.client.auth.sign_out)
        except Exception as e:
            self.telemetry.log_error("sign_out failed", e)
            raise AuthenticationError(str(e)) from e

    async def get_current_identity(self) -> str | None:
        try:
            response = await asyncio.to_thread(self.client.auth.get_user)
        except Exception as e:
            # An expired or missing session reads as "signed out"
            self.telemetry.log_error("get_user failed", e)
            return None

        if response is None or response.user is None:
            return None
        return response.user.id
