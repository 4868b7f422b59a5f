import hashlib
import hmac
import secrets
import sqlite3
import uuid

from src.heart.adapters.db_manager import DatabaseManager
from src.heart.domain.errors import AuthenticationError
from src.heart.domain.ports import IIdentityProvider
from src.shared.telemetry import Telemetry

PBKDF2_ITERATIONS = 100_000


def _hash_password(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), bytes.fromhex(salt), PBKDF2_ITERATIONS
    )
    return digest.hex()


class LocalIdentityProvider(IIdentityProvider):
    """
    Email/password accounts kept in the local SQLite file.
    One instance per browser session: the signed-in identity lives on it.
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("LocalIdentityProvider")
        self.db_manager = db_manager
        self._identity: str | None = None

    def _release(self, conn: sqlite3.Connection) -> None:
        if not self.db_manager._shared_connection:
            conn.close()

    async def sign_up(self, email: str, password: str) -> str:
        if not email or not password:
            raise AuthenticationError("Email and password are required")

        identity = str(uuid.uuid4())
        salt = secrets.token_hex(16)
        conn = self.db_manager.get_connection()
        try:
            conn.execute(
                "INSERT INTO accounts (email, identity, password_hash, salt) "
                "VALUES (?, ?, ?, ?)",
                (email.lower(), identity, _hash_password(password, salt), salt),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise AuthenticationError("User already registered") from e
        except sqlite3.Error as e:
            self.telemetry.log_error("sign_up failed", e)
            raise AuthenticationError(f"Could not create account: {e}") from e
        finally:
            self._release(conn)

        self._identity = identity
        self.telemetry.log_info("Account created", identity=identity)
        return identity

    async def sign_in(self, email: str, password: str) -> str:
        conn = self.db_manager.get_connection()
        try:
            row = conn.execute(
                "SELECT identity, password_hash, salt FROM accounts WHERE email = ?",
                (email.lower(),),
            ).fetchone()
        except sqlite3.Error as e:
            self.telemetry.log_error("sign_in failed", e)
            raise AuthenticationError(f"Could not sign in: {e}") from e
        finally:
            self._release(conn)

        if not row or not hmac.compare_digest(row[1], _hash_password(password, row[2])):
            raise AuthenticationError("Invalid login credentials")

        self._identity = row[0]
        self.telemetry.log_info("Signed in", identity=self._identity)
        return self._identity

    async def sign_out(self) -> None:
        self.telemetry.log_info("Signed out", identity=self._identity)
        self._identity = None

    async def get_current_identity(self) -> str | None:
        return self._identity
