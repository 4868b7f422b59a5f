import sqlite3

from pydantic import ValidationError

from src.heart.adapters.db_manager import DatabaseManager
from src.heart.domain.errors import NotFound, PersistenceError
from src.heart.domain.models import PlayerProfile, ScoreRecord
from src.heart.domain.ports import IScoreStore
from src.shared.telemetry import Telemetry, measure_time


class SQLiteScoreStore(IScoreStore):
    """
    Local score persistence. Queries are tiny and run inline on the event
    loop; the read-then-write happens inside one transaction per identity.
    """

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.telemetry = Telemetry("SQLiteScoreStore")
        self.db_manager = db_manager

    def _get_connection(self) -> sqlite3.Connection:
        return self.db_manager.get_connection()

    def _release(self, conn: sqlite3.Connection) -> None:
        if not self.db_manager._shared_connection:
            conn.close()

    @measure_time("db_increment_score")
    async def increment(self, identity: str) -> ScoreRecord:
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT score, best_record FROM profiles WHERE id = ?", (identity,)
            ).fetchone()
            if not row:
                raise NotFound(identity)

            score, best = int(row[0] or 0), int(row[1] or 0)
            current = ScoreRecord(
                identity=identity, score=score, best_record=max(best, score)
            )
            updated = current.incremented()

            conn.execute(
                "UPDATE profiles SET score = ?, best_record = ? WHERE id = ?",
                (updated.score, updated.best_record, identity),
            )
            conn.commit()

            self.telemetry.log_info(
                "Score incremented",
                identity=identity,
                score=updated.score,
                best_record=updated.best_record,
            )
            return updated
        except sqlite3.Error as e:
            self.telemetry.log_error(f"increment failed for {identity}", e)
            raise PersistenceError(f"Could not save score: {e}") from e
        except (ValueError, TypeError, ValidationError) as e:
            self.telemetry.log_error(f"corrupt profile row for {identity}", e)
            raise PersistenceError(f"Stored score is invalid: {e}") from e
        finally:
            self._release(conn)

    async def get_profile(self, identity: str) -> PlayerProfile:
        conn = self._get_connection()
        try:
            row = conn.execute(
                "SELECT id, username, avatar_url, score, best_record "
                "FROM profiles WHERE id = ?",
                (identity,),
            ).fetchone()
        except sqlite3.Error as e:
            self.telemetry.log_error(f"get_profile failed for {identity}", e)
            raise PersistenceError(f"Could not read profile: {e}") from e
        finally:
            self._release(conn)

        if not row:
            raise NotFound(identity)

        try:
            return PlayerProfile(
                identity=row[0],
                username=row[1],
                avatar_url=row[2],
                score=row[3] or 0,
                best_record=row[4] or 0,
            )
        except ValidationError as e:
            self.telemetry.log_error(f"corrupt profile row for {identity}", e)
            raise PersistenceError(f"Stored profile is invalid: {e}") from e

    async def create_profile(self, profile: PlayerProfile) -> None:
        conn = self._get_connection()
        try:
            conn.execute(
                """
                INSERT INTO profiles (id, username, avatar_url, score, best_record)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    profile.identity,
                    profile.username,
                    profile.avatar_url,
                    profile.score,
                    profile.best_record,
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            self.telemetry.log_error(f"create_profile failed for {profile.identity}", e)
            raise PersistenceError(f"Could not create profile: {e}") from e
        finally:
            self._release(conn)
