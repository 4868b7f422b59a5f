import asyncio
from typing import Any, cast

import httpx
from postgrest.exceptions import APIError
from pydantic import ValidationError

from src.heart.domain.errors import NotFound, PersistenceError
from src.heart.domain.models import PlayerProfile, ScoreRecord
from src.heart.domain.ports import IScoreStore
from src.shared.telemetry import Telemetry, measure_time
from supabase import Client

PROFILES_TABLE = "profiles"

# Rows that cannot be decoded into domain models
ROW_DECODE_ERRORS = (ValueError, TypeError, ValidationError)


class SupabaseScoreStore(IScoreStore):
    """
    Scores in the hosted `profiles` table.
    The Supabase client is synchronous, so every round-trip runs in a worker
    thread and the event loop keeps ticking while we wait.
    """

    def __init__(self, client: Client) -> None:
        self.telemetry = Telemetry("SupabaseScoreStore")
        self.client = client

    def _fetch_row(self, identity: str, columns: str) -> dict[str, Any]:
        response = (
            self.client.table(PROFILES_TABLE).select(columns).eq("id", identity).execute()
        )
        data = cast(list[dict[str, Any]], response.data)
        if not data:
            raise NotFound(identity)
        return data[0]

    def _increment_sync(self, identity: str) -> ScoreRecord:
        row = self._fetch_row(identity, "score, best_record")
        score = int(row.get("score") or 0)
        best = int(row.get("best_record") or 0)
        updated = ScoreRecord(
            identity=identity, score=score, best_record=max(best, score)
        ).incremented()

        # Last write wins if another tab got there first
        self.client.table(PROFILES_TABLE).update(
            {"score": updated.score, "best_record": updated.best_record}
        ).eq("id", identity).execute()
        return updated

    @measure_time("sb_increment_score")
    async def increment(self, identity: str) -> ScoreRecord:
        try:
            updated = await asyncio.to_thread(self._increment_sync, identity)
        except (APIError, httpx.HTTPError) as e:
            self.telemetry.log_error(f"increment failed for {identity}", e)
            raise PersistenceError(f"Could not save score: {e}") from e
        except ROW_DECODE_ERRORS as e:
            self.telemetry.log_error(f"corrupt profile row for {identity}", e)
            raise PersistenceError(f"Stored score is invalid: {e}") from e

        self.telemetry.log_info(
            "Score incremented",
            identity=identity,
            score=updated.score,
            best_record=updated.best_record,
        )
        return updated

    @measure_time("sb_get_profile")
    async def get_profile(self, identity: str) -> PlayerProfile:
        try:
            row = await asyncio.to_thread(
                self._fetch_row, identity, "id, username, avatar_url, score, best_record"
            )
        except (APIError, httpx.HTTPError) as e:
            self.telemetry.log_error(f"get_profile failed for {identity}", e)
            raise PersistenceError(f"Could not read profile: {e}") from e

        try:
            return PlayerProfile(
                identity=str(row["id"]),
                username=str(row.get("username") or ""),
                avatar_url=row.get("avatar_url"),
                score=int(row.get("score") or 0),
                best_record=int(row.get("best_record") or 0),
            )
        except (KeyError, *ROW_DECODE_ERRORS) as e:
            self.telemetry.log_error(f"corrupt profile row for {identity}", e)
            raise PersistenceError(f"Stored profile is invalid: {e}") from e

    async def create_profile(self, profile: PlayerProfile) -> None:
        payload = {
            "id": profile.identity,
            "username": profile.username,
            "avatar_url": profile.avatar_url,
            "score": profile.score,
            "best_record": profile.best_record,
        }
        try:
            await asyncio.to_thread(
                lambda: self.client.table(PROFILES_TABLE).insert(payload).execute()
            )
        except (APIError, httpx.HTTPError) as e:
            self.telemetry.log_error(f"create_profile failed for {profile.identity}", e)
            raise PersistenceError(f"Could not create profile: {e}") from e
