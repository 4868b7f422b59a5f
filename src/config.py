import os
from enum import Enum
from typing import Final
from urllib.parse import quote


class Mode(Enum):
    # Enum Member = ("Mode Name", countdown units or None for unlimited, "Icon")
    BEGINNER = ("beginner", None, "🌱")
    INTERMEDIATE = ("intermediate", 30, "⚡")
    PRO = ("pro", 10, "🔥")

    def __init__(self, label: str, seconds: int | None, icon: str):
        self.label = label
        self.seconds = seconds
        self.icon = icon

    @property
    def is_timed(self) -> bool:
        return self.seconds is not None

    @property
    def initial_time(self) -> int:
        """Countdown start value. Unlimited modes report 0 (no clock exists)."""
        return self.seconds or 0

    @classmethod
    def from_label(cls, label: str) -> "Mode":
        """Resolves a mode from its label, falling back to BEGINNER."""
        for mode in cls:
            if mode.label == label:
                return mode
        return cls.BEGINNER

    @classmethod
    def all_labels(cls) -> list[str]:
        return [m.label for m in cls]


class GameConfig:
    # --- Infrastructure Switch ---
    USE_SQLITE: bool = os.getenv("HEART_USE_SQLITE", "true").lower() == "true"
    DB_PATH: str = os.getenv("HEART_DB_PATH", "data/heart.db")

    SUPABASE_URL: str | None = os.getenv("SUPABASE_URL")
    SUPABASE_KEY: str | None = os.getenv("SUPABASE_KEY")

    # --- App Identity ---
    APP_TITLE = "Heart Quiz"

    # --- Puzzle Provider ---
    HEART_API_URL: Final[str] = os.getenv(
        "HEART_API_URL", "http://marcconrad.com/uob/heart/api.php?out=json"
    )
    FETCH_TIMEOUT_SECONDS: Final[float] = float(os.getenv("HEART_FETCH_TIMEOUT", "10"))

    # --- Game Rules ---
    TIME_UNIT_SECONDS: Final[float] = 1.0
    CELEBRATION_DELAY_UNITS: Final[int] = 4
    POINTS_PER_PUZZLE: Final[int] = 1

    # --- Avatars ---
    AVATAR_URL_TEMPLATE = "https://api.dicebear.com/7.x/pixel-art/svg?seed={seed}"

    @staticmethod
    def get_avatar_url(username: str) -> str:
        """Returns the DiceBear avatar URL seeded by the username."""
        return GameConfig.AVATAR_URL_TEMPLATE.format(seed=quote(username, safe=""))
