from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    google_cloud_project: str = ""
    firestore_emulator_host: Optional[str] = None
    firestore_collection: str = "murder_rooms"
    # Rooms expire this long after their last write
    session_ttl_seconds: int = 24 * 60 * 60
    room_code_length: int = 6

    # Game rules
    min_players: int = 4
    max_players: int = 12
    cards_per_player: int = 4
    max_rounds: int = 3
    discussion_duration_seconds: int = 180

    # CORS origins; set ALLOWED_ORIGINS env var for production (JSON list)
    allowed_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]
    # Extra production origin (e.g. Cloud Run URL); appended to allowed_origins
    extra_origin: str = ""
    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
    )

    @property
    def use_firestore(self) -> bool:
        """Firestore when a project or emulator is configured, in-memory otherwise."""
        return bool(self.google_cloud_project or self.firestore_emulator_host)

    @property
    def cors_origins(self) -> List[str]:
        if self.extra_origin:
            return [*self.allowed_origins, self.extra_origin]
        return list(self.allowed_origins)


settings = Settings()
