from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LOSTFOUND_", extra="ignore")

    repo_root: Path = Field(default_factory=_default_repo_root)
    data_dir: Path | None = None
    config_dir: Path | None = None

    log_level: str = "INFO"

    # Proof scores arrive from the external scoring service
    proof_score_min: float = 0.0
    proof_score_max: float = 100.0

    # Tier derivation when the scoring service sends no tier
    tier_full_threshold: float = 80.0
    tier_partial_threshold: float = 50.0

    # Archival sweeper
    archival_sweep_interval_s: float = 3600.0
    archival_start_on_startup: bool = True

    # HTTP boundary
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://127.0.0.1:5173", "http://localhost:5173"]
    )
    request_timeout_s: float = 30.0

    @property
    def resolved_data_dir(self) -> Path:
        return self.data_dir or (self.repo_root / "data")

    @property
    def resolved_config_dir(self) -> Path:
        return self.config_dir or (self.repo_root / "config")

    @property
    def db_path(self) -> Path:
        return self.resolved_data_dir / "index" / "lostfound.sqlite3"

    @property
    def retention_policies_path(self) -> Path:
        return self.resolved_config_dir / "retention_policies.yaml"


# Singleton instance - import this instead of creating Settings()
settings = Settings()
