"""Runtime configuration for voxel-scout."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="VOXEL_SCOUT_", env_file=".env", extra="ignore")

    app_name: str = "voxel-scout"
    log_level: str = "INFO"
    actor_id: str = "default"
    game_adapter: str = Field(
        default="grid",
        description="Command backend: 'grid' for the in-process demo world, 'echo' to only echo commands.",
    )
    progress_dir: str = ".voxel_scout/progress"
    command_history_path: str | None = Field(
        default=None,
        description="Optional JSONL file that keeps finished command jobs across runs.",
    )
    output_log_lines: int = Field(default=500, ge=10)
    scan_window_lines: int = Field(default=40, ge=8, description="Lines searched after a scan header.")
    rescan_wait_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="How long a march waits for a freshly requested scan before giving up.",
    )
    march_unlock_level: int = Field(default=2, ge=1)
    mine_unlock_level: int = Field(default=3, ge=1)


settings = Settings()
