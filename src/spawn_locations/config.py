"""Runtime configuration for the spawn locations service."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="SPAWN_LOCATIONS_", env_file=".env", extra="ignore")

    app_name: str = "spawn-locations"
    log_level: str = "INFO"
    cell_level: int = Field(default=14, ge=1, le=24, description="Quadtree level of the spatial cells.")
    max_cells_per_query: int = Field(default=64, ge=1)
    provider_backend: str = Field(
        default="demo",
        description="Playable locations backend: demo, cli or stub.",
    )
    provider_cli_bin: str | None = Field(
        default=None,
        description="Path to the playable-locations bridge binary used by the cli backend.",
    )
    provider_timeout_seconds: float = Field(default=10.0, gt=0)
    criteria_max_locations: int = Field(default=2, ge=1)
    minion_cooldown_seconds: float = Field(default=300.0, ge=0)
    chest_cooldown_seconds: float = Field(default=1800.0, ge=0)
    energy_station_cooldown_seconds: float = Field(default=3600.0, ge=0)
    selection_policy: str = "first"
    catalog_seed: int | None = None
    state_store_path: str | None = None


settings = Settings()
