"""
Configuration management for the Risk Reward Simulator.

Uses pydantic-settings to load configuration from environment variables
with sensible defaults for local play.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Local storage
    database_path: str = "risk_reward_sim.db"

    # Game settings
    initial_balance: float = 1000.0
    win_goal_balance: float = 10000.0

    # Analytics
    min_history_for_analysis: int = 5  # Bets needed before patterns/projections
    default_projection_horizon: int = 25

    # Logging
    log_level: str = "INFO"
    log_file: str = "risk_reward_sim.log"


# Global settings instance
settings = Settings()
