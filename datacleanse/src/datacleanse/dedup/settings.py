"""
Dedup engine configuration via Pydantic Settings.

All values overridable from environment variables (prefix DATACLEANSE_).
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class DedupSettings(BaseSettings):
    """Engine configuration loaded from environment variables."""

    # Ingestion
    chunk_size: int = Field(default=50, ge=1)

    # Worker pools (one per fingerprint family)
    exact_workers: int = Field(default=4, ge=1)
    visual_workers: int = Field(default=2, ge=1)
    dispatch_timeout_seconds: Optional[float] = Field(default=None, gt=0)
    perceptual_fallback_to_exact: bool = False

    # Perceptual hash grid (cells per side)
    perceptual_grid_size: int = Field(default=16, ge=2)

    # Reconciliation
    removal_delay_seconds: float = Field(default=0.8, ge=0.0)

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    model_config = {"env_prefix": "DATACLEANSE_", "case_sensitive": False}


@lru_cache
def get_settings() -> DedupSettings:
    """Factory for engine settings (cached singleton)."""
    return DedupSettings()
