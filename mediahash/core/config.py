# File: mediahash/core/config.py
"""
Application Configuration
"""
from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MEDIAHASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    # Hashing
    DEFAULT_BITS: int = Field(
        default=16,
        description="Grid size when --bits is not given (halved for video)",
    )

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="WARNING")

    # OpenCV
    OPENCV_NUM_THREADS: int | None = Field(
        default=None,
        description="If None -> auto: max(1, cpu_count//2)",
    )

    # Profiling
    PROFILE: bool = Field(default=False, description="Log per-kernel timings")
    PROFILE_OUT_CSV: Path | None = Field(default=None)

    # Video debug
    DUMP_FRAMES: bool = Field(
        default=True,
        description="In --debug video mode save sampled frames as <file>-frm-N.bmp",
    )


settings = Settings()
