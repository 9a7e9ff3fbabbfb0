# selfheal/utils/config.py
from __future__ import annotations

import functools
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------- Enums ----------

class BrowserType(str, Enum):
    chromium = "chromium"
    firefox = "firefox"
    webkit = "webkit"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ---------- Settings ----------

class Settings(BaseSettings):
    """
    Central configuration for self-healing element resolution.

    Values load in this order of precedence:
      1) Environment variables
      2) .env file in project root
      3) Defaults below
    """

    # ---- Browser configuration (used by `selfheal probe`) ----
    HEADLESS: bool = Field(default=True, description="Run the browser headless")
    BROWSER_TYPE: BrowserType = Field(default=BrowserType.chromium, description="Playwright browser")
    VIEWPORT_WIDTH: int = Field(default=1366, ge=320, le=7680)
    VIEWPORT_HEIGHT: int = Field(default=768, ge=320, le=4320)
    SLOW_MO: int = Field(default=0, ge=0, description="Slow down actions (ms) for debugging")
    USER_AGENT: Optional[str] = Field(default=None)
    PAGE_LOAD_TIMEOUT: int = Field(default=60000, ge=1000)

    # ---- Resolution defaults ----
    MAX_PASSES: int = Field(default=3, ge=1, description="Full traversals of the strategy list")
    PER_ATTEMPT_TIMEOUT_MS: int = Field(default=2000, ge=0, description="Visibility wait per strategy")
    INTER_PASS_DELAY_MS: int = Field(default=500, ge=0, description="Pause between passes")

    # ---- Logging ----
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO)
    LOG_TO_FILE: bool = Field(default=False)
    LOG_FILE: Path = Field(default=Path("./selfheal.log"))
    COLORIZED_OUTPUT: bool = Field(default=True)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore unknown envs to keep things flexible
    )

    @field_validator("LOG_FILE", mode="before")
    @classmethod
    def _coerce_to_path(cls, v):
        if isinstance(v, Path):
            return v
        return Path(str(v)) if v is not None else v

    @field_validator("LOG_FILE", mode="after")
    @classmethod
    def _absolutize_log_file(cls, v: Path, info):
        return v if v.is_absolute() else Path.cwd() / v

    @field_validator("VIEWPORT_WIDTH", "VIEWPORT_HEIGHT")
    @classmethod
    def _viewport_bounds(cls, val: int):
        return max(320, min(val, 10000))

    def resolution_kwargs(self) -> dict:
        """Default keyword arguments for Resolver.resolve()."""
        return {
            "max_passes": self.MAX_PASSES,
            "per_attempt_timeout_ms": self.PER_ATTEMPT_TIMEOUT_MS,
            "inter_pass_delay_ms": self.INTER_PASS_DELAY_MS,
        }

    # Convenience: Playwright launch options dict
    def playwright_launch_kwargs(self) -> dict:
        return {
            "headless": self.HEADLESS,
            "slow_mo": self.SLOW_MO,
        }

    # Convenience: Playwright new_context kwargs
    def playwright_context_kwargs(self) -> dict:
        viewport = {"width": self.VIEWPORT_WIDTH, "height": self.VIEWPORT_HEIGHT}
        ctx = {"viewport": viewport}
        if self.USER_AGENT:
            ctx["user_agent"] = self.USER_AGENT
        return ctx


# --------- Public accessor (memoized) ---------

@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache settings once per process.
    Call `get_settings.cache_clear()` if you need to reload after changing env.
    """
    return Settings()
