"""Configuration management for the network observation core."""

import os
from typing import Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class NetworkConfig(BaseModel):
    """Tracker, event bus and signal configuration."""

    strict_signals: bool = Field(
        default=False,
        description="Raise on protocol violations instead of logging and dropping them"
    )
    signal_timeout: int = Field(
        default=30000,
        description="Default wait timeout for one-shot signals in milliseconds"
    )
    raise_handler_errors: bool = Field(
        default=False,
        description="Raise collected handler errors after each dispatch"
    )

    @classmethod
    def from_env(cls) -> "NetworkConfig":
        """Create config from environment variables."""
        return cls(
            strict_signals=os.getenv("NETWORK_STRICT_SIGNALS", "false").lower() == "true",
            signal_timeout=int(os.getenv("NETWORK_SIGNAL_TIMEOUT", "30000")),
            raise_handler_errors=os.getenv("NETWORK_RAISE_HANDLER_ERRORS", "false").lower() == "true",
        )


class BrowserConfig(BaseModel):
    """Browser settings used by the `watch` command."""

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode"
    )
    browser_type: str = Field(
        default="chromium",
        description="Playwright browser engine (chromium, firefox, webkit)"
    )
    timeout: int = Field(
        default=30000,
        description="Navigation timeout in milliseconds"
    )
    ignore_https_errors: bool = Field(
        default=True,
        description="Ignore HTTPS certificate errors"
    )

    @classmethod
    def from_env(cls) -> "BrowserConfig":
        """Create config from environment variables."""
        return cls(
            headless=os.getenv("BROWSER_HEADLESS", "true").lower() == "true",
            browser_type=os.getenv("BROWSER_TYPE", "chromium"),
            timeout=int(os.getenv("BROWSER_TIMEOUT", "30000")),
            ignore_https_errors=os.getenv("BROWSER_IGNORE_HTTPS_ERRORS", "true").lower() == "true",
        )


class Config(BaseModel):
    """Main configuration container."""

    network: NetworkConfig = Field(default_factory=NetworkConfig.from_env)
    browser: BrowserConfig = Field(default_factory=BrowserConfig.from_env)

    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Log file path"
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON formatted logs"
    )

    @classmethod
    def from_env(cls) -> "Config":
        """Create complete config from environment variables."""
        return cls(
            network=NetworkConfig.from_env(),
            browser=BrowserConfig.from_env(),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE"),
            json_logs=os.getenv("LOG_JSON", "false").lower() == "true",
        )


# Global configuration instance
CONFIG = Config.from_env()
