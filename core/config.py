"""Runtime settings and logging setup."""

import logging
import os

from pydantic import BaseModel, ValidationError, field_validator
from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


class Settings(BaseModel):
    """Tunables read from the environment."""

    request_timeout: float = 30.0
    user_agent: str = "depbump/0.1.0"
    libraries_io_api_key: str | None = None
    maven_search_url: str = "https://search.maven.org/solrsearch/select"
    cors_origin: str = "http://localhost:8000"
    log_level: str = "INFO"

    @field_validator("request_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("request_timeout must be positive")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from DEPBUMP_* variables and LIBRARIES_IO_API_KEY.

        Raises:
            ValueError: A variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        mapping = {
            "request_timeout": "DEPBUMP_REQUEST_TIMEOUT",
            "user_agent": "DEPBUMP_USER_AGENT",
            "libraries_io_api_key": "LIBRARIES_IO_API_KEY",
            "maven_search_url": "DEPBUMP_MAVEN_SEARCH_URL",
            "cors_origin": "DEPBUMP_CORS_ORIGIN",
            "log_level": "DEPBUMP_LOG_LEVEL",
        }
        values = {name: env[var] for name, var in mapping.items() if env.get(var)}
        try:
            return cls(**values)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e


def configure_logging(level: str = "INFO", rich_output: bool = False) -> None:
    """Install a root handler; RichHandler for terminal use."""
    if rich_output:
        logging.basicConfig(
            level=level,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
            force=True,
        )
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
