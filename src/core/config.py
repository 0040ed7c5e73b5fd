"""
Application settings and logging setup.

Settings are read from environment variables (prefix CHESS_), falling back to the defaults below.
"""

import logging
import os
from typing import Self

from pydantic import BaseModel, Field, field_validator

from src.core.shared_types import DEFAULT_TIME_CONTROL, TimeControl

ENV_PREFIX = "CHESS_"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class Settings(BaseModel):
    database_url: str = "sqlite:///./chess_match.db"
    sql_echo: bool = False
    tick_interval: float = Field(default=1.0, gt=0)
    default_minutes: int = DEFAULT_TIME_CONTROL.value
    log_level: str = "INFO"

    @field_validator("default_minutes")
    @classmethod
    def validate_default_minutes(cls, value: int) -> int:
        if value not in {tc.value for tc in TimeControl}:
            raise ValueError(f"Time control must be one of {[tc.value for tc in TimeControl]} minutes.")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    @property
    def default_time_control(self) -> TimeControl:
        return TimeControl(self.default_minutes)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Self:
        """Collect every CHESS_* variable matching a field name; pydantic does the type coercion."""
        environ = dict(os.environ) if environ is None else environ
        values = {
            name: environ[ENV_PREFIX + name.upper()]
            for name in cls.model_fields
            if ENV_PREFIX + name.upper() in environ
        }
        return cls.model_validate(values)


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once. Calling it again only adjusts the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(level)
