"""Runtime settings, read from ``ROOMBOOK_*`` environment variables."""

from __future__ import annotations

import logging
import os
from datetime import time
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

_PREFIX = "ROOMBOOK_"


class Settings(BaseModel):
    env: str = "development"
    log_level: str = "INFO"
    open_time: time = time(8, 0)
    close_time: time = time(18, 0)
    lunch_start: time = time(11, 30)
    lunch_end: time = time(12, 30)
    # A recurring series may span at most this many days past its first date
    max_series_days: int = Field(default=56, gt=0)
    max_occurrences: int = Field(default=20, gt=0)
    holiday_file: Path | None = None
    # Granted ADMIN on login outside production
    dev_admin_employee_id: str | None = None

    @model_validator(mode="after")
    def _ordered_windows(self) -> Settings:
        if self.open_time >= self.close_time:
            raise ValueError("open_time must be before close_time")
        if self.lunch_start >= self.lunch_end:
            raise ValueError("lunch_start must be before lunch_end")
        return self

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        """Build settings from the environment, ignoring unset or empty variables."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(_PREFIX + name.upper())
            if raw:
                values[name] = raw
        return cls.model_validate(values)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
