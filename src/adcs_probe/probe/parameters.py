"""Validated probe invocation parameters."""

from __future__ import annotations

import calendar
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from adcs_probe.errors import ConfigurationError


class ProbeParameters(BaseModel):
    """Everything one probe run needs, checked before the CA is contacted.

    ``start``/``end`` left as ``None`` are filled in by :meth:`window`.
    """

    ca_config: str | None = None
    csv_path: Path | None = None
    start: datetime | None = None
    end: datetime | None = None
    exclude_templates: list[str] = Field(default_factory=list)
    exclude_autoenroll: bool = False
    warning_days: int = Field(ge=0)
    error_days: int = Field(ge=0)
    max_results: int = Field(default=10, ge=1)
    return_index: int = Field(default=0, ge=0)

    @field_validator("exclude_templates", mode="before")
    @classmethod
    def _split_templates(cls, value):
        if isinstance(value, str):
            return parse_template_list(value)
        return value

    @field_validator("start", "end")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.astimezone()
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _check_source_and_window(self) -> "ProbeParameters":
        if not self.ca_config and self.csv_path is None:
            raise ValueError("a CA config string or a certificate export file is required")
        if self.start and self.end and self.end < self.start:
            raise ValueError("end date must not be before start date")
        return self

    def window(self, now: datetime, months: int = 12) -> tuple[datetime, datetime]:
        """Return the expiration window, defaulting to ``[now, now + months]``."""
        start = self.start or now
        end = self.end or add_months(now, months)
        if end < start:
            raise ConfigurationError(
                f"end date {end.isoformat()} is before start date {start.isoformat()}"
            )
        return start, end


def build_parameters(**values) -> ProbeParameters:
    """Validate *values* into :class:`ProbeParameters`.

    Raises:
        ConfigurationError: with a one-line summary of every invalid field.
    """
    try:
        return ProbeParameters(**values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc']) or 'parameters'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(f"Invalid parameters: {problems}") from exc


def parse_template_list(value: str) -> list[str]:
    """Split a semicolon-delimited template list, dropping blanks."""
    return [name.strip() for name in value.split(";") if name.strip()]


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
