"""
PRTG custom sensor payload.

PRTG "EXE/Script Advanced" and "REST Custom" sensors read a JSON object of
the form ``{"prtg": {"result": [...channels...], "text": "..."}}``.  The
channel keys are PascalCase and their order is kept stable so the output
is byte-for-byte reproducible.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

EXPIRY_CHANNEL = "Certificate expiration"
PLACEHOLDER_CHANNEL = "Placeholder"

# PRTG: LimitMode 1 enables the channel limits
LIMIT_MODE_ENABLED = 1


# ---------------------------------------------------------------------------
# Domain record
# ---------------------------------------------------------------------------


class SensorRecord(BaseModel):
    """One sensor reading: days until a certificate expires."""

    model_config = ConfigDict(frozen=True)

    days_remaining: int
    warning_days: int
    error_days: int
    text: str


# ---------------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------------


class Channel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    channel: str = Field(alias="Channel")
    value: int = Field(alias="Value")
    unit: str | None = Field(default=None, alias="Unit")
    custom_unit: str | None = Field(default=None, alias="CustomUnit")
    is_float: int | None = Field(default=None, alias="Float")
    limit_min_warning: int | None = Field(default=None, alias="LimitMinWarning")
    limit_min_error: int | None = Field(default=None, alias="LimitMinError")
    limit_mode: int | None = Field(default=None, alias="LimitMode")


class SensorResult(BaseModel):
    result: list[Channel]
    text: str


class SensorError(BaseModel):
    error: int = 1
    text: str


class PrtgPayload(BaseModel):
    prtg: SensorResult | SensorError

    def render(self) -> str:
        """Serialize to the JSON text PRTG expects."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


def sensor_payload(record: SensorRecord) -> PrtgPayload:
    """Build the two-channel PRTG payload for *record*.

    The second channel is a constant placeholder that existing sensor
    definitions expect to find.
    """
    return PrtgPayload(
        prtg=SensorResult(
            result=[
                Channel(
                    channel=EXPIRY_CHANNEL,
                    value=record.days_remaining,
                    unit="Custom",
                    custom_unit="Days",
                    is_float=0,
                    limit_min_warning=record.warning_days,
                    limit_min_error=record.error_days,
                    limit_mode=LIMIT_MODE_ENABLED,
                ),
                Channel(channel=PLACEHOLDER_CHANNEL, value=0),
            ],
            text=record.text,
        )
    )


def error_payload(message: str) -> PrtgPayload:
    """Build the payload that puts a PRTG sensor into the error state."""
    return PrtgPayload(prtg=SensorError(text=message))
