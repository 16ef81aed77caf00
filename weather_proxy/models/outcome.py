"""Classified results of an upstream weather call."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from weather_proxy.models.weather import WeatherSnapshot


class OutcomeKind(str, Enum):
    """Finite set of upstream call results."""

    SUCCESS = "success"
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    UPSTREAM_ERROR = "upstream_error"
    TIMEOUT = "timeout"
    MALFORMED_RESPONSE = "malformed_response"


class UpstreamResult(BaseModel):
    """Tagged result passed from the weather client to the request handler.

    Attributes:
        kind: Which outcome occurred
        snapshot: Weather data, present only for SUCCESS
        status_code: Upstream HTTP status, present for UPSTREAM_ERROR
        reason: Short provider-safe explanation for INVALID_INPUT/NOT_FOUND
    """

    kind: OutcomeKind
    snapshot: Optional[WeatherSnapshot] = None
    status_code: Optional[int] = None
    reason: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS and self.snapshot is not None

    @classmethod
    def ok(cls, snapshot: WeatherSnapshot) -> "UpstreamResult":
        return cls(kind=OutcomeKind.SUCCESS, snapshot=snapshot)

    @classmethod
    def invalid_input(cls, reason: str) -> "UpstreamResult":
        return cls(kind=OutcomeKind.INVALID_INPUT, reason=reason)

    @classmethod
    def not_found(cls, reason: Optional[str] = None) -> "UpstreamResult":
        return cls(kind=OutcomeKind.NOT_FOUND, reason=reason)

    @classmethod
    def unavailable(cls) -> "UpstreamResult":
        return cls(kind=OutcomeKind.UPSTREAM_UNAVAILABLE)

    @classmethod
    def upstream_error(cls, status_code: int) -> "UpstreamResult":
        return cls(kind=OutcomeKind.UPSTREAM_ERROR, status_code=status_code)

    @classmethod
    def timeout(cls) -> "UpstreamResult":
        return cls(kind=OutcomeKind.TIMEOUT)

    @classmethod
    def malformed(cls) -> "UpstreamResult":
        return cls(kind=OutcomeKind.MALFORMED_RESPONSE)
