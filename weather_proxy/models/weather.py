"""Weather data models for the /weather endpoint.

Only the fields declared here are copied from the upstream payload. Pydantic
ignores any other keys, so unknown upstream fields never reach the client.
"""

from typing import Optional

from pydantic import BaseModel, Field


class LocationInfo(BaseModel):
    """Resolved location returned by the provider."""

    name: Optional[str] = Field(None, description="Location name")
    region: Optional[str] = Field(None, description="Region or state")
    country: Optional[str] = Field(None, description="Country name")
    lat: Optional[float] = Field(None, description="Latitude")
    lon: Optional[float] = Field(None, description="Longitude")
    tz_id: Optional[str] = Field(None, description="IANA timezone id")
    localtime: Optional[str] = Field(None, description="Local time at the location")


class ConditionInfo(BaseModel):
    """Weather condition description."""

    text: Optional[str] = Field(None, description="Condition (e.g., 'Partly cloudy')")


class CurrentConditions(BaseModel):
    """Current weather conditions for a location."""

    temp_c: Optional[float] = Field(None, description="Temperature in Celsius")
    temp_f: Optional[float] = Field(None, description="Temperature in Fahrenheit")
    feelslike_c: Optional[float] = Field(None, description="Feels like in Celsius")
    feelslike_f: Optional[float] = Field(None, description="Feels like in Fahrenheit")
    condition: ConditionInfo = Field(default_factory=ConditionInfo)
    humidity: Optional[int] = Field(None, description="Humidity percentage")
    pressure_mb: Optional[float] = None
    pressure_in: Optional[float] = None
    vis_km: Optional[float] = None
    vis_miles: Optional[float] = None
    wind_kph: Optional[float] = None
    wind_mph: Optional[float] = None
    wind_degree: Optional[int] = None
    wind_dir: Optional[str] = None
    uv: Optional[float] = Field(None, description="UV index")
    cloud: Optional[int] = Field(None, description="Cloud cover percentage")
    precip_mm: Optional[float] = None
    precip_in: Optional[float] = None
    last_updated: Optional[str] = Field(None, description="Provider update time")


class WeatherSnapshot(BaseModel):
    """Normalized successful upstream result."""

    location: LocationInfo
    current: CurrentConditions

    @classmethod
    def from_upstream(cls, data: dict) -> "WeatherSnapshot":
        """Build a snapshot from a parsed provider body.

        Raises:
            pydantic.ValidationError: If a documented field has the wrong type
        """
        current = dict(data["current"])
        if not isinstance(current.get("condition"), dict):
            current["condition"] = {}
        return cls(
            location=LocationInfo.model_validate(data["location"]),
            current=CurrentConditions.model_validate(current),
        )


class WeatherResponse(BaseModel):
    """Success body of GET /weather."""

    location: LocationInfo
    current: CurrentConditions
    timestamp: str = Field(..., description="ISO-8601 time the response was produced")
