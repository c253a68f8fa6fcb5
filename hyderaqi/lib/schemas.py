"""Validation schema for the structured-extraction stage of the area resolver."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

EXTRACTION_SCHEMA_NAME = "area_air_quality"


class ExtractedReadings(BaseModel):
    # Strict numbers only: booleans and numeric strings are rejected, ints are
    # accepted as floats. Infinity and NaN never make it into a record.
    model_config = ConfigDict(extra="ignore", strict=True, allow_inf_nan=False)

    aqi: Optional[float] = Field(None, ge=0, description="US AQI")
    pm25: Optional[float] = Field(None, ge=0, description="PM2.5 concentration (µg/m³)")
    pm10: Optional[float] = Field(None, ge=0, description="PM10 concentration (µg/m³)")
    temp: Optional[float] = Field(None, description="Air temperature (°C)")


def extraction_json_schema() -> Dict[str, Any]:
    """JSON schema sent to the provider's structured-output mode.

    Strict structured output requires every property to be listed as required,
    so absence is expressed as ``null``.
    """
    number_or_null = {"type": ["number", "null"]}
    return {
        "type": "object",
        "properties": {
            "aqi": dict(number_or_null, description="Air Quality Index"),
            "pm25": dict(number_or_null, description="PM2.5 in µg/m³"),
            "pm10": dict(number_or_null, description="PM10 in µg/m³"),
            "temp": dict(number_or_null, description="Temperature in °C"),
        },
        "required": ["aqi", "pm25", "pm10", "temp"],
        "additionalProperties": False,
    }
