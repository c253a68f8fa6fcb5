"""Static set of monitored Hyderabad locations."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from .models import LocationRecord, PollutantReadings

DEFAULT_BASELINE_AQI = 100

_LOADED_AT = datetime.now(timezone.utc)

HYDERABAD_LOCATIONS: Tuple[LocationRecord, ...] = (
    LocationRecord(
        id="gachibowli",
        name="Gachibowli (IT Hub)",
        aqi=142,
        pollutants=PollutantReadings(pm25=52, pm10=98, no2=24, so2=8, co=1.2, o3=45),
        temperature=32,
        humidity=45,
        last_updated=_LOADED_AT,
    ),
    LocationRecord(
        id="banjara-hills",
        name="Banjara Hills",
        aqi=85,
        pollutants=PollutantReadings(pm25=28, pm10=65, no2=18, so2=5, co=0.8, o3=38),
        temperature=31,
        humidity=48,
        last_updated=_LOADED_AT,
    ),
    LocationRecord(
        id="charminar",
        name="Charminar (Old City)",
        aqi=188,
        pollutants=PollutantReadings(pm25=78, pm10=145, no2=42, so2=15, co=2.4, o3=52),
        temperature=34,
        humidity=42,
        last_updated=_LOADED_AT,
    ),
    LocationRecord(
        id="secunderabad",
        name="Secunderabad Junction",
        aqi=165,
        pollutants=PollutantReadings(pm25=65, pm10=120, no2=35, so2=12, co=1.9, o3=48),
        temperature=33,
        humidity=44,
        last_updated=_LOADED_AT,
    ),
    LocationRecord(
        id="kukatpally",
        name="Kukatpally Housing Board",
        aqi=156,
        pollutants=PollutantReadings(pm25=58, pm10=110, no2=30, so2=10, co=1.5, o3=42),
        temperature=32,
        humidity=46,
        last_updated=_LOADED_AT,
    ),
)

# (latitude, longitude) used by the dashboard map
MAP_COORDINATES: Dict[str, Tuple[float, float]] = {
    "gachibowli": (17.4401, 78.3489),
    "banjara-hills": (17.4156, 78.4347),
    "charminar": (17.3616, 78.4747),
    "secunderabad": (17.4399, 78.4983),
    "kukatpally": (17.4849, 78.4138),
}

_BY_ID = {loc.id: loc for loc in HYDERABAD_LOCATIONS}


def get_location(location_id: str) -> Optional[LocationRecord]:
    return _BY_ID.get(location_id)


def is_registry_id(location_id: str) -> bool:
    return location_id in _BY_ID


def find_local_match(term: str) -> Optional[LocationRecord]:
    """Return the first location whose display name contains `term` (case-insensitive)."""
    needle = (term or "").strip().lower()
    if not needle:
        return None
    return next((loc for loc in HYDERABAD_LOCATIONS if needle in loc.name.lower()), None)


def baseline_aqi(location_id: str, fallback: Optional[int] = None) -> int:
    """Registry AQI for `location_id`, else `fallback`, else the city default."""
    loc = get_location(location_id)
    if loc is not None:
        return loc.aqi
    return int(fallback) if fallback is not None else DEFAULT_BASELINE_AQI


def short_label(location: LocationRecord) -> str:
    """First word of the display name, used for compact selector buttons."""
    return location.name.split(" ")[0]
