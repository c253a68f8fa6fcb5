"""Data types shared by the registry, the resolver and the dashboard."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class PollutantReadings:
    pm25: float
    pm10: float
    no2: float
    so2: float
    co: float
    o3: float

    def as_dict(self) -> Dict[str, float]:
        return {
            "pm25": self.pm25,
            "pm10": self.pm10,
            "no2": self.no2,
            "so2": self.so2,
            "co": self.co,
            "o3": self.o3,
        }


@dataclass(frozen=True)
class LocationRecord:
    id: str
    name: str
    aqi: int
    pollutants: PollutantReadings
    temperature: float
    humidity: float
    last_updated: datetime

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "aqi": self.aqi,
            "pollutants": self.pollutants.as_dict(),
            "temperature": self.temperature,
            "humidity": self.humidity,
            "last_updated": self.last_updated.isoformat(),
        }


@dataclass(frozen=True)
class Citation:
    uri: Optional[str] = None
    title: Optional[str] = None

    @property
    def display_title(self) -> str:
        return self.title or "Source"

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"uri": self.uri, "title": self.title}


@dataclass(frozen=True)
class HistoricalPoint:
    timestamp: datetime
    time: str
    aqi: int


@dataclass
class GroundedAnswer:
    """Free-text answer from a web-search grounded call plus its sources."""

    text: str
    citations: List[Citation] = field(default_factory=list)


@dataclass(frozen=True)
class AreaResolution:
    location: LocationRecord
    citations: Tuple[Citation, ...] = ()
