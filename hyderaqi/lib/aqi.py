"""AQI banding shared by every view that shows a category or colour."""

from __future__ import annotations

from typing import List, Optional, Tuple

# (inclusive upper bound, label, colour); the last band is open-ended
AQI_BANDS: List[Tuple[Optional[int], str, str]] = [
    (50, "Good", "#22c55e"),
    (100, "Moderate", "#eab308"),
    (150, "Unhealthy for Sensitive Groups", "#f97316"),
    (200, "Unhealthy", "#ef4444"),
    (300, "Very Unhealthy", "#a855f7"),
    (None, "Hazardous", "#7f1d1d"),
]

AQI_CATEGORIES: List[str] = [label for _, label, _ in AQI_BANDS]


def _band_index(aqi: int) -> int:
    if aqi < 0:
        raise ValueError(f"AQI must be non-negative, got {aqi}")
    for idx, (upper, _, _) in enumerate(AQI_BANDS):
        if upper is None or aqi <= upper:
            return idx
    return len(AQI_BANDS) - 1


def classify(aqi: int) -> str:
    """Return the category label for an AQI value."""
    return AQI_BANDS[_band_index(aqi)][1]


def category_rank(label: str) -> int:
    """0 for Good up to 5 for Hazardous."""
    return AQI_CATEGORIES.index(label)


def category_color(aqi: int) -> str:
    return AQI_BANDS[_band_index(aqi)][2]


def category_rgb(aqi: int) -> List[int]:
    color = category_color(aqi).lstrip("#")
    return [int(color[i : i + 2], 16) for i in (0, 2, 4)]
