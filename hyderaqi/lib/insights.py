"""AI health guidance for the currently selected location."""

from __future__ import annotations

import logging

from .llm_client import TextGenerator
from .models import LocationRecord

logger = logging.getLogger(__name__)

INSIGHTS_FALLBACK = "Could not fetch AI insights at this time."
INSIGHTS_TEMPERATURE = 0.7


def build_insight_prompt(location: LocationRecord, city: str = "Hyderabad") -> str:
    readings = location.pollutants
    parts = [
        f"Analyze the following air quality data for {location.name} in {city}:",
        f"AQI: {location.aqi}",
        f"PM2.5: {readings.pm25}",
        f"PM10: {readings.pm10}",
        f"NO2: {readings.no2}",
        "",
        "Provide a concise health recommendation for:",
        "1. General public",
        "2. Sensitive groups (children, elderly)",
        "3. Outdoor activities",
        "Keep it professional and action-oriented.",
    ]
    return "\n".join(parts)


async def get_insights(
    location: LocationRecord,
    generator: TextGenerator,
    *,
    city: str = "Hyderabad",
    temperature: float = INSIGHTS_TEMPERATURE,
) -> str:
    """Return the model's narrative, or `INSIGHTS_FALLBACK` if anything goes wrong."""

    prompt = build_insight_prompt(location, city)
    try:
        content = await generator.generate_text(prompt, temperature=temperature)
    except Exception as exc:
        logger.warning("[insights] request for %s failed: %s", location.id, exc)
        return INSIGHTS_FALLBACK

    if not content or not content.strip():
        logger.warning("[insights] empty response for %s", location.id)
        return INSIGHTS_FALLBACK
    return content
