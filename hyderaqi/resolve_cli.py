#!/usr/bin/env python3
"""CLI helper to resolve one area's air quality through grounded search."""

import argparse
import asyncio
import json
import sys

from hyderaqi.config.api_config import resolve_model_settings
from hyderaqi.config.logging_config import configure_logging
from hyderaqi.lib.aqi import classify
from hyderaqi.lib.errors import ResolutionError
from hyderaqi.lib.insights import get_insights
from hyderaqi.lib.llm_client import OpenAIModelClient
from hyderaqi.lib.resolver import GroundedAreaResolver


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Look up live AQI for an area via search-grounded AI.")
    parser.add_argument("area", type=str, help="Area or neighborhood name (quoted if spaces)")
    parser.add_argument("--insights", action="store_true", help="Also request AI health guidance")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    return parser.parse_args(argv)


async def _run(args, client, city):
    resolver = GroundedAreaResolver(client, client, city=city)
    resolution = await resolver.resolve(args.area)
    insights = None
    if args.insights:
        insights = await get_insights(resolution.location, client, city=city)
    return resolution, insights


def main(argv=None, client=None):
    args = parse_args(argv)
    settings = resolve_model_settings()
    configure_logging(settings.log_level)
    client = client or OpenAIModelClient(settings)

    try:
        resolution, insights = asyncio.run(_run(args, client, settings.city))
    except ResolutionError as exc:
        print(f"ERROR: {exc}")
        return 1

    location = resolution.location
    if args.json:
        payload = {
            "location": location.to_dict(),
            "category": classify(location.aqi),
            "sources": [c.to_dict() for c in resolution.citations],
        }
        if insights is not None:
            payload["insights"] = insights
        print(json.dumps(payload, indent=2))
        return 0

    print(f"{location.name}: AQI {location.aqi} ({classify(location.aqi)})")
    print(f"  PM2.5 {location.pollutants.pm25} µg/m³ | PM10 {location.pollutants.pm10} µg/m³")
    print(f"  Temperature {location.temperature}°C | Humidity {location.humidity}%")
    if resolution.citations:
        print("Sources:")
        for citation in resolution.citations:
            print(f"  - {citation.display_title}: {citation.uri or 'n/a'}")
    if insights is not None:
        print("\n" + insights)
    return 0


if __name__ == "__main__":
    sys.exit(main())
