import asyncio
import json
from datetime import datetime, timezone

import pytest

from hyderaqi.lib.errors import ResolutionError, SchemaParseError, TransportError
from hyderaqi.lib.models import GroundedAnswer
from hyderaqi.lib.registry import is_registry_id
from hyderaqi.lib.resolver import FallbackPolicy, GroundedAreaResolver, new_search_id
from hyderaqi.lib.schemas import ExtractedReadings

FIXED_NOW = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def make_resolver(provider, **kwargs):
    kwargs.setdefault("clock", lambda: FIXED_NOW)
    return GroundedAreaResolver(provider, provider, **kwargs)


def test_resolve_builds_full_record(provider, grounded_answer, readings_json):
    provider.search_results.append(grounded_answer)
    provider.extract_results.append(readings_json())

    result = asyncio.run(make_resolver(provider).resolve("Uppal"))

    loc = result.location
    assert loc.name == "Uppal (Live Search)"
    assert loc.aqi == 160
    assert loc.pollutants.pm25 == 62
    assert loc.pollutants.pm10 == 118
    assert (loc.pollutants.no2, loc.pollutants.so2, loc.pollutants.co, loc.pollutants.o3) == (20, 5, 1.0, 40)
    assert loc.temperature == 31
    assert loc.humidity == 50
    assert loc.last_updated == FIXED_NOW
    assert loc.id.startswith("search-")
    assert not is_registry_id(loc.id)
    assert [c.uri for c in result.citations] == ["https://aqi.example/uppal", "https://news.example/hyd-air"]


def test_stages_run_in_order_and_stage_two_embeds_stage_one(provider, grounded_answer, readings_json):
    provider.search_results.append(grounded_answer)
    provider.extract_results.append(readings_json())

    asyncio.run(make_resolver(provider, city="Hyderabad").resolve("Uppal"))

    kinds = [kind for kind, _ in provider.calls]
    assert kinds == ["search", "extract"]
    search_prompt = provider.calls[0][1]
    extract_prompt = provider.calls[1][1]
    assert "Uppal, Hyderabad" in search_prompt
    assert grounded_answer.text in extract_prompt
    assert "Uppal" in extract_prompt


def test_missing_fields_are_substituted(provider, grounded_answer):
    provider.search_results.append(grounded_answer)
    provider.extract_results.append(json.dumps({"aqi": 0, "pm25": 40, "pm10": None, "temp": 28}))

    loc = asyncio.run(make_resolver(provider).resolve("Uppal")).location

    assert loc.aqi == 100
    assert loc.pollutants.pm25 == 40
    assert loc.pollutants.pm10 == 70
    assert loc.temperature == 28


def test_absent_keys_are_substituted(provider, grounded_answer):
    provider.search_results.append(grounded_answer)
    provider.extract_results.append("{}")

    loc = asyncio.run(make_resolver(provider).resolve("Uppal")).location

    assert (loc.aqi, loc.pollutants.pm25, loc.pollutants.pm10, loc.temperature) == (100, 35, 70, 30)


def test_policy_can_keep_real_zero_readings():
    policy = FallbackPolicy(zero_is_missing=False)
    filled = policy.apply(ExtractedReadings(aqi=0, pm25=None, pm10=12, temp=0))
    assert filled == {"aqi": 0, "pm25": 35, "pm10": 12, "temp": 0}


def test_fractional_aqi_is_rounded(provider, grounded_answer, readings_json):
    provider.search_results.append(grounded_answer)
    provider.extract_results.append(readings_json(aqi=152.6))
    loc = asyncio.run(make_resolver(provider).resolve("Uppal")).location
    assert loc.aqi == 153


def test_quick_successive_resolutions_get_distinct_ids(provider, grounded_answer, readings_json):
    resolver = make_resolver(provider)
    for _ in range(2):
        provider.search_results.append(grounded_answer)
        provider.extract_results.append(readings_json())

    first = asyncio.run(resolver.resolve("Uppal")).location
    second = asyncio.run(resolver.resolve("Uppal")).location

    assert first.id != second.id


def test_new_search_id_is_unique():
    ids = {new_search_id() for _ in range(500)}
    assert len(ids) == 500


def test_stage_one_failure_raises_resolution_error(provider, transport_error):
    provider.search_results.append(transport_error)

    with pytest.raises(ResolutionError) as excinfo:
        asyncio.run(make_resolver(provider).resolve("Uppal"))

    assert excinfo.value.area_name == "Uppal"
    assert isinstance(excinfo.value.__cause__, TransportError)
    assert [kind for kind, _ in provider.calls] == ["search"]


def test_stage_two_failure_raises_resolution_error(provider, grounded_answer):
    provider.search_results.append(grounded_answer)
    provider.extract_results.append(TransportError("structured extraction timed out after 5.0s"))

    with pytest.raises(ResolutionError):
        asyncio.run(make_resolver(provider).resolve("Uppal"))


@pytest.mark.parametrize(
    "raw",
    [
        "not json at all",
        "",
        "[1, 2, 3]",
        '{"aqi": "very high", "pm25": 40, "pm10": 80, "temp": 30}',
        '{"aqi": -5, "pm25": 40, "pm10": 80, "temp": 30}',
        '{"aqi": 1e999, "pm25": 40, "pm10": 80, "temp": 30}',
        '{"aqi": Infinity, "pm25": 40, "pm10": 80, "temp": 30}',
        '{"aqi": 150, "pm25": 40, "pm10": 80, "temp": NaN}',
        '{"aqi": true, "pm25": 40, "pm10": 80, "temp": 30}',
        '{"aqi": "150", "pm25": 40, "pm10": 80, "temp": 30}',
    ],
)
def test_parse_failure_raises_resolution_error(provider, grounded_answer, raw):
    provider.search_results.append(grounded_answer)
    provider.extract_results.append(raw)

    with pytest.raises(ResolutionError) as excinfo:
        asyncio.run(make_resolver(provider).resolve("Uppal"))

    assert isinstance(excinfo.value.__cause__, SchemaParseError)


def test_extract_stage_with_canned_search_text(provider, readings_json):
    provider.extract_results.append(readings_json(pm10=None))
    readings = asyncio.run(make_resolver(provider).extract_stage("Uppal", "AQI 160, PM2.5 62"))
    assert readings.aqi == 160
    assert readings.pm10 is None


def test_parse_readings_ignores_extra_fields():
    readings = GroundedAreaResolver.parse_readings('{"aqi": 90, "pm25": 30, "pm10": 60, "temp": 29, "note": "x"}')
    assert readings.aqi == 90


def test_empty_citations_are_fine(provider, readings_json):
    provider.search_results.append(GroundedAnswer(text="AQI 120"))
    provider.extract_results.append(readings_json())
    result = asyncio.run(make_resolver(provider).resolve("Uppal"))
    assert result.citations == ()


def test_blank_area_is_rejected(provider):
    with pytest.raises(ValueError):
        asyncio.run(make_resolver(provider).resolve("   "))
    assert provider.calls == []


def test_integer_readings_are_accepted_as_numbers():
    readings = GroundedAreaResolver.parse_readings('{"aqi": 90, "pm25": 30.5, "pm10": null, "temp": -2}')
    assert (readings.aqi, readings.pm25, readings.pm10, readings.temp) == (90, 30.5, None, -2)
