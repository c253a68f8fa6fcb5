import json

from hyderaqi import resolve_cli
from hyderaqi.lib.errors import TransportError


def test_prints_record_and_sources(provider, grounded_answer, readings_json, capsys):
    provider.search_results.append(grounded_answer)
    provider.extract_results.append(readings_json())

    code = resolve_cli.main(["Uppal"], client=provider)

    out = capsys.readouterr().out
    assert code == 0
    assert "Uppal (Live Search): AQI 160 (Unhealthy)" in out
    assert "Uppal AQI: https://aqi.example/uppal" in out
    assert "Source: https://news.example/hyd-air" in out


def test_json_output_with_insights(provider, grounded_answer, readings_json, capsys):
    provider.search_results.append(grounded_answer)
    provider.extract_results.append(readings_json(aqi=42))
    provider.text_results.append("Enjoy the outdoors.")

    code = resolve_cli.main(["Uppal", "--json", "--insights"], client=provider)

    payload = json.loads(capsys.readouterr().out)
    assert code == 0
    assert payload["category"] == "Good"
    assert payload["location"]["aqi"] == 42
    assert payload["insights"] == "Enjoy the outdoors."
    assert len(payload["sources"]) == 2


def test_resolution_failure_exits_nonzero(provider, capsys):
    provider.search_results.append(TransportError("grounded search failed: HTTP 503"))

    code = resolve_cli.main(["Uppal"], client=provider)

    assert code == 1
    assert capsys.readouterr().out.startswith("ERROR:")
