import json

import pytest

from hyderaqi.config.api_config import ModelSettings
from hyderaqi.lib.errors import TransportError
from hyderaqi.lib.models import Citation, GroundedAnswer


class FakeProvider:
    """Scripted stand-in for every provider capability.

    Queue values with `search_results`, `extract_results`, `text_results` and
    `chat_results`; an Exception instance in a queue is raised instead of returned.
    """

    def __init__(self):
        self.search_results = []
        self.extract_results = []
        self.text_results = []
        self.chat_results = []
        self.calls = []

    @staticmethod
    def _next(queue, label):
        if not queue:
            raise AssertionError(f"unexpected {label} call")
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def grounded_search(self, prompt):
        self.calls.append(("search", prompt))
        return self._next(self.search_results, "search")

    async def extract_structured(self, prompt, *, name, schema):
        self.calls.append(("extract", prompt))
        return self._next(self.extract_results, "extract")

    async def generate_text(self, prompt, *, temperature=0.7):
        self.calls.append(("text", prompt))
        return self._next(self.text_results, "text")

    async def chat(self, messages):
        self.calls.append(("chat", [dict(m) for m in messages]))
        return self._next(self.chat_results, "chat")


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def grounded_answer():
    return GroundedAnswer(
        text="Uppal AQI is around 160 today with PM2.5 at 62 µg/m³ and PM10 at 118 µg/m³. Temperature 31°C.",
        citations=[
            Citation(uri="https://aqi.example/uppal", title="Uppal AQI"),
            Citation(uri="https://news.example/hyd-air", title=None),
        ],
    )


@pytest.fixture
def readings_json():
    def _make(**fields):
        payload = {"aqi": 160, "pm25": 62, "pm10": 118, "temp": 31}
        payload.update(fields)
        return json.dumps(payload)

    return _make


@pytest.fixture
def settings():
    return ModelSettings(
        api_key="sk-test",
        model="gpt-4o-mini",
        search_model="gpt-4o-mini",
        request_timeout=5.0,
        city="Hyderabad",
    )


@pytest.fixture
def transport_error():
    return TransportError("grounded search failed: HTTP 503")
