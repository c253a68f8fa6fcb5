"""Error taxonomy for calls to the external model provider."""


class HyderAQIError(Exception):
    """Base class for errors raised by this package."""


class TransportError(HyderAQIError):
    """The provider was unreachable, timed out, rejected the call, or no key is configured."""


class SchemaParseError(HyderAQIError):
    """Structured output did not match the expected schema."""


class ResolutionError(HyderAQIError):
    """A grounded area lookup failed; no location record was produced."""

    def __init__(self, area_name: str, reason: str):
        super().__init__(f"Could not resolve {area_name!r}: {reason}")
        self.area_name = area_name
        self.reason = reason
