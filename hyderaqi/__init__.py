"""HyderAQI: Hyderabad air-quality dashboard with search-grounded area lookup."""

__version__ = "0.1.0"
