"""Selection state for the dashboard and the search-then-resolve flow.

Selections and searches each carry a generation token. A response whose token
is no longer current is discarded, so a slow call cannot overwrite newer
state: insights belong to one selection, and a search result is dropped if a
newer search started or the user picked another location meanwhile.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .errors import ResolutionError
from .history import generate_historical_series
from .models import Citation, HistoricalPoint, LocationRecord
from .registry import HYDERABAD_LOCATIONS, find_local_match
from .resolver import GroundedAreaResolver

logger = logging.getLogger(__name__)

INSIGHTS_LOADING = "AI is analyzing real-time patterns..."
NOT_FOUND_MESSAGE = (
    "Could not find air quality data for that area. "
    "Please try a different neighborhood in Hyderabad."
)


@dataclass(frozen=True)
class SearchOutcome:
    term: str
    location: Optional[LocationRecord] = None
    citations: Sequence[Citation] = ()
    from_registry: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.location is not None


@dataclass
class DashboardState:
    selected: LocationRecord = field(default_factory=lambda: HYDERABAD_LOCATIONS[0])
    history: List[HistoricalPoint] = field(default_factory=list)
    citations: List[Citation] = field(default_factory=list)
    insights: str = INSIGHTS_LOADING
    generation: int = 0
    search_generation: int = 0
    searching: bool = False
    _search_base: int = field(default=0, repr=False)

    def __post_init__(self):
        if not self.history:
            self.history = self._history_for(self.selected)

    @staticmethod
    def _history_for(location: LocationRecord) -> List[HistoricalPoint]:
        return generate_historical_series(location.id, baseline=location.aqi)

    @property
    def is_grounded(self) -> bool:
        return bool(self.citations)

    def is_current(self, token: int) -> bool:
        return token == self.generation

    def select(self, location: LocationRecord, citations: Sequence[Citation] = ()) -> int:
        """Make `location` current and return the token for follow-up requests."""
        self.generation += 1
        self.selected = location
        self.citations = list(citations)
        self.history = self._history_for(location)
        self.insights = INSIGHTS_LOADING
        self.searching = False
        return self.generation

    def begin_search(self) -> int:
        self.search_generation += 1
        self._search_base = self.generation
        self.searching = True
        return self.search_generation

    def is_current_search(self, token: int) -> bool:
        return token == self.search_generation and self._search_base == self.generation

    def apply_search(self, token: int, outcome: Optional[SearchOutcome]) -> Optional[int]:
        """Select the outcome's location if the search is still current.

        Returns the new selection token, or None when nothing was selected.
        """
        if not self.is_current_search(token):
            logger.info("[dashboard] discarding superseded search result")
            return None
        self.searching = False
        if outcome is None or not outcome.ok:
            return None
        return self.select(outcome.location, outcome.citations)

    def apply_insights(self, token: int, text: str) -> bool:
        if not self.is_current(token):
            logger.info("[dashboard] discarding superseded insights")
            return False
        self.insights = text
        return True


async def search_area(term: str, resolver: GroundedAreaResolver) -> Optional[SearchOutcome]:
    """Registry first, grounded search second. Blank terms return None."""

    term = (term or "").strip()
    if not term:
        return None

    local = find_local_match(term)
    if local is not None:
        return SearchOutcome(term=term, location=local, from_registry=True)

    try:
        resolution = await resolver.resolve(term)
    except ResolutionError:
        return SearchOutcome(term=term, error=NOT_FOUND_MESSAGE)
    return SearchOutcome(term=term, location=resolution.location, citations=resolution.citations)


async def run_search(
    state: DashboardState, term: str, resolver: GroundedAreaResolver
) -> Optional[SearchOutcome]:
    if not (term or "").strip():
        return None
    token = state.begin_search()
    outcome = await search_area(term, resolver)
    state.apply_search(token, outcome)
    return outcome
