"""Synthetic 24-hour AQI trend for the dashboard chart."""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from .models import HistoricalPoint
from .registry import baseline_aqi

HISTORY_HOURS = 24
HISTORY_JITTER = 20
TIME_LABEL_FMT = "%H:%M"


def generate_historical_series(
    location_id: str,
    *,
    baseline: Optional[int] = None,
    now: Optional[datetime] = None,
    rng: Optional[np.random.Generator] = None,
) -> List[HistoricalPoint]:
    """Return hourly samples for the last 24 hours, oldest first.

    The baseline is the registry AQI for `location_id`; locations outside the
    registry use `baseline` when given, otherwise 100.
    """

    base = baseline_aqi(location_id, baseline)

    now = now or datetime.now()
    rng = rng if rng is not None else np.random.default_rng()
    offsets = rng.uniform(-HISTORY_JITTER, HISTORY_JITTER, size=HISTORY_HOURS + 1)

    points: List[HistoricalPoint] = []
    for step, offset in zip(range(HISTORY_HOURS, -1, -1), offsets):
        stamp = now - timedelta(hours=step)
        value = max(0, math.floor(base + float(offset)))
        points.append(HistoricalPoint(timestamp=stamp, time=stamp.strftime(TIME_LABEL_FMT), aqi=value))
    return points


def history_frame(points: Sequence[HistoricalPoint]) -> pd.DataFrame:
    if not points:
        return pd.DataFrame(columns=["timestamp", "time", "aqi"])
    return pd.DataFrame(
        [{"timestamp": p.timestamp, "time": p.time, "aqi": p.aqi} for p in points]
    )
