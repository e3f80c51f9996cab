"""
Random-walk series for sparklines and the detail chart.

The values have no relationship to the asset or its real price. Every call
draws a new series.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from app.schemas.market import ChartPayload, ChartPoint, SeriesPoint
from app.utils.time import utcnow

SEED_VALUE = 20000.0
MAX_STEP = 1000.0
FLOOR_VALUE = 1000.0
WINDOW = timedelta(hours=24)
STEP = timedelta(hours=1)

POSITIVE = "positive"
NEGATIVE = "negative"


def random_walk(rng: Optional[random.Random] = None) -> List[float]:
    """25 values: one per hour across the trailing 24h, both ends included."""
    rng = rng or random.Random()
    steps = int(WINDOW / STEP) + 1

    values: List[float] = []
    previous = SEED_VALUE
    for _ in range(steps):
        previous = max(FLOOR_VALUE, previous + rng.uniform(-MAX_STEP, MAX_STEP))
        values.append(previous)
    return values


def color_classes(values: Sequence[float]) -> List[str]:
    if not values:
        return []
    opening = values[0]
    return [POSITIVE if v >= opening else NEGATIVE for v in values]


def generate_synthetic_series(
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> List[SeriesPoint]:
    end = now or utcnow()
    values = random_walk(rng)
    colors = color_classes(values)
    start = end - WINDOW
    return [
        SeriesPoint(timestamp=start + STEP * i, value=v, color_class=c)
        for i, (v, c) in enumerate(zip(values, colors))
    ]


def build_chart(
    asset_id: Optional[str] = None,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> ChartPayload:
    """
    Synthetic series plus plotting coordinates.

    Points are centred in equal-width columns (``x = i/n + 1/(2n)``) and
    scaled against the series maximum (``y = 1 - value/max``).
    """
    series = generate_synthetic_series(rng, now)
    n = len(series)
    peak = max(p.value for p in series)

    points = [
        ChartPoint(
            timestamp=p.timestamp,
            value=p.value,
            color_class=p.color_class,
            x=i / n + 1 / (2 * n),
            y=1 - p.value / peak,
        )
        for i, p in enumerate(series)
    ]
    return ChartPayload(
        asset_id=asset_id,
        opening_value=series[0].value,
        max_value=peak,
        points=points,
    )
