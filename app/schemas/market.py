"""Pydantic models for price quotes and their rendered forms."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PriceQuote(BaseModel):
    """One asset's market snapshot, as decoded from the price API."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    price: float = Field(..., ge=0)
    price_change_24h: float
    market_cap: float
    volume: float
    circulating_supply: float


class SeriesPoint(BaseModel):
    timestamp: datetime
    value: float
    color_class: str


class ChartPoint(SeriesPoint):
    """Series point with coordinates normalized to a unit box (y grows downward)."""

    x: float
    y: float


class ChartPayload(BaseModel):
    asset_id: Optional[str] = None
    synthetic: bool = True
    opening_value: float
    max_value: float
    points: List[ChartPoint]


class QuoteRow(BaseModel):
    id: str
    name: str
    price: float
    price_change_24h: float
    price_display: str
    change_display: str
    trend: str
    color_class: str
    icon_url: str
    sparkline: Optional[List[SeriesPoint]] = None


class PriceDetail(QuoteRow):
    market_cap: float
    volume: float
    circulating_supply: float
    market_cap_display: str
    volume_display: str
    circulating_supply_display: str
    chart: Optional[ChartPayload] = None


class RefreshStatus(BaseModel):
    """Freshness of the snapshot currently served."""

    stale: bool
    quotes: int
    generation: int
    last_success_at: Optional[datetime] = None
    age_s: Optional[float] = None
    consecutive_failures: int = 0
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None


class SortOption(BaseModel):
    value: str
    label: str


class PriceListResponse(BaseModel):
    items: List[QuoteRow]
    count: int
    query: str
    sort: str
    sort_label: str
    status: RefreshStatus


class RefreshResponse(BaseModel):
    outcome: str
    status: RefreshStatus
