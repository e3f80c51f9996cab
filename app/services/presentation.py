from __future__ import annotations

from typing import Iterable, List

from app.schemas.market import PriceDetail, PriceQuote, QuoteRow
from app.services.icons import icon_url_for
from app.services.synthetic_series import NEGATIVE, POSITIVE, build_chart, generate_synthetic_series


def change_color(change: float) -> str:
    return POSITIVE if change >= 0 else NEGATIVE


def change_trend(change: float) -> str:
    return "up" if change >= 0 else "down"


def format_usd(value: float) -> str:
    return f"${value:.2f}"


def format_change(change: float) -> str:
    return f"({change:.2f}%)"


def build_row(quote: PriceQuote, sparkline: bool = True) -> QuoteRow:
    return QuoteRow(
        id=quote.id,
        name=quote.name,
        price=quote.price,
        price_change_24h=quote.price_change_24h,
        price_display=format_usd(quote.price),
        change_display=format_change(quote.price_change_24h),
        trend=change_trend(quote.price_change_24h),
        color_class=change_color(quote.price_change_24h),
        icon_url=icon_url_for(quote.name),
        sparkline=generate_synthetic_series() if sparkline else None,
    )


def build_rows(quotes: Iterable[PriceQuote], sparkline: bool = True) -> List[QuoteRow]:
    return [build_row(q, sparkline=sparkline) for q in quotes]


def build_detail(quote: PriceQuote, chart: bool = False) -> PriceDetail:
    row = build_row(quote, sparkline=False)
    return PriceDetail(
        **row.model_dump(),
        market_cap=quote.market_cap,
        volume=quote.volume,
        circulating_supply=quote.circulating_supply,
        market_cap_display=format_usd(quote.market_cap),
        volume_display=format_usd(quote.volume),
        circulating_supply_display=f"{quote.circulating_supply:.2f}",
        chart=build_chart(asset_id=quote.id) if chart else None,
    )
