from __future__ import annotations

from enum import Enum
from typing import Iterable, List

from app.schemas.market import PriceQuote


class SortCriterion(str, Enum):
    PRICE = "price"
    PERCENTAGE_CHANGE = "percentage_change"

    @property
    def label(self) -> str:
        return _SORT_LABELS[self]


_SORT_LABELS = {
    SortCriterion.PRICE: "💰 Price",
    SortCriterion.PERCENTAGE_CHANGE: "% Change",
}


def filter_quotes(quotes: Iterable[PriceQuote], query: str) -> List[PriceQuote]:
    if not query:
        return list(quotes)
    needle = query.lower()
    return [q for q in quotes if needle in q.name.lower()]


def sort_quotes(quotes: Iterable[PriceQuote], criterion: SortCriterion) -> List[PriceQuote]:
    # sorted() is stable with reverse=True too: equal keys keep input order
    if criterion is SortCriterion.PRICE:
        return sorted(quotes, key=lambda q: q.price, reverse=True)
    if criterion is SortCriterion.PERCENTAGE_CHANGE:
        return sorted(quotes, key=lambda q: q.price_change_24h, reverse=True)
    raise ValueError(f"Unknown sort criterion: {criterion!r}")


def project_quotes(
    quotes: Iterable[PriceQuote],
    query: str = "",
    criterion: SortCriterion = SortCriterion.PRICE,
) -> List[PriceQuote]:
    """Filter by name, then sort. Recomputed from scratch on every call."""
    return sort_quotes(filter_quotes(quotes, query), criterion)
