from __future__ import annotations

from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field


class HoldingEntry(BaseModel):
    """A caller-entered portfolio row. ``value`` is not wired to live prices."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    amount: float = Field(..., gt=0)
    value: float = 0.0


class AddHoldingRequest(BaseModel):
    name: str = ""
    # form text; numbers are accepted and validated the same way
    amount: Union[str, float] = ""


class DeleteHoldingsRequest(BaseModel):
    indexes: List[int] = Field(default_factory=list)


class PortfolioResponse(BaseModel):
    holdings: List[HoldingEntry]
    count: int
    total_value: float
    valuation: str = "unavailable"
