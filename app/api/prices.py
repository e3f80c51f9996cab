# app/api/prices.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.errors import error_response
from app.schemas.market import (
    ChartPayload,
    PriceDetail,
    PriceListResponse,
    RefreshResponse,
    SortOption,
)
from app.services.presentation import build_detail, build_rows
from app.services.projector import SortCriterion, project_quotes
from app.services.synthetic_series import build_chart
from app.state import AppState, get_app_state

router = APIRouter(prefix="/prices", tags=["prices"])


@router.get("", response_model=PriceListResponse)
async def list_prices(
    q: str = "",
    sort: SortCriterion = SortCriterion.PRICE,
    sparkline: bool = True,
    state: AppState = Depends(get_app_state),
):
    """
    Current snapshot, filtered by name and sorted.
    Example: /prices?q=eth&sort=percentage_change
    """
    quotes = project_quotes(state.store.quotes, q, sort)
    return PriceListResponse(
        items=build_rows(quotes, sparkline=sparkline),
        count=len(quotes),
        query=q,
        sort=sort.value,
        sort_label=sort.label,
        status=state.store.status(),
    )


@router.get("/sort-options", response_model=list[SortOption])
async def sort_options():
    return [SortOption(value=c.value, label=c.label) for c in SortCriterion]


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_prices(state: AppState = Depends(get_app_state)):
    outcome = await state.refresher.refresh_now()
    return RefreshResponse(outcome=outcome, status=state.store.status())


@router.get("/{asset_id}", response_model=PriceDetail)
async def get_price(
    asset_id: str,
    chart: bool = False,
    state: AppState = Depends(get_app_state),
):
    quote = state.store.get(asset_id)
    if quote is None:
        return error_response(
            code="asset_not_found",
            message=f"No current quote for {asset_id!r}",
            status_code=404,
            details={"tracked": [q.id for q in state.store.quotes]},
        )
    return build_detail(quote, chart=chart)


@router.get("/{asset_id}/chart", response_model=ChartPayload)
async def get_price_chart(asset_id: str, state: AppState = Depends(get_app_state)):
    if state.store.get(asset_id) is None:
        return error_response(
            code="asset_not_found",
            message=f"No current quote for {asset_id!r}",
            status_code=404,
        )
    return build_chart(asset_id=asset_id)
