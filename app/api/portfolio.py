from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.errors import error_response
from app.schemas.portfolio import (
    AddHoldingRequest,
    DeleteHoldingsRequest,
    HoldingEntry,
    PortfolioResponse,
)
from app.services.holdings import HoldingValidationError
from app.state import AppState, get_app_state

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


def _portfolio(state: AppState) -> PortfolioResponse:
    rows = state.holdings.list()
    return PortfolioResponse(
        holdings=rows,
        count=len(rows),
        total_value=state.holdings.total_value(),
    )


@router.get("", response_model=PortfolioResponse)
async def get_portfolio(state: AppState = Depends(get_app_state)):
    return _portfolio(state)


@router.post("/holdings", response_model=HoldingEntry, status_code=201)
async def add_holding(body: AddHoldingRequest, state: AppState = Depends(get_app_state)):
    try:
        return state.holdings.add(body.name, body.amount)
    except HoldingValidationError as exc:
        return error_response(
            code="invalid_holding",
            message="Holding was not added",
            status_code=422,
            details={"fields": exc.errors},
        )


@router.post("/holdings/delete", response_model=PortfolioResponse)
async def delete_holdings(body: DeleteHoldingsRequest, state: AppState = Depends(get_app_state)):
    try:
        state.holdings.delete(body.indexes)
    except IndexError as exc:
        return error_response(
            code="index_out_of_range",
            message=str(exc),
            status_code=422,
            details={"count": len(state.holdings)},
        )
    return _portfolio(state)


@router.delete("/holdings/{holding_id}", response_model=PortfolioResponse)
async def remove_holding(holding_id: str, state: AppState = Depends(get_app_state)):
    if state.holdings.remove(holding_id) is None:
        return error_response(
            code="holding_not_found",
            message=f"No holding with id {holding_id!r}",
            status_code=404,
        )
    return _portfolio(state)
