# app/api/health.py
from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response

from app.state import AppState, get_app_state
from app.utils.time import from_epoch, iso_z

router = APIRouter(tags=["health"])

APP_STARTED_AT = time.time()


def _now_meta() -> Dict[str, Any]:
    now_ts = time.time()
    now_dt = from_epoch(now_ts)
    return {
        "now_ts": now_ts,
        "now_unix": int(now_ts),
        "now_iso": iso_z(now_dt),
        "uptime_s": int(now_ts - APP_STARTED_AT),
    }


def build_ready_payload(state: AppState) -> Dict[str, Any]:
    snapshot = state.store.status()
    refresher = state.refresher.info()

    return {
        "status": "ok",
        **_now_meta(),
        "checks": {
            "snapshot": {"ok": not snapshot.stale, **snapshot.model_dump(mode="json")},
            "refresher": {
                "ok": refresher["running"] or not state.settings.REFRESH_ENABLED,
                **refresher,
            },
        },
    }


@router.get("/live")
async def live():
    return {"status": "ok"}


@router.get("/ready")
async def ready(response: Response, state: AppState = Depends(get_app_state)):
    payload = build_ready_payload(state)
    checks = payload["checks"]

    degraded_reasons = []
    if not checks["snapshot"]["ok"]:
        degraded_reasons.append("snapshot_stale")
    if not checks["refresher"]["ok"]:
        degraded_reasons.append("refresher_stopped")

    if degraded_reasons:
        payload["status"] = "degraded"
        payload["degraded"] = True
        payload["degraded_reasons"] = degraded_reasons
        response.status_code = 503
    else:
        payload["degraded"] = False
        payload["degraded_reasons"] = []

    return payload


@router.get("/health")
async def health(response: Response, state: AppState = Depends(get_app_state)):
    # Deep health == readiness here
    return await ready(response, state)
