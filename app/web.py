from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from models.parameters import PARAMETERS
from services.dashboard import DashboardService, build_default_dashboard
from services.window import TimeWindow


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def get_dashboard() -> DashboardService:
    return build_default_dashboard()


def _status_label(value: float, low: float, high: float) -> str:
    if value > high:
        return "High"
    if low > 0 and value < low:
        return "Low"
    return "Normal"


def _metric_cards(dashboard: DashboardService, data: Dict[str, List[float]]) -> List[Dict[str, Any]]:
    cards = []
    for parameter in PARAMETERS:
        values = data.get(parameter.key) or []
        current = values[-1] if values else 0.0
        threshold = dashboard.thresholds[parameter.key]
        cards.append(
            {
                "name": parameter.name,
                "unit": parameter.unit,
                "value": current,
                "status": _status_label(current, threshold.low, threshold.high),
            }
        )
    return cards


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "ui/index.html", {"error": None})


@router.post("/ui/device", name="ui_submit_device", response_model=None)
async def ui_submit_device(
    request: Request,
    device_code: str = Form("", alias="deviceCode"),
    dashboard: DashboardService = Depends(get_dashboard),
) -> HTMLResponse | RedirectResponse:
    try:
        code = dashboard.validate_device_code(device_code)
    except ValueError as exc:
        return templates.TemplateResponse(
            request,
            "ui/index.html",
            {"error": str(exc)},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    except PermissionError as exc:
        return templates.TemplateResponse(
            request,
            "ui/index.html",
            {"error": str(exc)},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    query = urlencode({"deviceCode": code})
    return RedirectResponse(f"/ui/dashboard?{query}", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/ui/dashboard", name="ui_dashboard", response_class=HTMLResponse, response_model=None)
async def ui_dashboard(
    request: Request,
    device_code: Optional[str] = Query(None, alias="deviceCode"),
    time_filter: Optional[str] = Query(None, alias="timeFilter"),
    dashboard: DashboardService = Depends(get_dashboard),
) -> HTMLResponse | RedirectResponse:
    if not (device_code or "").strip():
        return RedirectResponse("/ui", status_code=status.HTTP_303_SEE_OTHER)

    try:
        window = TimeWindow.parse(time_filter)
        view = dashboard.view(device_code, window)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc

    return templates.TemplateResponse(
        request,
        "ui/dashboard.html",
        {
            "device_code": device_code,
            "window": window,
            "windows": list(TimeWindow),
            "cards": _metric_cards(dashboard, vars(view.data)),
            "parameters": PARAMETERS,
            "points": view.points,
            "report": view.report,
            "poll_seconds": 30,
        },
    )
