from pathlib import Path
from typing import Any, Dict
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from converter.core.config import Settings
from converter.models.constants import CRYPTO_SYMBOLS, FIAT_CURRENCIES
from converter.routers.deps import get_app_settings, get_rate_service
from converter.services.converter_state import (
    ConverterState,
    RefreshStarted,
    SwapCurrencies,
    reduce,
    state_from_query,
)
from converter.services.rate_service import RateService
from converter.services.money import round_to
from converter.services.rates.conversion import Unavailable

router = APIRouter(tags=["ui"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def _view_context(state: ConverterState) -> Dict[str, Any]:
    converted = state.converted
    swapped = reduce(state, SwapCurrencies())
    return {
        "state": state,
        # Unavailable renders as a blank value, not as an error
        "converted": "" if isinstance(converted, Unavailable) else converted,
        "fiat_currencies": FIAT_CURRENCIES,
        "crypto_currencies": CRYPTO_SYMBOLS,
        "share_url": "/?" + urlencode(state.share_query()),
        "swap_url": "/?" + urlencode(swapped.share_query()),
        "myr_in_usd": (
            f"{round_to(1 / state.fiat.middle_rate, 4):.4f}" if state.fiat else None
        ),
    }


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def converter_page(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    svc: RateService = Depends(get_rate_service),
):
    defaults = ConverterState(
        amount=settings.default_amount,
        from_currency=settings.default_from,
        to_currency=settings.default_to,
    )
    state = state_from_query(request.query_params, defaults)
    state = reduce(state, RefreshStarted())
    state = reduce(state, svc.refresh(state.generation))
    ctx = _view_context(state)
    ctx["app_name"] = settings.app_name
    return templates.TemplateResponse(request, "converter.html", ctx)
