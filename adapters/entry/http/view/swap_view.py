# adapters/entry/http/view/swap_view.py

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from adapters.entry.http.dtos.swap_dtos import (
    SpotPriceOut,
    SwapExactInOut,
    SwapExactInRequest,
    SwapQuoteOut,
    SwapQuoteRequest,
)
from core.services.exceptions import SwapConfigError
from core.use_cases.swap_usecase import SwapUseCase


router = APIRouter(prefix="/swap", tags=["swap"])


def get_use_case() -> SwapUseCase:
    """
    Dependency factory wiring SwapUseCase with the web3 gateway built from settings.
    """
    try:
        return SwapUseCase.from_settings()
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.post("/quote", response_model=SwapQuoteOut)
def swap_quote_view(
    req: SwapQuoteRequest,
    use_case: SwapUseCase = Depends(get_use_case),
):
    """
    Exact-in quote through QuoterV2 plus the slippage-adjusted minimum output.
    """
    try:
        return use_case.quote(
            token_in=req.token_in,
            token_out=req.token_out,
            amount_in=req.amount_in,
            slippage_percent=req.slippage_percent,
        )
    except SwapConfigError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to quote swap: {exc}") from exc


@router.get("/spot-price", response_model=SpotPriceOut)
def spot_price_view(
    token_a: str = Query(..., description="Token being priced"),
    token_b: str = Query(..., description="Quote token"),
    decimals_a: Optional[int] = Query(None, ge=0, le=36, description="Read on-chain when omitted"),
    decimals_b: Optional[int] = Query(None, ge=0, le=36),
    use_case: SwapUseCase = Depends(get_use_case),
):
    try:
        return use_case.spot_price(
            token_a=token_a,
            token_b=token_b,
            decimals_a=decimals_a,
            decimals_b=decimals_b,
        )
    except SwapConfigError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to read spot price: {exc}") from exc


@router.post("/exact-in", response_model=SwapExactInOut)
def swap_exact_in_view(
    req: SwapExactInRequest,
    use_case: SwapUseCase = Depends(get_use_case),
):
    """
    Approve (when needed) and execute an exact-in swap with the configured signer.

    Precondition failures ("Insufficient balance", "Unable to trade", ...) are
    reported in `notifications` with a 200; only configuration and input
    problems map to error statuses.
    """
    try:
        return use_case.swap_exact_in(
            token_in=req.token_in,
            token_out=req.token_out,
            amount_in=req.amount_in,
            amount_out_min=req.amount_out_min,
            slippage_percent=req.slippage_percent,
            wait=req.wait,
        )
    except SwapConfigError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Failed to execute swap: {exc}") from exc
