from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class SwapQuoteRequest(BaseModel):
    token_in: str
    token_out: str
    amount_in: int = Field(..., gt=0, description="Raw amount (smallest unit) of token_in")
    slippage_percent: float = Field(default=0.5, ge=0, le=100)


class SwapExactInRequest(BaseModel):
    token_in: str
    token_out: str
    amount_in: int = Field(..., gt=0)
    amount_out_min: Optional[int] = Field(default=None, ge=0)
    slippage_percent: float = Field(default=0.5, ge=0, le=100)
    wait: bool = True


class SwapQuoteOut(BaseModel):
    token_in: str
    token_out: str
    fee: int
    amount_in: int
    amount_out: int
    amount_out_min: int
    slippage_percent: float
    attempts: int


class SpotPriceOut(BaseModel):
    pool: str
    fee: int
    decimals_a: int
    decimals_b: int
    sqrt_price_x96: Optional[int] = None
    tick: Optional[int] = None
    unlocked: Optional[bool] = None
    spot_price_raw: Optional[str] = None
    spot_price: Optional[str] = None


class NotificationOut(BaseModel):
    level: str
    message: str
    description: Optional[str] = None


class SwapExactInOut(BaseModel):
    token_in: str
    token_out: str
    amount_in: int
    amount_out_min: int
    native_in: bool
    native_out: bool
    is_allowance_ok: bool
    has_been_approved: bool
    is_balance_ok: bool
    is_trading: bool
    is_trade_error: bool
    error: Optional[str] = None
    approval_tx_hash: Optional[str] = None
    trade_tx_hash: Optional[str] = None
    trade_receipt: Optional[Dict[str, Any]] = None
    notifications: List[NotificationOut] = Field(default_factory=list)
