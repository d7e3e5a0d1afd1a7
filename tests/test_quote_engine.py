from decimal import Decimal

import pytest

from conftest import TOKEN_A, TOKEN_B, NATIVE, WETH
from core.services.quote_engine import QuoteEngine, compute_amount_out_min


@pytest.mark.parametrize(
    "amount_out, slippage, expected",
    [
        (1000, 0.5, 995),
        (1000, "0.5", 995),
        (1000, 0, 1000),
        (1000, 100, 0),
        (1000, 0.555, 994),
        (10**18, 0.1, 999 * 10**15),
        (7, 33.33, 4),
    ],
)
def test_amount_out_min_formula(amount_out, slippage, expected):
    assert compute_amount_out_min(amount_out, slippage) == expected


@pytest.mark.parametrize("slippage", [0, 0.01, 0.5, 1, 3.3, 50, 99.99, 100])
@pytest.mark.parametrize("amount_out", [0, 1, 999, 123_456_789, 10**24])
def test_amount_out_min_never_exceeds_amount_out(amount_out, slippage):
    result = compute_amount_out_min(amount_out, slippage)
    keep_bps = int((Decimal(100) - Decimal(str(slippage))) * 100)
    assert result == amount_out * keep_bps // 10_000
    assert 0 <= result <= amount_out


def test_amount_out_min_of_zero_or_unknown_is_zero():
    assert compute_amount_out_min(0, 3) == 0
    assert compute_amount_out_min(None, 3) == 0


@pytest.mark.parametrize("slippage", [-0.1, 100.5])
def test_amount_out_min_rejects_out_of_range_slippage(slippage):
    with pytest.raises(ValueError):
        compute_amount_out_min(1000, slippage)


def test_get_amount_out_reads_quoter(gateway, config):
    gateway.quote_out = 1_000_000
    engine = QuoteEngine(gateway, config, sleep=lambda _: None)

    q = engine.get_amount_out(500, TOKEN_A, TOKEN_B)

    assert q.amount_out == 1_000_000
    assert not q.is_error and not q.is_loading
    (call,) = gateway.simulations_of("quoteExactInputSingle")
    params = call.args[0]
    assert params["tokenIn"] == TOKEN_A
    assert params["tokenOut"] == TOKEN_B
    assert params["amountIn"] == 500
    assert params["fee"] == 3000
    assert params["sqrtPriceLimitX96"] == 0


def test_get_amount_out_min_applies_slippage(gateway, config):
    gateway.quote_out = 1_000_000
    engine = QuoteEngine(gateway, config, sleep=lambda _: None)

    q = engine.get_amount_out_min(500, TOKEN_A, TOKEN_B, 0.5)

    assert q.amount_out == 1_000_000
    assert q.amount_out_min == 995_000


def test_quote_is_cached_per_key(gateway, config):
    gateway.quote_out = 10
    engine = QuoteEngine(gateway, config, sleep=lambda _: None)

    engine.get_amount_out(5, TOKEN_A, TOKEN_B)
    engine.get_amount_out(5, TOKEN_A, TOKEN_B)
    assert len(gateway.simulations) == 1

    engine.get_amount_out(6, TOKEN_A, TOKEN_B)
    assert len(gateway.simulations) == 2

    engine.refetch()
    assert len(gateway.simulations) == 3


def test_zero_amount_or_missing_token_issues_no_call(gateway, config):
    engine = QuoteEngine(gateway, config, sleep=lambda _: None)

    q = engine.get_amount_out(0, TOKEN_A, TOKEN_B)
    assert q.amount_out is None
    assert not q.is_loading
    assert engine.get_amount_out_min(0, TOKEN_A, TOKEN_B, 1).amount_out_min == 0

    engine.get_amount_out(10, TOKEN_A, None)
    assert gateway.simulations == []


def test_failing_quote_is_retried_then_surfaced(gateway, config):
    gateway.quote_failures = 10
    sleeps = []
    engine = QuoteEngine(gateway, config, sleep=sleeps.append)

    q = engine.get_amount_out(100, TOKEN_A, TOKEN_B)

    assert q.is_error
    assert q.amount_out is None
    assert "execution reverted" in str(q.error)
    assert engine.attempts == 3
    assert sleeps == [1.0, 1.0]


def test_quote_recovers_before_retries_run_out(gateway, config):
    gateway.quote_failures = 1
    gateway.quote_out = 42
    sleeps = []
    engine = QuoteEngine(gateway, config, sleep=sleeps.append)

    q = engine.get_amount_out(100, TOKEN_A, TOKEN_B)

    assert q.amount_out == 42
    assert not q.is_error
    assert engine.attempts == 2
    assert sleeps == [1.0]


def test_native_side_is_quoted_as_wrapped_asset(gateway, config):
    gateway.quote_out = 1
    engine = QuoteEngine(gateway, config, sleep=lambda _: None)

    engine.get_amount_out(100, NATIVE, TOKEN_B)

    assert gateway.simulations[0].args[0]["tokenIn"] == WETH
