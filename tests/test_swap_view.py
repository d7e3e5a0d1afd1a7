from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from adapters.entry.http.view.swap_view import get_use_case
from conftest import ACCOUNT, POOL, Q96, ROUTER, TOKEN_A, TOKEN_B
from core.use_cases.swap_usecase import SwapUseCase
from main import create_app


@pytest.fixture
def use_case(gateway, config):
    return SwapUseCase(gateway=gateway, config=replace(config, quote_retry_delay_sec=0.0))


@pytest.fixture
def client(use_case):
    app = create_app()
    app.dependency_overrides[get_use_case] = lambda: use_case
    return TestClient(app)


def test_quote(client, gateway):
    gateway.quote_out = 2_000_000

    resp = client.post(
        "/api/swap/quote",
        json={"token_in": TOKEN_A, "token_out": TOKEN_B, "amount_in": 1_000, "slippage_percent": 1},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["amount_out"] == 2_000_000
    assert body["amount_out_min"] == 1_980_000
    assert body["fee"] == 3000
    assert body["attempts"] == 1


def test_quote_failure_is_bad_request(client, gateway):
    gateway.quote_failures = 99

    resp = client.post("/api/swap/quote", json={"token_in": TOKEN_A, "token_out": TOKEN_B, "amount_in": 1})

    assert resp.status_code == 400
    assert "after 3 attempts" in resp.json()["detail"]


def test_quote_rejects_non_positive_amount(client):
    resp = client.post("/api/swap/quote", json={"token_in": TOKEN_A, "token_out": TOKEN_B, "amount_in": 0})
    assert resp.status_code == 422


def test_quote_without_quoter(gateway, config):
    app = create_app()
    app.dependency_overrides[get_use_case] = lambda: SwapUseCase(gateway, replace(config, quoter_address=""))

    resp = TestClient(app).post(
        "/api/swap/quote", json={"token_in": TOKEN_A, "token_out": TOKEN_B, "amount_in": 1}
    )

    assert resp.status_code == 500
    assert resp.json()["detail"] == "QUOTER_ADDRESS not configured"


def test_spot_price(client, gateway):
    gateway.add_pool(TOKEN_A, TOKEN_B, 3000, POOL, (2 * Q96, 13_863, 0, 1, 1, 0, True))

    resp = client.get(
        "/api/swap/spot-price",
        params={"token_a": TOKEN_B, "token_b": TOKEN_A, "decimals_a": 18, "decimals_b": 18},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["pool"] == POOL
    assert body["tick"] == 13_863
    assert body["spot_price_raw"] == str(4 * 10**18)
    assert body["spot_price"] == "4"


def test_spot_price_reads_missing_decimals(client, gateway):
    gateway.add_pool(TOKEN_A, TOKEN_B, 3000, POOL, (Q96, 0, 0, 1, 1, 0, True))
    gateway.token_decimals[TOKEN_A] = 6
    gateway.token_decimals[TOKEN_B] = 18

    resp = client.get("/api/swap/spot-price", params={"token_a": TOKEN_A, "token_b": TOKEN_B})

    assert resp.status_code == 200
    body = resp.json()
    assert (body["decimals_a"], body["decimals_b"]) == (6, 18)
    assert body["spot_price_raw"] == str(10**6)


def test_spot_price_without_pool(client):
    resp = client.get(
        "/api/swap/spot-price",
        params={"token_a": TOKEN_A, "token_b": TOKEN_B, "decimals_a": 6, "decimals_b": 18},
    )

    assert resp.status_code == 400
    assert "No pool" in resp.json()["detail"]


def test_exact_in_approves_then_swaps(client, gateway):
    gateway.set_balance(ACCOUNT, TOKEN_A, 1_000)

    resp = client.post(
        "/api/swap/exact-in",
        json={"token_in": TOKEN_A, "token_out": TOKEN_B, "amount_in": 100, "amount_out_min": 90},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert [c.function_name for c in gateway.submitted] == ["approve", "exactInputSingle"]
    assert body["has_been_approved"] is True
    assert body["approval_tx_hash"] == gateway.hash_of("approve")
    assert body["trade_tx_hash"] == gateway.hash_of("exactInputSingle")
    assert body["trade_receipt"]["status"] == 1
    assert body["is_trading"] is False
    assert body["notifications"] == [
        {"level": "success", "message": "Trade confirmed", "description": body["trade_tx_hash"]}
    ]


def test_exact_in_derives_min_from_quote(client, gateway):
    gateway.set_balance(ACCOUNT, TOKEN_A, 1_000)
    gateway.set_allowance(TOKEN_A, ACCOUNT, ROUTER, 1_000)
    gateway.quote_out = 1_000

    resp = client.post(
        "/api/swap/exact-in",
        json={"token_in": TOKEN_A, "token_out": TOKEN_B, "amount_in": 100, "slippage_percent": 0.5},
    )

    assert resp.status_code == 200
    assert resp.json()["amount_out_min"] == 995
    assert gateway.submitted[0].args[0]["amountOutMinimum"] == 995


def test_exact_in_insufficient_balance_is_reported(client, gateway):
    gateway.set_balance(ACCOUNT, TOKEN_A, 10)

    resp = client.post(
        "/api/swap/exact-in",
        json={"token_in": TOKEN_A, "token_out": TOKEN_B, "amount_in": 100, "amount_out_min": 0},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["is_balance_ok"] is False
    assert body["trade_tx_hash"] is None
    assert body["notifications"] == [{"level": "error", "message": "Insufficient balance", "description": None}]
    assert gateway.submitted == []
