from typing import Any, Dict

from core.domain.schemas.swap_types import ContractCall, SwapConfig, TradeIntent


class UniswapV3Calls:
    """
    Builds Uniswap v3 (factory / pool / QuoterV2 / SwapRouter02) and ERC20 calls.

    Pure: no RPC here. Encoding of nested calls for `multicall` is delegated to
    the gateway so the same builder works against any `ChainGateway`.
    """

    def __init__(self, config: SwapConfig):
        self.config = config

    # ---------- erc20 ----------
    def allowance(self, token: str, owner: str, spender: str) -> ContractCall:
        return ContractCall(token, "erc20", "allowance", (owner, spender))

    def approve(self, token: str, spender: str, amount: int) -> ContractCall:
        return ContractCall(token, "erc20", "approve", (spender, int(amount)))

    def decimals(self, token: str) -> ContractCall:
        return ContractCall(token, "erc20", "decimals")

    # ---------- reads ----------
    def get_pool(self, token_a: str, token_b: str, fee: int) -> ContractCall:
        return ContractCall(
            self.config.factory_address,
            "uniswap_v3_factory",
            "getPool",
            (self.config.pool_token(token_a), self.config.pool_token(token_b), int(fee)),
        )

    def slot0(self, pool: str) -> ContractCall:
        return ContractCall(pool, "uniswap_v3_pool", "slot0")

    def quote_exact_input_single(self, token_in: str, token_out: str, amount_in: int) -> ContractCall:
        params = {
            "tokenIn": self.config.pool_token(token_in),
            "tokenOut": self.config.pool_token(token_out),
            "amountIn": int(amount_in),
            "fee": int(self.config.pool_fee),
            "sqrtPriceLimitX96": 0,
        }
        return ContractCall(self.config.quoter_address, "uniswap_v3_quoter_v2", "quoteExactInputSingle", (params,))

    # ---------- router ----------
    def exact_input_params(self, intent: TradeIntent, recipient: str) -> Dict[str, Any]:
        # when the output is native the router keeps the wrapped asset and unwraps it afterwards
        router = self.config.router_address
        return {
            "tokenIn": self.config.wrapped_native_address if intent.native_in else intent.token_in,
            "tokenOut": self.config.wrapped_native_address if intent.native_out else intent.token_out,
            "fee": int(self.config.pool_fee),
            "recipient": router if intent.native_out else recipient,
            "amountIn": int(intent.amount_in),
            "amountOutMinimum": int(intent.amount_out_min),
            "sqrtPriceLimitX96": 0,
        }

    def exact_input_single(self, intent: TradeIntent, recipient: str) -> ContractCall:
        return ContractCall(
            self.config.router_address,
            "uniswap_v3_swap_router_02",
            "exactInputSingle",
            (self.exact_input_params(intent, recipient),),
            value=int(intent.amount_in) if intent.native_in else 0,
        )

    def unwrap_weth9(self, amount_minimum: int, recipient: str) -> ContractCall:
        return ContractCall(
            self.config.router_address,
            "uniswap_v3_swap_router_02",
            "unwrapWETH9",
            (int(amount_minimum), recipient),
        )

    def swap(self, intent: TradeIntent, recipient: str, encode) -> ContractCall:
        """
        The call to simulate and submit for `intent`.

        Native output: one `multicall` holding the swap and the unwrap so both
        execute atomically. Otherwise the plain `exactInputSingle`.
        """
        swap_call = self.exact_input_single(intent, recipient)
        if not intent.native_out:
            return swap_call

        data = [
            encode(swap_call),
            encode(self.unwrap_weth9(intent.amount_out_min, recipient)),
        ]
        return ContractCall(
            self.config.router_address,
            "uniswap_v3_swap_router_02",
            "multicall",
            (data,),
            value=swap_call.value,
        )
