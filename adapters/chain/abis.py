from typing import Dict, List


ABI_ERC20 = [
    {"name": "decimals", "outputs": [{"type": "uint8"}], "inputs": [], "stateMutability": "view", "type": "function"},
    {"name": "balanceOf", "outputs": [{"type": "uint256"}], "inputs": [{"type": "address", "name": "account"}], "stateMutability": "view", "type": "function"},
    {"name": "allowance", "outputs": [{"type": "uint256"}], "inputs": [{"type": "address", "name": "owner"}, {"type": "address", "name": "spender"}], "stateMutability": "view", "type": "function"},
    {"name": "approve", "outputs": [{"type": "bool"}], "inputs": [{"type": "address", "name": "spender"}, {"type": "uint256", "name": "amount"}], "stateMutability": "nonpayable", "type": "function"},
]

ABI_UNI_V3_FACTORY = [
    {
        "name": "getPool",
        "inputs": [
            {"type": "address", "name": "tokenA"},
            {"type": "address", "name": "tokenB"},
            {"type": "uint24", "name": "fee"},
        ],
        "outputs": [{"type": "address", "name": "pool"}],
        "stateMutability": "view",
        "type": "function",
    },
]

ABI_UNI_V3_POOL = [
    {
        "name": "slot0",
        "inputs": [],
        "outputs": [
            {"type": "uint160", "name": "sqrtPriceX96"},
            {"type": "int24", "name": "tick"},
            {"type": "uint16", "name": "observationIndex"},
            {"type": "uint16", "name": "observationCardinality"},
            {"type": "uint16", "name": "observationCardinalityNext"},
            {"type": "uint8", "name": "feeProtocol"},
            {"type": "bool", "name": "unlocked"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {"name": "token0", "inputs": [], "outputs": [{"type": "address"}], "stateMutability": "view", "type": "function"},
    {"name": "token1", "inputs": [], "outputs": [{"type": "address"}], "stateMutability": "view", "type": "function"},
    {"name": "fee", "inputs": [], "outputs": [{"type": "uint24"}], "stateMutability": "view", "type": "function"},
]

# QuoterV2: nonpayable, results only reachable via eth_call
ABI_UNI_V3_QUOTER_V2 = [
    {
        "name": "quoteExactInputSingle",
        "inputs": [{
            "name": "params",
            "type": "tuple",
            "components": [
                {"type": "address", "name": "tokenIn"},
                {"type": "address", "name": "tokenOut"},
                {"type": "uint256", "name": "amountIn"},
                {"type": "uint24", "name": "fee"},
                {"type": "uint160", "name": "sqrtPriceLimitX96"},
            ],
        }],
        "outputs": [
            {"type": "uint256", "name": "amountOut"},
            {"type": "uint160", "name": "sqrtPriceX96After"},
            {"type": "uint32", "name": "initializedTicksCrossed"},
            {"type": "uint256", "name": "gasEstimate"},
        ],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

# SwapRouter02 subset (no deadline in ExactInputSingleParams)
ABI_UNI_V3_SWAP_ROUTER_02 = [
    {
        "name": "exactInputSingle",
        "inputs": [{
            "name": "params",
            "type": "tuple",
            "components": [
                {"type": "address", "name": "tokenIn"},
                {"type": "address", "name": "tokenOut"},
                {"type": "uint24", "name": "fee"},
                {"type": "address", "name": "recipient"},
                {"type": "uint256", "name": "amountIn"},
                {"type": "uint256", "name": "amountOutMinimum"},
                {"type": "uint160", "name": "sqrtPriceLimitX96"},
            ],
        }],
        "outputs": [{"type": "uint256", "name": "amountOut"}],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "name": "multicall",
        "inputs": [{"type": "bytes[]", "name": "data"}],
        "outputs": [{"type": "bytes[]", "name": "results"}],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "name": "unwrapWETH9",
        "inputs": [{"type": "uint256", "name": "amountMinimum"}, {"type": "address", "name": "recipient"}],
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
]


ABIS: Dict[str, List[dict]] = {
    "erc20": ABI_ERC20,
    "uniswap_v3_factory": ABI_UNI_V3_FACTORY,
    "uniswap_v3_pool": ABI_UNI_V3_POOL,
    "uniswap_v3_quoter_v2": ABI_UNI_V3_QUOTER_V2,
    "uniswap_v3_swap_router_02": ABI_UNI_V3_SWAP_ROUTER_02,
}


def abi_for(contract: str) -> List[dict]:
    abi = ABIS.get(contract)
    if abi is None:
        raise ValueError(f"Unknown contract ABI: {contract}")
    return abi
