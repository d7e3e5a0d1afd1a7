import os
from dotenv import load_dotenv
from dataclasses import dataclass
from functools import lru_cache

load_dotenv()


NATIVE_SENTINEL_DEFAULT = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
WETH9_MAINNET = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"


def _parse_int(value: str, default: int) -> int:
    if value is None or not str(value).strip():
        return default
    return int(str(value).strip())


@dataclass
class Settings:
    # signing / chain
    RPC_URL_DEFAULT: str
    PRIVATE_KEY: str
    DEFAULT_CHAIN_ID: int

    # uniswap v3 periphery / core
    SWAP_ROUTER_ADDRESS: str
    QUOTER_ADDRESS: str
    V3_FACTORY_ADDRESS: str
    DEFAULT_WCOIN_ADDRESS: str
    NATIVE_TOKEN_ADDRESS: str
    POOL_FEE: int

    # quoting / polling
    QUOTE_RETRY: int = 2
    QUOTE_RETRY_DELAY_MS: int = 1000
    POOL_STATE_REFRESH_SEC: int = 30
    RECEIPT_TIMEOUT_SEC: int = 120
    GAS_STRATEGY: str = "buffered"

    # generic
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    return Settings(
        # Core chain
        PRIVATE_KEY=os.getenv("PRIVATE_KEY", ""),
        RPC_URL_DEFAULT=os.getenv("RPC_URL_DEFAULT", ""),
        DEFAULT_CHAIN_ID=_parse_int(os.getenv("DEFAULT_CHAIN_ID", ""), 1),

        # Contracts
        SWAP_ROUTER_ADDRESS=os.getenv("SWAP_ROUTER_ADDRESS", ""),
        QUOTER_ADDRESS=os.getenv("QUOTER_ADDRESS", ""),
        V3_FACTORY_ADDRESS=os.getenv("V3_FACTORY_ADDRESS", ""),
        DEFAULT_WCOIN_ADDRESS=os.getenv("DEFAULT_WCOIN_ADDRESS", WETH9_MAINNET),
        NATIVE_TOKEN_ADDRESS=os.getenv("NATIVE_TOKEN_ADDRESS", NATIVE_SENTINEL_DEFAULT),
        POOL_FEE=_parse_int(os.getenv("POOL_FEE", ""), 3000),  # 0.3% tier

        QUOTE_RETRY=_parse_int(os.getenv("QUOTE_RETRY", ""), 2),
        QUOTE_RETRY_DELAY_MS=_parse_int(os.getenv("QUOTE_RETRY_DELAY_MS", ""), 1000),
        POOL_STATE_REFRESH_SEC=_parse_int(os.getenv("POOL_STATE_REFRESH_SEC", ""), 30),
        RECEIPT_TIMEOUT_SEC=_parse_int(os.getenv("RECEIPT_TIMEOUT_SEC", ""), 120),
        GAS_STRATEGY=os.getenv("GAS_STRATEGY", "buffered"),

        ENV=os.getenv("ENV", "dev"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )
