from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adapters.entry.http.view.swap_view import router as swap_router
from config import get_settings


def configure_logging() -> None:
    """
    Root logging setup shared by the API process.

    Module loggers (`logging.getLogger(__name__)`) and the `notifications`
    logger all propagate here.
    """
    s = get_settings()
    logging.basicConfig(
        level=getattr(logging, (s.LOG_LEVEL or "INFO").upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )


def create_app() -> FastAPI:
    """
    Application factory for the Uniswap v3 swap API.

    Exposes quoting, pool spot price and exact-in execution under /api/swap.
    """
    configure_logging()

    app = FastAPI(
        title="Uniswap v3 Swap API",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(swap_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=get_settings().ENV == "dev")
