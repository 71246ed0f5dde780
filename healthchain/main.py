"""
HealthChain - Health-Insurance Event Ledger

Application entry point.

Run with: uvicorn healthchain.main:app
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .api import router
from .core import HealthInsureChain
from .observability import (
    RequestContextMiddleware,
    check_health,
    get_logger,
    get_metrics,
    setup_logging,
)

logger = get_logger(__name__)


def create_app(chain: Optional[HealthInsureChain] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        chain: Facade to serve. If None, one is built from HEALTHCHAIN_*
               environment variables at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.chain = chain if chain is not None else HealthInsureChain.from_env()
        ledger = app.state.chain.ledger

        if app.state.chain.config.is_slow:
            logger.warning(
                "High sealing difficulty; appends may take minutes",
                difficulty=ledger.difficulty,
            )

        if ledger.verify():
            logger.info("Chain integrity verified OK", block_count=ledger.length)
        else:
            logger.error("Chain integrity check FAILED!")

        logger.info(
            "Application startup complete",
            block_count=ledger.length,
            difficulty=ledger.difficulty,
            sealer=type(ledger.sealer).__name__,
        )

        yield

        ledger.shutdown()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="HealthChain",
        description="""
## Health-Insurance Event Ledger

An append-only, hash-linked ledger of policies, claims,
loyalty rewards and data-sharing events.

### Claim verification

```
PENDING -> APPROVED | MANUAL_REVIEW | REJECTED
```

Claims failing a hard rule (unknown/inactive policy, cost above
coverage, missing documents) are rejected without touching the chain.

### Integrity

Every block is sealed with proof of work and linked to its predecessor.
`GET /chain/validity` re-verifies the whole chain.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)
    app.include_router(router)

    @app.get("/health", tags=["System"])
    def health():
        status = check_health(app.state.chain)
        return {
            "healthy": status.healthy,
            "checks": status.checks,
            "duration_ms": status.duration_ms,
        }

    @app.get("/metrics", tags=["System"])
    def metrics():
        return get_metrics().get_summary()

    return app


setup_logging()
app = create_app()
