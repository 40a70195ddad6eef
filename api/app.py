"""
FastAPI Application

Main application setup and configuration.

Usage:
    uvicorn --factory api.app:create_app --reload

    # Or run directly
    python -m api.app
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.deps import ServiceState, build_state, load_runtime_config
from api.errors import (
    APIError,
    api_error_handler,
    generic_error_handler,
    merkledrop_error_handler,
    upstream_error_handler,
)
from api.routes import claims, commitment, health, proofs
from core.config.runtime import RuntimeConfig
from core.http.client import HttpError
from core.schemas.errors import MerkleDropException


def _resolve_log_level() -> int:
    """Resolve log level from MERKLEDROP_LOG_LEVEL, defaulting to INFO."""
    raw = os.getenv("MERKLEDROP_LOG_LEVEL")
    return getattr(logging, (raw or "INFO").upper(), logging.INFO)


logging.basicConfig(
    level=_resolve_log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def create_app(
    config: Optional[RuntimeConfig] = None,
    state: Optional[ServiceState] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Runtime configuration; loaded from files and env when omitted
        state: Prebuilt service state; built from ``config`` when omitted
    """
    if state is None:
        config = config or load_runtime_config()
        state = build_state(config)
    config = state.config

    app = FastAPI(
        title="MerkleDrop API",
        description="""
HTTP API for Merkle allow-list claims.

## Endpoints

- **GET /commitment** - Active root and metadata pointer
- **PUT /commitment** - Replace the active root (admin)
- **GET /proof/{recipient}** - Committed allocation and proof
- **POST /claim** - Claim part of an allocation
- **GET /claimed/{recipient}** - Cumulative claims
- **PUT /claimed/{recipient}** - Override claimed total (admin)
- **GET /claims** - Fulfilled claim receipts
- **GET /health** - Health check

Admin routes read the caller from the `X-Admin-Token` header.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.merkledrop = state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(MerkleDropException, merkledrop_error_handler)
    app.add_exception_handler(HttpError, upstream_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(commitment.router)
    app.include_router(proofs.router)
    app.include_router(claims.router)

    return app


if __name__ == "__main__":
    import uvicorn

    runtime_config = load_runtime_config()
    uvicorn.run(
        create_app(runtime_config),
        host=runtime_config.api.host,
        port=runtime_config.api.port,
    )
