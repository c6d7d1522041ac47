"""REST API module for the collectibles catalog.

This module provides HTTP endpoints for:
- Querying, creating and versioning collections and NFTs
- Liking and unliking collections and NFTs
- Ingesting, updating and listing NFT assets
- Connecting wallets and resolving a user's recent wallet
- Reading and saving user profiles
- Keyword search over collections

Every endpoint answers HTTP 200 with a ``{success, data?, message?}`` body.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import database
from .dependencies import Services, build_services
from .responses import ok, validation_error

logger = logging.getLogger(__name__)

def create_app(services: Optional[Services] = None) -> FastAPI:
    """Create the API application.

    Args:
        services: Prebuilt collaborators. When omitted they are built from
            settings.conf during application startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle startup and shutdown events."""
        if services is not None:
            yield
            return

        # Import here so importing the package does not require settings.conf
        from config import settings_conf

        logger.info("Initializing API...")
        await database.init_db(settings_conf['db_url'])
        app.state.services = await build_services(settings_conf)

        yield

        logger.info("Shutting down API...")
        await database.close()

    app = FastAPI(
        title="Collectibles Catalog API",
        description="REST API for collections, NFTs, assets and wallets",
        version="1.0.0",
        lifespan=lifespan
    )

    if services is not None:
        app.state.services = services

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = errors[0].get('msg', 'invalid request') if errors else 'invalid request'
        location = '.'.join(str(part) for part in errors[0].get('loc', ())) if errors else ''
        message = f"{location}: {detail}" if location else detail
        return JSONResponse(status_code=200, content=validation_error(message))

    @app.get("/")
    async def root():
        return ok({
            "name": "Collectibles Catalog API",
            "version": "1.0.0",
            "status": "running"
        })

    from .collections import router as collections_router
    from .nfts import router as nfts_router
    from .assets import router as assets_router
    from .wallets import router as wallets_router
    from .search import router as search_router
    from .users import router as users_router

    app.include_router(collections_router)
    app.include_router(nfts_router)
    app.include_router(assets_router)
    app.include_router(wallets_router)
    app.include_router(search_router)
    app.include_router(users_router)

    return app

__all__ = ['create_app', 'Services', 'build_services']
