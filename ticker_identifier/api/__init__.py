"""Ticker Identifier API package: FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from ticker_identifier.api import entities, health, stock_list, tickers
from ticker_identifier.api.deps import build_services
from ticker_identifier.services.config_store import ConfigStore
from ticker_identifier.settings import AppSettings


def create_app() -> FastAPI:
    settings = AppSettings()
    config_store = ConfigStore(config_path=settings.config_file)

    app = FastAPI(
        title="Ticker Identifier API",
        version="0.1.0",
        default_response_class=ORJSONResponse,
    )

    app.state.settings = settings
    app.state.config_store = config_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(entities.router)
    app.include_router(stock_list.router)
    app.include_router(tickers.router)

    @app.on_event("startup")
    async def startup_event() -> None:
        # The corpus cache lives as long as the app.
        config = config_store.load()
        resolution_service = build_services(config=config, settings=settings)
        app.state.resolution_service = resolution_service
        app.state.extraction_service = resolution_service.extraction_service
        app.state.corpus_service = resolution_service.corpus_service

    return app


app = create_app()
