from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from oncall.api import router
from oncall.core.config import settings
from oncall.core.errors import OnCallError
from oncall.core.logging import configure_logging
from oncall.db.session import get_session
from oncall.services.seed import seed_all

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.seed_demo_data:
        with get_session() as session:
            seed_all(session)
    yield


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(
        title=settings.app_name,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], allow_credentials=True, allow_methods=["*"], allow_headers=["*"],
    )

    @app.exception_handler(OnCallError)
    async def handle_domain_error(request: Request, exc: OnCallError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Unhandled domain error on %s: %s", request.url.path, exc.message)
        else:
            logger.warning("%s on %s: %s", exc.code, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/")
    def home():
        return {"message": f"{settings.app_name} is running. Open /docs for the API."}

    app.include_router(router)
    return app


app = create_app()
