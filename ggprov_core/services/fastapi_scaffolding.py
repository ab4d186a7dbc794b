from __future__ import annotations

import os
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

CORRELATION_HEADER = "x-correlation-id"


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    commit: str
    timestamp: str


def cors_origins(*, raw: str | None = None, env: str | None = None) -> list[str]:
    raw_value = raw if raw is not None else os.getenv("CORS_ALLOW_ORIGINS", "")
    if raw_value:
        return [origin.strip() for origin in raw_value.split(",") if origin.strip()]
    env_value = (env or os.getenv("ENV", "dev")).lower()
    if env_value in {"dev", "local", "test"}:
        return ["*"]
    return []


def apply_cors_middleware(
    app: FastAPI,
    *,
    raw_origins: str | None = None,
    env: str | None = None,
) -> list[str]:
    origins = cors_origins(raw=raw_origins, env=env)
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
    return origins


def add_correlation_id_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def _add_correlation_id(request: Request, call_next):
        corr = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = corr
        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = corr
        return response


def build_health_response(
    service_name: str,
    *,
    status: str = "ok",
) -> HealthResponse:
    return HealthResponse(
        status=status,
        service=service_name,
        version=os.getenv("GGPROV_VERSION", "dev"),
        commit=os.getenv("GIT_COMMIT", "unknown"),
        timestamp=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
    )
