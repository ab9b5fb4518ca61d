"""FastAPI application entry point for the suid service.

This module configures the FastAPI application that embeds one suid
allocator context and exposes it over HTTP.

Application Lifecycle Diagram
===========================
::
    ┌─────────────┐
    │  uvicorn    │
    │  startup    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ startup:    │
    │ ctx.start() │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Serve HTTP  │
    │ requests    │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ lifespan()  │
    │ shutdown:   │
    │ ctx.aclose()│
    └─────────────┘

How to Use
===========
**Step 1 — Point at a block allocation service**::
    export SUID_SERVER_URL=http://blocks.internal/suid

**Step 2 — Run with uvicorn**::
    uvicorn app.main:app --host 0.0.0.0 --port 8000

**Step 3 — Make API calls**::
    curl http://localhost:8000/health
    curl http://localhost:8000/api/suid
    curl http://localhost:8000/api/suid/14she

Configuration:
    See suid/config.py for all available settings.
"""

__all__ = ["app"]

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from app.routes import router
from suid.config import get_settings
from suid.context import get_suid_context

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    ctx = get_suid_context()
    await ctx.start()
    yield
    # Shutdown
    await ctx.aclose()


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Short, distributed service-unique IDs",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    should_respect_env_var=False,
).instrument(app).expose(app)

app.include_router(router)
