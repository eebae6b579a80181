"""
=============================================================================
Content Engagement API
=============================================================================
  - Durable event log of content interactions (view, click, play, complete)
  - Device classification from the client user agent
  - Background counter aggregation on catalog items
  - Buffered realtime snapshot published to Redis and Kafka
=============================================================================
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import settings
from .dependencies import init_resources, close_resources
from .exceptions import (
    PersistenceError,
    global_exception_handler,
    http_exception_handler,
    persistence_exception_handler,
    validation_exception_handler,
)
from .limiter import limiter
from .logging_config import setup_logging
from .middleware import RequestTrackingMiddleware
from .routers import event_router, metrics_router

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_resources(settings)
    yield
    await close_resources(settings)


app = FastAPI(
    title="Content Engagement API",
    description="Content interaction tracking and engagement counters",
    version="1.0.0",
    lifespan=lifespan
)

app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestTrackingMiddleware)

app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(PersistenceError, persistence_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(event_router.router, tags=["events"])
app.include_router(metrics_router.router, tags=["analytics"])


@app.get("/health")
async def health():
    return {"status": "ok"}
