"""Push sender — FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notifications.routes import router as notifications_router
from notifications.utils import init_vapid_identity
from server.config import ALLOWED_ORIGINS, APP_VERSION

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: the signing identity is loaded exactly once and never mutated
    if getattr(app.state, "vapid_identity", None) is None:
        app.state.vapid_identity = init_vapid_identity()
    yield
    logger.info("Application shutdown")


app = FastAPI(title="Push Sender API", version=APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(notifications_router, tags=["notifications"])


@app.get("/health")
def health_check():
    return {"status": "ok", "version": APP_VERSION}
