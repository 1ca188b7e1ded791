"""
Notehook - GitLab comment webhook receiver & chat notification dispatcher
"""

# Standard
from contextlib import asynccontextmanager

# Remote
from fastapi import FastAPI

# Local
from . import __version__
from .config import settings
from .database import init_db
from .routers import notifications, subscriptions, webhooks


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown."""
    await init_db()
    yield


app = FastAPI(
    title="Notehook",
    description="GitLab comment notifications for chat",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
app.include_router(
    subscriptions.router, prefix="/subscriptions", tags=["subscriptions"]
)
app.include_router(
    notifications.router, prefix="/notifications", tags=["notifications"]
)


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "service": "Notehook",
        "public_url": settings.SERVER_PUBLIC_URL,
    }
