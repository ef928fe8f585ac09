from fastapi import FastAPI

from splittrack.core.config import settings
from splittrack.remote.analytics import AnalyticsClient
from splittrack.remote.client import TestTrackClient
from splittrack.routers import visitor
from splittrack.web.middleware import SplitTrackMiddleware


def create_app(client: TestTrackClient | None = None, analytics: AnalyticsClient | None = None) -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME)
    app.add_middleware(SplitTrackMiddleware, client=client, analytics=analytics)
    app.include_router(visitor.router)
    return app
