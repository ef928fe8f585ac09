from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from splittrack.remote.analytics import AnalyticsClient
from splittrack.remote.client import TestTrackClient
from splittrack.web.session import SplitTrackSession


class SplitTrackMiddleware(BaseHTTPMiddleware):
    """Attach a ``SplitTrackSession`` to every request.

    After the endpoint returns, the visitor cookie is written and new
    assignments are flushed in the thread pool (the remote client is
    synchronous).
    """

    def __init__(
        self,
        app: ASGIApp,
        client: TestTrackClient | None = None,
        analytics: AnalyticsClient | None = None,
    ) -> None:
        super().__init__(app)
        self.client = client
        self.analytics = analytics

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        session = SplitTrackSession(request, client=self.client, analytics=self.analytics)
        request.state.split_track = session

        response = await call_next(request)

        session.set_cookie(response)
        await run_in_threadpool(session.flush)
        return response
