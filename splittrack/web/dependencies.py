from fastapi import Depends, Request

from splittrack.services.visitor import Visitor
from splittrack.web.session import SplitTrackSession


def get_split_track_session(request: Request) -> SplitTrackSession:
    """Dependency: the session attached by ``SplitTrackMiddleware``."""
    session = getattr(request.state, "split_track", None)
    if session is None:
        raise RuntimeError("SplitTrackMiddleware is not installed on this app")
    return session


def get_visitor(session: SplitTrackSession = Depends(get_split_track_session)) -> Visitor:
    """Dependency: the current visitor. Use it from sync (``def``) endpoints,
    since resolving assignments may call the remote service."""
    return session.visitor
