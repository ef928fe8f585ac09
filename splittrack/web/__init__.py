from splittrack.web.dependencies import get_split_track_session, get_visitor
from splittrack.web.middleware import SplitTrackMiddleware
from splittrack.web.session import SplitTrackSession

__all__ = [
    "SplitTrackMiddleware",
    "SplitTrackSession",
    "get_split_track_session",
    "get_visitor",
]
