from splittrack.models.base import Base
from splittrack.models.deferred_job import DeferredJob

__all__ = [
    "Base",
    "DeferredJob",
]
