from fastapi import APIRouter, Depends
from pydantic import BaseModel

from splittrack.services.visitor import Visitor
from splittrack.web.dependencies import get_visitor

router = APIRouter(prefix="/split_track", tags=["split_track"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class SplitAssignment(BaseModel):
    split_name: str
    variant: str


class VisitorOut(BaseModel):
    visitor_id: str
    assignments: list[SplitAssignment]
    offline: bool


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@router.get("/visitor", response_model=VisitorOut)
def current_visitor(visitor: Visitor = Depends(get_visitor)) -> VisitorOut:
    """Current visitor id and known assignments, for client-side code."""
    registry = visitor.assignment_registry or {}
    return VisitorOut(
        visitor_id=visitor.id,
        assignments=[SplitAssignment(split_name=k, variant=v) for k, v in sorted(registry.items())],
        offline=visitor.offline,
    )
