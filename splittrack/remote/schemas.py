from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Split registry
# ---------------------------------------------------------------------------

class SplitRegistryOut(BaseModel):
    splits: dict[str, dict[str, int]]

    @field_validator("splits")
    @classmethod
    def weights_are_usable(cls, splits: dict[str, dict[str, int]]) -> dict[str, dict[str, int]]:
        for split_name, weights in splits.items():
            if not weights:
                raise ValueError(f"split {split_name} has no variants")
            if any(w < 0 for w in weights.values()):
                raise ValueError(f"split {split_name} has a negative weight")
            if sum(weights.values()) <= 0:
                raise ValueError(f"split {split_name} has no positive weight")
        return splits


# ---------------------------------------------------------------------------
# Visitors & identifiers
# ---------------------------------------------------------------------------

class RemoteVisitor(BaseModel):
    id: str
    assignment_registry: dict[str, str] = Field(default_factory=dict)


class IdentifierIn(BaseModel):
    identifier_type: str
    visitor_id: str
    value: str


class IdentifierOut(BaseModel):
    visitor: RemoteVisitor


# ---------------------------------------------------------------------------
# Assignments & analytics
# ---------------------------------------------------------------------------

class AssignmentIn(BaseModel):
    visitor_id: str
    split_name: str
    variant: str


class AliasEvent(BaseModel):
    event: str = "$create_alias"
    properties: dict[str, str]
