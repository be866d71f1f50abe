from pydantic import BaseModel, ConfigDict, Field


class ReviewSummary(BaseModel):
    """Approval count over the latest review of each reviewer."""

    model_config = ConfigDict(frozen=True)

    approvals: int = Field(0, ge=0)
    total: int = Field(0, ge=0, description="Distinct reviewers who ever reviewed.")
