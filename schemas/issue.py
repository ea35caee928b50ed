from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Jira fields requested for a load evaluation
EVALUATION_FIELDS = (
    "summary",
    "description",
    "labels",
    "priority",
    "status",
    "issuetype",
    "components",
)

# Jira fields requested for a free-form AI analysis
ANALYSIS_FIELDS = ("summary", "description", "labels", "priority", "status")


class IssueSnapshot(BaseModel):
    """Read-only projection of a Jira issue at evaluation time."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Jira issue key, e.g. PROJ-123")
    summary: str = ""
    description: Optional[str] = None
    labels: list[str] = Field(default_factory=list)
    priority_name: Optional[str] = None
    status_name: Optional[str] = None
    issue_type_name: Optional[str] = None
    component_names: list[str] = Field(default_factory=list)
