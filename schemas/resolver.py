from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ResolverContext(BaseModel):
    """
    Invocation context supplied by the host platform.

    The issue key is accepted flat (``issueKey``) or in the platform's
    nested form (``{"extension": {"issue": {"key": "PROJ-1"}}}``).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    account_id: Optional[str] = None
    issue_key: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _lift_extension_issue(cls, data: Any) -> Any:
        if isinstance(data, dict) and not (data.get("issueKey") or data.get("issue_key")):
            extension = data.get("extension")
            issue = extension.get("issue") if isinstance(extension, dict) else None
            if isinstance(issue, dict) and issue.get("key"):
                data = {**data, "issue_key": issue["key"]}
        return data


class ResolverRequest(BaseModel):
    payload: dict[str, Any] = Field(default_factory=dict)
    context: ResolverContext = Field(default_factory=ResolverContext)
