"""
Patch status models.

Missing updates, deployment assignments with their parsed assigned items,
and the final per-host patch record.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from .host_status import HostStatus


class MissingUpdate(BaseModel):
    """
    An update reported non-compliant on a host.

    ``deployed_from`` is filled in during correlation, one entry per matching
    deployment, in deployment processing order.
    """

    update_id: str = Field(..., description="Update identity, matches AssignedItem.model_name")
    name: str = Field(default="", description="Update title")
    article_id: str = Field(default="", description="KB article number")
    bulletin_id: str = Field(default="", description="Security bulletin id")
    evaluation_state: Optional[int] = Field(default=None, description="Client evaluation state code")
    deadline: Optional[str] = Field(default=None, description="Install deadline as reported")
    percent_complete: Optional[int] = Field(default=None, description="Install progress")
    deployed_from: List[str] = Field(default_factory=list, description="Deployments requesting this update")


class AssignedItem(BaseModel):
    """One update entry embedded as XML in a deployment assignment."""

    article: str = ""
    id: str = ""
    model_name: str = ""
    version: str = ""
    configuration_item_version: str = ""
    applicability_condition: str = ""
    enforcement_enabled: Optional[bool] = None
    display_name: str = ""
    update_classification: str = ""


class DeploymentAssignment(BaseModel):
    """An active deployment policy applied to a host."""

    assignment_name: str
    items: List[AssignedItem] = Field(default_factory=list)

    def model_names(self) -> set:
        return {item.model_name for item in self.items if item.model_name}


class PatchStatusRecord(HostStatus):
    """
    Full patch record for a host.

    Patch fields are ``None`` unless the host was connected and the agent is
    installed. ``missing_count`` is taken before correlation and does not
    depend on it.
    """

    all_deployment_names: Optional[List[str]] = Field(default=None, description="Every deployment seen")
    missing_updates: Optional[List[MissingUpdate]] = Field(default=None, description="Missing updates, sorted by name")
    missing_count: Optional[int] = Field(default=None, description="Number of missing updates")
