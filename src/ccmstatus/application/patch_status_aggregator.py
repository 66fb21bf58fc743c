"""
Patch status aggregator - third pipeline stage.

For each connected host with the agent installed:
1. Missing updates (CCM_SoftwareUpdate, ComplianceState = 0), sorted by name
2. Deployment assignments from machine policy, sorted by assignment name
3. Assigned items parsed out of each deployment's XML
4. Each missing update annotated with every deployment that targets it

The missing count comes from step 1 alone, so it is reported even when
deployment policy is unreadable.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ccmstatus.domain.models import (
    ComplianceState,
    Credential,
    DeploymentAssignment,
    HostStatus,
    MissingUpdate,
    PatchStatusRecord,
)
from ccmstatus.infrastructure.remoting import CimClient, NS_CLIENT_SDK, NS_MACHINE_POLICY

from .assignment_parser import parse_deployments
from .host_status_builder import HostStatusBuilder

logger = logging.getLogger(__name__)


def _as_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def missing_update_from_record(record: dict[str, Any]) -> MissingUpdate:
    """Map a CCM_SoftwareUpdate instance onto a MissingUpdate."""
    return MissingUpdate(
        update_id=str(record.get("UpdateID") or ""),
        name=str(record.get("Name") or ""),
        article_id=str(record.get("ArticleID") or ""),
        bulletin_id=str(record.get("BulletinID") or ""),
        evaluation_state=_as_int(record.get("EvaluationState")),
        deadline=str(record["Deadline"]) if record.get("Deadline") else None,
        percent_complete=_as_int(record.get("PercentComplete")),
    )


def correlate(
    missing_updates: Sequence[MissingUpdate],
    deployments: Sequence[DeploymentAssignment],
) -> list[str]:
    """
    Annotate missing updates with the deployments that target them.

    Deployments are walked in the given order. Each matching deployment name
    is appended to ``deployed_from``, so an update targeted by A then B ends
    up with [A, B]; reversing the deployment order gives [B, A]. Duplicates
    are kept.

    Returns:
        Every deployment name, in processing order
    """
    names = []
    for deployment in deployments:
        names.append(deployment.assignment_name)
        if not missing_updates:
            continue
        model_names = deployment.model_names()
        for update in missing_updates:
            if update.update_id in model_names:
                update.deployed_from.append(deployment.assignment_name)
    return names


class PatchStatusAggregator:
    """
    Builds PatchStatusRecords from HostStatus records.

    Can bootstrap the earlier stages itself when given a HostStatusBuilder
    that has a session factory.
    """

    def __init__(self, cim: CimClient, status_builder: HostStatusBuilder | None = None) -> None:
        self.cim = cim
        self.status_builder = status_builder

    def build_patch_status(self, statuses: Sequence[HostStatus]) -> list[PatchStatusRecord]:
        """Aggregate patch state for every eligible host, in input order."""
        return [self.aggregate(status) for status in statuses]

    def build_patch_status_for_hosts(
        self,
        host_names: Sequence[str],
        credential: Credential | None = None,
    ) -> list[PatchStatusRecord]:
        """Run all three stages from raw host names."""
        if self.status_builder is None:
            raise RuntimeError("PatchStatusAggregator has no status builder")
        statuses = self.status_builder.build_status_for_hosts(host_names, credential)
        return self.build_patch_status(statuses)

    def aggregate(self, status: HostStatus) -> PatchStatusRecord:
        """Aggregate a single host."""
        if not (status.connected and status.agent_installed):
            return status.extend(PatchStatusRecord)

        handle = status.session
        missing = self.missing_updates(handle)
        missing_count = len(missing)

        deployments = self.deployments(handle)
        deployment_names = correlate(missing, deployments)

        logger.info(
            "%s: %d missing update(s), %d deployment(s)",
            status.host_name, missing_count, len(deployment_names)
        )
        return status.extend(
            PatchStatusRecord,
            all_deployment_names=deployment_names,
            missing_updates=missing,
            missing_count=missing_count,
        )

    def missing_updates(self, handle: Any) -> list[MissingUpdate]:
        """Non-compliant updates sorted by name; empty if the query fails."""
        result = self.cim.list_instances(
            handle, NS_CLIENT_SDK, "CCM_SoftwareUpdate",
            filter=f"ComplianceState = {int(ComplianceState.MISSING)}"
        )
        if not result.success:
            logger.warning("Missing update query failed: %s", result.error)
            return []

        updates = [missing_update_from_record(record) for record in result.records]
        return sorted(updates, key=lambda u: u.name)

    def deployments(self, handle: Any) -> list[DeploymentAssignment]:
        """Active deployment assignments sorted by name; empty if the query fails."""
        result = self.cim.list_instances(handle, NS_MACHINE_POLICY, "CCM_UpdateCIAssignment")
        if not result.success:
            logger.warning("Deployment assignment query failed: %s", result.error)
            return []
        return parse_deployments(result.records)
