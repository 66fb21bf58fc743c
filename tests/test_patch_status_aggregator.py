"""
Tests for the patch status stage and missing-update correlation.
"""

import pytest

from ccmstatus.application.patch_status_aggregator import (
    PatchStatusAggregator,
    correlate,
    missing_update_from_record,
)
from ccmstatus.domain.models import (
    AssignedItem,
    DeploymentAssignment,
    HostStatus,
    MissingUpdate,
    PatchStatusRecord,
)
from ccmstatus.infrastructure.remoting import NS_CLIENT_SDK, NS_MACHINE_POLICY

from conftest import FakeCim, FakeHandle, assigned_ci


def deployment(name, *model_names):
    return DeploymentAssignment(
        assignment_name=name,
        items=[AssignedItem(model_name=model_name) for model_name in model_names],
    )


def ready_status(name="server01", agent_installed=True):
    return HostStatus(
        host_name=name,
        fqdn=f"{name}.corp.example.com",
        connected=True,
        session=FakeHandle(name),
        agent_installed=agent_installed,
        reboot_pending=False,
    )


def update_record(update_id, name, article="5034441"):
    return {
        "UpdateID": update_id,
        "Name": name,
        "ArticleID": article,
        "BulletinID": "",
        "EvaluationState": 1,
        "ComplianceState": 0,
        "PercentComplete": 0,
        "Deadline": None,
    }


class TestCorrelate:
    """Correlation of missing updates with deployments."""

    def test_match_appends_deployment_name(self):
        update = MissingUpdate(update_id="Site_ABC/SUM_1", name="Update 1")

        names = correlate([update], [deployment("Deployment A", "Site_ABC/SUM_1")])

        assert names == ["Deployment A"]
        assert update.deployed_from == ["Deployment A"]

    def test_no_match_leaves_update_alone(self):
        update = MissingUpdate(update_id="Site_ABC/SUM_1")

        correlate([update], [deployment("Deployment A", "Site_ABC/SUM_9")])

        assert update.deployed_from == []

    def test_append_order_follows_deployment_order(self):
        forward = MissingUpdate(update_id="X")
        correlate([forward], [deployment("A", "X"), deployment("B", "X")])

        backward = MissingUpdate(update_id="X")
        correlate([backward], [deployment("B", "X"), deployment("A", "X")])

        assert forward.deployed_from == ["A", "B"]
        assert backward.deployed_from == ["B", "A"]

    def test_duplicates_kept(self):
        update = MissingUpdate(update_id="X")

        correlate([update], [deployment("A", "X"), deployment("A", "X")])

        assert update.deployed_from == ["A", "A"]

    def test_existing_entries_not_overwritten(self):
        update = MissingUpdate(update_id="X", deployed_from=["Earlier"])

        correlate([update], [deployment("A", "X")])

        assert update.deployed_from == ["Earlier", "A"]

    def test_no_missing_updates_still_lists_deployments(self):
        assert correlate([], [deployment("A", "X"), deployment("B")]) == ["A", "B"]


class TestMissingUpdateFromRecord:
    def test_fields_mapped(self):
        update = missing_update_from_record({
            "UpdateID": "Site_ABC/SUM_1",
            "Name": "2024-01 Cumulative Update",
            "ArticleID": "5034123",
            "BulletinID": "MS24-001",
            "EvaluationState": "6",
            "PercentComplete": 40,
            "Deadline": "/Date(1704067200000)/",
        })

        assert update.update_id == "Site_ABC/SUM_1"
        assert update.article_id == "5034123"
        assert update.bulletin_id == "MS24-001"
        assert update.evaluation_state == 6
        assert update.percent_complete == 40
        assert update.deadline == "/Date(1704067200000)/"
        assert update.deployed_from == []

    def test_nulls_tolerated(self):
        update = missing_update_from_record({"UpdateID": None, "Name": None})
        assert update.update_id == ""
        assert update.evaluation_state is None


class TestPatchStatusAggregator:
    def test_missing_updates_sorted_and_correlated(self):
        cim = FakeCim(instances={
            "CCM_SoftwareUpdate:missing": [
                update_record("Site_ABC/SUM_2", "Zulu Update"),
                update_record("Site_ABC/SUM_1", "Alpha Update"),
            ],
            "CCM_UpdateCIAssignment": [
                {"AssignmentName": "Servers - Monthly", "AssignedCIs": [assigned_ci("Site_ABC/SUM_2")]},
                {"AssignmentName": "All - Critical", "AssignedCIs": [
                    assigned_ci("Site_ABC/SUM_1"), assigned_ci("Site_ABC/SUM_2"),
                ]},
            ],
        })
        aggregator = PatchStatusAggregator(cim=cim)

        record = aggregator.aggregate(ready_status())

        assert isinstance(record, PatchStatusRecord)
        assert record.missing_count == 2
        assert [u.name for u in record.missing_updates] == ["Alpha Update", "Zulu Update"]
        assert record.all_deployment_names == ["All - Critical", "Servers - Monthly"]
        assert record.missing_updates[0].deployed_from == ["All - Critical"]
        assert record.missing_updates[1].deployed_from == ["All - Critical", "Servers - Monthly"]

    def test_queries_expected_classes(self):
        cim = FakeCim(instances={"CCM_SoftwareUpdate:missing": [], "CCM_UpdateCIAssignment": []})

        PatchStatusAggregator(cim=cim).aggregate(ready_status())

        assert cim.calls == [
            (NS_CLIENT_SDK, "CCM_SoftwareUpdate", "ComplianceState = 0"),
            (NS_MACHINE_POLICY, "CCM_UpdateCIAssignment", None),
        ]

    def test_missing_count_independent_of_correlation(self):
        cim = FakeCim(instances={
            "CCM_SoftwareUpdate:missing": [update_record("Site_ABC/SUM_1", "Alpha")],
            "CCM_UpdateCIAssignment": RuntimeError("Invalid namespace"),
        })

        record = PatchStatusAggregator(cim=cim).aggregate(ready_status())

        assert record.missing_count == 1
        assert record.missing_updates[0].deployed_from == []
        assert record.all_deployment_names == []

    def test_missing_update_query_failure_counts_zero(self):
        cim = FakeCim(instances={
            "CCM_SoftwareUpdate:missing": RuntimeError("Access denied"),
            "CCM_UpdateCIAssignment": [{"AssignmentName": "A", "AssignedCIs": []}],
        })

        record = PatchStatusAggregator(cim=cim).aggregate(ready_status())

        assert record.missing_count == 0
        assert record.missing_updates == []
        assert record.all_deployment_names == ["A"]

    def test_malformed_assigned_items_skipped(self):
        cim = FakeCim(instances={
            "CCM_SoftwareUpdate:missing": [update_record("Site_ABC/SUM_1", "Alpha")],
            "CCM_UpdateCIAssignment": [{
                "AssignmentName": "A",
                "AssignedCIs": ["<CI><ModelName>", assigned_ci("Site_ABC/SUM_1")],
            }],
        })

        record = PatchStatusAggregator(cim=cim).aggregate(ready_status())

        assert record.missing_updates[0].deployed_from == ["A"]

    @pytest.mark.parametrize("status", [
        HostStatus(host_name="ghost"),
        ready_status(agent_installed=False),
    ])
    def test_precondition_failure_passes_through(self, status):
        cim = FakeCim()

        record = PatchStatusAggregator(cim=cim).aggregate(status)

        assert isinstance(record, PatchStatusRecord)
        assert record.host_name == status.host_name
        assert record.missing_count is None
        assert record.missing_updates is None
        assert record.all_deployment_names is None
        assert cim.calls == []

    def test_bootstrap_without_builder_raises(self):
        with pytest.raises(RuntimeError):
            PatchStatusAggregator(cim=FakeCim()).build_patch_status_for_hosts(["server01"])
