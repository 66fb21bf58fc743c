"""
Shared fixtures.

In-memory stand-ins for the transport, resolver and CIM client so the
pipeline runs without any Windows host.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest

from ccmstatus.application import HostStatusBuilder, PatchStatusAggregator, SessionFactory
from ccmstatus.domain.errors import SessionOpenError
from ccmstatus.domain.models import Credential, SessionProtocol
from ccmstatus.infrastructure.remoting import QueryResult

LOCAL_NAME = "workstation01"


class FakeHandle:
    """Session handle that records whether it was closed."""

    def __init__(self, fqdn: str, local: bool = False):
        self.fqdn = fqdn
        self.local = local
        self.closed = False

    def run_ps(self, script):  # pragma: no cover - never reached through FakeCim
        raise AssertionError("FakeHandle does not run scripts")

    def close(self):
        self.closed = True


class FakeTransport:
    """Opens FakeHandles; hosts listed in ``failing`` raise SessionOpenError."""

    def __init__(self, failing: Optional[set] = None):
        self.failing = failing or set()
        self.calls: List[Tuple[str, Optional[Credential], SessionProtocol, bool]] = []

    def open(self, fqdn, credential, protocol=SessionProtocol.LEGACY, local=False):
        self.calls.append((fqdn, credential, protocol, local))
        if fqdn in self.failing:
            raise SessionOpenError(fqdn, "access denied")
        return FakeHandle(fqdn, local=local)


class FakeResolver:
    """Resolves from a dict; unknown names fail."""

    def __init__(self, names: Dict[str, str]):
        self.names = names
        self.calls: List[str] = []

    def resolve(self, host_name):
        self.calls.append(host_name)
        return self.names.get(host_name)


class FakeCredentialProvider:
    def __init__(self, credential: Credential):
        self.credential = credential
        self.calls: List[str] = []

    def get_credential(self, host_name):
        self.calls.append(host_name)
        return self.credential


class FakeCim:
    """
    Canned CIM answers keyed by class (and method) name.

    A value may be a list of records, an Exception (reported as a failed
    query) or a QueryResult.
    """

    def __init__(self, instances: Optional[Dict[str, Any]] = None, methods: Optional[Dict[str, Any]] = None):
        self.instances = instances or {}
        self.methods = methods or {}
        self.calls: List[Tuple[str, str, Optional[str]]] = []

    @staticmethod
    def _answer(value) -> QueryResult:
        if value is None:
            return QueryResult.failed("Invalid class")
        if isinstance(value, QueryResult):
            return value
        if isinstance(value, Exception):
            return QueryResult.failed(str(value))
        if isinstance(value, dict):
            return QueryResult.ok([value])
        return QueryResult.ok(list(value))

    def list_instances(self, session, namespace, class_name, filter=None):
        self.calls.append((namespace, class_name, filter))
        key = class_name
        if class_name == "CCM_SoftwareUpdate" and filter and "ComplianceState" in filter:
            key = "CCM_SoftwareUpdate:missing"
        elif class_name == "CCM_SoftwareUpdate":
            key = "CCM_SoftwareUpdate:evaluation"
        return self._answer(self.instances.get(key))

    def invoke_method(self, session, namespace, class_name, method_name, arguments=None):
        self.calls.append((namespace, f"{class_name}.{method_name}", None))
        return self._answer(self.methods.get(f"{class_name}.{method_name}"))


def agent_product(name="Configuration Manager Client"):
    return [{"Name": name, "Version": "5.00.9122.1000"}]


def no_reboot_methods():
    return {
        "StdRegProv.GetMultiStringValue": {"ReturnValue": 1, "sValue": None},
        "CCM_ClientUtilities.DetermineIfRebootPending": {
            "ReturnValue": 0, "RebootPending": False, "IsHardRebootPending": False,
        },
    }


def assigned_ci(model_name, display_name="Security Update", ci_id=None):
    return (
        "<CI>"
        f"<ID>{ci_id or model_name}</ID>"
        f"<ModelName>{model_name}</ModelName>"
        "<Version>200</Version>"
        "<ConfigurationItemVersion>4</ConfigurationItemVersion>"
        "<ApplicabilityCondition>Required</ApplicabilityCondition>"
        "<EnforcementEnabled>true</EnforcementEnabled>"
        f"<DisplayName>{display_name}</DisplayName>"
        "<UpdateClassification>Security Updates</UpdateClassification>"
        "</CI>"
    )


@pytest.fixture
def credential():
    return Credential(username="CORP\\svc-audit", password="s3cret")


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def resolver():
    return FakeResolver({
        LOCAL_NAME: f"{LOCAL_NAME}.corp.example.com",
        "server01": "server01.corp.example.com",
        "server02": "server02.corp.example.com",
    })


@pytest.fixture
def provider(credential):
    return FakeCredentialProvider(credential)


@pytest.fixture
def factory(transport, resolver, provider):
    return SessionFactory(
        transport=transport,
        resolver=resolver,
        credential_provider=provider,
        local_name=LOCAL_NAME,
    )


def make_pipeline(factory, cim) -> PatchStatusAggregator:
    builder = HostStatusBuilder(cim=cim, session_factory=factory)
    return PatchStatusAggregator(cim=cim, status_builder=builder)
