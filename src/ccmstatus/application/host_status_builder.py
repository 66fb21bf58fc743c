"""
Host status builder - second pipeline stage.

For each connected host:
- agent installed: Win32_Product entry named exactly like the agent
- reboot pending: OR of four independent checks

    a. PendingFileRenameOperations registry value is non-empty
    b. CCM_ClientUtilities.DetermineIfRebootPending().RebootPending
    c. CCM_ClientUtilities.DetermineIfRebootPending().IsHardRebootPending
    d. any CCM_SoftwareUpdate waiting on a reboot (EvaluationState 8, 9, 10)

A failed query is "no evidence" for that one check, never a positive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ccmstatus.domain.config import DEFAULT_AGENT_PRODUCT_NAME
from ccmstatus.domain.models import Credential, HostSession, HostStatus, REBOOT_BLOCKING_STATES
from ccmstatus.infrastructure.remoting import CimClient, NS_CIMV2, NS_CLIENT_SDK, QueryResult
from ccmstatus.infrastructure.remoting.cim import wql_string

from .session_factory import SessionFactory

logger = logging.getLogger(__name__)

HKEY_LOCAL_MACHINE = 0x80000002
SESSION_MANAGER_KEY = "SYSTEM\\CurrentControlSet\\Control\\Session Manager"
PENDING_RENAME_VALUE = "PendingFileRenameOperations"

CHECK_FILE_RENAME = "pending_file_rename"
CHECK_CLIENT_REBOOT = "client_reboot_pending"
CHECK_CLIENT_HARD_REBOOT = "client_hard_reboot_pending"
CHECK_UPDATE_EVALUATION = "update_evaluation_state"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one reboot check. A failed check has ``error`` set and is never pending."""

    name: str
    pending: bool = False
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, name: str, error: str) -> CheckResult:
        return cls(name=name, pending=False, error=error)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


class HostStatusBuilder:
    """
    Builds HostStatus records from sessions.

    Can bootstrap the session stage itself when given a SessionFactory.
    """

    def __init__(
        self,
        cim: CimClient,
        session_factory: SessionFactory | None = None,
        agent_product_name: str = DEFAULT_AGENT_PRODUCT_NAME,
    ) -> None:
        self.cim = cim
        self.session_factory = session_factory
        self.agent_product_name = agent_product_name

    def build_status(self, sessions: Sequence[HostSession]) -> list[HostStatus]:
        """
        Evaluate agent and reboot state for every connected session.

        Unconnected sessions come back as HostStatus with no status fields.
        """
        return [self.evaluate(session) for session in sessions]

    def build_status_for_hosts(
        self,
        host_names: Sequence[str],
        credential: Credential | None = None,
    ) -> list[HostStatus]:
        """Create sessions for raw host names, then evaluate them."""
        if self.session_factory is None:
            raise RuntimeError("HostStatusBuilder has no session factory")
        sessions = self.session_factory.create_sessions(host_names, credential)
        return self.build_status(sessions)

    def evaluate(self, session: HostSession) -> HostStatus:
        """Evaluate a single host."""
        if not session.connected:
            return session.extend(HostStatus)

        handle = session.session
        agent_installed = self.is_agent_installed(handle)

        checks = self.reboot_checks(handle)
        reboot_pending = False
        for check in checks:
            if check.error:
                logger.debug("%s: %s check failed: %s", session.host_name, check.name, check.error)
            if check.pending:
                logger.debug("%s: reboot pending per %s", session.host_name, check.name)
                reboot_pending = True

        logger.info(
            "%s: agent_installed=%s reboot_pending=%s",
            session.host_name, agent_installed, reboot_pending
        )
        return session.extend(HostStatus, agent_installed=agent_installed, reboot_pending=reboot_pending)

    def is_agent_installed(self, handle: Any) -> bool:
        """True if the product inventory lists the agent by exact name."""
        result = self.cim.list_instances(
            handle, NS_CIMV2, "Win32_Product",
            filter=f"Name = {wql_string(self.agent_product_name)}"
        )
        if not result.success:
            logger.debug("Product inventory query failed: %s", result.error)
            return False
        return any(record.get("Name") == self.agent_product_name for record in result.records)

    def reboot_checks(self, handle: Any) -> list[CheckResult]:
        """Run all four reboot checks. None of them can abort the others."""
        checks = [self.check_pending_file_rename(handle)]
        checks.extend(self.check_client_reboot(handle))
        checks.append(self.check_update_evaluation(handle))
        return checks

    def check_pending_file_rename(self, handle: Any) -> CheckResult:
        result = self.cim.invoke_method(
            handle, NS_CIMV2, "StdRegProv", "GetMultiStringValue",
            {
                "hDefKey": HKEY_LOCAL_MACHINE,
                "sSubKeyName": SESSION_MANAGER_KEY,
                "sValueName": PENDING_RENAME_VALUE,
            },
        )
        if not result.success:
            return CheckResult.failed(CHECK_FILE_RENAME, result.error)

        values = result.first.get("sValue") or []
        if isinstance(values, str):
            values = [values]
        return CheckResult(CHECK_FILE_RENAME, pending=len(values) > 0)

    def check_client_reboot(self, handle: Any) -> list[CheckResult]:
        """Soft and hard reboot flags from the agent's client utilities."""
        result: QueryResult = self.cim.invoke_method(
            handle, NS_CLIENT_SDK, "CCM_ClientUtilities", "DetermineIfRebootPending"
        )
        if not result.success:
            return [
                CheckResult.failed(CHECK_CLIENT_REBOOT, result.error),
                CheckResult.failed(CHECK_CLIENT_HARD_REBOOT, result.error),
            ]

        record = result.first
        return [
            CheckResult(CHECK_CLIENT_REBOOT, pending=_as_bool(record.get("RebootPending"))),
            CheckResult(CHECK_CLIENT_HARD_REBOOT, pending=_as_bool(record.get("IsHardRebootPending"))),
        ]

    def check_update_evaluation(self, handle: Any) -> CheckResult:
        states = sorted(int(state) for state in REBOOT_BLOCKING_STATES)
        result = self.cim.list_instances(
            handle, NS_CLIENT_SDK, "CCM_SoftwareUpdate",
            filter=" OR ".join(f"EvaluationState = {state}" for state in states)
        )
        if not result.success:
            return CheckResult.failed(CHECK_UPDATE_EVALUATION, result.error)

        pending = any(
            record.get("EvaluationState") in REBOOT_BLOCKING_STATES
            for record in result.records
        )
        return CheckResult(CHECK_UPDATE_EVALUATION, pending=pending)
