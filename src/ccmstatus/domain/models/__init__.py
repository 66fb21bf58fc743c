"""
Domain models package.

Progressively extended records: HostSession -> HostStatus -> PatchStatusRecord.
"""

from .credential import Credential
from .enums import ComplianceState, EvaluationState, SessionProtocol, REBOOT_BLOCKING_STATES
from .host_session import HostSession, UNRESOLVED
from .host_status import HostStatus
from .patch_status import AssignedItem, DeploymentAssignment, MissingUpdate, PatchStatusRecord

__all__ = [
    "AssignedItem",
    "ComplianceState",
    "Credential",
    "DeploymentAssignment",
    "EvaluationState",
    "HostSession",
    "HostStatus",
    "MissingUpdate",
    "PatchStatusRecord",
    "REBOOT_BLOCKING_STATES",
    "SessionProtocol",
    "UNRESOLVED",
]
