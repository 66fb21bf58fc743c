# pylint: disable=missing-module-docstring
from enum import Enum, IntEnum


class SessionProtocol(Enum):
    """Remoting protocol hint used when opening a session."""

    # Plain HTTP listener with NTLM; works against older targets and workgroup hosts.
    LEGACY = "legacy"
    SECURE = "secure"


class ComplianceState(IntEnum):
    """CCM_SoftwareUpdate.ComplianceState values."""

    MISSING = 0
    INSTALLED = 1
    UNKNOWN = 2


class EvaluationState(IntEnum):
    """Subset of CCM_SoftwareUpdate.EvaluationState (ciJobState) codes."""

    NONE = 0
    AVAILABLE = 1
    SUBMITTED = 2
    DETECTING = 3
    PRE_DOWNLOAD = 4
    DOWNLOADING = 5
    WAIT_INSTALL = 6
    INSTALLING = 7
    PENDING_SOFT_REBOOT = 8
    PENDING_HARD_REBOOT = 9
    WAIT_REBOOT = 10
    VERIFYING = 11
    INSTALL_COMPLETE = 12
    ERROR = 13


REBOOT_BLOCKING_STATES = frozenset({
    EvaluationState.PENDING_SOFT_REBOOT,
    EvaluationState.PENDING_HARD_REBOOT,
    EvaluationState.WAIT_REBOOT,
})
