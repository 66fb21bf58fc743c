"""
Process-wide WinRM transport tuning.

The WS-Management envelope size is raised once per process before any
session is opened. Applying the same size again is a no-op.
"""

import logging

from winrm.protocol import Protocol

from ccmstatus.domain.config import DEFAULT_MAX_ENVELOPE_SIZE_KB

logger = logging.getLogger(__name__)


def configure_transport(max_envelope_size_kb: int = DEFAULT_MAX_ENVELOPE_SIZE_KB) -> bool:
    """
    Raise the maximum envelope size for every WinRM protocol created afterwards.

    Args:
        max_envelope_size_kb: Envelope size limit in kilobytes

    Returns:
        True if the limit changed, False if it was already applied
    """
    size = max_envelope_size_kb * 1024
    if Protocol.DEFAULT_MAX_ENV_SIZE == size:
        return False

    logger.debug(
        "Raising WinRM max envelope size from %d to %d bytes",
        Protocol.DEFAULT_MAX_ENV_SIZE, size
    )
    Protocol.DEFAULT_MAX_ENV_SIZE = size
    return True
