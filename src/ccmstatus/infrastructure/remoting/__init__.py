"""
Remoting infrastructure.

pywinrm sessions, the CIM query client and process-wide transport tuning.
"""

from .cim import CimClient, NS_CIMV2, NS_CLIENT_SDK, NS_MACHINE_POLICY
from .client import WinRMTransport
from .results import PSResult, QueryResult
from .session import LocalSession, WinRMSession
from .transport import configure_transport

__all__ = [
    "CimClient",
    "LocalSession",
    "NS_CIMV2",
    "NS_CLIENT_SDK",
    "NS_MACHINE_POLICY",
    "PSResult",
    "QueryResult",
    "WinRMSession",
    "WinRMTransport",
    "configure_transport",
]
