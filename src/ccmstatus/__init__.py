"""
ccmstatus - Agent, reboot and patch status for Windows endpoints.

Opens one remote management session per host and reshapes a short, fixed
sequence of read-only CIM queries into flat status records.

Usage:
    # CLI (recommended)
    ccmstatus patches server01 server02 --username CORP\\admin

    # Programmatic
    from ccmstatus.application.container import Container

    container = Container()
    records = container.patch_status_aggregator.build_patch_status_for_hosts(["server01"])
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
