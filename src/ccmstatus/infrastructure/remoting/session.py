"""
Remote session handles.

A session runs PowerShell on one host. Remote hosts go through pywinrm;
the local host runs powershell.exe directly and needs no credential.
"""

from __future__ import annotations

import base64
import logging
import subprocess

import winrm

from .results import PSResult

logger = logging.getLogger(__name__)


class WinRMSession:
    """PowerShell over WinRM to a single remote host."""

    def __init__(self, target: str, session: winrm.Session, transport: str = "") -> None:
        self.target = target
        self.transport = transport
        self._session: winrm.Session | None = session

    @property
    def closed(self) -> bool:
        return self._session is None

    def run_ps(self, script: str) -> PSResult:
        """
        Execute PowerShell script on the remote host.

        Args:
            script: PowerShell script content

        Returns:
            PSResult with decoded output and status
        """
        if self._session is None:
            return PSResult(success=False, error=f"Session to {self.target} is closed")

        try:
            result = self._session.run_ps(script)
        except Exception as e:  # pylint: disable=broad-except
            logger.debug("WinRM call to %s failed: %s - %s", self.target, type(e).__name__, e)
            return PSResult(success=False, error=f"{type(e).__name__}: {e}")

        return PSResult(
            success=result.status_code == 0,
            stdout=result.std_out.decode("utf-8", errors="replace"),
            stderr=result.std_err.decode("utf-8", errors="replace"),
            return_code=result.status_code,
        )

    def close(self) -> None:
        """Drop the underlying session."""
        self._session = None

    def __repr__(self) -> str:
        return f"WinRMSession(target={self.target!r}, transport={self.transport!r})"


class LocalSession:
    """PowerShell on the machine running ccmstatus."""

    def __init__(self, target: str, timeout_sec: int = 60) -> None:
        self.target = target
        self.timeout_sec = timeout_sec
        self._open = True

    @property
    def closed(self) -> bool:
        return not self._open

    def run_ps(self, script: str) -> PSResult:
        """
        Execute PowerShell script locally.

        The script is passed as -EncodedCommand so quoting never leaks.
        """
        if not self._open:
            return PSResult(success=False, error="Local session is closed")

        encoded = base64.b64encode(script.encode("utf-16-le")).decode("ascii")
        cmd = [
            "powershell.exe",
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy",
            "Bypass",
            "-EncodedCommand",
            encoded,
        ]

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout_sec,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return PSResult(success=False, error=f"Script timed out after {self.timeout_sec}s")
        except OSError as e:
            return PSResult(success=False, error=f"Cannot start PowerShell: {e}")

        return PSResult(
            success=result.returncode == 0,
            stdout=result.stdout,
            stderr=result.stderr,
            return_code=result.returncode,
        )

    def close(self) -> None:
        self._open = False

    def __repr__(self) -> str:
        return f"LocalSession(target={self.target!r})"
