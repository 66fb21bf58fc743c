"""
CIM query client.

Runs Get-CimInstance / Invoke-CimMethod through a session and parses the
JSON the script emits. Every call is read-only and returns a QueryResult;
transport and parse failures become failed results.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Protocol

from .results import PSResult, QueryResult

logger = logging.getLogger(__name__)

NS_CIMV2 = "root\\cimv2"
NS_CLIENT_SDK = "root\\ccm\\ClientSDK"
NS_MACHINE_POLICY = "root\\ccm\\Policy\\Machine\\ActualConfig"

_UINT32_MAX = 0xFFFFFFFF

# Cim* members are CIM plumbing; PSComputerName is added by the remoting layer
_EXCLUDED_PROPERTIES = "CimClass, CimInstanceProperties, CimSystemProperties, PSComputerName"


class PowerShellSession(Protocol):
    """Anything that can run a PowerShell script."""

    def run_ps(self, script: str) -> PSResult:
        ...


def ps_quote(value: str) -> str:
    """Quote a value as a PowerShell single-quoted string."""
    return "'" + value.replace("'", "''") + "'"


def wql_string(value: str) -> str:
    """Quote a value as a WQL string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def ps_literal(value: Any) -> str:
    """
    Render a Python value as a PowerShell literal for method arguments.

    Non-negative ints that fit are cast to [uint32], which is what the
    registry and client-utility methods expect.
    """
    if isinstance(value, bool):
        return "$true" if value else "$false"
    if isinstance(value, int):
        if 0 <= value <= _UINT32_MAX:
            return f"[uint32]{value}"
        return str(value)
    if value is None:
        return "$null"
    return ps_quote(str(value))


def parse_json_output(output: str) -> list[dict[str, Any]]:
    """
    Parse JSON emitted by ConvertTo-Json.

    Text around the JSON payload (banners, warnings) is ignored.

    Raises:
        ValueError: If no JSON payload is found or it is not an object/array
    """
    output = output.strip()
    if not output:
        return []

    try:
        data = json.loads(output)
    except json.JSONDecodeError:
        data = _extract_json(output)
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]
    raise ValueError(f"unexpected JSON type {type(data).__name__}")


def _extract_json(output: str) -> Any:
    """Find the JSON payload in output that has other text around it."""
    starts = [i for i in (output.find("["), output.find("{")) if i >= 0]
    if not starts:
        raise ValueError("no JSON found in output")
    start = min(starts)
    end = output.rfind("]" if output[start] == "[" else "}") + 1
    if end <= start:
        raise ValueError("unterminated JSON in output")
    try:
        return json.loads(output[start:end])
    except json.JSONDecodeError as e:
        raise ValueError(str(e)) from e


class CimClient:
    """
    Read-only CIM access over a PowerShell session.

    The session is any object with ``run_ps``; sessions are not owned here.
    """

    def __init__(self, json_depth: int = 4) -> None:
        self.json_depth = json_depth

    def list_instances(
        self,
        session: PowerShellSession,
        namespace: str,
        class_name: str,
        filter: str | None = None,  # pylint: disable=redefined-builtin
    ) -> QueryResult:
        """
        List instances of a CIM class.

        Args:
            session: Session to run the query through
            namespace: CIM namespace, e.g. root\\ccm\\ClientSDK
            class_name: CIM class name
            filter: Optional WQL filter (the WHERE clause body)

        Returns:
            QueryResult with one dict per instance
        """
        filter_part = f" -Filter {ps_quote(filter)}" if filter else ""
        script = (
            "$ErrorActionPreference = 'Stop'\n"
            f"$items = @(Get-CimInstance -Namespace {ps_quote(namespace)} "
            f"-ClassName {ps_quote(class_name)}{filter_part} | "
            f"Select-Object -Property * -ExcludeProperty {_EXCLUDED_PROPERTIES})\n"
            f"ConvertTo-Json -InputObject $items -Depth {self.json_depth} -Compress"
        )
        return self._run(session, script, f"{namespace}:{class_name}")

    def invoke_method(
        self,
        session: PowerShellSession,
        namespace: str,
        class_name: str,
        method_name: str,
        arguments: Mapping[str, Any] | None = None,
    ) -> QueryResult:
        """
        Invoke a static CIM method.

        Args:
            session: Session to run the call through
            namespace: CIM namespace
            class_name: CIM class name
            method_name: Method to invoke
            arguments: Method in-parameters

        Returns:
            QueryResult with a single dict of out-parameters and ReturnValue
        """
        lines = ["$ErrorActionPreference = 'Stop'", "$arguments = @{}"]
        for name, value in (arguments or {}).items():
            lines.append(f"$arguments[{ps_quote(name)}] = {ps_literal(value)}")
        lines.append(
            f"$result = Invoke-CimMethod -Namespace {ps_quote(namespace)} "
            f"-ClassName {ps_quote(class_name)} -MethodName {ps_quote(method_name)} "
            "-Arguments $arguments | "
            f"Select-Object -Property * -ExcludeProperty {_EXCLUDED_PROPERTIES}"
        )
        lines.append(f"ConvertTo-Json -InputObject $result -Depth {self.json_depth} -Compress")
        return self._run(session, "\n".join(lines), f"{namespace}:{class_name}.{method_name}")

    def _run(self, session: PowerShellSession, script: str, label: str) -> QueryResult:
        """Run a query script and parse its JSON output."""
        try:
            result = session.run_ps(script)
        except Exception as e:  # pylint: disable=broad-except
            logger.debug("%s raised %s: %s", label, type(e).__name__, e)
            return QueryResult.failed(f"{type(e).__name__}: {e}")

        if not result.success:
            error = result.error or result.stderr.strip() or f"exit code {result.return_code}"
            logger.debug("%s failed: %s", label, error[:300])
            return QueryResult.failed(error)

        try:
            records = parse_json_output(result.stdout)
        except ValueError as e:
            logger.warning("Failed to parse JSON from %s: %s", label, e)
            return QueryResult.failed(f"JSON parse error: {e}")

        logger.debug("%s returned %d record(s)", label, len(records))
        return QueryResult.ok(records)
