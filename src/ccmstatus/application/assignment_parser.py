"""
Assigned item parser.

Deployment assignments embed each targeted update as an XML fragment:

    <CI>
      <ID>Site_.../SUM_...</ID>
      <ModelName>Site_.../SUM_...</ModelName>
      <Version>200</Version>
      <ConfigurationItemVersion>...</ConfigurationItemVersion>
      <ApplicabilityCondition>Required</ApplicabilityCondition>
      <EnforcementEnabled>true</EnforcementEnabled>
      <DisplayName>2024-01 Cumulative Update ... (KB5034122)</DisplayName>
      <UpdateClassification>...</UpdateClassification>
    </CI>
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Optional
from xml.etree import ElementTree as ET

from ccmstatus.domain.models import AssignedItem, DeploymentAssignment

logger = logging.getLogger(__name__)

KB_ARTICLE_RE = re.compile(r"KB\d+")

_FIELDS = {
    "id": "ID",
    "model_name": "ModelName",
    "version": "Version",
    "configuration_item_version": "ConfigurationItemVersion",
    "applicability_condition": "ApplicabilityCondition",
    "display_name": "DisplayName",
    "update_classification": "UpdateClassification",
}


def extract_article(display_name: str) -> str:
    """``KB`` followed by digits from a display name, or an empty string."""
    match = KB_ARTICLE_RE.search(display_name or "")
    return match.group(0) if match else ""


def _parse_bool(text: Optional[str]) -> Optional[bool]:
    if text is None:
        return None
    text = text.strip().lower()
    if text in ("true", "1"):
        return True
    if text in ("false", "0"):
        return False
    return None


def parse_assigned_item(xml_text: Any) -> Optional[AssignedItem]:
    """
    Parse one assigned item.

    Returns:
        AssignedItem, or None for empty or malformed input
    """
    if not isinstance(xml_text, str) or not xml_text.strip():
        return None

    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        logger.debug("Skipping malformed assigned item: %s", e)
        return None

    ci = root if root.tag == "CI" else root.find(".//CI")
    if ci is None:
        ci = root

    values = {field: (ci.findtext(tag) or "").strip() for field, tag in _FIELDS.items()}
    return AssignedItem(
        article=extract_article(values["display_name"]),
        enforcement_enabled=_parse_bool(ci.findtext("EnforcementEnabled")),
        **values,
    )


def parse_assigned_items(xml_items: Any) -> list[AssignedItem]:
    """Parse every item, skipping the ones that fail."""
    if xml_items is None:
        return []
    if isinstance(xml_items, str):
        xml_items = [xml_items]

    items = []
    for xml_text in xml_items:
        item = parse_assigned_item(xml_text)
        if item is not None:
            items.append(item)
    return items


def parse_deployments(records: Iterable[dict[str, Any]]) -> list[DeploymentAssignment]:
    """
    Build deployments from CCM_UpdateCIAssignment records, sorted by name.
    """
    deployments = [
        DeploymentAssignment(
            assignment_name=str(record.get("AssignmentName") or ""),
            items=parse_assigned_items(record.get("AssignedCIs")),
        )
        for record in records
    ]
    return sorted(deployments, key=lambda d: d.assignment_name)
