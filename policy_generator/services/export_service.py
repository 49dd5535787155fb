# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""
Serialization of policies to JSON, YAML and Markdown, and delivery of the
resulting bytes through an injected sink.

Nothing here touches a browser or clipboard directly: callers pass an
``ExportSink`` (``FileExportSink`` writes into a directory).
"""

import json
import logging
from pathlib import Path
from typing import Any, Protocol

import yaml

from ..converters import get_converter
from ..models import TagPolicy

logger = logging.getLogger(__name__)

FOOTER = "*Generated with [OptimNow Tagging Policy Generator](https://www.optimnow.io)*"

PROVIDER_TITLES = {
    "aws": "AWS",
    "gcp": "GCP",
    "azure": "Azure",
}

MONTHS = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

# Default file names per export kind
DEFAULT_FILENAMES = {
    "json": "tagging_policy.json",
    "markdown": "tagging_policy.md",
    "yaml": "tagging_policy.yaml",
    "aws": "aws_tag_policy.json",
    "gcp": "gcp_label_policy.json",
    "azure": "azure_policy_initiative.json",
}


class ExportSink(Protocol):
    """Destination for exported documents (file system, clipboard, download...)."""

    def deliver(self, filename: str, content: bytes, media_type: str) -> None:
        ...


class FileExportSink:
    """Write exported documents into a directory."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def deliver(self, filename: str, content: bytes, media_type: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / filename
        path.write_bytes(content)
        logger.info(f"Wrote {len(content)} bytes ({media_type}) to {path}")


# =============================================================================
# Serialization
# =============================================================================


def _dump_json(document: dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def policy_to_json(policy: TagPolicy) -> str:
    """Serialize the canonical policy as indented JSON."""
    return _dump_json(policy.to_json_dict())


def policy_to_yaml(policy: TagPolicy) -> str:
    """Serialize the canonical policy as block-style YAML, keeping field order."""
    return yaml.safe_dump(
        policy.to_json_dict(),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def format_date(policy: TagPolicy) -> str:
    """Format last_updated as e.g. 'March 5, 2025'."""
    stamp = policy.last_updated
    return f"{MONTHS[stamp.month - 1]} {stamp.day}, {stamp.year}"


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _code_list(values: list[str]) -> str:
    return ", ".join(f"`{v}`" for v in values)


def generate_markdown(policy: TagPolicy) -> str:
    """
    Render a human-readable Markdown summary of the policy.

    Sections: header (version, provider, date), naming rules table,
    required tags with their constraints, optional tags, footer.
    """
    rules = policy.tag_naming_rules
    lines = [
        "# Tagging Policy",
        "",
        f"**Version:** {policy.version}",
        f"**Cloud Provider:** {PROVIDER_TITLES[policy.cloud_provider.value]}",
        f"**Last Updated:** {format_date(policy)}",
        "",
        "## Tag Naming Rules",
        "",
        "| Rule | Value |",
        "|------|-------|",
        f"| Case Sensitive | {_yes_no(rules.case_sensitivity)} |",
        f"| Allow Special Characters | {_yes_no(rules.allow_special_characters)} |",
        f"| Max Key Length | {rules.max_key_length} |",
        f"| Max Value Length | {rules.max_value_length} |",
        "",
    ]

    if policy.required_tags:
        lines += ["## Required Tags", ""]
        for index, tag in enumerate(policy.required_tags, start=1):
            lines += [f"### {index}. {tag.name or 'Unnamed Tag'}", ""]
            if tag.description:
                lines += [tag.description, ""]

            lines += ["| Property | Value |", "|----------|-------|"]
            if tag.allowed_values:
                lines.append(f"| Allowed Values | {_code_list(tag.allowed_values)} |")
            else:
                lines.append("| Allowed Values | Any |")
            if tag.validation_regex:
                lines.append(f"| Validation Regex | `{tag.validation_regex}` |")
            if tag.applies_to:
                lines.append(f"| Applies To | {', '.join(tag.applies_to)} |")
            lines.append("")

    if policy.optional_tags:
        lines += ["## Optional Tags", ""]
        for index, tag in enumerate(policy.optional_tags, start=1):
            lines += [f"### {index}. {tag.name or 'Unnamed Tag'}", ""]
            if tag.description:
                lines += [tag.description, ""]
            if tag.allowed_values:
                lines += [
                    "| Property | Value |",
                    "|----------|-------|",
                    f"| Allowed Values | {_code_list(tag.allowed_values)} |",
                    "",
                ]

    lines += ["---", "", FOOTER]
    return "\n".join(lines)


# =============================================================================
# Delivery
# =============================================================================


def download_json(
    policy: TagPolicy, sink: ExportSink, filename: str = DEFAULT_FILENAMES["json"]
) -> str:
    """Deliver the canonical JSON. Returns the file name used."""
    sink.deliver(filename, policy_to_json(policy).encode("utf-8"), "application/json")
    return filename


def download_markdown(
    policy: TagPolicy, sink: ExportSink, filename: str = DEFAULT_FILENAMES["markdown"]
) -> str:
    sink.deliver(filename, generate_markdown(policy).encode("utf-8"), "text/markdown")
    return filename


def download_yaml(
    policy: TagPolicy, sink: ExportSink, filename: str = DEFAULT_FILENAMES["yaml"]
) -> str:
    sink.deliver(filename, policy_to_yaml(policy).encode("utf-8"), "application/yaml")
    return filename


def download_document(document: dict[str, Any], sink: ExportSink, filename: str) -> str:
    """Deliver an already-converted provider document. Returns the file name used."""
    sink.deliver(filename, _dump_json(document).encode("utf-8"), "application/json")
    return filename


def download_provider_policy(
    policy: TagPolicy, sink: ExportSink, filename: str | None = None
) -> list[str]:
    """
    Deliver the policy in its provider's native format.

    Args:
        policy: Policy to export; its cloud_provider selects the converter
        sink: Where to deliver the bytes
        filename: Override for the default provider file name

    Returns:
        The lossy-export warnings, for the caller to surface
    """
    converter = get_converter(policy.cloud_provider)
    document = converter.export_policy(policy)
    download_document(document, sink, filename or DEFAULT_FILENAMES[converter.provider.value])
    return converter.export_warnings(policy)
