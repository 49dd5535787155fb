# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""MCP tool for exporting a canonical policy to a provider or document format."""

import logging
from typing import Any

from pydantic import BaseModel, Field

from ..converters import get_converter
from ..models import CloudProvider, TagPolicy
from ..services import export_service
from ..services.export_service import FileExportSink
from ._policy_input import InvalidPolicyInputError, parse_policy_input

logger = logging.getLogger(__name__)

DOCUMENT_TARGETS = ("canonical", "markdown", "yaml")
EXPORT_TARGETS = tuple(p.value for p in CloudProvider) + DOCUMENT_TARGETS


class ExportTaggingPolicyResult(BaseModel):
    """Result from the export_tagging_policy tool."""

    status: str = Field(..., description="Status: 'success' or 'error'")
    target: str = Field(..., description="Requested export target")
    document: dict | None = Field(
        None, description="Exported JSON document (provider and canonical targets)"
    )
    content: str | None = Field(
        None, description="Exported text (markdown and yaml targets)"
    )
    warnings: list[str] = Field(
        default_factory=list, description="Features that won't survive the export"
    )
    saved_to: str | None = Field(None, description="File written (when output_dir is set)")
    message: str = Field("", description="Human-readable status message")


def _export(
    policy: TagPolicy, target: str, sink: FileExportSink | None
) -> tuple[dict[str, Any] | None, str | None, list[str], str | None]:
    if target == "canonical":
        policy.touch()
        filename = export_service.download_json(policy, sink) if sink else None
        return policy.to_json_dict(), None, [], filename
    if target == "markdown":
        policy.touch()
        filename = export_service.download_markdown(policy, sink) if sink else None
        return None, export_service.generate_markdown(policy), [], filename
    if target == "yaml":
        policy.touch()
        filename = export_service.download_yaml(policy, sink) if sink else None
        return None, export_service.policy_to_yaml(policy), [], filename

    converter = get_converter(target)
    policy.touch()
    document = converter.export_policy(policy)
    filename = None
    if sink:
        filename = export_service.download_document(
            document, sink, export_service.DEFAULT_FILENAMES[converter.provider.value]
        )
    return document, None, converter.export_warnings(policy), filename


async def export_tagging_policy(
    policy: TagPolicy | dict[str, Any] | str,
    target: str,
    output_dir: str | None = None,
) -> ExportTaggingPolicyResult:
    """
    Export a canonical policy.

    Provider targets ("aws", "gcp", "azure") must match the policy's
    cloud_provider; their lossy-feature warnings are returned alongside
    the document. Document targets ("canonical", "markdown", "yaml") work
    for any provider. ``last_updated`` is stamped with the export time.

    Args:
        policy: Canonical policy as a TagPolicy, JSON object or JSON text
        target: One of aws, gcp, azure, canonical, markdown, yaml
        output_dir: When set, the export is also written into this directory

    Returns:
        ExportTaggingPolicyResult with the document or text content
    """
    target = target.strip().lower()
    logger.info(f"Export tagging policy: target={target}")

    if target not in EXPORT_TARGETS:
        return ExportTaggingPolicyResult(
            status="error",
            target=target,
            message=f"Unknown export target '{target}'. Expected one of: {', '.join(EXPORT_TARGETS)}",
        )

    try:
        parsed = parse_policy_input(policy)
    except InvalidPolicyInputError as e:
        return ExportTaggingPolicyResult(status="error", target=target, message=str(e))

    if target not in DOCUMENT_TARGETS and target != parsed.cloud_provider.value:
        return ExportTaggingPolicyResult(
            status="error",
            target=target,
            message=(
                f"Policy targets {parsed.cloud_provider.value}; it cannot be exported as a "
                f"{target} policy. Switch the policy's cloud_provider first."
            ),
        )

    sink = FileExportSink(output_dir) if output_dir else None
    try:
        document, content, warnings, filename = _export(parsed, target, sink)
    except OSError as e:
        logger.error(f"Failed to write {target} export to {output_dir}: {e}")
        return ExportTaggingPolicyResult(
            status="error", target=target, message=f"Failed to write export: {e}"
        )

    saved_to = str(sink.directory / filename) if sink and filename else None
    message = f"Exported policy as {target}."
    if warnings:
        message += f" {len(warnings)} warning(s): review before deploying."
    if saved_to:
        message += f" Saved to {saved_to}."

    return ExportTaggingPolicyResult(
        status="success",
        target=target,
        document=document,
        content=content,
        warnings=warnings,
        saved_to=saved_to,
        message=message,
    )
