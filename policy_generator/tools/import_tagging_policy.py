# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""MCP tool for importing provider-native tag policies into MCP format."""

import logging
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from ..converters import PolicyImportError, get_converter
from ..models import TagPolicy
from ..services.policy_validator import validate_policy

logger = logging.getLogger(__name__)


class PolicySummary(BaseModel):
    """Summary of the converted policy."""

    required_tags_count: int = Field(0, description="Number of required tags")
    optional_tags_count: int = Field(0, description="Number of optional tags")
    enforced_services: list[str] = Field(
        default_factory=list, description="Services with enforced tags"
    )


class ImportTaggingPolicyResult(BaseModel):
    """Result from the import_tagging_policy tool."""

    status: str = Field(..., description="Status: 'success' or 'error'")
    cloud_provider: str | None = Field(None, description="Provider the document came from")
    policy: dict | None = Field(
        None, description="Converted policy in MCP format (when status is success)"
    )
    summary: PolicySummary | None = Field(
        None, description="Quick summary of the converted policy"
    )
    validation_errors: list[str] = Field(
        default_factory=list,
        description="Validation findings on the converted policy (import still succeeds)",
    )
    message: str = Field("", description="Human-readable status message")
    conversion_timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the conversion was performed",
    )


def _service_of(resource_type: str) -> str:
    """'ec2:instance' -> 'ec2', 'Microsoft.Compute/virtualMachines' -> 'Microsoft.Compute'."""
    if ":" in resource_type:
        return resource_type.split(":")[0]
    return resource_type.split("/")[0]


def summarize_policy(policy: TagPolicy) -> PolicySummary:
    enforced_services = {
        _service_of(resource) for tag in policy.required_tags for resource in tag.applies_to
    }
    return PolicySummary(
        required_tags_count=len(policy.required_tags),
        optional_tags_count=len(policy.optional_tags),
        enforced_services=sorted(enforced_services),
    )


async def import_tagging_policy(provider: str, policy_json: str) -> ImportTaggingPolicyResult:
    """
    Convert an AWS, GCP or Azure tag policy document to MCP format.

    Args:
        provider: Source format: "aws", "gcp" or "azure"
        policy_json: The provider-native policy document as JSON text

    Returns:
        ImportTaggingPolicyResult containing:
        - status: "success" or "error"
        - policy: The converted canonical policy (on success)
        - summary: Tag counts and enforced services
        - validation_errors: Findings the user should fix before exporting
        - message: Human-readable description

    Example:
        >>> result = await import_tagging_policy("aws", aws_json)
        >>> print(f"Imported {result.summary.required_tags_count} required tags")
    """
    logger.info(f"Import tagging policy: provider={provider}")

    try:
        converter = get_converter(provider)
        policy = converter.import_policy(policy_json)
    except PolicyImportError as e:
        logger.warning(f"Failed to import {provider} policy: {e}")
        return ImportTaggingPolicyResult(status="error", message=str(e))
    except ValueError as e:
        # Unknown provider
        return ImportTaggingPolicyResult(status="error", message=str(e))

    summary = summarize_policy(policy)
    validation_errors = validate_policy(policy)

    message = (
        f"Successfully imported {converter.display_name}. "
        f"Found {summary.required_tags_count} required tags and "
        f"{summary.optional_tags_count} optional tags."
    )
    if validation_errors:
        message += f" {len(validation_errors)} validation issue(s) need attention."

    return ImportTaggingPolicyResult(
        status="success",
        cloud_provider=policy.cloud_provider.value,
        policy=policy.to_json_dict(),
        summary=summary,
        validation_errors=validation_errors,
        message=message,
    )
