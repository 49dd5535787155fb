# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Conversion between AWS Organizations tag policies and the MCP policy format."""

import json
import logging
from types import MappingProxyType
from typing import Any

from ..models import CloudProvider, OptionalTag, RequiredTag, TagPolicy, default_naming_rules
from .errors import InvalidPolicyJsonError, PolicyFormatError

logger = logging.getLogger(__name__)

# AWS declarative policy envelope key
ASSIGN = "@@assign"

# Resource types a promoted optional tag is scoped to when none are given
DEFAULT_APPLIES_TO: tuple[str, ...] = ("ec2:instance", "s3:bucket", "lambda:function")

# Service-to-resource-type mappings for ALL_SUPPORTED expansion
SERVICE_RESOURCE_MAPPINGS = MappingProxyType(
    {
        # Compute
        "ec2": ("ec2:instance", "ec2:volume", "ec2:snapshot", "ec2:natgateway"),
        "lambda": ("lambda:function",),
        "ecs": ("ecs:service", "ecs:task-definition"),
        "eks": ("eks:cluster", "eks:nodegroup"),
        # Storage
        "s3": ("s3:bucket",),
        "elasticfilesystem": ("elasticfilesystem:file-system",),
        "efs": ("elasticfilesystem:file-system",),
        "fsx": ("fsx:file-system",),
        # Database
        "rds": ("rds:db", "rds:cluster"),
        "dynamodb": ("dynamodb:table",),
        "elasticache": ("elasticache:cluster",),
        "redshift": ("redshift:cluster",),
        "es": ("opensearch:domain",),
        "opensearch": ("opensearch:domain",),
        # AI/ML
        "sagemaker": ("sagemaker:endpoint", "sagemaker:notebook-instance"),
        "bedrock": ("bedrock:provisioned-model-throughput",),
        # Networking
        "elasticloadbalancing": ("elasticloadbalancing:loadbalancer",),
        # Analytics & Streaming
        "kinesis": ("kinesis:stream",),
        "glue": ("glue:job",),
    }
)

# Services whose ALL_SUPPORTED entry has "Enforcement Mode: Yes".
# elasticloadbalancing supports reporting only.
SERVICES_WITH_ENFORCEMENT_SUPPORT = frozenset(
    {
        "ec2",
        "s3",
        "lambda",
        "dynamodb",
        "elasticache",
        "redshift",
        "rds",
        "eks",
        "ecs",
        "acm",
        "appmesh",
        "backup",
        "backup-gateway",
        "batch",
        "auditmanager",
        "elasticfilesystem",
    }
)

# Spellings AWS expects in report_required_tag_for; anything else passes through
REPORT_RESOURCE_TYPE_CORRECTIONS = MappingProxyType(
    {
        "rds:db-instance": "rds:db",
        "efs:file-system": "elasticfilesystem:file-system",
        "ecs:task": "ecs:task-definition",
        "es:domain": "opensearch:domain",
    }
)


def convert_aws_policy_to_mcp(aws_policy_json: str) -> TagPolicy:
    """
    Convert an AWS Organizations tag policy document to MCP format.

    A tag is required when its ``enforced_for`` list is non-empty, otherwise
    optional. ``service:ALL_SUPPORTED`` (or ``service:*``) entries expand to
    the known resource types for that service. Naming rules are always the
    AWS defaults; limits in the source document are not read.

    Args:
        aws_policy_json: Raw AWS tag policy JSON text

    Returns:
        TagPolicy with cloud_provider set to aws

    Raises:
        InvalidPolicyJsonError: If the text is not valid JSON
        PolicyFormatError: If there is no ``tags`` object
    """
    try:
        aws_policy = json.loads(aws_policy_json)
    except (json.JSONDecodeError, TypeError) as e:
        raise InvalidPolicyJsonError(
            "Invalid JSON format. Please paste a valid AWS Organizations tag policy."
        ) from e

    if not isinstance(aws_policy, dict) or not isinstance(aws_policy.get("tags"), dict):
        raise PolicyFormatError(
            "Invalid AWS tag policy format. Expected a 'tags' object at the root level."
        )

    required_tags: list[RequiredTag] = []
    optional_tags: list[OptionalTag] = []

    for policy_key, tag_config in aws_policy["tags"].items():
        if not isinstance(tag_config, dict):
            raise PolicyFormatError(
                f"Invalid AWS tag policy format. Entry '{policy_key}' must be an object."
            )

        name = _unwrap(tag_config.get("tag_key"))
        if not isinstance(name, str) or not name:
            name = policy_key
        allowed_values = _extract_tag_values(tag_config.get("tag_value"))
        enforced_for = _unwrap(tag_config.get("enforced_for")) or []
        description = f"Converted from AWS Organizations tag policy - {policy_key}"

        # Tags with enforced_for are required; others are optional
        if enforced_for:
            required_tags.append(
                RequiredTag(
                    name=name,
                    description=description,
                    allowed_values=allowed_values,
                    validation_regex=None,
                    applies_to=_parse_enforced_for(enforced_for),
                )
            )
        else:
            optional_tags.append(
                OptionalTag(name=name, description=description, allowed_values=allowed_values)
            )

    logger.info(
        f"Imported AWS tag policy: {len(required_tags)} required, "
        f"{len(optional_tags)} optional tags"
    )

    return TagPolicy(
        version="1.0",
        cloud_provider=CloudProvider.AWS,
        required_tags=required_tags,
        optional_tags=optional_tags,
        tag_naming_rules=default_naming_rules(CloudProvider.AWS),
    )


def _unwrap(config: Any) -> Any:
    """Return the value inside an ``@@assign`` envelope (bare values pass through)."""
    if isinstance(config, dict):
        return config.get(ASSIGN)
    return config


def _extract_tag_values(tag_value_config: Any) -> list[str] | None:
    """Extract allowed values from AWS policy format.

    Returns:
        List of allowed values, or None if unrestricted
    """
    values = _unwrap(tag_value_config)
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, list):
        return None

    clean_values = [val for val in values if isinstance(val, str)]
    return clean_values or None


def _parse_enforced_for(enforced_for: Any) -> list[str]:
    """Convert AWS enforced_for entries to our applies_to format.

    AWS format: ["ec2:ALL_SUPPORTED", "s3:bucket"]
    Our format: ["ec2:instance", "ec2:volume", "ec2:snapshot", "ec2:natgateway", "s3:bucket"]
    """
    if isinstance(enforced_for, str):
        enforced_for = [enforced_for]

    applies_to: list[str] = []
    for resource in enforced_for:
        if not isinstance(resource, str):
            continue

        if ":ALL_SUPPORTED" in resource or resource.endswith(":*"):
            service = resource.split(":")[0]
            applies_to.extend(SERVICE_RESOURCE_MAPPINGS.get(service, (f"{service}:resource",)))
        else:
            applies_to.append(resource)

    return list(dict.fromkeys(applies_to))


def _to_enforced_for(resource_types: list[str]) -> list[str]:
    """Collapse resource types to ``service:ALL_SUPPORTED`` for enforcing services.

    Example: ['ec2:instance', 'rds:db', 'sagemaker:endpoint']
          -> ['ec2:ALL_SUPPORTED', 'rds:ALL_SUPPORTED']
    """
    services: dict[str, None] = {}
    for resource in resource_types:
        service, sep, _ = resource.partition(":")
        if sep and service in SERVICES_WITH_ENFORCEMENT_SUPPORT:
            services[service] = None
    return [f"{service}:ALL_SUPPORTED" for service in services]


def _to_report_required_for(resource_types: list[str]) -> list[str]:
    """Normalize resource types to the spellings report_required_tag_for accepts."""
    normalized = (REPORT_RESOURCE_TYPE_CORRECTIONS.get(r, r) for r in resource_types)
    return list(dict.fromkeys(normalized))


def _tag_entry(name: str, allowed_values: list[str] | None) -> dict[str, Any]:
    entry: dict[str, Any] = {"tag_key": {ASSIGN: name}}
    if allowed_values:
        entry["tag_value"] = {ASSIGN: list(allowed_values)}
    return entry


def convert_mcp_to_aws_policy(policy: TagPolicy) -> dict[str, Any]:
    """
    Convert an MCP policy to AWS Organizations tag policy format.

    - enforced_for only accepts ``service:ALL_SUPPORTED`` and only for
      services with enforcement support; other services are dropped here.
    - report_required_tag_for lists every applies_to entry, normalized.
    - validation_regex is not representable and is never emitted.

    Args:
        policy: The canonical policy

    Returns:
        AWS tag policy document as a dict
    """
    tags: dict[str, Any] = {}

    for tag in policy.required_tags:
        entry = _tag_entry(tag.name, tag.allowed_values)

        if tag.applies_to:
            enforced_for = _to_enforced_for(tag.applies_to)
            if enforced_for:
                entry["enforced_for"] = {ASSIGN: enforced_for}

            report_required_for = _to_report_required_for(tag.applies_to)
            if report_required_for:
                entry["report_required_tag_for"] = {ASSIGN: report_required_for}

        tags[tag.name] = entry

    for tag in policy.optional_tags:
        tags[tag.name] = _tag_entry(tag.name, tag.allowed_values)

    logger.info(f"Exported {len(tags)} tags to AWS tag policy format")
    return {"tags": tags}


def get_aws_export_warnings(policy: TagPolicy) -> list[str]:
    """Describe policy features that won't be preserved in AWS format."""
    warnings: list[str] = []

    tags_with_regex = [t.name for t in policy.required_tags if t.validation_regex]
    if tags_with_regex:
        warnings.append(
            f"Regex validation will be lost for: {', '.join(tags_with_regex)}. "
            "AWS Tag Policies don't support regex patterns."
        )

    return warnings
