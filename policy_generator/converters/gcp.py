# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Conversion between GCP label policies and the MCP policy format."""

import json
import logging
import re
from typing import Any

from ..models import CloudProvider, OptionalTag, RequiredTag, TagNamingRules, TagPolicy
from ..utils.provider_limits import GCP_MAX_KEY_LENGTH, GCP_MAX_VALUE_LENGTH
from .errors import InvalidPolicyJsonError, PolicyFormatError

logger = logging.getLogger(__name__)

DEFAULT_APPLIES_TO: tuple[str, ...] = (
    "compute.googleapis.com/Instance",
    "storage.googleapis.com/Bucket",
    "cloudfunctions.googleapis.com/CloudFunction",
)

LABEL_KEY_FORMAT = "lowercase_with_underscores"
LABEL_NOTES = (
    "GCP labels must be lowercase, start with a letter, and contain only lowercase "
    "letters, numbers, underscores, and hyphens. Maximum 64 labels per resource."
)

_INVALID_LABEL_CHARS = re.compile(r"[^a-z0-9_-]")


def to_label_key(tag_name: str) -> str:
    """Lowercase a tag name and replace characters GCP rejects with '_'.

    Lossy and one-way: distinct tag names may map to the same key.
    """
    return _INVALID_LABEL_CHARS.sub("_", tag_name.lower())


def _string_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [v for v in value if isinstance(v, str)]


def _length(naming_rules: Any, key: str, default: int) -> int:
    value = naming_rules.get(key) if isinstance(naming_rules, dict) else None
    if isinstance(value, int) and not isinstance(value, bool) and value:
        return value
    return default


def convert_gcp_policy_to_mcp(gcp_policy_json: str) -> TagPolicy:
    """
    Convert a GCP label policy document to MCP format.

    A label is required when ``required`` is not false and ``enforced_for``
    is non-empty; otherwise it is optional. Naming-rule lengths come from
    ``label_policy.naming_rules`` when present, else 63/63.

    Raises:
        InvalidPolicyJsonError: If the text is not valid JSON
        PolicyFormatError: If ``label_policy.labels`` is missing
    """
    try:
        gcp_policy = json.loads(gcp_policy_json)
    except (json.JSONDecodeError, TypeError) as e:
        raise InvalidPolicyJsonError(
            "Invalid JSON format. Please paste valid GCP Label Policy JSON."
        ) from e

    label_policy = gcp_policy.get("label_policy") if isinstance(gcp_policy, dict) else None
    if not isinstance(label_policy, dict) or not isinstance(label_policy.get("labels"), dict):
        raise PolicyFormatError(
            "Invalid GCP Label Policy format. Expected label_policy.labels object."
        )

    required_tags: list[RequiredTag] = []
    optional_tags: list[OptionalTag] = []

    for key, config in label_policy["labels"].items():
        if not isinstance(config, dict):
            raise PolicyFormatError(
                f"Invalid GCP Label Policy format. Label '{key}' must be an object."
            )

        label_name = config.get("label_key")
        if not isinstance(label_name, str) or not label_name:
            label_name = key
        description = config.get("description")
        if not isinstance(description, str) or not description:
            description = f"Converted from GCP Label Policy - {key}"
        allowed_values = _string_list(config.get("allowed_values")) or None
        enforced_for = _string_list(config.get("enforced_for")) or []

        if config.get("required") is not False and enforced_for:
            required_tags.append(
                RequiredTag(
                    name=label_name,
                    description=description,
                    allowed_values=allowed_values,
                    validation_regex=None,
                    applies_to=enforced_for,
                )
            )
        else:
            optional_tags.append(
                OptionalTag(name=label_name, description=description, allowed_values=allowed_values)
            )

    naming_rules = label_policy.get("naming_rules")

    logger.info(
        f"Imported GCP label policy: {len(required_tags)} required, "
        f"{len(optional_tags)} optional labels"
    )

    return TagPolicy(
        version="1.0",
        cloud_provider=CloudProvider.GCP,
        required_tags=required_tags,
        optional_tags=optional_tags,
        tag_naming_rules=TagNamingRules(
            case_sensitivity=False,
            allow_special_characters=False,
            max_key_length=_length(naming_rules, "max_key_length", GCP_MAX_KEY_LENGTH),
            max_value_length=_length(naming_rules, "max_value_length", GCP_MAX_VALUE_LENGTH),
        ),
    )


def convert_mcp_to_gcp_policy(policy: TagPolicy) -> dict[str, Any]:
    """
    Convert an MCP policy to GCP label policy format.

    Label keys are normalized with :func:`to_label_key`. Naming-rule
    lengths are clamped to the GCP ceiling of 63.
    """
    labels: dict[str, Any] = {}

    for tag in policy.required_tags:
        gcp_key = to_label_key(tag.name)
        labels[gcp_key] = {
            "label_key": gcp_key,
            "description": tag.description,
            "allowed_values": (
                list(tag.allowed_values) if tag.allowed_values is not None else None
            ),
            "enforced_for": list(tag.applies_to),
            "required": True,
        }

    for tag in policy.optional_tags:
        gcp_key = to_label_key(tag.name)
        labels[gcp_key] = {
            "label_key": gcp_key,
            "description": tag.description,
            "allowed_values": (
                list(tag.allowed_values) if tag.allowed_values is not None else None
            ),
            "enforced_for": [],
            "required": False,
        }

    rules = policy.tag_naming_rules
    logger.info(f"Exported {len(labels)} labels to GCP label policy format")

    return {
        "label_policy": {
            "labels": labels,
            "naming_rules": {
                "max_key_length": min(rules.max_key_length, GCP_MAX_KEY_LENGTH),
                "max_value_length": min(rules.max_value_length, GCP_MAX_VALUE_LENGTH),
                "key_format": LABEL_KEY_FORMAT,
                "notes": LABEL_NOTES,
            },
        }
    }


def get_gcp_export_warnings(policy: TagPolicy) -> list[str]:
    """Describe policy features that won't be preserved in GCP format."""
    warnings: list[str] = []

    tags_with_regex = [t.name for t in policy.required_tags if t.validation_regex]
    if tags_with_regex:
        warnings.append(
            f"Regex validation will be lost for: {', '.join(tags_with_regex)}. "
            "GCP Label Policies don't support regex patterns."
        )

    upper_case_keys = [t.name for t in policy.all_tags if t.name != t.name.lower()]
    if upper_case_keys:
        warnings.append(
            f"Label keys will be lowercased: {', '.join(upper_case_keys)}. "
            "GCP labels must be lowercase."
        )

    rules = policy.tag_naming_rules
    if rules.max_key_length > GCP_MAX_KEY_LENGTH:
        warnings.append(
            f"Max key length ({rules.max_key_length}) exceeds GCP limit of "
            f"{GCP_MAX_KEY_LENGTH}. It will be capped."
        )
    if rules.max_value_length > GCP_MAX_VALUE_LENGTH:
        warnings.append(
            f"Max value length ({rules.max_value_length}) exceeds GCP limit of "
            f"{GCP_MAX_VALUE_LENGTH}. It will be capped."
        )

    return warnings
