# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""
Policy validation.

``validate_policy`` is a pure function from a canonical policy to an
ordered list of human-readable error strings. It never raises for defects
in the policy itself: an uncompilable regex or an unknown resource type is
reported like any other finding.

Provider-specific rules live in small tables keyed by provider so that
adding a provider means adding entries, not branches.
"""

import logging
import re
from types import MappingProxyType
from typing import Callable

from ..models import CloudProvider, OptionalTag, RequiredTag, TagPolicy
from ..utils.provider_limits import (
    AZURE_FORBIDDEN_CHARACTERS,
    AZURE_MAX_KEY_LENGTH,
    AZURE_MAX_TAGS_PER_RESOURCE,
    AZURE_MAX_VALUE_LENGTH,
    AZURE_RESERVED_PREFIXES,
    AZURE_STORAGE_MAX_KEY_LENGTH,
    GCP_LABEL_KEY_PATTERN,
    GCP_MAX_KEY_LENGTH,
    GCP_MAX_VALUE_LENGTH,
)
from ..utils.resource_taxonomy import (
    AZURE_STORAGE_ACCOUNT_PREFIX,
    find_provider_for_resource_type,
    get_resource_types,
)

logger = logging.getLogger(__name__)

PROVIDER_LABELS = MappingProxyType(
    {
        CloudProvider.AWS: "AWS",
        CloudProvider.GCP: "GCP",
        CloudProvider.AZURE: "Azure",
    }
)

# (violates(name), message(label)) pairs applied to every tag name
NameRule = tuple[Callable[[str], bool], Callable[[str], str]]

# policy -> error strings, evaluated after the per-tag checks
PolicyRule = Callable[[TagPolicy], list[str]]


def _azure_forbidden(name: str) -> bool:
    return any(char in name for char in AZURE_FORBIDDEN_CHARACTERS)


def _azure_reserved(name: str) -> bool:
    return name.lower().startswith(AZURE_RESERVED_PREFIXES)


NAME_RULES: MappingProxyType[CloudProvider, tuple[NameRule, ...]] = MappingProxyType(
    {
        CloudProvider.AWS: (),
        CloudProvider.GCP: (
            (
                lambda name: not GCP_LABEL_KEY_PATTERN.match(name),
                lambda label: (
                    f"{label}: GCP label keys must be lowercase, start with a letter, and "
                    "contain only lowercase letters, numbers, underscores, and hyphens"
                ),
            ),
            (
                lambda name: len(name) > GCP_MAX_KEY_LENGTH,
                lambda label: (
                    f"{label}: GCP label keys must be {GCP_MAX_KEY_LENGTH} characters or fewer"
                ),
            ),
        ),
        CloudProvider.AZURE: (
            (
                lambda name: len(name) > AZURE_MAX_KEY_LENGTH,
                lambda label: (
                    f"{label}: Azure tag names must be {AZURE_MAX_KEY_LENGTH} characters or fewer"
                ),
            ),
            (
                _azure_forbidden,
                lambda label: (
                    f"{label}: Azure tag names cannot contain "
                    f"{' '.join(AZURE_FORBIDDEN_CHARACTERS)}"
                ),
            ),
            (
                _azure_reserved,
                lambda label: (
                    f"{label}: Azure tag names cannot start with reserved prefixes "
                    f"({', '.join(AZURE_RESERVED_PREFIXES)})"
                ),
            ),
        ),
    }
)

# Hard (max_key_length, max_value_length) ceilings; AWS has none
LENGTH_CEILINGS: MappingProxyType[CloudProvider, tuple[int, int]] = MappingProxyType(
    {
        CloudProvider.GCP: (GCP_MAX_KEY_LENGTH, GCP_MAX_VALUE_LENGTH),
        CloudProvider.AZURE: (AZURE_MAX_KEY_LENGTH, AZURE_MAX_VALUE_LENGTH),
    }
)


def _azure_tag_count(policy: TagPolicy) -> list[str]:
    count = len(policy.required_tags) + len(policy.optional_tags)
    if count > AZURE_MAX_TAGS_PER_RESOURCE:
        return [
            f"Azure resources support a maximum of {AZURE_MAX_TAGS_PER_RESOURCE} tags; "
            f"this policy defines {count}"
        ]
    return []


def _azure_storage_key_length(policy: TagPolicy) -> list[str]:
    targets_storage = any(
        resource.startswith(AZURE_STORAGE_ACCOUNT_PREFIX)
        for tag in policy.required_tags
        for resource in tag.applies_to
    )
    if not targets_storage:
        return []

    too_long = [t.name for t in policy.all_tags if len(t.name) > AZURE_STORAGE_MAX_KEY_LENGTH]
    if too_long:
        return [
            f"Storage accounts limit tag names to {AZURE_STORAGE_MAX_KEY_LENGTH} characters: "
            f"{', '.join(too_long)}"
        ]
    return []


POLICY_RULES: MappingProxyType[CloudProvider, tuple[PolicyRule, ...]] = MappingProxyType(
    {
        CloudProvider.AWS: (),
        CloudProvider.GCP: (),
        CloudProvider.AZURE: (_azure_tag_count, _azure_storage_key_length),
    }
)


def _is_blank(value: str | None) -> bool:
    return not value or not value.strip()


def _label(prefix: str, tag: RequiredTag | OptionalTag) -> str:
    return f"{prefix} ({tag.name or 'Unnamed'})"


def _check_name(
    prefix: str,
    tag: RequiredTag | OptionalTag,
    seen: set[str],
    name_rules: tuple[NameRule, ...],
) -> list[str]:
    if _is_blank(tag.name):
        return [f"{prefix}: Name is required"]

    errors: list[str] = []
    key = tag.name.lower()
    if key in seen:
        errors.append(f'{prefix}: Duplicate tag name "{tag.name}"')
    else:
        seen.add(key)

    label = _label(prefix, tag)
    for violates, message in name_rules:
        if violates(tag.name):
            errors.append(message(label))
    return errors


def _check_allowed_values(prefix: str, tag: RequiredTag | OptionalTag) -> list[str]:
    if tag.allowed_values and any(_is_blank(v) for v in tag.allowed_values):
        return [f"{_label(prefix, tag)}: Allowed values cannot contain empty strings"]
    return []


def _check_resource_types(prefix: str, tag: RequiredTag, provider: CloudProvider) -> list[str]:
    valid = get_resource_types(provider)
    invalid = [r for r in tag.applies_to if r not in valid]
    if not invalid:
        return []

    described = []
    for resource in dict.fromkeys(invalid):
        owner = find_provider_for_resource_type(resource)
        if owner is None:
            described.append(f"{resource} (unknown)")
        else:
            described.append(f"{resource} ({PROVIDER_LABELS[owner]} resource type)")
    return [
        f"{_label(prefix, tag)}: Invalid resource types for "
        f"{PROVIDER_LABELS[provider]}: {', '.join(described)}"
    ]


def _check_regex(prefix: str, tag: RequiredTag) -> list[str]:
    if not tag.validation_regex:
        return []
    try:
        re.compile(tag.validation_regex)
    except (re.error, OverflowError):
        # huge repeat counts raise OverflowError rather than re.error
        return [f"{_label(prefix, tag)}: Invalid regex pattern"]
    return []


def _check_naming_rules(policy: TagPolicy) -> list[str]:
    errors: list[str] = []
    rules = policy.tag_naming_rules

    if rules.max_key_length < 1:
        errors.append("Max key length must be greater than 0")
    if rules.max_value_length < 1:
        errors.append("Max value length must be greater than 0")

    ceilings = LENGTH_CEILINGS.get(policy.cloud_provider)
    if ceilings:
        max_key, max_value = ceilings
        provider_label = PROVIDER_LABELS[policy.cloud_provider]
        if rules.max_key_length > max_key:
            errors.append(f"Max key length cannot exceed {max_key} for {provider_label}")
        if rules.max_value_length > max_value:
            errors.append(f"Max value length cannot exceed {max_value} for {provider_label}")

    return errors


def validate_policy(policy: TagPolicy) -> list[str]:
    """
    Validate a canonical policy against generic and provider-specific rules.

    Args:
        policy: The policy to check

    Returns:
        Error strings in discovery order; empty when the policy is valid
    """
    provider = policy.cloud_provider
    name_rules = NAME_RULES[provider]
    errors: list[str] = []

    if not policy.required_tags:
        errors.append("At least one required tag must be defined")

    seen: set[str] = set()

    for index, tag in enumerate(policy.required_tags, start=1):
        prefix = f"Required tag #{index}"
        errors.extend(_check_name(prefix, tag, seen, name_rules))

        if _is_blank(tag.description):
            errors.append(f"{_label(prefix, tag)}: Description is required")

        if not tag.applies_to:
            errors.append(f"{_label(prefix, tag)}: At least one resource type must be selected")
        else:
            errors.extend(_check_resource_types(prefix, tag, provider))

        errors.extend(_check_regex(prefix, tag))
        errors.extend(_check_allowed_values(prefix, tag))

    for index, tag in enumerate(policy.optional_tags, start=1):
        prefix = f"Optional tag #{index}"
        errors.extend(_check_name(prefix, tag, seen, name_rules))
        errors.extend(_check_allowed_values(prefix, tag))

    errors.extend(_check_naming_rules(policy))

    for rule in POLICY_RULES[provider]:
        errors.extend(rule(policy))

    logger.debug(f"Validated {provider.value} policy: {len(errors)} error(s)")
    return errors
