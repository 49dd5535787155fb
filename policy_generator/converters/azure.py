# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Conversion between Azure Policy definitions/initiatives and the MCP policy format.

Export produces a Policy Initiative with one custom definition per tag:
required tags use the ``deny`` effect, optional tags use ``audit``. Import
accepts either an initiative (``properties.policyDefinitions``) or a single
definition with a ``policyRule``.
"""

import json
import logging
import re
from typing import Any

from ..models import CloudProvider, OptionalTag, RequiredTag, TagPolicy, default_naming_rules
from ..utils.provider_limits import (
    AZURE_MAX_KEY_LENGTH,
    AZURE_MAX_TAGS_PER_RESOURCE,
    AZURE_STORAGE_MAX_KEY_LENGTH,
)
from ..utils.resource_taxonomy import AZURE_STORAGE_ACCOUNT_PREFIX
from .errors import InvalidPolicyJsonError, PolicyFormatError

logger = logging.getLogger(__name__)

GENERATED_BY = "OptimNow Tagging Policy Generator"

DEFAULT_APPLIES_TO: tuple[str, ...] = (
    "Microsoft.Compute/virtualMachines",
    "Microsoft.Storage/storageAccounts",
    "Microsoft.Web/sites",
)

# Built-in tag inheritance policies: (display name, definition GUID, description)
TAG_INHERITANCE_POLICIES: tuple[tuple[str, str, str], ...] = (
    (
        "Inherit a tag from the resource group",
        "cd3aa116-8754-49c9-a813-ad46512ece54",
        "Adds or replaces the specified tag and value from the parent resource group "
        "when any resource is created or updated.",
    ),
    (
        "Inherit a tag from the resource group if missing",
        "ea3f2387-9b95-492a-a190-fcdc54f7b070",
        "Adds the specified tag from the parent resource group only when the tag is "
        "missing on the resource. Existing resources can be remediated.",
    ),
    (
        "Inherit a tag from the subscription",
        "b27a0cbd-a167-4064-ae47-28c309da4a4f",
        "Adds or replaces the specified tag and value from the containing subscription "
        "when any resource is created or updated.",
    ),
    (
        "Inherit a tag from the subscription if missing",
        "40df99da-1232-49b1-a39a-6571f4e27e24",
        "Adds the specified tag from the containing subscription only when the tag is "
        "missing on the resource.",
    ),
)

MANAGED_RESOURCE_GROUP_SERVICES: tuple[str, ...] = (
    "AKS (Microsoft.ContainerService/managedClusters) - creates MC_{rgname}_{clustername}_{location}",
    "Azure Databricks (Microsoft.Databricks/workspaces)",
    "Azure Synapse Analytics (Microsoft.Synapse/workspaces)",
    "Azure Machine Learning (Microsoft.MachineLearningServices/workspaces)",
    "Azure Managed Applications",
    "App Service Environment",
)

# Resource types whose managed resource groups cannot be tagged directly
MANAGED_RESOURCE_GROUP_TYPES: tuple[str, ...] = (
    "Microsoft.ContainerService/managedClusters",
    "Microsoft.Databricks/workspaces",
    "Microsoft.Synapse/workspaces",
    "Microsoft.MachineLearningServices/workspaces",
)

FOCUS_EXPORT_NOTE = (
    "Note: Even with high tag compliance, Azure FOCUS cost exports may show untagged "
    "billing lines. Consider subscription-naming-convention-based transformations in "
    "Power BI for full cost attribution coverage."
)

_TAG_FIELD = "[concat('tags[', parameters('tagName'), ']')]"
_PARAMETER_REFERENCE = re.compile(r"^\[parameters\('([^']+)'\)\]$")
_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")


# =============================================================================
# Import: Azure Policy JSON -> MCP format
# =============================================================================


def convert_azure_policy_to_mcp(azure_policy_json: str) -> TagPolicy:
    """
    Convert an Azure Policy initiative or single definition to MCP format.

    A definition yields a tag only when it has a ``tagName``/``TagName``
    parameter; its ``defaultValue`` is the tag name. An ``audit`` effect
    makes the tag optional, any other effect (deny, modify, ...) required.

    Raises:
        InvalidPolicyJsonError: If the text is not valid JSON
        PolicyFormatError: If no definitions are found, or none declare a tag
    """
    try:
        parsed = json.loads(azure_policy_json)
    except (json.JSONDecodeError, TypeError) as e:
        raise InvalidPolicyJsonError(
            "Invalid JSON format. Please paste valid Azure Policy JSON."
        ) from e

    if not isinstance(parsed, dict):
        raise PolicyFormatError(
            "Invalid Azure Policy format. Expected a JSON object."
        )

    properties = parsed.get("properties")
    props = properties if isinstance(properties, dict) else parsed
    policy_definitions = props.get("policyDefinitions")

    if isinstance(policy_definitions, list):
        definitions = [_definition_properties(entry) for entry in policy_definitions]
    elif props.get("policyRule"):
        definitions = [props]
    else:
        raise PolicyFormatError(
            "Invalid Azure Policy format. Expected policyDefinitions array "
            "or a single policy definition with policyRule."
        )

    required_tags: list[RequiredTag] = []
    optional_tags: list[OptionalTag] = []

    for definition in definitions:
        tag = _extract_tag_from_definition(definition)
        if isinstance(tag, RequiredTag):
            required_tags.append(tag)
        elif isinstance(tag, OptionalTag):
            optional_tags.append(tag)

    if not required_tags and not optional_tags:
        raise PolicyFormatError(
            "No tag requirements found in the Azure Policy. "
            "Ensure policy definitions include tagName parameters."
        )

    logger.info(
        f"Imported Azure policy: {len(required_tags)} required, "
        f"{len(optional_tags)} optional tags"
    )

    return TagPolicy(
        version="1.0",
        cloud_provider=CloudProvider.AZURE,
        required_tags=required_tags,
        optional_tags=optional_tags,
        tag_naming_rules=default_naming_rules(CloudProvider.AZURE),
    )


def _definition_properties(entry: Any) -> dict[str, Any] | None:
    """Unwrap ``{policyDefinition: {properties: {...}}}`` down to the properties."""
    if not isinstance(entry, dict):
        return None
    definition = entry.get("policyDefinition")
    if not isinstance(definition, dict):
        definition = entry
    properties = definition.get("properties")
    return properties if isinstance(properties, dict) else definition


def _parameter_default(parameters: dict[str, Any], *names: str) -> Any:
    for name in names:
        parameter = parameters.get(name)
        if isinstance(parameter, dict):
            return parameter.get("defaultValue")
    return None


def _resolve_effect(policy_rule: dict[str, Any], parameters: dict[str, Any]) -> str:
    """Read then.effect, following a ``[parameters('x')]`` reference. Defaults to deny."""
    then = policy_rule.get("then")
    effect = then.get("effect") if isinstance(then, dict) else None
    if isinstance(effect, str):
        match = _PARAMETER_REFERENCE.match(effect.strip())
        if match:
            effect = _parameter_default(parameters, match.group(1))
    return effect if isinstance(effect, str) and effect else "deny"


def _collect_resource_types(condition: Any, found: dict[str, None]) -> None:
    """Collect ``{"field": "type", "equals"|"in": ...}`` targets from a rule's if-tree."""
    if isinstance(condition, list):
        for item in condition:
            _collect_resource_types(item, found)
        return
    if not isinstance(condition, dict):
        return

    field = condition.get("field")
    if isinstance(field, str) and field.lower() == "type":
        equals = condition.get("equals")
        if isinstance(equals, str):
            found[equals] = None
        targets = condition.get("in")
        if isinstance(targets, list):
            found.update((t, None) for t in targets if isinstance(t, str))

    for key in ("allOf", "anyOf", "not"):
        if key in condition:
            _collect_resource_types(condition[key], found)


def _extract_tag_from_definition(
    def_props: dict[str, Any] | None,
) -> RequiredTag | OptionalTag | None:
    """Build a tag from one definition's properties, or None if it has no tagName."""
    if not def_props or not isinstance(def_props.get("parameters"), dict):
        return None

    parameters = def_props["parameters"]
    if not any(isinstance(parameters.get(n), dict) for n in ("tagName", "TagName")):
        return None

    tag_name = _parameter_default(parameters, "tagName", "TagName")
    if not isinstance(tag_name, str) or not tag_name:
        tag_name = "UnknownTag"

    description = def_props.get("description") or def_props.get("displayName")
    if not isinstance(description, str) or not description:
        description = f"Imported from Azure Policy - {tag_name}"

    policy_rule = def_props.get("policyRule")
    if not isinstance(policy_rule, dict):
        policy_rule = {}
    effect = _resolve_effect(policy_rule, parameters)

    allowed_values = _parameter_default(parameters, "allowedValues", "AllowedValues")
    if isinstance(allowed_values, list):
        allowed_values = [v for v in allowed_values if isinstance(v, str)] or None
    else:
        allowed_values = None

    if effect.lower() == "audit":
        return OptionalTag(name=tag_name, description=description, allowed_values=allowed_values)

    resource_types: dict[str, None] = {}
    _collect_resource_types(policy_rule.get("if"), resource_types)
    return RequiredTag(
        name=tag_name,
        description=description,
        allowed_values=allowed_values,
        validation_regex=None,
        applies_to=list(resource_types),
    )


# =============================================================================
# Export: MCP format -> Azure Policy Initiative
# =============================================================================


def _definition_id(prefix: str, tag_name: str) -> str:
    return f"{prefix}-{_NON_ALPHANUMERIC.sub('-', tag_name.lower())}"


def _build_policy_rule(effect: str, allowed_values: list[str] | None) -> dict[str, Any]:
    missing = {"field": _TAG_FIELD, "exists": "false"}
    if allowed_values:
        # Enforce both tag existence and value membership
        condition: dict[str, Any] = {
            "anyOf": [
                missing,
                {"field": _TAG_FIELD, "notIn": "[parameters('allowedValues')]"},
            ]
        }
    else:
        condition = missing
    return {"if": condition, "then": {"effect": effect}}


def build_policy_definition(
    tag_name: str,
    description: str,
    effect: str,
    allowed_values: list[str] | None,
) -> dict[str, Any]:
    """Build one custom Azure policy definition enforcing a single tag."""
    parameters: dict[str, Any] = {
        "tagName": {
            "type": "String",
            "metadata": {
                "displayName": "Tag Name",
                "description": "Name of the tag to enforce",
            },
            "defaultValue": tag_name,
        },
    }

    if allowed_values:
        parameters["allowedValues"] = {
            "type": "Array",
            "metadata": {
                "displayName": "Allowed Values",
                "description": "List of allowed tag values",
            },
            "defaultValue": list(allowed_values),
        }

    return {
        "properties": {
            "displayName": f"{'Require' if effect == 'deny' else 'Audit'} {tag_name} tag on resources",
            "policyType": "Custom",
            "mode": "Indexed",
            "description": description,
            "metadata": {
                "category": "Tags",
                "version": "1.0.0",
                "generatedBy": GENERATED_BY,
            },
            "parameters": parameters,
            "policyRule": _build_policy_rule(effect, allowed_values),
        }
    }


def convert_mcp_to_azure_policy(policy: TagPolicy) -> dict[str, Any]:
    """
    Convert an MCP policy to an Azure Policy Initiative.

    Besides one definition per tag, the initiative always carries the
    built-in tag inheritance recommendations and the managed resource
    group notes.
    """
    policy_definitions: list[dict[str, Any]] = []

    for tag in policy.required_tags:
        policy_definitions.append(
            {
                "policyDefinitionId": _definition_id("custom-require", tag.name),
                "policyDefinition": build_policy_definition(
                    tag.name, tag.description, "deny", tag.allowed_values
                ),
            }
        )

    for tag in policy.optional_tags:
        policy_definitions.append(
            {
                "policyDefinitionId": _definition_id("custom-audit", tag.name),
                "policyDefinition": build_policy_definition(
                    tag.name, tag.description, "audit", tag.allowed_values
                ),
            }
        )

    logger.info(f"Exported {len(policy_definitions)} Azure policy definitions")

    return {
        "properties": {
            "displayName": "Tagging Governance Initiative",
            "policyType": "Custom",
            "description": (
                "Ensures all resources have required tags for cost attribution and "
                f"governance. Generated by {GENERATED_BY}."
            ),
            "metadata": {
                "category": "Tags",
                "version": policy.version,
                "generatedBy": GENERATED_BY,
            },
            "policyDefinitions": policy_definitions,
        },
        "tagInheritanceRecommendations": {
            "description": (
                "Consider enabling these built-in Azure Policies for tag inheritance to "
                "improve cost attribution coverage, especially for managed resource "
                "groups (AKS, Databricks, etc.)"
            ),
            "builtInPolicies": [
                {
                    "displayName": display_name,
                    "policyDefinitionId": guid,
                    "effect": "Modify",
                    "description": description,
                }
                for display_name, guid, description in TAG_INHERITANCE_POLICIES
            ],
        },
        "managedResourceGroupNotes": {
            "description": (
                "These Azure services create managed resource groups (e.g. MC_ for AKS) "
                "with resources that have limited tagging permissions. Use tag "
                "inheritance policies from the resource group level to ensure cost "
                "attribution coverage."
            ),
            "affectedServices": list(MANAGED_RESOURCE_GROUP_SERVICES),
        },
    }


def generate_azure_portal_json(
    tag_name: str,
    description: str,
    effect: str,
    allowed_values: list[str] | None,
) -> dict[str, Any]:
    """
    Generate the JSON pasted into the Azure Portal policy rule editor.

    This is the ``mode``/``parameters``/``policyRule`` projection of a
    single definition, with no initiative wrapper.
    """
    definition = build_policy_definition(tag_name, description, effect, allowed_values)
    props = definition["properties"]
    return {
        "mode": props["mode"],
        "parameters": props["parameters"],
        "policyRule": props["policyRule"],
    }


def get_azure_export_warnings(policy: TagPolicy) -> list[str]:
    """Describe policy features that won't be preserved, plus Azure-specific caveats."""
    warnings: list[str] = []

    tags_with_regex = [t.name for t in policy.required_tags if t.validation_regex]
    if tags_with_regex:
        warnings.append(
            f"Regex validation will be lost for: {', '.join(tags_with_regex)}. "
            "Azure Policy doesn't support regex - use allowedValues or Azure Policy "
            "pattern matching instead."
        )

    all_tags = policy.all_tags
    long_names = [t.name for t in all_tags if len(t.name) > AZURE_MAX_KEY_LENGTH]
    if long_names:
        warnings.append(
            f"Tag names exceed Azure's {AZURE_MAX_KEY_LENGTH}-character limit: "
            f"{', '.join(long_names)}"
        )

    if len(all_tags) > AZURE_MAX_TAGS_PER_RESOURCE:
        warnings.append(
            f"Your policy defines {len(all_tags)} tags. Azure resources support a "
            f"maximum of {AZURE_MAX_TAGS_PER_RESOURCE} tags."
        )

    if targets_storage_accounts(policy):
        long_storage_names = [
            t.name for t in all_tags if len(t.name) > AZURE_STORAGE_MAX_KEY_LENGTH
        ]
        if long_storage_names:
            warnings.append(
                f"Storage accounts limit tag names to {AZURE_STORAGE_MAX_KEY_LENGTH} "
                f"characters. These exceed that: {', '.join(long_storage_names)}"
            )

    if any(r in MANAGED_RESOURCE_GROUP_TYPES for t in policy.required_tags for r in t.applies_to):
        warnings.append(
            "Some selected resource types (AKS, Databricks, Synapse, Azure ML) create "
            "managed resource groups with resources you cannot directly tag. Enable tag "
            "inheritance policies from the resource group level."
        )

    warnings.append(FOCUS_EXPORT_NOTE)

    return warnings


def targets_storage_accounts(policy: TagPolicy) -> bool:
    """Check whether any required tag is enforced on an Azure storage account type."""
    return any(
        r.startswith(AZURE_STORAGE_ACCOUNT_PREFIX)
        for t in policy.required_tags
        for r in t.applies_to
    )
