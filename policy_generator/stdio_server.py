# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Stdio MCP server using FastMCP from the mcp Python SDK.

Exposes the policy generator's validation and conversion tools over the
stdio transport, so any MCP client (Claude Desktop, MCP Inspector, ...)
can build, check and convert tagging policies.

It is a thin wrapper: all logic lives in the tools and service layer.

Usage::

    python -m policy_generator

    # Test with MCP Inspector:
    npx @modelcontextprotocol/inspector python -m policy_generator
"""

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import settings
from .services.policy_service import PolicyNotFoundError, PolicyService, PolicyValidationError
from .tools import export_tagging_policy as _export_tagging_policy
from .tools import generate_azure_portal_json as _generate_azure_portal_json
from .tools import get_resource_types as _get_resource_types
from .tools import import_tagging_policy as _import_tagging_policy
from .tools import list_policy_templates as _list_policy_templates
from .tools import validate_tagging_policy as _validate_tagging_policy

logger = logging.getLogger(__name__)

# Create the FastMCP server instance
mcp = FastMCP("Tagging Policy Generator")


def _load_configured_policy() -> dict[str, Any]:
    """Load the canonical policy file named by POLICY_PATH."""
    service = PolicyService(policy_path=settings().policy_path)
    return service.load_policy().to_json_dict()


def _error_payload(tool: str, error: Exception) -> str:
    logger.exception(f"Unexpected error in {tool}")
    return json.dumps(
        {
            "status": "error",
            "error": type(error).__name__,
            "message": str(error),
        }
    )


# ---------------------------------------------------------------------------
# Tool 1: validate_tagging_policy
# ---------------------------------------------------------------------------
@mcp.tool()
async def validate_tagging_policy(policy: dict[str, Any] | None = None) -> str:
    """Validate a tagging policy in MCP (canonical) format.

    Checks tag names (non-blank, unique case-insensitively), descriptions,
    regex patterns, allowed values and naming-rule lengths, plus the rules
    of the policy's cloud_provider: GCP label key format, Azure forbidden
    characters and reserved prefixes, and that every required tag's
    applies_to entry belongs to that provider's resource taxonomy.

    Args:
        policy: Canonical policy object (version, cloud_provider,
            required_tags, optional_tags, tag_naming_rules). When omitted,
            the policy file configured by POLICY_PATH is validated.
    """
    try:
        if policy is None:
            policy = _load_configured_policy()
        result = await _validate_tagging_policy(policy)
    except (PolicyNotFoundError, PolicyValidationError) as e:
        logger.warning(f"Could not load configured policy: {e}")
        return json.dumps({"status": "error", "error": type(e).__name__, "message": str(e)})
    except Exception as e:
        return _error_payload("validate_tagging_policy", e)
    return json.dumps(result.model_dump(mode="json"), default=str)


# ---------------------------------------------------------------------------
# Tool 2: import_tagging_policy
# ---------------------------------------------------------------------------
@mcp.tool()
async def import_tagging_policy(provider: str, policy_json: str) -> str:
    """Convert an AWS, GCP or Azure tag policy document to MCP format.

    - aws: AWS Organizations tag policy ({"tags": {...}} with @@assign).
      Tags with enforced_for become required; service:ALL_SUPPORTED is
      expanded to concrete resource types.
    - gcp: GCP label policy ({"label_policy": {"labels": {...}}}).
    - azure: Azure Policy initiative (properties.policyDefinitions) or a
      single definition with a policyRule. deny -> required, audit -> optional.

    The converted policy is validated and any findings are returned in
    validation_errors.

    Args:
        provider: "aws", "gcp" or "azure"
        policy_json: The provider-native document as JSON text
    """
    try:
        result = await _import_tagging_policy(provider=provider, policy_json=policy_json)
    except Exception as e:
        return _error_payload("import_tagging_policy", e)
    return json.dumps(result.model_dump(mode="json"), default=str)


# ---------------------------------------------------------------------------
# Tool 3: export_tagging_policy
# ---------------------------------------------------------------------------
@mcp.tool()
async def export_tagging_policy(
    policy: dict[str, Any],
    target: str,
    save_to_file: bool = False,
) -> str:
    """Export an MCP-format policy to a provider format or document.

    Targets: "aws", "gcp", "azure" (must match the policy's cloud_provider;
    returns warnings for features the format can't express, such as regex),
    "canonical" (MCP JSON), "markdown" (human-readable summary), "yaml".

    ALWAYS show the warnings to the user before they deploy a provider export.

    Args:
        policy: Canonical policy object
        target: Export target
        save_to_file: Also write the export into the EXPORT_DIR directory
    """
    output_dir = settings().export_dir if save_to_file else None
    try:
        result = await _export_tagging_policy(policy=policy, target=target, output_dir=output_dir)
    except Exception as e:
        return _error_payload("export_tagging_policy", e)
    return json.dumps(result.model_dump(mode="json"), default=str)


# ---------------------------------------------------------------------------
# Tool 4: get_resource_types
# ---------------------------------------------------------------------------
@mcp.tool()
async def get_resource_types(provider: str | None = None) -> str:
    """List the resource types a provider's required tags can apply to.

    Use these exact identifiers in applies_to. Formats differ per provider:
    AWS "ec2:instance", GCP "compute.googleapis.com/Instance",
    Azure "Microsoft.Compute/virtualMachines".

    Args:
        provider: "aws", "gcp" or "azure"; defaults to DEFAULT_CLOUD_PROVIDER
    """
    try:
        result = await _get_resource_types(provider or settings().default_provider.value)
    except Exception as e:
        return _error_payload("get_resource_types", e)
    return json.dumps(result.model_dump(mode="json"), default=str)


# ---------------------------------------------------------------------------
# Tool 5: list_policy_templates
# ---------------------------------------------------------------------------
@mcp.tool()
async def list_policy_templates(
    provider: str | None = None,
    include_policy: bool = False,
) -> str:
    """List starting-point policy templates (Cost Allocation, Startup,
    Enterprise, Minimal Starter) for each provider.

    Args:
        provider: Restrict to "aws", "gcp" or "azure"
        include_policy: Include the full canonical policy for each template
    """
    try:
        result = await _list_policy_templates(provider=provider, include_policy=include_policy)
    except Exception as e:
        return _error_payload("list_policy_templates", e)
    return json.dumps(result.model_dump(mode="json"), default=str)


# ---------------------------------------------------------------------------
# Tool 6: generate_azure_portal_json
# ---------------------------------------------------------------------------
@mcp.tool()
async def generate_azure_portal_json(
    tag_name: str,
    description: str = "",
    effect: str = "deny",
    allowed_values: list[str] | None = None,
) -> str:
    """Generate a single Azure policy rule ready to paste into the Azure Portal.

    Returns {mode, parameters, policyRule} without an initiative wrapper.

    Args:
        tag_name: Tag to enforce
        description: Definition description
        effect: "deny" (required tag) or "audit" (optional tag)
        allowed_values: Optional list of allowed values
    """
    try:
        result = await _generate_azure_portal_json(
            tag_name=tag_name,
            description=description,
            effect=effect,
            allowed_values=allowed_values,
        )
    except Exception as e:
        return _error_payload("generate_azure_portal_json", e)
    return json.dumps(result.model_dump(mode="json"), default=str)


def main() -> None:
    """Entry point for the stdio MCP server."""
    import sys

    logging.basicConfig(
        level=getattr(logging, settings().log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,  # MCP uses stdout for JSON-RPC; logs go to stderr
    )

    logger.info("Starting Tagging Policy Generator MCP Server (stdio transport)")
    mcp.run()


if __name__ == "__main__":
    main()
