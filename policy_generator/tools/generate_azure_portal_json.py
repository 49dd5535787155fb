"""MCP tool producing a single Azure policy rule for the portal editor."""

import logging

from pydantic import BaseModel, Field

from ..converters.azure import generate_azure_portal_json as _generate

logger = logging.getLogger(__name__)

AZURE_EFFECTS = ("deny", "audit", "modify", "append", "disabled")


class GenerateAzurePortalJsonResult(BaseModel):
    """Result from the generate_azure_portal_json tool."""

    status: str = Field(..., description="Status: 'success' or 'error'")
    portal_json: dict | None = Field(
        None, description="The {mode, parameters, policyRule} object to paste"
    )
    message: str = Field("", description="Human-readable status message")


async def generate_azure_portal_json(
    tag_name: str,
    description: str = "",
    effect: str = "deny",
    allowed_values: list[str] | None = None,
) -> GenerateAzurePortalJsonResult:
    """
    Build the JSON for Azure Portal's policy definition editor.

    Args:
        tag_name: Tag to enforce
        description: Definition description
        effect: Policy effect, "deny" for required tags and "audit" for optional ones
        allowed_values: Optional list of allowed tag values
    """
    effect = effect.strip().lower()
    if not tag_name.strip():
        return GenerateAzurePortalJsonResult(status="error", message="tag_name is required")
    if effect not in AZURE_EFFECTS:
        return GenerateAzurePortalJsonResult(
            status="error",
            message=f"Unsupported effect '{effect}'. Expected one of: {', '.join(AZURE_EFFECTS)}",
        )

    portal_json = _generate(tag_name, description, effect, allowed_values)
    logger.info(f"Generated Azure portal JSON for tag '{tag_name}' ({effect})")
    return GenerateAzurePortalJsonResult(
        status="success",
        portal_json=portal_json,
        message="Paste into Azure Portal > Policy > Definitions > + Policy definition.",
    )
