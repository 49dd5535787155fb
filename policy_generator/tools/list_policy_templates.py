"""MCP tool for browsing the policy template catalogue."""

import logging

from pydantic import BaseModel, Field

from ..models import PolicyTemplate
from ..services.template_service import build_policy_from_template, get_templates

logger = logging.getLogger(__name__)


class TemplateInfo(BaseModel):
    """A template and the policy it produces."""

    name: str
    description: str
    cloud_provider: str
    required_tag_names: list[str] = Field(default_factory=list)
    optional_tag_names: list[str] = Field(default_factory=list)
    policy: dict | None = Field(
        None, description="Canonical policy built from the template (when include_policy)"
    )


class ListPolicyTemplatesResult(BaseModel):
    """Result from the list_policy_templates tool."""

    status: str = Field(..., description="Status: 'success' or 'error'")
    templates: list[TemplateInfo] = Field(default_factory=list)
    message: str = Field("", description="Human-readable status message")


def _describe(template: PolicyTemplate, include_policy: bool) -> TemplateInfo:
    return TemplateInfo(
        name=template.name,
        description=template.description,
        cloud_provider=template.provider.value,
        required_tag_names=[t.name for t in template.required_tags],
        optional_tag_names=[t.name for t in template.optional_tags],
        policy=build_policy_from_template(template).to_json_dict() if include_policy else None,
    )


async def list_policy_templates(
    provider: str | None = None,
    include_policy: bool = False,
) -> ListPolicyTemplatesResult:
    """
    List starting-point policy templates.

    Args:
        provider: Restrict to "aws", "gcp" or "azure"; None lists all
        include_policy: Also return the full canonical policy of each template
    """
    try:
        templates = get_templates(provider)
    except ValueError as e:
        return ListPolicyTemplatesResult(status="error", message=str(e))

    logger.info(f"Listed {len(templates)} policy templates (provider={provider})")
    return ListPolicyTemplatesResult(
        status="success",
        templates=[_describe(t, include_policy) for t in templates],
        message=f"Found {len(templates)} templates.",
    )
