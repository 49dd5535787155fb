"""MCP tool for listing a provider's resource type taxonomy."""

import logging

from pydantic import BaseModel, Field

from ..models import CloudProvider
from ..utils.resource_taxonomy import get_resource_categories, get_resource_types as _types

logger = logging.getLogger(__name__)


class ResourceCategoryInfo(BaseModel):
    """One category of resource types."""

    name: str = Field(..., description="Category name")
    description: str = Field("", description="What the category covers")
    resources: list[str] = Field(default_factory=list, description="Sorted resource types")


class GetResourceTypesResult(BaseModel):
    """Result from the get_resource_types tool."""

    status: str = Field(..., description="Status: 'success' or 'error'")
    cloud_provider: str | None = Field(None, description="Provider queried")
    categories: list[ResourceCategoryInfo] = Field(default_factory=list)
    resource_types: list[str] = Field(
        default_factory=list, description="Every valid resource type, sorted"
    )
    total_count: int = Field(0, description="Number of distinct resource types")
    message: str = Field("", description="Human-readable status message")


async def get_resource_types(provider: str) -> GetResourceTypesResult:
    """
    List the resource types a provider's required tags may apply to.

    Args:
        provider: "aws", "gcp" or "azure"
    """
    try:
        cloud_provider = CloudProvider.parse(provider)
    except ValueError as e:
        return GetResourceTypesResult(status="error", message=str(e))

    categories = [
        ResourceCategoryInfo(
            name=category.name,
            description=category.description,
            resources=sorted(category.resources),
        )
        for category in get_resource_categories(cloud_provider)
    ]
    resource_types = sorted(_types(cloud_provider))
    logger.info(f"Listed {len(resource_types)} {cloud_provider.value} resource types")

    return GetResourceTypesResult(
        status="success",
        cloud_provider=cloud_provider.value,
        categories=categories,
        resource_types=resource_types,
        total_count=len(resource_types),
        message=f"{len(resource_types)} resource types in {len(categories)} categories.",
    )
