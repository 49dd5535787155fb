"""Resource taxonomy and template models."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import CloudProvider
from .policy import OptionalTag, RequiredTag


class ResourceCategory(BaseModel):
    """A UI grouping of resource types for one provider."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Category name (e.g. 'Compute')")
    description: str = Field("", description="What the category covers")
    resources: frozenset[str] = Field(
        default_factory=frozenset, description="Resource type identifiers in this category"
    )


class PolicyTemplate(BaseModel):
    """A starting-point policy from the template catalogue."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Template name")
    description: str = Field("", description="What the template is for")
    provider: CloudProvider = Field(..., description="Provider the template targets")
    required_tags: tuple[RequiredTag, ...] = Field(default_factory=tuple)
    optional_tags: tuple[OptionalTag, ...] = Field(default_factory=tuple)
