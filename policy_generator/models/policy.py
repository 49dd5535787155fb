# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Tagging policy data models (canonical MCP format)."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import CloudProvider


class TagNamingRules(BaseModel):
    """Rules for tag naming conventions.

    Lengths are not bounded here: out-of-range values are reported by the
    policy validator so that an editing session can hold them temporarily.
    """

    case_sensitivity: bool = Field(False, description="Whether tag names are case-sensitive")
    allow_special_characters: bool = Field(
        False, description="Whether special characters are allowed in tag names"
    )
    max_key_length: int = Field(128, description="Maximum length for tag keys")
    max_value_length: int = Field(256, description="Maximum length for tag values")


class RequiredTag(BaseModel):
    """Definition of a required tag in the policy."""

    name: str = Field(..., description="Name of the required tag")
    description: str = Field(..., description="Description of what this tag is for")
    allowed_values: list[str] | None = Field(
        None, description="List of allowed values (None means any value)"
    )
    validation_regex: str | None = Field(
        None,
        description="Regex pattern for validating tag values. Only honoured by the canonical format.",
    )
    applies_to: list[str] = Field(
        default_factory=list,
        description="Resource types this tag is enforced on, from the provider's taxonomy",
    )

    @field_validator("applies_to", mode="before")
    @classmethod
    def _null_scope_is_empty(cls, value: Any) -> Any:
        # null scope is reported by the validator as an empty selection
        return [] if value is None else value


class OptionalTag(BaseModel):
    """Definition of an optional tag in the policy."""

    name: str = Field(..., description="Name of the optional tag")
    description: str = Field(..., description="Description of what this tag is for")
    allowed_values: list[str] | None = Field(
        None, description="List of allowed values (None means any value)"
    )


# Provider defaults, also the hard ceilings enforced by the validator for gcp/azure
_DEFAULT_LENGTHS: dict[CloudProvider, tuple[int, int]] = {
    CloudProvider.AWS: (128, 256),
    CloudProvider.GCP: (63, 63),
    CloudProvider.AZURE: (512, 256),
}


def default_naming_rules(provider: CloudProvider | str = CloudProvider.AWS) -> TagNamingRules:
    """Return the default naming rules for a cloud provider."""
    max_key, max_value = _DEFAULT_LENGTHS[CloudProvider.parse(provider)]
    return TagNamingRules(
        case_sensitivity=False,
        allow_special_characters=False,
        max_key_length=max_key,
        max_value_length=max_value,
    )


class TagPolicy(BaseModel):
    """Complete tagging policy configuration."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "version": "1.0",
                "last_updated": "2026-03-05T09:30:00Z",
                "cloud_provider": "gcp",
                "required_tags": [
                    {
                        "name": "cost_center",
                        "description": "Department for cost allocation",
                        "allowed_values": ["engineering", "finance"],
                        "validation_regex": None,
                        "applies_to": [
                            "compute.googleapis.com/Instance",
                            "storage.googleapis.com/Bucket",
                        ],
                    }
                ],
                "optional_tags": [
                    {"name": "team", "description": "Owning team", "allowed_values": None}
                ],
                "tag_naming_rules": {
                    "case_sensitivity": False,
                    "allow_special_characters": False,
                    "max_key_length": 63,
                    "max_value_length": 63,
                },
            }
        }
    )

    version: str = Field("1.0", description="Version of the policy")
    last_updated: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Timestamp when policy was last exported",
    )
    cloud_provider: CloudProvider = Field(
        CloudProvider.AWS, description="Cloud provider whose taxonomy and naming rules apply"
    )
    required_tags: list[RequiredTag] = Field(
        default_factory=list, description="List of required tags"
    )
    optional_tags: list[OptionalTag] = Field(
        default_factory=list, description="List of optional tags"
    )
    tag_naming_rules: TagNamingRules = Field(
        default_factory=TagNamingRules, description="Rules for tag naming conventions"
    )

    @field_validator("cloud_provider", mode="before")
    @classmethod
    def _parse_provider(cls, value: Any) -> Any:
        if isinstance(value, str):
            return CloudProvider.parse(value)
        return value

    @classmethod
    def blank(cls, provider: CloudProvider | str = CloudProvider.AWS) -> "TagPolicy":
        """Create an empty policy with the provider's default naming rules."""
        provider = CloudProvider.parse(provider)
        return cls(
            version="1.0",
            cloud_provider=provider,
            tag_naming_rules=default_naming_rules(provider),
        )

    @property
    def all_tags(self) -> list[RequiredTag | OptionalTag]:
        """Required tags followed by optional tags."""
        return [*self.required_tags, *self.optional_tags]

    def touch(self) -> None:
        """Stamp last_updated with the current UTC time."""
        self.last_updated = datetime.now(timezone.utc)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize to the canonical JSON interchange object."""
        return self.model_dump(mode="json")
