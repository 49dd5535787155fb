# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""
Static catalogue of starting-point policies.

Every provider gets the same four templates. Tag names follow the
provider's conventions (snake_case labels on GCP) and ``applies_to`` is
drawn from the provider's own taxonomy, so each template passes
validation under its provider's default naming rules.
"""

import logging
import re
from types import MappingProxyType

from ..models import (
    CloudProvider,
    OptionalTag,
    PolicyTemplate,
    RequiredTag,
    TagPolicy,
    default_naming_rules,
)

logger = logging.getLogger(__name__)

EMAIL_REGEX = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

# Resource scopes reused by the templates, per provider
_SCOPES = MappingProxyType(
    {
        CloudProvider.AWS: {
            "core": ("ec2:instance", "rds:db", "s3:bucket", "lambda:function"),
            "compute": ("ec2:instance", "rds:db", "lambda:function"),
            "data": ("s3:bucket", "rds:db", "dynamodb:table"),
            "platform": (
                "ec2:instance",
                "ec2:volume",
                "rds:db",
                "s3:bucket",
                "lambda:function",
                "ecs:service",
                "eks:cluster",
                "dynamodb:table",
                "elasticache:cluster",
            ),
        },
        CloudProvider.GCP: {
            "core": (
                "compute.googleapis.com/Instance",
                "sqladmin.googleapis.com/Instance",
                "storage.googleapis.com/Bucket",
                "cloudfunctions.googleapis.com/CloudFunction",
            ),
            "compute": (
                "compute.googleapis.com/Instance",
                "sqladmin.googleapis.com/Instance",
                "cloudfunctions.googleapis.com/CloudFunction",
            ),
            "data": (
                "storage.googleapis.com/Bucket",
                "sqladmin.googleapis.com/Instance",
                "bigquery.googleapis.com/Dataset",
            ),
            "platform": (
                "compute.googleapis.com/Instance",
                "compute.googleapis.com/Disk",
                "sqladmin.googleapis.com/Instance",
                "storage.googleapis.com/Bucket",
                "cloudfunctions.googleapis.com/CloudFunction",
                "container.googleapis.com/Cluster",
                "run.googleapis.com/Service",
                "bigquery.googleapis.com/Dataset",
            ),
        },
        CloudProvider.AZURE: {
            "core": (
                "Microsoft.Compute/virtualMachines",
                "Microsoft.Sql/servers/databases",
                "Microsoft.Storage/storageAccounts",
                "Microsoft.Web/sites",
            ),
            "compute": (
                "Microsoft.Compute/virtualMachines",
                "Microsoft.Sql/servers/databases",
                "Microsoft.Web/sites",
            ),
            "data": (
                "Microsoft.Storage/storageAccounts",
                "Microsoft.Sql/servers/databases",
                "Microsoft.DocumentDB/databaseAccounts",
            ),
            "platform": (
                "Microsoft.Compute/virtualMachines",
                "Microsoft.Compute/disks",
                "Microsoft.Sql/servers/databases",
                "Microsoft.Storage/storageAccounts",
                "Microsoft.Web/sites",
                "Microsoft.ContainerService/managedClusters",
                "Microsoft.KeyVault/vaults",
            ),
        },
    }
)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")
_LABEL_VALUE_UNSAFE = re.compile(r"[^a-z0-9_-]")


class _TagFactory:
    """Builds tags following one provider's naming conventions."""

    def __init__(self, provider: CloudProvider):
        self.provider = provider
        self.scopes = _SCOPES[provider]
        self.is_gcp = provider == CloudProvider.GCP

    def name(self, name: str) -> str:
        return _CAMEL_BOUNDARY.sub("_", name).lower() if self.is_gcp else name

    def values(self, *values: str) -> list[str]:
        if self.is_gcp:
            return [_LABEL_VALUE_UNSAFE.sub("_", v.lower()) for v in values]
        return list(values)

    def required(
        self,
        name: str,
        description: str,
        scope: str,
        allowed_values: tuple[str, ...] | None = None,
        validation_regex: str | None = None,
    ) -> RequiredTag:
        return RequiredTag(
            name=self.name(name),
            description=description,
            allowed_values=self.values(*allowed_values) if allowed_values else None,
            validation_regex=validation_regex,
            applies_to=list(self.scopes[scope]),
        )

    def optional(
        self, name: str, description: str, allowed_values: tuple[str, ...] | None = None
    ) -> OptionalTag:
        return OptionalTag(
            name=self.name(name),
            description=description,
            allowed_values=self.values(*allowed_values) if allowed_values else None,
        )

    def owner(self, scope: str) -> RequiredTag:
        # GCP label values cannot hold '@', so owners are free text there
        if self.is_gcp:
            return self.required("Owner", "Team or user owning the resource (label-safe)", scope)
        return self.required(
            "Owner", "Email address of the resource owner", scope, validation_regex=EMAIL_REGEX
        )


def _build_templates(provider: CloudProvider) -> tuple[PolicyTemplate, ...]:
    f = _TagFactory(provider)

    cost_allocation = PolicyTemplate(
        name="Cost Allocation",
        description="Basic cost tracking and chargeback",
        provider=provider,
        required_tags=(
            f.required(
                "CostCenter",
                "Department for cost allocation",
                "core",
                ("Engineering", "Marketing", "Sales", "Operations"),
            ),
            f.owner("core"),
            f.required(
                "Environment",
                "Deployment environment",
                "compute",
                ("production", "staging", "development", "test"),
            ),
        ),
        optional_tags=(f.optional("Project", "Project identifier"),),
    )

    startup = PolicyTemplate(
        name="Startup",
        description="Lightweight ownership and environment tracking for small teams",
        provider=provider,
        required_tags=(
            f.owner("core"),
            f.required(
                "Environment", "Deployment environment", "core", ("production", "development")
            ),
        ),
        optional_tags=(
            f.optional("Project", "Project identifier"),
            f.optional("Team", "Team responsible for day-to-day operations"),
        ),
    )

    enterprise = PolicyTemplate(
        name="Enterprise",
        description="Full chargeback, data classification and compliance tracking",
        provider=provider,
        required_tags=(
            f.required(
                "CostCenter",
                "Department for cost allocation",
                "platform",
                ("Engineering", "Marketing", "Sales", "Operations", "Finance"),
            ),
            f.required("BusinessUnit", "Business unit accountable for the spend", "platform"),
            f.required(
                "Environment",
                "Deployment environment",
                "platform",
                ("production", "staging", "development", "test"),
            ),
            f.owner("platform"),
            f.required(
                "DataClassification",
                "Data sensitivity level",
                "data",
                ("public", "internal", "confidential", "restricted"),
            ),
            f.required(
                "Compliance",
                "Compliance framework",
                "data",
                ("HIPAA", "PCI-DSS", "SOC2", "GDPR", "None"),
            ),
        ),
        optional_tags=(
            f.optional("Project", "Project identifier"),
            f.optional("Application", "Application or workload name"),
            f.optional("Backup", "Backup schedule", ("daily", "weekly", "none")),
        ),
    )

    minimal_starter = PolicyTemplate(
        name="Minimal Starter",
        description="Essential tags to get started",
        provider=provider,
        required_tags=(
            f.required("CostCenter", "Department for cost allocation", "core"),
            f.required("Owner", "Resource owner", "core"),
            f.required(
                "Environment",
                "Deployment environment",
                "compute",
                ("production", "staging", "development"),
            ),
        ),
    )

    return (cost_allocation, startup, enterprise, minimal_starter)


TEMPLATES: MappingProxyType[CloudProvider, tuple[PolicyTemplate, ...]] = MappingProxyType(
    {provider: _build_templates(provider) for provider in CloudProvider}
)


def get_templates(provider: CloudProvider | str | None = None) -> list[PolicyTemplate]:
    """
    List templates, optionally for a single provider.

    Args:
        provider: Provider to filter by; None lists every provider's templates

    Returns:
        Templates in catalogue order
    """
    if provider is None:
        return [template for templates in TEMPLATES.values() for template in templates]
    return list(TEMPLATES[CloudProvider.parse(provider)])


def get_template(name: str, provider: CloudProvider | str) -> PolicyTemplate:
    """
    Look up a template by case-insensitive name.

    Raises:
        KeyError: If the provider has no template with that name
    """
    provider = CloudProvider.parse(provider)
    for template in TEMPLATES[provider]:
        if template.name.lower() == name.strip().lower():
            return template
    raise KeyError(f"No template named '{name}' for {provider.value}")


def build_policy_from_template(template: PolicyTemplate) -> TagPolicy:
    """Create a fresh, independently editable policy from a template."""
    logger.info(f"Building {template.provider.value} policy from template '{template.name}'")
    return TagPolicy(
        version="1.0",
        cloud_provider=template.provider,
        required_tags=[tag.model_copy(deep=True) for tag in template.required_tags],
        optional_tags=[tag.model_copy(deep=True) for tag in template.optional_tags],
        tag_naming_rules=default_naming_rules(template.provider),
    )
