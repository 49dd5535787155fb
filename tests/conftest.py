"""Pytest configuration and shared fixtures."""

import json

import pytest

from policy_generator.models import (
    CloudProvider,
    OptionalTag,
    RequiredTag,
    TagPolicy,
    default_naming_rules,
)


@pytest.fixture
def anyio_backend():
    """Configure anyio backend for async tests."""
    return "asyncio"


# =============================================================================
# Environment and Configuration Fixtures
# =============================================================================

@pytest.fixture
def test_env(monkeypatch, tmp_path):
    """Set up test environment variables."""
    test_vars = {
        "LOG_LEVEL": "DEBUG",
        "DEFAULT_CLOUD_PROVIDER": "gcp",
        "EXPORT_DIR": str(tmp_path / "exports"),
    }
    for key, value in test_vars.items():
        monkeypatch.setenv(key, value)
    return test_vars


# =============================================================================
# Canonical Policy Fixtures
# =============================================================================

@pytest.fixture
def aws_policy() -> TagPolicy:
    """A valid AWS policy with one regex-bearing required tag."""
    return TagPolicy(
        version="1.0",
        cloud_provider=CloudProvider.AWS,
        required_tags=[
            RequiredTag(
                name="CostCenter",
                description="Department for cost allocation",
                allowed_values=["Engineering", "Marketing", "Sales"],
                applies_to=["ec2:instance", "rds:db", "s3:bucket"],
            ),
            RequiredTag(
                name="Owner",
                description="Email address of the resource owner",
                validation_regex=r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$",
                applies_to=["ec2:instance", "lambda:function"],
            ),
        ],
        optional_tags=[
            OptionalTag(name="Project", description="Project identifier"),
        ],
        tag_naming_rules=default_naming_rules(CloudProvider.AWS),
    )


@pytest.fixture
def gcp_policy() -> TagPolicy:
    """A valid GCP policy using lowercase label keys."""
    return TagPolicy(
        version="1.0",
        cloud_provider=CloudProvider.GCP,
        required_tags=[
            RequiredTag(
                name="cost_center",
                description="Department for cost allocation",
                allowed_values=["engineering", "marketing"],
                applies_to=[
                    "compute.googleapis.com/Instance",
                    "storage.googleapis.com/Bucket",
                ],
            ),
            RequiredTag(
                name="environment",
                description="Deployment environment",
                allowed_values=["production", "staging"],
                applies_to=["sqladmin.googleapis.com/Instance"],
            ),
        ],
        optional_tags=[
            OptionalTag(name="project", description="Project identifier"),
        ],
        tag_naming_rules=default_naming_rules(CloudProvider.GCP),
    )


@pytest.fixture
def azure_policy() -> TagPolicy:
    """A valid Azure policy with a required and an optional tag."""
    return TagPolicy(
        version="1.0",
        cloud_provider=CloudProvider.AZURE,
        required_tags=[
            RequiredTag(
                name="CostCenter",
                description="Department for cost allocation",
                allowed_values=["Engineering", "Finance"],
                applies_to=[
                    "Microsoft.Compute/virtualMachines",
                    "Microsoft.Web/sites",
                ],
            ),
            RequiredTag(
                name="Environment",
                description="Deployment environment",
                applies_to=["Microsoft.Sql/servers/databases"],
            ),
        ],
        optional_tags=[
            OptionalTag(
                name="Project",
                description="Project identifier",
                allowed_values=["alpha", "beta"],
            ),
        ],
        tag_naming_rules=default_naming_rules(CloudProvider.AZURE),
    )


# =============================================================================
# Provider Document Fixtures
# =============================================================================

@pytest.fixture
def aws_tag_policy_json() -> str:
    """AWS Organizations tag policy with one enforced and one reporting-only tag."""
    return json.dumps(
        {
            "tags": {
                "costcenter": {
                    "tag_key": {"@@assign": "CostCenter"},
                    "tag_value": {"@@assign": ["Engineering", "Marketing"]},
                    "enforced_for": {"@@assign": ["ec2:ALL_SUPPORTED", "s3:bucket"]},
                },
                "project": {
                    "tag_key": {"@@assign": "Project"},
                },
            }
        }
    )


@pytest.fixture
def gcp_label_policy_json() -> str:
    """GCP label policy with a required label and an optional one."""
    return json.dumps(
        {
            "label_policy": {
                "labels": {
                    "cost_center": {
                        "label_key": "cost_center",
                        "description": "Department for cost allocation",
                        "allowed_values": ["engineering", "marketing"],
                        "enforced_for": ["compute.googleapis.com/Instance"],
                        "required": True,
                    },
                    "team": {
                        "label_key": "team",
                        "description": "Owning team",
                        "allowed_values": None,
                        "enforced_for": [],
                        "required": False,
                    },
                },
                "naming_rules": {"max_key_length": 40, "max_value_length": 50},
            }
        }
    )


@pytest.fixture
def azure_single_definition_json() -> str:
    """A single Azure policy definition with a parameterised effect."""
    return json.dumps(
        {
            "properties": {
                "displayName": "Require CostCenter tag",
                "mode": "Indexed",
                "parameters": {
                    "tagName": {"type": "String", "defaultValue": "CostCenter"},
                    "effect": {"type": "String", "defaultValue": "Deny"},
                },
                "policyRule": {
                    "if": {
                        "allOf": [
                            {"field": "type", "equals": "Microsoft.Compute/virtualMachines"},
                            {"field": "[concat('tags[', parameters('tagName'), ']')]", "exists": "false"},
                        ]
                    },
                    "then": {"effect": "[parameters('effect')]"},
                },
            }
        }
    )


# =============================================================================
# Pytest Hooks
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "slow: marks tests as slow running")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "property: marks tests as property-based tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "property" in path:
            item.add_marker(pytest.mark.property)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
