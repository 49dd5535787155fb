"""Unit tests for validate_policy."""

import pytest

from policy_generator.models import (
    CloudProvider,
    OptionalTag,
    RequiredTag,
    TagNamingRules,
    TagPolicy,
    default_naming_rules,
)
from policy_generator.services.policy_validator import validate_policy

AWS_SCOPE = ["ec2:instance"]
GCP_SCOPE = ["compute.googleapis.com/Instance"]
AZURE_SCOPE = ["Microsoft.Compute/virtualMachines"]


def make_policy(provider, required=(), optional=(), rules=None):
    return TagPolicy(
        cloud_provider=provider,
        required_tags=list(required),
        optional_tags=list(optional),
        tag_naming_rules=rules or default_naming_rules(provider),
    )


def required(name, applies_to, **kwargs):
    return RequiredTag(name=name, description=kwargs.pop("description", "desc"), applies_to=applies_to, **kwargs)


# =============================================================================
# Generic rules
# =============================================================================


class TestGenericRules:
    """Rules applied regardless of provider."""

    def test_valid_fixtures_have_no_errors(self, aws_policy, gcp_policy, azure_policy):
        assert validate_policy(aws_policy) == []
        assert validate_policy(gcp_policy) == []
        assert validate_policy(azure_policy) == []

    def test_blank_policy_requires_a_required_tag(self):
        for provider in CloudProvider:
            errors = validate_policy(TagPolicy.blank(provider))
            assert "At least one required tag must be defined" in errors

    def test_blank_name(self):
        policy = make_policy("aws", [required("  ", AWS_SCOPE)])
        assert "Required tag #1: Name is required" in validate_policy(policy)

    def test_duplicate_names_are_case_insensitive_across_kinds(self):
        """The first occurrence wins; later duplicates are flagged."""
        policy = make_policy(
            "aws",
            [required("CostCenter", AWS_SCOPE), required("costcenter", AWS_SCOPE)],
            [OptionalTag(name="COSTCENTER", description="x")],
        )
        errors = validate_policy(policy)
        assert 'Required tag #2: Duplicate tag name "costcenter"' in errors
        assert 'Optional tag #1: Duplicate tag name "COSTCENTER"' in errors
        assert not any(e.startswith("Required tag #1") for e in errors)

    def test_blank_description_uses_unnamed_label(self):
        policy = make_policy("aws", [required("", AWS_SCOPE, description=" ")])
        assert "Required tag #1 (Unnamed): Description is required" in validate_policy(policy)

    def test_empty_applies_to(self):
        policy = make_policy("aws", [required("Owner", [])])
        assert (
            "Required tag #1 (Owner): At least one resource type must be selected"
            in validate_policy(policy)
        )

    def test_invalid_regex_is_reported_not_raised(self):
        policy = make_policy("aws", [required("Owner", AWS_SCOPE, validation_regex="(unclosed")])
        assert "Required tag #1 (Owner): Invalid regex pattern" in validate_policy(policy)

    def test_valid_regex_passes(self):
        policy = make_policy("aws", [required("Owner", AWS_SCOPE, validation_regex=r"^\w+$")])
        assert validate_policy(policy) == []

    def test_blank_allowed_values(self):
        policy = make_policy(
            "aws",
            [required("Env", AWS_SCOPE, allowed_values=["prod", " "])],
            [OptionalTag(name="Project", description="p", allowed_values=[""])],
        )
        errors = validate_policy(policy)
        assert "Required tag #1 (Env): Allowed values cannot contain empty strings" in errors
        assert "Optional tag #1 (Project): Allowed values cannot contain empty strings" in errors

    def test_optional_tags_do_not_need_description(self):
        policy = make_policy(
            "aws", [required("Owner", AWS_SCOPE)], [OptionalTag(name="Project", description="")]
        )
        assert validate_policy(policy) == []

    def test_non_positive_lengths(self):
        policy = make_policy(
            "aws",
            [required("Owner", AWS_SCOPE)],
            rules=TagNamingRules(max_key_length=0, max_value_length=-1),
        )
        errors = validate_policy(policy)
        assert "Max key length must be greater than 0" in errors
        assert "Max value length must be greater than 0" in errors

    def test_errors_are_in_discovery_order(self):
        policy = make_policy(
            "aws",
            [required("", [], description="")],
            rules=TagNamingRules(max_key_length=0),
        )
        assert validate_policy(policy) == [
            "Required tag #1: Name is required",
            "Required tag #1 (Unnamed): Description is required",
            "Required tag #1 (Unnamed): At least one resource type must be selected",
            "Max key length must be greater than 0",
        ]

    def test_is_stable(self, aws_policy):
        aws_policy.required_tags[0].validation_regex = "(["
        assert validate_policy(aws_policy) == validate_policy(aws_policy)


# =============================================================================
# Resource taxonomy
# =============================================================================


class TestResourceTypes:
    """applies_to entries must come from the active provider's taxonomy."""

    def test_cross_provider_identifier_is_named(self):
        policy = make_policy(
            "gcp", [required("cost_center", ["Microsoft.Compute/virtualMachines"])]
        )
        errors = validate_policy(policy)
        assert len(errors) == 1
        assert "Invalid resource types" in errors[0]
        assert "Microsoft.Compute/virtualMachines" in errors[0]
        assert "Azure resource type" in errors[0]

    def test_unknown_identifier_is_named(self):
        policy = make_policy("aws", [required("Owner", ["ec2:instance", "ec2:spaceship"])])
        errors = validate_policy(policy)
        assert any("ec2:spaceship (unknown)" in e for e in errors)
        assert not any("ec2:instance" in e for e in errors)

    def test_aws_identifier_under_azure(self):
        policy = make_policy("azure", [required("Owner", ["s3:bucket"])])
        assert any("s3:bucket" in e and "Invalid resource types" in e for e in validate_policy(policy))


# =============================================================================
# Provider name rules
# =============================================================================


class TestGcpRules:
    """GCP label key format and length."""

    def test_camel_case_name_is_rejected(self):
        errors = validate_policy(make_policy("gcp", [required("CostCenter", GCP_SCOPE)]))
        assert any("lowercase" in e for e in errors)

    def test_snake_case_name_is_accepted(self):
        assert validate_policy(make_policy("gcp", [required("cost_center", GCP_SCOPE)])) == []

    def test_name_must_start_with_letter(self):
        errors = validate_policy(make_policy("gcp", [required("1team", GCP_SCOPE)]))
        assert any("start with a letter" in e for e in errors)

    def test_length_applies_to_required_and_optional(self):
        long_name = "a" * 64
        policy = make_policy(
            "gcp",
            [required(long_name, GCP_SCOPE)],
            [OptionalTag(name="b" * 64, description="x")],
        )
        errors = [e for e in validate_policy(policy) if "63 characters" in e]
        assert len(errors) == 2
        assert errors[0].startswith("Required tag #1")
        assert errors[1].startswith("Optional tag #1")

    def test_charset_applies_to_optional_tags(self):
        policy = make_policy(
            "gcp", [required("owner", GCP_SCOPE)], [OptionalTag(name="Project", description="x")]
        )
        errors = validate_policy(policy)
        assert len(errors) == 1
        assert errors[0].startswith("Optional tag #1 (Project)")

    def test_naming_rule_ceiling(self):
        policy = make_policy(
            "gcp",
            [required("owner", GCP_SCOPE)],
            rules=TagNamingRules(max_key_length=64, max_value_length=128),
        )
        errors = validate_policy(policy)
        assert "Max key length cannot exceed 63 for GCP" in errors
        assert "Max value length cannot exceed 63 for GCP" in errors

    def test_gcp_rules_do_not_apply_to_aws(self):
        assert validate_policy(make_policy("aws", [required("CostCenter", AWS_SCOPE)])) == []


class TestAzureRules:
    """Azure tag name restrictions and limits."""

    def test_reserved_prefix(self):
        errors = validate_policy(make_policy("azure", [required("microsoftTeam", AZURE_SCOPE)]))
        assert any("reserved prefixes" in e for e in errors)

    def test_ordinary_name_passes(self):
        assert validate_policy(make_policy("azure", [required("TeamOwner", AZURE_SCOPE)])) == []

    @pytest.mark.parametrize("prefix", ["Azure", "WINDOWS", "Microsoft"])
    def test_reserved_prefix_is_case_insensitive(self, prefix):
        errors = validate_policy(make_policy("azure", [required(f"{prefix}Env", AZURE_SCOPE)]))
        assert any("reserved prefixes" in e for e in errors)

    @pytest.mark.parametrize("char", ["<", ">", "%", "&", "\\", "?", "/"])
    def test_forbidden_characters(self, char):
        errors = validate_policy(make_policy("azure", [required(f"Cost{char}Center", AZURE_SCOPE)]))
        assert any("cannot contain" in e for e in errors)

    def test_key_length(self):
        errors = validate_policy(make_policy("azure", [required("k" * 513, AZURE_SCOPE)]))
        assert any("512 characters" in e for e in errors)

    def test_value_length_ceiling(self):
        policy = make_policy(
            "azure",
            [required("Owner", AZURE_SCOPE)],
            rules=TagNamingRules(max_key_length=512, max_value_length=257),
        )
        assert "Max value length cannot exceed 256 for Azure" in validate_policy(policy)

    def test_tag_count_limit(self):
        optional = [OptionalTag(name=f"Tag{i}", description="x") for i in range(50)]
        policy = make_policy("azure", [required("Owner", AZURE_SCOPE)], optional)
        errors = validate_policy(policy)
        assert any("maximum of 50 tags" in e and "51" in e for e in errors)

    def test_fifty_tags_is_allowed(self):
        optional = [OptionalTag(name=f"Tag{i}", description="x") for i in range(49)]
        policy = make_policy("azure", [required("Owner", AZURE_SCOPE)], optional)
        assert validate_policy(policy) == []

    def test_storage_account_key_limit(self):
        long_name = "L" * 129
        policy = make_policy(
            "azure",
            [required("Owner", ["Microsoft.Storage/storageAccounts"])],
            [OptionalTag(name=long_name, description="x")],
        )
        errors = validate_policy(policy)
        assert any("Storage accounts limit tag names to 128" in e and long_name in e for e in errors)

    def test_storage_limit_ignored_without_storage_targets(self):
        policy = make_policy(
            "azure",
            [required("Owner", AZURE_SCOPE)],
            [OptionalTag(name="L" * 129, description="x")],
        )
        assert validate_policy(policy) == []
