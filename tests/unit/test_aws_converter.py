"""Unit tests for the AWS Organizations tag policy converter."""

import json

import pytest

from policy_generator.converters import (
    InvalidPolicyJsonError,
    PolicyFormatError,
    PolicyImportError,
    convert_aws_policy_to_mcp,
    convert_mcp_to_aws_policy,
    get_aws_export_warnings,
)
from policy_generator.models import CloudProvider, OptionalTag, RequiredTag, TagPolicy


# =============================================================================
# Import
# =============================================================================


class TestAwsImport:
    """AWS tag policy -> MCP format."""

    def test_enforced_tag_becomes_required(self, aws_tag_policy_json):
        policy = convert_aws_policy_to_mcp(aws_tag_policy_json)

        assert policy.cloud_provider == CloudProvider.AWS
        assert len(policy.required_tags) == 1
        tag = policy.required_tags[0]
        assert tag.name == "CostCenter"
        assert tag.allowed_values == ["Engineering", "Marketing"]
        assert tag.validation_regex is None

    def test_all_supported_is_expanded(self, aws_tag_policy_json):
        tag = convert_aws_policy_to_mcp(aws_tag_policy_json).required_tags[0]
        assert tag.applies_to == [
            "ec2:instance",
            "ec2:volume",
            "ec2:snapshot",
            "ec2:natgateway",
            "s3:bucket",
        ]

    def test_tag_without_enforcement_is_optional(self, aws_tag_policy_json):
        policy = convert_aws_policy_to_mcp(aws_tag_policy_json)
        assert [t.name for t in policy.optional_tags] == ["Project"]
        assert policy.optional_tags[0].allowed_values is None

    def test_description_names_the_policy_key(self, aws_tag_policy_json):
        policy = convert_aws_policy_to_mcp(aws_tag_policy_json)
        assert policy.required_tags[0].description == (
            "Converted from AWS Organizations tag policy - costcenter"
        )

    def test_uses_aws_default_naming_rules(self, aws_tag_policy_json):
        rules = convert_aws_policy_to_mcp(aws_tag_policy_json).tag_naming_rules
        assert (rules.max_key_length, rules.max_value_length) == (128, 256)

    def test_missing_tag_key_falls_back_to_policy_key(self):
        text = json.dumps({"tags": {"team": {"enforced_for": {"@@assign": ["s3:bucket"]}}}})
        policy = convert_aws_policy_to_mcp(text)
        assert policy.required_tags[0].name == "team"

    def test_wildcard_and_unknown_services(self):
        text = json.dumps(
            {
                "tags": {
                    "owner": {
                        "tag_key": {"@@assign": "Owner"},
                        "enforced_for": {"@@assign": ["rds:*", "acme:ALL_SUPPORTED"]},
                    }
                }
            }
        )
        tag = convert_aws_policy_to_mcp(text).required_tags[0]
        assert tag.applies_to == ["rds:db", "rds:cluster", "acme:resource"]

    def test_duplicate_resource_types_are_collapsed(self):
        text = json.dumps(
            {
                "tags": {
                    "owner": {
                        "tag_key": {"@@assign": "Owner"},
                        "enforced_for": {"@@assign": ["ec2:instance", "ec2:ALL_SUPPORTED"]},
                    }
                }
            }
        )
        applies_to = convert_aws_policy_to_mcp(text).required_tags[0].applies_to
        assert applies_to.count("ec2:instance") == 1

    def test_single_string_tag_value(self):
        text = json.dumps(
            {"tags": {"env": {"tag_key": {"@@assign": "Env"}, "tag_value": {"@@assign": "prod"}}}}
        )
        assert convert_aws_policy_to_mcp(text).optional_tags[0].allowed_values == ["prod"]

    def test_empty_tags_object_gives_empty_policy(self):
        policy = convert_aws_policy_to_mcp('{"tags": {}}')
        assert policy.required_tags == []
        assert policy.optional_tags == []

    def test_invalid_json(self):
        with pytest.raises(InvalidPolicyJsonError, match="Invalid JSON format"):
            convert_aws_policy_to_mcp("{not json")

    @pytest.mark.parametrize("text", ['{"policies": {}}', "[]", '{"tags": []}'])
    def test_missing_tags_object(self, text):
        with pytest.raises(PolicyFormatError, match="'tags' object"):
            convert_aws_policy_to_mcp(text)

    def test_errors_share_base_class(self):
        assert issubclass(InvalidPolicyJsonError, PolicyImportError)
        assert issubclass(PolicyFormatError, ValueError)


# =============================================================================
# Export
# =============================================================================


class TestAwsExport:
    """MCP format -> AWS tag policy."""

    def test_required_tag_entry(self, aws_policy):
        document = convert_mcp_to_aws_policy(aws_policy)
        entry = document["tags"]["CostCenter"]

        assert entry["tag_key"] == {"@@assign": "CostCenter"}
        assert entry["tag_value"] == {"@@assign": ["Engineering", "Marketing", "Sales"]}
        assert entry["enforced_for"] == {
            "@@assign": ["ec2:ALL_SUPPORTED", "rds:ALL_SUPPORTED", "s3:ALL_SUPPORTED"]
        }
        assert entry["report_required_tag_for"] == {
            "@@assign": ["ec2:instance", "rds:db", "s3:bucket"]
        }

    def test_tag_without_values_has_no_tag_value(self, aws_policy):
        entry = convert_mcp_to_aws_policy(aws_policy)["tags"]["Owner"]
        assert "tag_value" not in entry

    def test_optional_tag_has_only_key(self, aws_policy):
        assert convert_mcp_to_aws_policy(aws_policy)["tags"]["Project"] == {
            "tag_key": {"@@assign": "Project"}
        }

    def test_regex_is_never_emitted(self, aws_policy):
        assert "validation_regex" not in json.dumps(convert_mcp_to_aws_policy(aws_policy))

    def test_reporting_only_services_are_not_enforced(self):
        policy = TagPolicy(
            cloud_provider="aws",
            required_tags=[
                RequiredTag(
                    name="Owner",
                    description="d",
                    applies_to=["elasticloadbalancing:loadbalancer", "sagemaker:endpoint"],
                )
            ],
        )
        entry = convert_mcp_to_aws_policy(policy)["tags"]["Owner"]
        assert "enforced_for" not in entry
        assert entry["report_required_tag_for"] == {
            "@@assign": ["elasticloadbalancing:loadbalancer", "sagemaker:endpoint"]
        }

    def test_report_types_are_normalized(self):
        policy = TagPolicy(
            cloud_provider="aws",
            required_tags=[
                RequiredTag(
                    name="Owner",
                    description="d",
                    applies_to=["rds:db-instance", "rds:db", "es:domain"],
                )
            ],
        )
        entry = convert_mcp_to_aws_policy(policy)["tags"]["Owner"]
        assert entry["report_required_tag_for"] == {"@@assign": ["rds:db", "opensearch:domain"]}

    def test_round_trip_keeps_names_and_values(self, aws_policy):
        text = json.dumps(convert_mcp_to_aws_policy(aws_policy))
        restored = convert_aws_policy_to_mcp(text)

        assert [t.name for t in restored.required_tags] == ["CostCenter", "Owner"]
        assert [t.name for t in restored.optional_tags] == ["Project"]
        assert restored.required_tags[0].allowed_values == ["Engineering", "Marketing", "Sales"]

    def test_regex_warning_names_the_tag(self, aws_policy):
        warnings = get_aws_export_warnings(aws_policy)
        assert len(warnings) == 1
        assert "Owner" in warnings[0]
        assert "regex" in warnings[0]

    def test_no_warnings_without_regex(self):
        policy = TagPolicy(
            cloud_provider="aws",
            required_tags=[RequiredTag(name="Env", description="d", applies_to=["s3:bucket"])],
            optional_tags=[OptionalTag(name="Project", description="p")],
        )
        assert get_aws_export_warnings(policy) == []
