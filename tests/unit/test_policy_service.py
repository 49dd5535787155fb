"""Unit tests for PolicyService."""

import json
from datetime import datetime, timezone

import pytest

from policy_generator.converters import InvalidPolicyJsonError, PolicyFormatError
from policy_generator.models import CloudProvider, OptionalTag, RequiredTag
from policy_generator.services import (
    PolicyNotFoundError,
    PolicyService,
    PolicyValidationError,
    ProviderExport,
)

OLD_STAMP = datetime(2020, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def service(aws_policy):
    return PolicyService(policy=aws_policy)


# =============================================================================
# Full replacement
# =============================================================================


class TestReplacement:
    """Operations that replace the whole policy."""

    def test_defaults_to_blank_aws_policy(self):
        policy = PolicyService().policy
        assert policy.cloud_provider == CloudProvider.AWS
        assert policy.required_tags == []

    def test_new_policy(self, service):
        policy = service.new_policy("azure")
        assert service.policy is policy
        assert policy.cloud_provider == CloudProvider.AZURE
        assert policy.tag_naming_rules.max_key_length == 512

    def test_load_policy_from_file(self, tmp_path, gcp_policy):
        path = tmp_path / "policy.json"
        path.write_text(json.dumps(gcp_policy.to_json_dict()), encoding="utf-8")

        service = PolicyService(policy_path=path)
        policy = service.load_policy()

        assert policy.cloud_provider == CloudProvider.GCP
        assert [t.name for t in policy.required_tags] == ["cost_center", "environment"]

    def test_load_without_path(self):
        with pytest.raises(PolicyNotFoundError, match="No policy path"):
            PolicyService().load_policy()

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(PolicyNotFoundError, match="not found"):
            PolicyService().load_policy(tmp_path / "missing.json")

    def test_load_invalid_json_keeps_current_policy(self, service, tmp_path, aws_policy):
        path = tmp_path / "broken.json"
        path.write_text("{broken", encoding="utf-8")

        with pytest.raises(PolicyValidationError, match="Invalid JSON"):
            service.load_policy(path)
        assert service.policy is aws_policy

    def test_load_null_scope_reports_empty_selection(self, service):
        """A null applies_to loads and surfaces as a validation finding."""
        text = json.dumps(
            {
                "cloud_provider": "aws",
                "required_tags": [
                    {"name": "A", "description": "Owner", "applies_to": None}
                ],
            }
        )
        policy = service.load_policy_json(text)

        assert policy.required_tags[0].applies_to == []
        assert (
            "Required tag #1 (A): At least one resource type must be selected"
            in service.validate()
        )

    def test_load_wrong_structure(self, service):
        with pytest.raises(PolicyValidationError, match="Invalid policy structure"):
            service.load_policy_json('{"required_tags": "CostCenter"}')

    def test_load_non_object(self, service):
        with pytest.raises(PolicyValidationError, match="expected an object"):
            service.load_policy_json("[1, 2]")

    def test_apply_template_defaults_to_current_provider(self):
        service = PolicyService()
        service.new_policy("gcp")
        policy = service.apply_template("startup")

        assert policy.cloud_provider == CloudProvider.GCP
        assert policy.required_tags[0].name == "owner"

    def test_apply_unknown_template(self, service, aws_policy):
        with pytest.raises(KeyError):
            service.apply_template("Nope")
        assert service.policy is aws_policy

    def test_import_policy(self, service, aws_tag_policy_json):
        policy = service.import_policy("aws", aws_tag_policy_json)
        assert service.policy is policy
        assert policy.required_tags[0].name == "CostCenter"

    def test_failed_import_keeps_current_policy(self, service, aws_policy):
        with pytest.raises(InvalidPolicyJsonError):
            service.import_policy("azure", "not json")
        with pytest.raises(PolicyFormatError):
            service.import_policy("gcp", "{}")
        assert service.policy is aws_policy

    def test_set_cloud_provider_resets_naming_rules(self, service):
        policy = service.set_cloud_provider("GCP")

        assert policy.cloud_provider == CloudProvider.GCP
        assert policy.tag_naming_rules.max_key_length == 63
        assert [t.name for t in policy.required_tags] == ["CostCenter", "Owner"]
        assert any("Invalid resource types" in e for e in service.validate())


# =============================================================================
# Tag patching
# =============================================================================


class TestTagPatching:
    """Per-tag edits."""

    def test_add_blank_required_tag(self, service):
        tag = service.add_required_tag()
        assert service.policy.required_tags[-1] is tag
        assert (tag.name, tag.description, tag.applies_to) == ("", "", [])

    def test_add_given_optional_tag(self, service):
        tag = service.add_optional_tag(OptionalTag(name="Team", description="Owning team"))
        assert service.policy.optional_tags[-1] is tag

    def test_update_required_tag(self, service):
        tag = service.update_required_tag(0, allowed_values=["Finance"])
        assert tag.name == "CostCenter"
        assert tag.allowed_values == ["Finance"]
        assert service.policy.required_tags[0] is tag

    def test_update_optional_tag(self, service):
        tag = service.update_optional_tag(0, name="Initiative")
        assert service.policy.optional_tags[0].name == "Initiative"
        assert tag.description == "Project identifier"

    def test_remove_tags(self, service):
        removed = service.remove_required_tag(1)
        assert removed.name == "Owner"
        assert service.remove_optional_tag(0).name == "Project"
        assert [t.name for t in service.policy.all_tags] == ["CostCenter"]

    @pytest.mark.parametrize("index", [-1, 2, 10])
    def test_out_of_range_index(self, service, index):
        with pytest.raises(IndexError, match="out of range"):
            service.update_required_tag(index, name="x")

    def test_promote_uses_provider_default_scope(self, service):
        tag = service.promote_optional_tag(0)

        assert isinstance(tag, RequiredTag)
        assert tag.name == "Project"
        assert tag.validation_regex is None
        assert tag.applies_to == ["ec2:instance", "s3:bucket", "lambda:function"]
        assert service.policy.optional_tags == []
        assert service.policy.required_tags[-1] is tag
        assert service.validate() == []

    def test_promote_with_explicit_scope(self, service):
        tag = service.promote_optional_tag(0, applies_to=["rds:db"])
        assert tag.applies_to == ["rds:db"]

    def test_demote_drops_regex_and_scope(self, service):
        tag = service.demote_required_tag(1)

        assert isinstance(tag, OptionalTag)
        assert tag.name == "Owner"
        assert not hasattr(tag, "validation_regex")
        assert [t.name for t in service.policy.optional_tags] == ["Project", "Owner"]

    def test_get_tag_by_name(self, service):
        assert service.get_tag_by_name("Owner").description == "Email address of the resource owner"
        assert isinstance(service.get_tag_by_name("Project"), OptionalTag)
        assert service.get_tag_by_name("Missing") is None


# =============================================================================
# Validation and export
# =============================================================================


class TestExport:
    """Provider and canonical exports."""

    def test_validate(self, service):
        assert service.validate() == []
        service.add_required_tag()
        assert "Required tag #3: Name is required" in service.validate()

    def test_export_stamps_last_updated(self, service):
        service.policy.last_updated = OLD_STAMP
        export = service.export_policy()

        assert isinstance(export, ProviderExport)
        assert export.provider == CloudProvider.AWS
        assert service.policy.last_updated > OLD_STAMP
        assert "CostCenter" in export.document["tags"]
        assert any("Owner" in w for w in export.warnings)

    def test_export_follows_current_provider(self, azure_policy):
        export = PolicyService(policy=azure_policy).export_policy()
        assert export.provider == CloudProvider.AZURE
        assert "policyDefinitions" in export.document["properties"]

    def test_export_canonical(self, service):
        service.policy.last_updated = OLD_STAMP
        document = service.export_canonical()

        assert document["cloud_provider"] == "aws"
        assert not document["last_updated"].startswith("2020")
        assert list(document) == [
            "version",
            "last_updated",
            "cloud_provider",
            "required_tags",
            "optional_tags",
            "tag_naming_rules",
        ]
