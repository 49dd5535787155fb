"""MCP tools for building and converting tagging policies."""

from .validate_tagging_policy import validate_tagging_policy, ValidateTaggingPolicyResult
from .import_tagging_policy import (
    import_tagging_policy,
    ImportTaggingPolicyResult,
    PolicySummary,
)
from .export_tagging_policy import export_tagging_policy, ExportTaggingPolicyResult
from .get_resource_types import get_resource_types, GetResourceTypesResult
from .list_policy_templates import list_policy_templates, ListPolicyTemplatesResult
from .generate_azure_portal_json import (
    generate_azure_portal_json,
    GenerateAzurePortalJsonResult,
)

__all__ = [
    "validate_tagging_policy",
    "ValidateTaggingPolicyResult",
    "import_tagging_policy",
    "ImportTaggingPolicyResult",
    "PolicySummary",
    "export_tagging_policy",
    "ExportTaggingPolicyResult",
    "get_resource_types",
    "GetResourceTypesResult",
    "list_policy_templates",
    "ListPolicyTemplatesResult",
    "generate_azure_portal_json",
    "GenerateAzurePortalJsonResult",
]
