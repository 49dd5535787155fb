"""Service layer for the Tagging Policy Generator."""

from .policy_validator import validate_policy
from .policy_service import (
    PolicyService,
    PolicyNotFoundError,
    PolicyValidationError,
    ProviderExport,
)
from .template_service import (
    TEMPLATES,
    get_templates,
    get_template,
    build_policy_from_template,
)
from .export_service import (
    ExportSink,
    FileExportSink,
    policy_to_json,
    policy_to_yaml,
    generate_markdown,
    download_json,
    download_markdown,
    download_yaml,
    download_provider_policy,
)

__all__ = [
    "validate_policy",
    "PolicyService",
    "PolicyNotFoundError",
    "PolicyValidationError",
    "ProviderExport",
    "TEMPLATES",
    "get_templates",
    "get_template",
    "build_policy_from_template",
    "ExportSink",
    "FileExportSink",
    "policy_to_json",
    "policy_to_yaml",
    "generate_markdown",
    "download_json",
    "download_markdown",
    "download_yaml",
    "download_provider_policy",
]
