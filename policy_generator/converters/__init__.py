"""Provider converters between native tag policy formats and the MCP format."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable

from ..models import CloudProvider, TagPolicy
from . import aws, azure, gcp
from .aws import convert_aws_policy_to_mcp, convert_mcp_to_aws_policy, get_aws_export_warnings
from .azure import (
    convert_azure_policy_to_mcp,
    convert_mcp_to_azure_policy,
    generate_azure_portal_json,
    get_azure_export_warnings,
)
from .errors import InvalidPolicyJsonError, PolicyFormatError, PolicyImportError
from .gcp import convert_gcp_policy_to_mcp, convert_mcp_to_gcp_policy, get_gcp_export_warnings


@dataclass(frozen=True)
class ProviderConverter:
    """The import/export/warnings triple for one cloud provider."""

    provider: CloudProvider
    display_name: str
    import_policy: Callable[[str], TagPolicy]
    export_policy: Callable[[TagPolicy], dict[str, Any]]
    export_warnings: Callable[[TagPolicy], list[str]]
    default_applies_to: tuple[str, ...]


CONVERTERS = MappingProxyType(
    {
        CloudProvider.AWS: ProviderConverter(
            provider=CloudProvider.AWS,
            display_name="AWS Organizations Tag Policy",
            import_policy=convert_aws_policy_to_mcp,
            export_policy=convert_mcp_to_aws_policy,
            export_warnings=get_aws_export_warnings,
            default_applies_to=aws.DEFAULT_APPLIES_TO,
        ),
        CloudProvider.GCP: ProviderConverter(
            provider=CloudProvider.GCP,
            display_name="GCP Label Policy",
            import_policy=convert_gcp_policy_to_mcp,
            export_policy=convert_mcp_to_gcp_policy,
            export_warnings=get_gcp_export_warnings,
            default_applies_to=gcp.DEFAULT_APPLIES_TO,
        ),
        CloudProvider.AZURE: ProviderConverter(
            provider=CloudProvider.AZURE,
            display_name="Azure Policy Initiative",
            import_policy=convert_azure_policy_to_mcp,
            export_policy=convert_mcp_to_azure_policy,
            export_warnings=get_azure_export_warnings,
            default_applies_to=azure.DEFAULT_APPLIES_TO,
        ),
    }
)


def get_converter(provider: CloudProvider | str) -> ProviderConverter:
    """Look up the converter for a provider. Raises ValueError if unknown."""
    return CONVERTERS[CloudProvider.parse(provider)]


__all__ = [
    "CONVERTERS",
    "ProviderConverter",
    "get_converter",
    "PolicyImportError",
    "InvalidPolicyJsonError",
    "PolicyFormatError",
    "convert_aws_policy_to_mcp",
    "convert_mcp_to_aws_policy",
    "get_aws_export_warnings",
    "convert_gcp_policy_to_mcp",
    "convert_mcp_to_gcp_policy",
    "get_gcp_export_warnings",
    "convert_azure_policy_to_mcp",
    "convert_mcp_to_azure_policy",
    "get_azure_export_warnings",
    "generate_azure_portal_json",
]
