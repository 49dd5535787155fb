"""Utility modules for the Tagging Policy Generator."""

from .resource_taxonomy import (
    AZURE_STORAGE_ACCOUNT_PREFIX,
    RESOURCE_CATEGORIES,
    find_provider_for_resource_type,
    get_resource_categories,
    get_resource_types,
    is_valid_resource_type,
)

__all__ = [
    "AZURE_STORAGE_ACCOUNT_PREFIX",
    "RESOURCE_CATEGORIES",
    "find_provider_for_resource_type",
    "get_resource_categories",
    "get_resource_types",
    "is_valid_resource_type",
]
