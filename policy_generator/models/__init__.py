"""Data models for the Tagging Policy Generator."""

from .enums import CloudProvider
from .policy import (
    TagPolicy,
    RequiredTag,
    OptionalTag,
    TagNamingRules,
    default_naming_rules,
)
from .taxonomy import ResourceCategory, PolicyTemplate

__all__ = [
    "CloudProvider",
    "TagPolicy",
    "RequiredTag",
    "OptionalTag",
    "TagNamingRules",
    "default_naming_rules",
    "ResourceCategory",
    "PolicyTemplate",
]
