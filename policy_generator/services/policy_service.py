# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""Policy service owning the in-memory policy of one editing session."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..converters import get_converter
from ..models import CloudProvider, OptionalTag, RequiredTag, TagPolicy, default_naming_rules
from .policy_validator import validate_policy
from .template_service import build_policy_from_template, get_template

logger = logging.getLogger(__name__)


class PolicyValidationError(Exception):
    """Raised when a canonical policy document is structurally invalid."""

    pass


class PolicyNotFoundError(Exception):
    """Raised when policy file is not found."""

    pass


@dataclass
class ProviderExport:
    """A provider-native document together with its lossy-export warnings."""

    provider: CloudProvider
    document: dict[str, Any]
    warnings: list[str] = field(default_factory=list)


class PolicyService:
    """
    Service owning the single canonical policy being edited.

    The policy is either fully replaced (new, load, template, import) or
    patched one tag at a time. ``last_updated`` is only stamped on export.
    Failed loads and imports leave the current policy untouched.
    """

    def __init__(
        self,
        policy: TagPolicy | None = None,
        policy_path: str | Path | None = None,
    ):
        """
        Initialize the PolicyService.

        Args:
            policy: Initial policy. If None, starts from a blank AWS policy.
            policy_path: Default path used by load_policy when none is given
        """
        self._policy = policy if policy is not None else TagPolicy.blank(CloudProvider.AWS)
        self._policy_path = Path(policy_path) if policy_path else None

    @property
    def policy(self) -> TagPolicy:
        """The current policy."""
        return self._policy

    # =========================================================================
    # Full replacement
    # =========================================================================

    def new_policy(self, provider: CloudProvider | str = CloudProvider.AWS) -> TagPolicy:
        """Replace the current policy with a blank one for the provider."""
        self._policy = TagPolicy.blank(provider)
        return self._policy

    def load_policy(self, policy_path: str | Path | None = None) -> TagPolicy:
        """
        Load a canonical policy from a JSON file.

        Args:
            policy_path: Path to the file. If None, uses the instance path.

        Returns:
            TagPolicy: The loaded policy, now current

        Raises:
            PolicyNotFoundError: If no path is known or the file doesn't exist
            PolicyValidationError: If the file is not a valid canonical policy
        """
        path = Path(policy_path) if policy_path else self._policy_path
        if path is None:
            raise PolicyNotFoundError("No policy path configured.")

        if not path.exists():
            raise PolicyNotFoundError(
                f"Policy file not found: {path}. Please create a policy file at this location."
            )

        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise PolicyValidationError(f"Error reading policy file {path}: {e}") from e

        policy = self.load_policy_json(text, source=str(path))
        logger.info(f"Loaded policy from {path}")
        return policy

    def load_policy_json(self, text: str, source: str = "input") -> TagPolicy:
        """
        Load a canonical policy from JSON text.

        Raises:
            PolicyValidationError: If the text is not JSON or not a valid policy
        """
        try:
            policy_data = json.loads(text)
        except json.JSONDecodeError as e:
            raise PolicyValidationError(f"Invalid JSON in policy {source}: {e}") from e

        if not isinstance(policy_data, dict):
            raise PolicyValidationError(f"Invalid policy structure in {source}: expected an object")

        try:
            policy = TagPolicy(**policy_data)
        except ValidationError as e:
            raise PolicyValidationError(f"Invalid policy structure in {source}: {e}") from e

        self._policy = policy
        return policy

    def apply_template(self, name: str, provider: CloudProvider | str | None = None) -> TagPolicy:
        """
        Replace the current policy with a template.

        Args:
            name: Template name (case-insensitive)
            provider: Template provider; defaults to the current policy's provider

        Raises:
            KeyError: If the template doesn't exist
        """
        template = get_template(name, provider or self._policy.cloud_provider)
        self._policy = build_policy_from_template(template)
        return self._policy

    def import_policy(self, provider: CloudProvider | str, text: str) -> TagPolicy:
        """
        Replace the current policy by importing a provider-native document.

        Raises:
            PolicyImportError: If the document can't be parsed or has the wrong shape
        """
        policy = get_converter(provider).import_policy(text)
        self._policy = policy
        return policy

    def set_cloud_provider(self, provider: CloudProvider | str) -> TagPolicy:
        """Switch provider and reset naming rules to that provider's defaults.

        Tags are kept as-is; ``applies_to`` entries from the old provider
        will be reported by the validator.
        """
        provider = CloudProvider.parse(provider)
        self._policy.cloud_provider = provider
        self._policy.tag_naming_rules = default_naming_rules(provider)
        return self._policy

    # =========================================================================
    # Tag patching
    # =========================================================================

    def add_required_tag(self, tag: RequiredTag | None = None) -> RequiredTag:
        """Append a required tag (a blank one by default)."""
        if tag is None:
            tag = RequiredTag(name="", description="", applies_to=[])
        self._policy.required_tags.append(tag)
        return tag

    def add_optional_tag(self, tag: OptionalTag | None = None) -> OptionalTag:
        """Append an optional tag (a blank one by default)."""
        if tag is None:
            tag = OptionalTag(name="", description="")
        self._policy.optional_tags.append(tag)
        return tag

    def update_required_tag(self, index: int, **changes: Any) -> RequiredTag:
        """Replace fields of the required tag at index."""
        tags = self._policy.required_tags
        _check_index(tags, index)
        tags[index] = RequiredTag(**{**tags[index].model_dump(), **changes})
        return tags[index]

    def update_optional_tag(self, index: int, **changes: Any) -> OptionalTag:
        """Replace fields of the optional tag at index."""
        tags = self._policy.optional_tags
        _check_index(tags, index)
        tags[index] = OptionalTag(**{**tags[index].model_dump(), **changes})
        return tags[index]

    def remove_required_tag(self, index: int) -> RequiredTag:
        tags = self._policy.required_tags
        _check_index(tags, index)
        return tags.pop(index)

    def remove_optional_tag(self, index: int) -> OptionalTag:
        tags = self._policy.optional_tags
        _check_index(tags, index)
        return tags.pop(index)

    def promote_optional_tag(self, index: int, applies_to: list[str] | None = None) -> RequiredTag:
        """
        Move an optional tag to the end of the required tags.

        Args:
            index: Position in optional_tags
            applies_to: Resource scope; defaults to the provider's minimal set
        """
        tags = self._policy.optional_tags
        _check_index(tags, index)
        optional = tags.pop(index)
        if applies_to is None:
            applies_to = list(get_converter(self._policy.cloud_provider).default_applies_to)

        required = RequiredTag(
            name=optional.name,
            description=optional.description,
            allowed_values=optional.allowed_values,
            validation_regex=None,
            applies_to=list(applies_to),
        )
        self._policy.required_tags.append(required)
        return required

    def demote_required_tag(self, index: int) -> OptionalTag:
        """Move a required tag to the end of the optional tags, dropping regex and scope."""
        tags = self._policy.required_tags
        _check_index(tags, index)
        required = tags.pop(index)
        optional = OptionalTag(
            name=required.name,
            description=required.description,
            allowed_values=required.allowed_values,
        )
        self._policy.optional_tags.append(optional)
        return optional

    def get_tag_by_name(self, tag_name: str) -> RequiredTag | OptionalTag | None:
        """
        Get a specific tag by name (searches both required and optional).

        Args:
            tag_name: Name of the tag to find

        Returns:
            The tag if found, None otherwise
        """
        for tag in self._policy.required_tags:
            if tag.name == tag_name:
                return tag

        for tag in self._policy.optional_tags:
            if tag.name == tag_name:
                return tag

        return None

    # =========================================================================
    # Validation and export
    # =========================================================================

    def validate(self) -> list[str]:
        return validate_policy(self._policy)

    def export_policy(self) -> ProviderExport:
        """
        Export the policy in its provider's native format.

        Stamps ``last_updated`` first, then converts with the converter
        selected by ``cloud_provider``.
        """
        self._policy.touch()
        converter = get_converter(self._policy.cloud_provider)
        return ProviderExport(
            provider=converter.provider,
            document=converter.export_policy(self._policy),
            warnings=converter.export_warnings(self._policy),
        )

    def export_canonical(self) -> dict[str, Any]:
        """Stamp ``last_updated`` and return the canonical JSON object."""
        self._policy.touch()
        return self._policy.to_json_dict()


def _check_index(tags: list[Any], index: int) -> None:
    if not 0 <= index < len(tags):
        raise IndexError(f"Tag index {index} out of range for {len(tags)} tag(s)")
