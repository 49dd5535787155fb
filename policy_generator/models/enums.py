"""Enumerations shared across the policy model."""

from enum import Enum


class CloudProvider(str, Enum):
    """Cloud providers a tagging policy can target."""

    AWS = "aws"
    GCP = "gcp"
    AZURE = "azure"

    @classmethod
    def parse(cls, value: "str | CloudProvider") -> "CloudProvider":
        """Resolve a provider from its enum value or a case-insensitive string.

        Raises:
            ValueError: If the value does not name a supported provider
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            supported = ", ".join(p.value for p in cls)
            raise ValueError(
                f"Unsupported cloud provider '{value}'. Expected one of: {supported}"
            ) from None
