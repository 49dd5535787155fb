"""Parsing of canonical policies passed to tools as JSON objects or text."""

import json
from typing import Any

from pydantic import ValidationError

from ..models import TagPolicy


class InvalidPolicyInputError(ValueError):
    """Raised when a tool receives something that is not a canonical policy."""

    pass


def parse_policy_input(policy: TagPolicy | dict[str, Any] | str) -> TagPolicy:
    """Accept a TagPolicy, its JSON object, or JSON text."""
    if isinstance(policy, TagPolicy):
        return policy

    if isinstance(policy, str):
        try:
            policy = json.loads(policy)
        except json.JSONDecodeError as e:
            raise InvalidPolicyInputError(f"Policy is not valid JSON: {e}") from e

    if not isinstance(policy, dict):
        raise InvalidPolicyInputError("Policy must be a JSON object")

    try:
        return TagPolicy(**policy)
    except ValidationError as e:
        raise InvalidPolicyInputError(f"Invalid policy structure: {e}") from e
