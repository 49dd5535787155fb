# Copyright (c) 2025 OptimNow - Jean Latiere. All Rights Reserved.
# Licensed under the Proprietary Software License.
# See LICENSE file in the project root for full license information.

"""MCP tool for validating a canonical tagging policy."""

import logging
from typing import Any

from pydantic import BaseModel, Field

from ..models import TagPolicy
from ..services.policy_validator import validate_policy
from ._policy_input import InvalidPolicyInputError, parse_policy_input

logger = logging.getLogger(__name__)


class ValidateTaggingPolicyResult(BaseModel):
    """Result from the validate_tagging_policy tool."""

    status: str = Field(..., description="Status: 'success' or 'error'")
    valid: bool = Field(False, description="True when no validation errors were found")
    errors: list[str] = Field(
        default_factory=list, description="Validation errors in discovery order"
    )
    error_count: int = Field(0, description="Number of validation errors")
    cloud_provider: str | None = Field(None, description="Provider the policy targets")
    message: str = Field("", description="Human-readable status message")


async def validate_tagging_policy(
    policy: TagPolicy | dict[str, Any] | str,
) -> ValidateTaggingPolicyResult:
    """
    Validate a canonical tagging policy.

    Runs the generic checks (names, descriptions, regex, allowed values,
    naming rules) and the checks for the policy's cloud provider (name
    formats, resource taxonomy membership, provider limits).

    Args:
        policy: Canonical policy as a TagPolicy, JSON object or JSON text

    Returns:
        ValidateTaggingPolicyResult; status is 'error' only when the input
        is not a canonical policy at all
    """
    try:
        parsed = parse_policy_input(policy)
    except InvalidPolicyInputError as e:
        logger.warning(f"Rejected policy input: {e}")
        return ValidateTaggingPolicyResult(status="error", message=str(e))

    errors = validate_policy(parsed)
    logger.info(
        f"Validated {parsed.cloud_provider.value} policy: {len(errors)} error(s)"
    )

    if errors:
        message = f"Policy has {len(errors)} validation error(s)."
    else:
        message = "Policy is valid."

    return ValidateTaggingPolicyResult(
        status="success",
        valid=not errors,
        errors=errors,
        error_count=len(errors),
        cloud_provider=parsed.cloud_provider.value,
        message=message,
    )
