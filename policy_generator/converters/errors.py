"""Errors raised while importing provider-native policy documents."""


class PolicyImportError(ValueError):
    """Base class for import failures. The caller's policy is left untouched."""

    pass


class InvalidPolicyJsonError(PolicyImportError):
    """Raised when the pasted text is not valid JSON."""

    pass


class PolicyFormatError(PolicyImportError):
    """Raised when valid JSON does not have the provider's expected shape."""

    pass
