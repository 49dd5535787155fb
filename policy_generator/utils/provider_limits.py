"""Static tag/label limits per cloud provider.

Captured from provider documentation; not checked against live APIs.
"""

import re

# GCP labels
GCP_MAX_KEY_LENGTH = 63
GCP_MAX_VALUE_LENGTH = 63
GCP_LABEL_KEY_PATTERN = re.compile(r"^[a-z][a-z0-9_-]*$")

# Azure tags
AZURE_MAX_KEY_LENGTH = 512
AZURE_MAX_VALUE_LENGTH = 256
AZURE_MAX_TAGS_PER_RESOURCE = 50
AZURE_STORAGE_MAX_KEY_LENGTH = 128
AZURE_FORBIDDEN_CHARACTERS = ("<", ">", "%", "&", "\\", "?", "/")
AZURE_RESERVED_PREFIXES = ("microsoft", "azure", "windows")
