"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# String field lengths
MAX_NAME_LENGTH = 255
MAX_EMAIL_LENGTH = 255
MAX_ACTOR_LENGTH = 255
MAX_ENUM_LENGTH = 32

# Hierarchy
DEFAULT_PATH_SEPARATOR = " > "
TENANT_LOCK_PREFIX = "orgtree:tenant-lock:"
DEFAULT_LOCK_TIMEOUT_SECONDS = 30.0
DEFAULT_LOCK_WAIT_SECONDS = 10.0
