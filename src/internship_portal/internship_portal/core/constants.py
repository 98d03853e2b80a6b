"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_LIST_LIMIT = 200
DEFAULT_ADMIN_LIST_LIMIT = 500
DEFAULT_RESET_TOKEN_MAX_AGE = 3600
DEFAULT_FEDERATED_MAX_AGE = 300
DEFAULT_PRESIGNED_URL_SECONDS = 7 * 24 * 3600
MIN_PASSWORD_LENGTH = 6
