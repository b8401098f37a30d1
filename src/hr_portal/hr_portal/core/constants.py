"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Unique keys tried, in order, when writing a profile update.
PROFILE_KEY_STRATEGIES = ("id", "email", "user_id")
LEGACY_PROCEDURE_STRATEGY = "update_user_profile"

DEPARTMENT_CODE_WIDTH = 2
USER_SEQUENCE_WIDTH = 4

MIN_PASSWORD_LENGTH = 6
MOBILE_MIN_DIGITS = 7
MOBILE_MIN_LENGTH = 7
MOBILE_MAX_LENGTH = 20

PROVISIONING_SOURCE = "hr_hiring"
DEFAULT_HIRED_BY = "hr@econest.com"
NO_ROLE = "no_role"

DEFAULT_PAGE_SIZE = 50

# Employee type allowed to send department mail and see its read status.
DEPARTMENT_HEAD_TYPE = "department_head"
