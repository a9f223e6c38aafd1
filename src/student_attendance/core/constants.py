"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Weight of a "late" day in the attendance percentage. Used by every report.
LATE_WEIGHT = 0.5

DEFAULT_SESSION_DAYS = 7
DEFAULT_REPORT_DAYS = 30
MIN_PASSWORD_LENGTH = 6

USERS_COLLECTION = "users"
ATTENDANCE_COLLECTION = "attendance"
