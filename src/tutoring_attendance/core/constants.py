"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_REPORT_DAYS = 30
DEFAULT_SMS_HEADER = "DERSHANE"
NETGSM_SEND_URL = "https://api.netgsm.com.tr/sms/send/json"
SMS_TIMEOUT_SECONDS = 10.0

# ISO weekday names, index 1..7 (Monday=1).
WEEKDAY_NAMES = ("", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Column widths (database/schema.sql).
NOTE_MAX_LENGTH = 500
ANNOUNCEMENT_TITLE_MAX_LENGTH = 200
