"""Common application-wide constants."""

from datetime import timedelta

# Every class occupies a fixed slot on the schedule
CLASS_DURATION = timedelta(minutes=60)

# Self check-in stays possible until this long after class start
CHECK_IN_GRACE = timedelta(minutes=15)

# Reservations open this long before class start ...
BOOKING_OPENS_BEFORE = timedelta(hours=12)
# ... and close this long before it
BOOKING_CLOSES_BEFORE = timedelta(minutes=15)

HISTORY_MAX_PAGE_SIZE = 100

# Audit log action names
NO_SHOW_SWEEP_ACTION = "no_show_sweep"
ADMIN_CHECK_IN_ACTION = "admin_check_in"
CLASS_DELETED_ACTION = "class_deleted"
MEMBER_DELETED_ACTION = "member_deleted"


__all__ = [
    "CLASS_DURATION",
    "CHECK_IN_GRACE",
    "BOOKING_OPENS_BEFORE",
    "BOOKING_CLOSES_BEFORE",
    "HISTORY_MAX_PAGE_SIZE",
    "NO_SHOW_SWEEP_ACTION",
    "ADMIN_CHECK_IN_ACTION",
    "CLASS_DELETED_ACTION",
    "MEMBER_DELETED_ACTION",
]
