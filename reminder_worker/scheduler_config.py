"""
Scheduler Configuration for Deadline Reminders

Defines reminder bands, scan windows and scheduler settings.
All values are in hours unless stated otherwise.
"""

# 24h reminder fires anywhere in this band of hours-remaining
REMINDER_24H_MIN_HOURS = 20
REMINDER_24H_MAX_HOURS = 27

# Final reminder band. The lower bound reaches past the deadline so a
# deadline that passed between two polls still gets its reminder.
OVERDUE_GRACE_MINUTES = 15
REMINDER_1H_MIN_HOURS = -OVERDUE_GRACE_MINUTES / 60
REMINDER_1H_MAX_HOURS = 4

# Scan window around the store's "now"
SCAN_GRACE_WINDOW_HOURS = 1
SCAN_LOOKAHEAD_WINDOW_HOURS = 30

# How often the scheduler checks for tasks (in seconds)
SCHEDULER_CHECK_INTERVAL = 5 * 60  # Every 5 minutes

# Upper bound for a single channel send attempt (in seconds)
SEND_TIMEOUT_SECONDS = 15

# Descriptions longer than this are cut in reminder messages
DESCRIPTION_PREVIEW_LENGTH = 100
