from prometheus_client import Counter

REMINDERS_SENT = Counter(
    "deadline_reminders_sent_total",
    "Reminder messages delivered",
    ["kind", "channel"]
)

REMINDERS_FAILED = Counter(
    "deadline_reminders_failed_total",
    "Reminder messages that could not be delivered",
    ["kind", "channel"]
)

SCAN_CYCLES = Counter(
    "deadline_scan_cycles_total",
    "Deadline scan cycles by outcome",
    ["outcome"]
)

FLAG_WRITE_FAILURES = Counter(
    "deadline_flag_write_failures_total",
    "Sent-flag updates that failed after a dispatch attempt",
    ["kind"]
)
