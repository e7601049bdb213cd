import enum
# =========================================================
# ENUMS
# =========================================================
class TaskPriority(str, enum.Enum):
    do_first = "do_first"
    schedule = "schedule"
    delegate = "delegate"
    eliminate = "eliminate"

class ReminderKind(str, enum.Enum):
    twenty_four_hours = "24h"
    one_hour = "1h"
