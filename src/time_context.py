# ABOUTME: Classifies a local timestamp into one of nine time-of-day buckets.
# ABOUTME: The bucket and its sleep context parameterize the insight prompt and fallbacks.

from datetime import datetime

from src.models import TimeBucket, TimeContext

# (end hour exclusive, bucket, sleep context), checked in order
_BUCKETS: tuple[tuple[int, TimeBucket, str], ...] = (
    (4, TimeBucket.LATE_NIGHT, "sleep hours"),
    (6, TimeBucket.EARLY_MORNING, "early waking hours"),
    (9, TimeBucket.MORNING, "waking hours"),
    (12, TimeBucket.LATE_MORNING, "active morning"),
    (14, TimeBucket.MIDDAY, "lunch time"),
    (17, TimeBucket.AFTERNOON, "active afternoon"),
    (19, TimeBucket.EARLY_EVENING, "dinner time"),
    (22, TimeBucket.EVENING, "wind-down hours"),
    (24, TimeBucket.NIGHT, "pre-sleep hours"),
)


def format_time(hour: int, minute: int) -> str:
    """Render a clock time as H:MM."""
    return f"{hour}:{minute:02d}"


def classify_time(moment: datetime) -> TimeContext:
    """Build the TimeContext for a local civil time.

    The timestamp is taken as already being in the location's timezone; no
    conversion happens here.
    """
    hour, minute = moment.hour, moment.minute
    for end, bucket, sleep_context in _BUCKETS:
        if hour < end:
            break
    return TimeContext(
        bucket=bucket,
        sleep_context=sleep_context,
        formatted_time=format_time(hour, minute),
        hour=hour,
        minute=minute,
    )
