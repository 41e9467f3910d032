import math
import uuid
from datetime import datetime


# Simply returns the current local time as an ISO8601 string with timezone offset.
def now_iso():
    return datetime.now().astimezone().isoformat()

# Fresh opaque measurement id.
def new_id():
    return uuid.uuid4().hex

# Formats seconds as MM:SS.cc for timeline labels. Negative values clamp to zero.
def format_time(seconds):
    seconds = max(0.0, float(seconds))
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    centis = int(round((seconds % 1) * 100)) % 100
    return f"{mins:02d}:{secs:02d}.{centis:02d}"

# Parses a number typed into a text field. Returns None for blanks, garbage, NaN and infinities so callers can decide
# whether that means "reject" (start/end) or "treat as zero" (breakdown fields).
def parse_seconds(value):
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result

# Same as parse_seconds, but falls back to `default` instead of None.
def parse_seconds_or(value, default=0.0):
    result = parse_seconds(value)
    return default if result is None else result

# Clamp `value` into [low, high].
def clamp(value, low, high):
    return max(low, min(high, value))
