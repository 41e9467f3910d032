from .misc import now_iso, new_id, format_time, parse_seconds, parse_seconds_or, clamp

__all__ = ["now_iso", "new_id", "format_time", "parse_seconds", "parse_seconds_or", "clamp"]
