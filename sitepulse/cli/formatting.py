# ==============================================================================
# Dashboard Formatting Helpers
# ==============================================================================
"""
Human-readable renderings of report values.

Used by the analytics command; kept free of terminal codes so they can be
reused by any front end.
"""

BYTE_UNITS = ("B", "KB", "MB", "GB")

# (upper bound in ms, label); anything slower is "Poor"
PERFORMANCE_BANDS = (
    (1000, "Excellent"),
    (3000, "Good"),
    (5000, "Fair"),
)


def format_number(value: float) -> str:
    """Compact count: 1.2M, 3.4K, or the plain number below 1000."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1000:
        return f"{value / 1000:.1f}K"
    if isinstance(value, float) and not value.is_integer():
        return f"{value:.1f}"
    return str(int(value))


def format_duration(ms: float) -> str:
    """
    Coarse duration for session lengths.

    Examples:
        format_duration(45_000)     -> "45s"
        format_duration(125_000)    -> "2m 5s"
        format_duration(3_900_000)  -> "1h 5m"
    """
    if not ms:
        return "0s"
    seconds = int(ms // 1000)
    minutes = seconds // 60
    hours = minutes // 60
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def format_time_ms(ms: float) -> str:
    """Timing value: whole milliseconds below one second, else seconds."""
    if not ms:
        return "0ms"
    if ms < 1000:
        return f"{int(ms + 0.5)}ms"
    return f"{ms / 1000:.2f}s"


def format_bytes(size: float) -> str:
    """Byte size in 1024-based units with up to two decimals."""
    if not size or size < 1:
        return "0 B"
    index = 0
    value = float(size)
    while value >= 1024 and index < len(BYTE_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {BYTE_UNITS[index]}"


def format_interaction_type(interaction_type: str) -> str:
    """'scroll_depth' -> 'Scroll Depth'."""
    return " ".join(word.capitalize() for word in interaction_type.split("_") if word)


def performance_score(ms: float) -> str:
    """Rate a timing value as Excellent, Good, Fair or Poor."""
    for upper, label in PERFORMANCE_BANDS:
        if ms < upper:
            return label
    return "Poor"
