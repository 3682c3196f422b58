"""Display strings for overview metrics."""

PLACEHOLDER = "—"  # shown for missing values

_BILLION = 1_000_000_000.0
_MILLION = 1_000_000.0


def format_growth(value: float | None) -> str:
    """Growth fraction as a whole percentage: 0.153 -> "15%"."""
    if value is None:
        return PLACEHOLDER
    return f"{value * 100:.0f}%"


def format_ratio(value: float | None) -> str:
    if value is None:
        return PLACEHOLDER
    return f"{value:.2f}"


def format_market_cap(value: int | None) -> str:
    """Market cap in billions or millions: 2_870_000_000_000 -> "$2870.0B"."""
    if value is None:
        return PLACEHOLDER
    if value >= _BILLION:
        return f"${value / _BILLION:.1f}B"
    if value >= _MILLION:
        return f"${value / _MILLION:.1f}M"
    return f"${value}"


def growth_direction(value: float | None) -> str:
    """Sign bucket used to color a metric: positive, negative or neutral."""
    if value is None:
        return "neutral"
    return "positive" if value >= 0 else "negative"
