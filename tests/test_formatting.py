"""Tests for metric display formatting."""

import pytest

from investor_data.formatting import (
    PLACEHOLDER,
    format_growth,
    format_market_cap,
    format_ratio,
    growth_direction,
)


class TestFormatting:
    """Tests for display helpers."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.153, "15%"), (-0.05, "-5%"), (0.0, "0%"), (1.5, "150%"), (None, PLACEHOLDER)],
    )
    def test_format_growth(self, value, expected) -> None:
        assert format_growth(value) == expected

    def test_format_ratio(self) -> None:
        assert format_ratio(1.23456) == "1.23"
        assert format_ratio(None) == PLACEHOLDER

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (2_870_000_000_000, "$2870.0B"),
            (1_000_000_000, "$1.0B"),
            (45_600_000, "$45.6M"),
            (999_999, "$999999"),
            (None, PLACEHOLDER),
        ],
    )
    def test_format_market_cap(self, value, expected) -> None:
        """Test billions, millions and raw dollars."""
        assert format_market_cap(value) == expected

    def test_growth_direction(self) -> None:
        """Test zero counts as positive and missing as neutral."""
        assert growth_direction(0.2) == "positive"
        assert growth_direction(0.0) == "positive"
        assert growth_direction(-0.01) == "negative"
        assert growth_direction(None) == "neutral"
