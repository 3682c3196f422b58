"""Tests for suggestion ranking and keyboard navigation."""

from investor_data.models import StockListItem
from investor_data.search import (
    NO_SELECTION,
    Direction,
    StockSearch,
    match_priority,
    rank_suggestions,
)


def _items(*symbols: str) -> list[StockListItem]:
    return [StockListItem(symbol=s) for s in symbols]


def _symbols(matches) -> list[str]:
    return [m.item.symbol for m in matches]


class TestMatchPriority:
    """Tests for per-candidate priority buckets."""

    def test_symbol_prefix(self) -> None:
        assert match_priority(StockListItem(symbol="TWLO"), "tw") == 1

    def test_symbol_contains(self) -> None:
        assert match_priority(StockListItem(symbol="AFLX"), "fl") == 2

    def test_company_word_prefix(self) -> None:
        item = StockListItem(symbol="META", company_name="Meta Platforms, Inc.")
        assert match_priority(item, "plat") == 3

    def test_company_word_middle_does_not_match(self) -> None:
        """Test only word starts count, not substrings inside a word."""
        item = StockListItem(symbol="META", company_name="Meta Platforms")
        assert match_priority(item, "forms") is None

    def test_missing_company_name(self) -> None:
        assert match_priority(StockListItem(symbol="XYZ"), "apple") is None


class TestRankSuggestions:
    """Tests for rank_suggestions ordering and limits."""

    def test_empty_query_returns_nothing(self) -> None:
        """Test empty query is an empty result, not everything."""
        assert rank_suggestions(_items("AAPL", "MSFT"), "") == []

    def test_prefix_matches_alphabetical(self) -> None:
        """Test "TW" over [TWLO, NFLX, TWOU] yields [TWLO, TWOU]."""
        assert _symbols(rank_suggestions(_items("TWOU", "NFLX", "TWLO"), "TW")) == ["TWLO", "TWOU"]

    def test_contains_match_included(self) -> None:
        """Test "fl" picks up symbols containing it."""
        matches = rank_suggestions(
            [
                StockListItem(symbol="TWLO"),
                StockListItem(symbol="NFLX", company_name="Netflix Inc"),
                StockListItem(symbol="AFLX"),
            ],
            "fl",
        )
        assert _symbols(matches) == ["AFLX", "NFLX"]
        assert [m.priority for m in matches] == [2, 2]

    def test_symbol_prefix_beats_company_word(self) -> None:
        """Test "net": NETS (symbol prefix) ranks before NFLX (company word)."""
        matches = rank_suggestions(
            [
                StockListItem(symbol="NFLX", company_name="Netflix Inc"),
                StockListItem(symbol="NETS", company_name="Nets Co"),
            ],
            "net",
        )
        assert _symbols(matches) == ["NETS", "NFLX"]
        assert [m.priority for m in matches] == [1, 3]

    def test_priority_beats_alphabet(self) -> None:
        """Test a worse bucket never outranks a better one."""
        matches = rank_suggestions(
            [
                StockListItem(symbol="AAA", company_name="Zoom Holdings"),
                StockListItem(symbol="BZOO"),
                StockListItem(symbol="ZOOM"),
            ],
            "zoo",
        )
        assert _symbols(matches) == ["ZOOM", "BZOO", "AAA"]

    def test_case_insensitive(self) -> None:
        assert _symbols(rank_suggestions(_items("aapl", "MSFT"), "AAP")) == ["aapl"]

    def test_limit_of_ten(self) -> None:
        """Test 25 matches are truncated to the 10 best."""
        items = _items(*[f"X{i:02d}" for i in range(20)]) + [
            StockListItem(symbol=f"A{i}X", company_name="x") for i in range(5)
        ]
        matches = rank_suggestions(items, "x")
        assert len(matches) == 10
        assert _symbols(matches) == [f"X{i:02d}" for i in range(10)]

    def test_custom_limit(self) -> None:
        assert len(rank_suggestions(_items("A1", "A2", "A3"), "a", limit=2)) == 2


class TestStockSearch:
    """Tests for the search box navigation state machine."""

    def _search(self, *symbols: str) -> StockSearch:
        items = _items(*symbols)
        return StockSearch(lambda: items)

    def test_initial_state(self) -> None:
        search = self._search("AAPL")
        assert search.selected_index == NO_SELECTION
        assert search.selected() is None

    def test_down_moves_and_clamps(self) -> None:
        """Test down walks the list and stops at the last index."""
        search = self._search("A1", "A2", "A3")
        search.update("a")
        assert [search.navigate(Direction.DOWN) for _ in range(5)] == [0, 1, 2, 2, 2]

    def test_up_from_none_wraps_to_last(self) -> None:
        search = self._search("A1", "A2", "A3")
        search.update("a")
        assert search.navigate(Direction.UP) == 2

    def test_up_clamps_at_first(self) -> None:
        """Test no wraparound past index 0."""
        search = self._search("A1", "A2", "A3")
        search.update("a")
        search.navigate(Direction.DOWN)
        assert search.navigate(Direction.UP) == 0
        assert search.selected_index == 0

    def test_query_change_resets_selection(self) -> None:
        search = self._search("A1", "A2", "A3")
        search.update("a")
        search.navigate(Direction.DOWN)
        search.update("a1")
        assert search.selected_index == NO_SELECTION

    def test_navigation_without_suggestions(self) -> None:
        search = self._search("A1")
        search.update("zzz")
        assert search.navigate(Direction.DOWN) == NO_SELECTION
        assert search.navigate(Direction.UP) == NO_SELECTION

    def test_selected_falls_back_to_first(self) -> None:
        """Test nothing highlighted submits the top suggestion."""
        search = self._search("A2", "A1")
        search.update("a")
        assert search.selected().symbol == "A1"
        search.navigate(Direction.DOWN)
        search.navigate(Direction.DOWN)
        assert search.selected().symbol == "A2"

    def test_reads_current_list(self) -> None:
        """Test suggestions reflect the list at update time."""
        items: list[StockListItem] = []
        search = StockSearch(lambda: items)
        assert search.update("a") == []
        items.append(StockListItem(symbol="AAPL"))
        assert [s.symbol for s in search.update("a")] == ["AAPL"]

    def test_clear(self) -> None:
        search = self._search("A1")
        search.update("a")
        search.navigate(Direction.DOWN)
        search.clear()
        assert (search.query, search.suggestions, search.selected_index) == ("", [], NO_SELECTION)
