"""Interactive symbol search over the in-memory stock list."""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from investor_data.models import StockListItem

MAX_SUGGESTIONS = 10

# Lower is better
PRIORITY_SYMBOL_PREFIX = 1
PRIORITY_SYMBOL_CONTAINS = 2
PRIORITY_NAME_WORD_PREFIX = 3


@dataclass(frozen=True)
class SuggestionMatch:
    item: StockListItem
    priority: int


def match_priority(item: StockListItem, query: str) -> int | None:
    """
    Priority bucket for one candidate, or None if it does not match.

    ``query`` must already be lower-cased.
    """
    symbol = item.symbol.lower()
    if symbol.startswith(query):
        return PRIORITY_SYMBOL_PREFIX
    if query in symbol:
        return PRIORITY_SYMBOL_CONTAINS
    name = (item.company_name or "").lower()
    if any(word.startswith(query) for word in name.split()):
        return PRIORITY_NAME_WORD_PREFIX
    return None


def rank_suggestions(
    items: Iterable[StockListItem],
    query: str,
    limit: int = MAX_SUGGESTIONS,
) -> list[SuggestionMatch]:
    """
    Rank stocks against a search query.

    Symbol prefix beats symbol substring beats company-name word prefix; ties
    break alphabetically by symbol. Plain case-insensitive matching, no fuzzy
    or edit-distance scoring. Pure and cheap enough to run per keystroke.

    Args:
        items: Candidate stocks
        query: Raw query text
        limit: Maximum number of matches (default: 10)

    Returns:
        Best matches first; empty for an empty query
    """
    if not query:
        return []
    needle = query.lower()

    matches = []
    for item in items:
        priority = match_priority(item, needle)
        if priority is not None:
            matches.append(SuggestionMatch(item=item, priority=priority))

    matches.sort(key=lambda m: (m.priority, m.item.symbol))
    return matches[:limit]


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


NO_SELECTION = -1


class StockSearch:
    """
    Search box state: query, ranked suggestions and keyboard selection.

    The stock list is read through ``stocks`` on every update so it always
    reflects whatever the stock list orchestrator currently shows.
    """

    def __init__(self, stocks: Callable[[], Sequence[StockListItem]]):
        self._stocks = stocks
        self.query = ""
        self.suggestions: list[StockListItem] = []
        self.selected_index = NO_SELECTION

    def update(self, query: str) -> list[StockListItem]:
        """Recompute suggestions for a new query and reset the selection."""
        self.query = query
        self.suggestions = [m.item for m in rank_suggestions(self._stocks(), query)]
        self.selected_index = NO_SELECTION
        return self.suggestions

    def navigate(self, direction: Direction) -> int:
        """
        Move the keyboard selection.

        Down clamps at the last suggestion. Up from no selection jumps to the
        last suggestion, otherwise clamps at the first.
        """
        if not self.suggestions:
            return self.selected_index
        last = len(self.suggestions) - 1
        if direction is Direction.DOWN:
            if self.selected_index < last:
                self.selected_index += 1
        elif self.selected_index > 0:
            self.selected_index -= 1
        elif self.selected_index == NO_SELECTION:
            self.selected_index = last
        return self.selected_index

    def selected(self) -> StockListItem | None:
        """Highlighted suggestion, falling back to the top one when nothing is highlighted."""
        if 0 <= self.selected_index < len(self.suggestions):
            return self.suggestions[self.selected_index]
        return self.suggestions[0] if self.suggestions else None

    def clear(self) -> None:
        self.query = ""
        self.suggestions = []
        self.selected_index = NO_SELECTION
