from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Optional

# Fields the free-text search looks at, in display order
SEARCH_FIELDS = ("name", "sku", "category", "description")


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def normalize_search(term: Optional[str]) -> str:
    return (term or "").strip().lower()


def matches_search(item: Any, needle: str) -> bool:
    """True when any searchable field contains ``needle`` (already normalized)."""
    if not needle:
        return True
    for name in SEARCH_FIELDS:
        value = _field(item, name)
        if value and needle in str(value).lower():
            return True
    return False


def is_low_stock(item: Any) -> bool:
    threshold = _field(item, "low_stock_threshold")
    if threshold is None:
        return False
    return int(_field(item, "quantity") or 0) <= int(threshold)


class SearchView:
    """
    Filtered view over an item list.

    Nothing is computed up front: every iteration walks the underlying list
    again, so the view can be iterated any number of times and always reflects
    the list it was built from. Build a new view when the list or the search
    term changes.
    """

    def __init__(self, items: Optional[Iterable[Any]], search: Optional[str] = ""):
        self._items = items if items is not None else ()
        self.search = normalize_search(search)

    def __iter__(self) -> Iterator[Any]:
        if not self.search:
            yield from self._items
            return
        for item in self._items:
            if matches_search(item, self.search):
                yield item

    def __repr__(self) -> str:
        return f"<SearchView search={self.search!r}>"
