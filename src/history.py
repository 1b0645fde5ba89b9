# ABOUTME: Recent-search history and suggestion lookup on top of a key-value store.
# ABOUTME: Used by the web layer after successful searches; the acquisition core does not touch it.

import json

from src.storage import KeyValueStore

HISTORY_KEY = "recentSearches"


class SearchHistory:
    """Most-recent-first list of successful searches, de-duplicated case-insensitively."""

    def __init__(self, store: KeyValueStore, key: str = HISTORY_KEY, limit: int = 5):
        self.store = store
        self.key = key
        self.limit = limit

    def recent(self) -> list[str]:
        raw = self.store.get(self.key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError:
            return []
        if not isinstance(items, list):
            return []
        return [i for i in items if isinstance(i, str)][: self.limit]

    def add(self, query: str) -> list[str]:
        query = query.strip()
        if not query:
            return self.recent()
        items = [query] + [i for i in self.recent() if i.lower() != query.lower()]
        items = items[: self.limit]
        self.store.set(self.key, json.dumps(items))
        return items

    def suggestions(self, prefix: str) -> list[str]:
        """Recent searches containing `prefix`; all of them when the prefix is blank."""
        needle = prefix.strip().lower()
        return [i for i in self.recent() if needle in i.lower()]
