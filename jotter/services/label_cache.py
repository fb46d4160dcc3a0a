"""
Label Query Cache.

Maps a label name to one live "notes with this label" query for the
lifetime of the owning session, so every screen showing the same label
shares a single subscription.

Entries are never evicted. Label count is bounded by what the user
creates, and because each cached query is live it re-resolves by itself
after the label is renamed or deleted (to an empty result in both cases).
"""

from jotter.events.live import LiveQuery
from jotter.schemas.note import NoteData
from jotter.services.store import NoteStore


class LabelQueryCache:
    """Session-owned memo of live label queries."""

    def __init__(self, store: NoteStore) -> None:
        self._store = store
        self._queries: dict[str, LiveQuery[NoteData]] = {}

    def get_by_label(self, label: str) -> LiveQuery[NoteData]:
        query = self._queries.get(label)
        if query is None:
            query = self._store.live_notes_by_label(label)
            self._queries[label] = query
        return query

    def __contains__(self, label: str) -> bool:
        return label in self._queries

    def __len__(self) -> int:
        return len(self._queries)
