"""Stored links store (bank portals, bill payment pages, ...)."""

from finance_tracker.models.records import StoredLink, StoredLinkCreate
from finance_tracker.stores.base import RecordStore


class StoredLinkStore(RecordStore[StoredLink]):
    """Saved links, most recently added first."""

    table = "stored_links"
    model = StoredLink
    create_model = StoredLinkCreate
    noun = "Link"
    plural = "links"
    date_column = "created_at"
    order_column = "created_at"
    ascending = False
    search_fields = ("title", "url", "description", "category")
    updatable_fields = frozenset({"title", "url", "description", "category"})
