"""Event catalogs: shared interfaces and fusion."""

from dateplanner.events.fusion import EventFusion, fuse, names_similar
from dateplanner.events.interfaces import DateWindow, EventCatalog

__all__ = ["DateWindow", "EventCatalog", "EventFusion", "fuse", "names_similar"]
