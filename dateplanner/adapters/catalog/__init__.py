"""Event catalog adapters (Ticketmaster, Eventbrite)."""

from dateplanner.adapters.catalog.eventbrite import EventbriteCatalog
from dateplanner.adapters.catalog.ticketmaster import TicketmasterCatalog

__all__ = ["EventbriteCatalog", "TicketmasterCatalog"]
