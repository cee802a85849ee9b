"""Event detail-page providers.

EventPageProvider downloads an ADE event page and runs the lineup parser
over it.
"""

from src.providers.lineup.event_page_provider import EventPageProvider

__all__ = ["EventPageProvider"]
