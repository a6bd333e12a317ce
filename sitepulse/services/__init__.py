"""Public services consumed by the host application."""

from sitepulse.services.analytics import AnalyticsService, page_name_from_path
from sitepulse.services.session import SessionService

__all__ = ["AnalyticsService", "SessionService", "page_name_from_path"]
