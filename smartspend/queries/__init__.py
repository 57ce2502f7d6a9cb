"""Report queries package."""

from smartspend.queries.analytics import SpendingAnalytics

__all__ = ["SpendingAnalytics"]
