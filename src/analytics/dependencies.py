from src.analytics.service import AnalyticsService


def get_analytics_service() -> AnalyticsService:
    """Get AnalyticsService instance"""
    return AnalyticsService()
