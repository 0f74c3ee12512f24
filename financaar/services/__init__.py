from .analytics import (
    AdvancedAnalytics,
    AnalyticsService,
    CategorySpending,
    DailyChartData,
    MonthlySummary,
    SavingsRate,
)

__all__ = [
    "AdvancedAnalytics",
    "AnalyticsService",
    "CategorySpending",
    "DailyChartData",
    "MonthlySummary",
    "SavingsRate",
]
