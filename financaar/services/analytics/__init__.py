from .service import (
    AdvancedAnalytics,
    AnalyticsService,
    CategorySpending,
    DailyChartData,
    HealthScore,
    InvalidWindowError,
    MonthlySummary,
    SavingsRate,
    calculate_stability,
    score_financial_health,
)

__all__ = [
    "AdvancedAnalytics",
    "AnalyticsService",
    "CategorySpending",
    "DailyChartData",
    "HealthScore",
    "InvalidWindowError",
    "MonthlySummary",
    "SavingsRate",
    "calculate_stability",
    "score_financial_health",
]
