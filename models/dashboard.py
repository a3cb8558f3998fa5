"""
Dashboard summary schemas.
"""

from models.base import BaseSchema
from models.product import CategoryBreakdown


class TopCategory(BaseSchema):
    category: str
    percentage: float


class DashboardSummary(BaseSchema):
    total_inventory_value: float
    total_items: int
    low_stock_items: int
    out_of_stock_items: int
    expired_items: int
    active_alerts: int
    category_breakdown: list[CategoryBreakdown]
    top_categories: list[TopCategory]


class DashboardSummaryResponse(BaseSchema):
    data: DashboardSummary
