"""
Analytics Pydantic Models

Response schemas for the sales & analytics report.
Field names serialize in camelCase to match what the dashboard consumes.
"""

from pydantic import Field
from typing import Optional, List

from repairdesk.models.schemas import CamelModel


class AnalyticsFilter(CamelModel):
    """Filters echoed back with every report"""
    period: str = Field(default="all", description="week, month, quarter, year, all or custom")
    category: str = Field(default="all", description="Service category or 'all'")
    start_date: Optional[str] = Field(None, description="Custom range start (YYYY-MM-DD)")
    end_date: Optional[str] = Field(None, description="Custom range end (YYYY-MM-DD)")


class ServiceCategoryStat(CamelModel):
    """Revenue and line item count for one service category"""
    id: str
    name: str
    count: int = 0
    revenue: float = 0.0


class RevenueByDay(CamelModel):
    """Revenue bucket for one calendar day"""
    date: str = Field(..., description="yyyy-MM-dd")
    revenue: float = 0.0
    ticket_count: int = 0


class ServicePopularity(CamelModel):
    """Occurrence count and revenue for one service"""
    service_id: str
    service_name: str
    count: int = 0
    revenue: float = 0.0
    category_id: str


class RepairPartStat(CamelModel):
    """Mentions of one repair part"""
    name: str
    count: int
    percentage: float = Field(..., description="Share of all part mentions (0-100)")


class AnalyticsReport(CamelModel):
    """Complete analytics report"""
    total_revenue: float = 0.0
    total_tickets: int = 0
    average_ticket_value: float = 0.0
    service_categories: List[ServiceCategoryStat] = []
    revenue_by_day: List[RevenueByDay] = []
    top_services: List[ServicePopularity] = []
    common_repair_parts: List[RepairPartStat] = []
    period: str = "all"
    filters: AnalyticsFilter = Field(default_factory=AnalyticsFilter)
