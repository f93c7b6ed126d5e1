# nursery/schemas/dashboard_schemas.py
from pydantic import BaseModel
from typing import Dict, List


class DashboardSummary(BaseModel):
    merchants_by_status: Dict[str, int]
    quotations_by_status: Dict[str, int]
    quotations_waiting_for_admin: int
    total_orders: int
    total_revenue: float

class DashboardResponse(BaseModel):
    message: str
    data: DashboardSummary

# --------------------------
# Merchant dashboard
# --------------------------
class MonthlyRevenue(BaseModel):
    month: str              # YYYY-MM
    amount: float

class MerchantSummary(BaseModel):
    merchant_code: str
    open_requests: int
    quotes_waiting_for_admin: int
    quotes_accepted: int
    orders_by_status: Dict[str, int]
    active_orders: int
    completed_orders: int
    delivered_revenue: float
    monthly_revenue: List[MonthlyRevenue] = []

class MerchantSummaryResponse(BaseModel):
    message: str
    data: MerchantSummary
