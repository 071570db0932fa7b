"""View Schemas — operator occupancy and owner account aggregates."""

from decimal import Decimal

from pydantic import BaseModel


class OccupancyResponse(BaseModel):
    parked_count: int
    available_spots: int
    total_capacity: int
    pending_revenue: Decimal
    occupied_locations: list[str]


class AccountResponse(BaseModel):
    total_balance: Decimal
    unpaid_balance: Decimal
    session_count: int
    active_count: int
    vehicle_count: int
